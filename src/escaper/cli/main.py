"""Main CLI entry point."""

import logging
import os
import sys
from typing import Any, Optional

import rich.panel
import rich_click as click
from escaper import __version__
from escaper.core.context import USAGE, Context
from escaper.core.escape import ESCAPERS, escape as escape_value
from escaper.core.exceptions import UnknownContextError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

console = Console()

click.rich_click.USE_RICH_MARKUP = True
click.rich_click.STYLE_HELPTEXT_FIRST = True
click.rich_click.STYLE_COMMANDS_TABLE_SHOW_LINES = False
click.rich_click.STYLE_COMMANDS_TABLE_PAD_EDGE = False
click.rich_click.STYLE_COMMANDS_TABLE_BOX = None
click.rich_click.STYLE_COMMANDS_TABLE_EXPAND = False
click.rich_click.STYLE_OPTIONS_TABLE_EXPAND = False
click.rich_click.STYLE_COMMANDS_TABLE_HEADER = "bold magenta"
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = "Try running 'escaper --help' for more information."
click.rich_click.STYLE_OPTIONS_TABLE_BOX = None
click.rich_click.STYLE_COMMANDS_PANEL_BOX = None
click.rich_click.STYLE_OPTIONS_PANEL_BOX = None

click.rich_click.STYLE_HEADER_TEXT = "bold cyan"
click.rich_click.STYLE_OPTION = "cyan"
click.rich_click.STYLE_SWITCH = "cyan"
click.rich_click.STYLE_METAVAR = "dim white"
click.rich_click.STYLE_USAGE_COMMAND = "cyan"
click.rich_click.STYLE_USAGE = "dim"

click.rich_click.OPTION_GROUPS = {
    "escaper": [
        {
            "name": "Global Flags",
            "options": ["--verbose", "--help", "--version"],
        }
    ]
}

click.rich_click.COMMAND_GROUPS = {
    "escaper": [
        {
            "name": "Commands",
            "commands": ["escape", "contexts", "run"],
        }
    ]
}

DEFAULT_APP = "escaper.runtime.app:app"


# rich-click wraps tables in Panels which default to expand=True
original_panel_init = rich.panel.Panel.__init__


def panel_init(self, *args, **kwargs):
    kwargs.setdefault("expand", False)
    original_panel_init(self, *args, **kwargs)


rich.panel.Panel.__init__ = panel_init  # type: ignore[method-assign]


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=True)],
    )


def import_app(app_str: str) -> Any:
    """Import application from string (e.g. 'main:app')."""
    if ":" not in app_str:
        raise click.BadParameter("App must be in format 'module:app'", param_hint="APP")

    module_name, app_name = app_str.split(":", 1)

    # Add current directory to path so we can import local modules
    cwd = os.getcwd()
    if cwd not in sys.path:
        sys.path.insert(0, cwd)

    try:
        import importlib

        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(
            f"Could not import module '{module_name}': {e}", param_hint="APP"
        )

    try:
        app = getattr(module, app_name)
    except AttributeError:
        raise click.BadParameter(
            f"Attribute '{app_name}' not found in module '{module_name}'",
            param_hint="APP",
        )

    return app


def _parse_context(ctx: click.Context, param: click.Parameter, value: str) -> Context:
    try:
        return Context.parse(value)
    except UnknownContextError:
        choices = ", ".join(c.value for c in Context)
        raise click.BadParameter(f"'{value}' is not one of: {choices}")


@click.group(
    help=f"""
[bold white on cyan] escaper [/] [bold cyan]v{__version__}[/] Escape untrusted text for HTML, CSS, JS, URL and XML.

Run [bold cyan]escaper escape html VALUE[/] to escape a value.
Run [bold cyan]escaper run[/] to serve the escaping API.
"""
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(__version__)
def cli(verbose: bool) -> None:
    configure_logging(verbose)


@cli.command()
@click.argument("context", callback=_parse_context, metavar="CONTEXT")
@click.argument("value", required=False)
@click.option("--all", "show_all", is_flag=True, help="Show VALUE escaped for every context")
def escape(context: Context, value: Optional[str], show_all: bool) -> None:
    """Escape VALUE (or stdin) for CONTEXT: attr, css, html, js, url or xml."""
    if value is None:
        value = click.get_text_stream("stdin").read()
        if value.endswith("\n"):
            value = value[:-1]

    if not show_all:
        click.echo(escape_value(value, context))
        return

    table = Table(show_header=True, header_style="bold magenta", box=None)
    table.add_column("Context", style="cyan")
    table.add_column("Output", overflow="fold")
    for ctx, escaper in ESCAPERS.items():
        table.add_row(
            ctx.value,
            Text(escaper(value)),
            style="bold" if ctx is context else None,
        )
    console.print(table)


@cli.command()
def contexts() -> None:
    """List the escaping contexts and where their output may go."""
    table = Table(show_header=True, header_style="bold magenta", box=None)
    table.add_column("Context", style="cyan")
    table.add_column("Use for")
    for context in Context:
        table.add_row(context.value, USAGE[context])
    console.print(table)


@cli.command()
@click.argument("app", required=False, default=DEFAULT_APP)
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, type=int, help="Port to bind to")
@click.option("--workers", default=None, type=int, help="Number of worker processes")
@click.option("--no-access-log", is_flag=True, help="Disable access logging")
def run(
    app: str,
    host: str,
    port: int,
    workers: Optional[int],
    no_access_log: bool,
) -> None:
    """Run the escaping API server using Uvicorn."""
    import uvicorn

    console.print(f"🚀 Starting server for [cyan]{app}[/]")
    console.print(
        f"🌍 Listening on [link=http://{host}:{port}]http://{host}:{port}[/link]"
    )

    # Locate the app object to verify, but pass string to uvicorn
    import_app(app)

    uvicorn.run(
        app,
        host=host,
        port=port,
        workers=workers,
        access_log=not no_access_log,
        factory=False,
    )


if __name__ == "__main__":
    cli()
