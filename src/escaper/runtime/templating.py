from typing import Any, Dict, Optional

from jinja2 import BaseLoader, Environment, PackageLoader, select_autoescape
from markupsafe import Markup

from escaper.core.context import Context
from escaper.core.escape import ESCAPERS, escape


def _as_filter(context: Context) -> Any:
    escaper = ESCAPERS[context]

    def _filter(value: Any) -> Markup:
        # Already escaped for its context; autoescape must not touch it again
        return Markup(escaper(value))

    _filter.__name__ = f"esc_{context.value}"
    return _filter


def _esc(value: Any, context: str = "html") -> Markup:
    return Markup(escape(value, context))


def create_environment(loader: Optional[BaseLoader] = None) -> Environment:
    """Build a Jinja2 environment with one ``esc_<context>`` filter per context.

    Usage in templates:
        <div title="{{ name|esc_attr }}" style="color: {{ color|esc_css }}">
        <script>var q = '{{ q|esc_js }}';</script>
        <a href="/search?q={{ q|esc_url }}">{{ q|esc("html") }}</a>
    """
    env = Environment(
        loader=loader or PackageLoader("escaper", "templates"),
        autoescape=select_autoescape(["html", "xml"]),
    )
    for context in Context:
        env.filters[f"esc_{context.value}"] = _as_filter(context)
    env.filters["esc"] = _esc
    return env


# Shared environment for the package's own templates
_env = create_environment()


def render_template(template_name: str, context: Dict[str, Any]) -> str:
    """Render a Jinja2 template with the given context.

    Args:
        template_name: Name of the template relative to src/escaper/templates/
        context: Dictionary of variables to pass to the template

    Returns:
        Rendered HTML string
    """
    template = _env.get_template(template_name)
    return template.render(**context)
