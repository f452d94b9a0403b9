try:
    from ._version import __version__
except ImportError:
    from importlib.metadata import version, PackageNotFoundError

    try:
        __version__ = version("escaper")
    except PackageNotFoundError:
        __version__ = "unknown"

from escaper.core.context import Context
from escaper.core.escape import attr, css, escape, html, js, url, xml
from escaper.core.exceptions import EscapeError, UnknownContextError

__all__ = [
    "Context",
    "attr",
    "css",
    "escape",
    "html",
    "js",
    "url",
    "xml",
    "EscapeError",
    "UnknownContextError",
]
