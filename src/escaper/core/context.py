"""Output contexts an untrusted value can be embedded into."""

from enum import Enum
from typing import Union

from escaper.core.exceptions import UnknownContextError


class Context(str, Enum):
    ATTR = "attr"
    CSS = "css"
    HTML = "html"
    JS = "js"
    URL = "url"
    XML = "xml"

    @classmethod
    def parse(cls, value: Union["Context", str]) -> "Context":
        """Resolve a context from an enum member or a case-insensitive name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise UnknownContextError(value)

    def __str__(self) -> str:
        return self.value


# Where each context's output may safely go, shown by the CLI and the index page
USAGE = {
    Context.ATTR: "Simple attribute values (width, name, value). "
    "Not for href, src, style or event handlers.",
    Context.CSS: "CSS property values and style attributes. "
    "Not for url(), behavior or -moz-binding.",
    Context.HTML: "Element text content (div, p, td, ...).",
    Context.JS: "JavaScript string literals and inline event handlers.",
    Context.URL: "A single URL query parameter value. Not a whole URI.",
    Context.XML: "XML element text content.",
}
