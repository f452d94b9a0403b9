"""Context-aware escaping for untrusted strings.

Each function makes a value safe for exactly one output context. Picking the
wrong one for where the value ends up (e.g. ``html`` inside an ``onclick``
handler) is an injection bug, so callers should use :func:`escape` with an
explicit :class:`~escaper.core.context.Context` when the target is dynamic.

All lookup tables are built at import time; the functions share no mutable
state and are safe to call from any thread or task.
"""

import re
import urllib.parse
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Union

from escaper.core.context import Context

# Lone surrogates are the only ill-formed text a Python str can hold
_SURROGATES = re.compile("[\ud800-\udfff]")
_REPLACEMENT = "\ufffd"

_HTML_TABLE = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#039;",
    }
)

_XML_TABLE = str.maketrans(
    {
        "'": "&apos;",
        '"': "&quot;",
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
    }
)

_ATTR_UNSAFE = re.compile(r"[^a-zA-Z0-9,.\-_]")
_JS_UNSAFE = re.compile(r"[^a-zA-Z0-9,._]")
_CSS_UNSAFE = re.compile(r"[^a-zA-Z0-9]")


def _build_attr_map() -> Dict[str, str]:
    named = {'"': "&quot;", "&": "&amp;", "<": "&lt;", ">": "&gt;"}
    table = {}
    for code in range(0x100):
        char = chr(code)
        if char in named:
            table[char] = named[char]
        elif (code < 0x20 and char not in "\t\n\r") or 0x7F <= code <= 0x9F:
            # Not representable in HTML; the parser would substitute it anyway
            table[char] = "&#xFFFD;"
        else:
            table[char] = "&#x%02X;" % code
    return table


_ATTR_MAP = _build_attr_map()
_JS_MAP = {chr(code): "\\x%02X" % code for code in range(0x100)}
_CSS_MAP = {chr(code): "\\%X " % code for code in range(0x100)}


def to_text(value: Any) -> str:
    """Coerce input to well-formed text.

    Bytes are decoded as UTF-8 and lone surrogates in str input are replaced
    with U+FFFD, so escaping never fails on malformed input.
    """
    if value is None:
        raise TypeError("Cannot escape None")
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    text = value if type(value) is str else str(value)
    return _SURROGATES.sub(_REPLACEMENT, text)


def _attr_replace(match: re.Match) -> str:
    char = match.group()
    try:
        return _ATTR_MAP[char]
    except KeyError:
        return "&#x%04X;" % ord(char)


def _js_replace(match: re.Match) -> str:
    char = match.group()
    try:
        return _JS_MAP[char]
    except KeyError:
        # Astral code points become a UTF-16 surrogate pair
        units = char.encode("utf-16-be")
        return "".join(
            "\\u%02X%02X" % (units[i], units[i + 1]) for i in range(0, len(units), 2)
        )


def _css_replace(match: re.Match) -> str:
    char = match.group()
    try:
        return _CSS_MAP[char]
    except KeyError:
        return "\\%X " % ord(char)


def attr(value: Any) -> str:
    """Escape a value for a simple HTML attribute.

    Safe in double-quoted, single-quoted and unquoted attributes::

        <div attr=VALUE>  <div attr='VALUE'>  <div attr="VALUE">

    Only for plain attributes such as ``width``, ``name`` or ``value``. Use
    :func:`url` for ``href``/``src``, :func:`css` for ``style`` and :func:`js`
    for event handlers.

    Args:
        value: Untrusted value (str, bytes or anything with ``str()``)

    Returns:
        Value with everything except ASCII alphanumerics and ``,.-_``
        replaced by character references
    """
    return _ATTR_UNSAFE.sub(_attr_replace, to_text(value))


def css(value: Any) -> str:
    """Escape a value for a CSS property value or ``style`` attribute.

    Safe in ``selector { property: VALUE; }`` and ``style="property: VALUE"``.
    Not safe for ``url(...)``, ``behavior``, ``-moz-binding`` or
    ``expression(...)``.
    """
    return _CSS_UNSAFE.sub(_css_replace, to_text(value))


def html(value: Any) -> str:
    """Escape HTML element content.

    Escapes: & < > " '
    """
    return to_text(value).translate(_HTML_TABLE)


def js(value: Any) -> str:
    """Escape a value for a JavaScript string literal.

    The result can go inside single or double quotes in a ``<script>`` block
    and inside an inline event handler attribute::

        <script>x='VALUE'</script>
        <div onmouseover="x='VALUE'">
    """
    return _JS_UNSAFE.sub(_js_replace, to_text(value))


def url(value: Any) -> str:
    """Encode a value for use as one URL query parameter value.

    Space becomes ``+``; any octet outside ``A-Z a-z 0-9 - _ . ~`` becomes
    ``%XX``. Must not be used on a whole URI or a path segment.
    """
    return urllib.parse.quote_plus(to_text(value), safe="")


def xml(value: Any) -> str:
    """Escape XML element content.

    Replaces the five reserved characters with their named entities:
    ``'`` ``&apos;``, ``"`` ``&quot;``, ``&`` ``&amp;``, ``<`` ``&lt;``,
    ``>`` ``&gt;``.
    """
    return to_text(value).translate(_XML_TABLE)


ESCAPERS: Mapping[Context, Callable[[Any], str]] = MappingProxyType(
    {
        Context.ATTR: attr,
        Context.CSS: css,
        Context.HTML: html,
        Context.JS: js,
        Context.URL: url,
        Context.XML: xml,
    }
)


def escape(value: Any, context: Union[Context, str] = Context.HTML) -> str:
    """Escape ``value`` for the given output context.

    Args:
        value: Untrusted value
        context: A :class:`Context` or its name, e.g. ``"js"``

    Returns:
        Escaped string

    Raises:
        UnknownContextError: If ``context`` is not a known context
    """
    return ESCAPERS[Context.parse(context)](value)
