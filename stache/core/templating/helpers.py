# stache/core/templating/helpers.py
"""
Output helpers for the renderer: stringification and HTML escaping.
"""
from typing import Any

from .lookup import unwrap

_HTML_ESCAPES = str.maketrans({
    '"': "&quot;",
    "'": "&apos;",
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
})


def html_escape(text: str) -> str:
    """Replaces the five HTML-reserved characters; every other character passes through."""
    return text.translate(_HTML_ESCAPES)


def stringify(value: Any) -> str:
    """Natural text form of a resolved value. None renders as nothing."""
    value = unwrap(value)
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)
