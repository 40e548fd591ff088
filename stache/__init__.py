"""stache: a small Mustache-style template parser and renderer."""

__version__ = "0.1.0"

from stache.exceptions import StacheError, ParseError
from stache.core.templating import (
    Template,
    TemplateRenderer,
    parse,
    render,
    render_string,
)

__all__ = [
    "__version__",
    "StacheError",
    "ParseError",
    "Template",
    "TemplateRenderer",
    "parse",
    "render",
    "render_string",
]
