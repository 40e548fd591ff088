# stache/core/templating/__init__.py
"""
Templating engine for stache.

Provides the parser, the renderer and the name-resolution primitives, plus
build_root_contexts for turning data files and variables into render contexts.
"""
from .nodes import Template, TextNode, VariableNode, SectionNode, Node
from .parser import TemplateParser, parse
from .lookup import ContextChain, LookupResult, LookupStatus, resolve, is_empty
from .renderer import TemplateRenderer, DiagnosticSink, render, render_string, render_template
from .context_builder import build_root_contexts, parse_user_vars

__all__ = [
    "Template",
    "TextNode",
    "VariableNode",
    "SectionNode",
    "Node",
    "TemplateParser",
    "parse",
    "ContextChain",
    "LookupResult",
    "LookupStatus",
    "resolve",
    "is_empty",
    "TemplateRenderer",
    "DiagnosticSink",
    "render",
    "render_string",
    "render_template",
    "build_root_contexts",
    "parse_user_vars",
]
