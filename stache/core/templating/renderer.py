# stache/core/templating/renderer.py
"""
Contains the TemplateRenderer class, which walks a parsed Template against a
chain of data contexts and produces the output text.
"""
from typing import Any, Callable, Iterable, List, Optional, Tuple, Union
import logging
import structlog

from stache.exceptions import ParseError

from .helpers import html_escape, stringify
from .lookup import (
    ContextChain,
    LookupResult,
    LookupStatus,
    is_empty,
    is_sequence,
    lookup_for,
    resolve,
    unwrap,
)
from .nodes import Node, SectionNode, Template, TextNode, VariableNode
from .parser import parse

# stdlib-backed so library use stays quiet until configure_logging attaches a handler.
log = structlog.wrap_logger(logging.getLogger(__name__), wrapper_class=structlog.stdlib.BoundLogger)

DiagnosticSink = Callable[[str, str], None]


def log_diagnostic(name: str, error: str):
    # default sink: lookup failures are logged and the tag renders as nothing.
    log.warning("context_lookup_failed", name=name, error=error)


class TemplateRenderer:
    """Renders templates. Holds no per-render state, so one instance may be shared."""

    def __init__(self, diagnostics: Optional[DiagnosticSink] = None):
        self.diagnostics: DiagnosticSink = diagnostics or log_diagnostic

    def render(self, template: Template, contexts: Iterable[Any] = ()) -> str:
        chain = ContextChain.from_values(contexts)
        parts: List[str] = []
        self._render_nodes(template.nodes, chain, parts)
        return "".join(parts)

    def _resolve(self, chain: ContextChain, name: str) -> LookupResult:
        result = resolve(chain, name)
        if result.status is LookupStatus.MALFORMED:
            self.diagnostics(name, result.error or "malformed lookup")
        return result

    def _render_nodes(self, nodes: Tuple[Node, ...], chain: ContextChain, parts: List[str]):
        for node in nodes:
            if isinstance(node, TextNode):
                parts.append(node.text)
            elif isinstance(node, VariableNode):
                result = self._resolve(chain, node.name)
                if not result.found:
                    continue
                text = stringify(result.value)
                parts.append(text if node.raw else html_escape(text))
            elif isinstance(node, SectionNode):
                self._render_section(node, chain, parts)
            else:
                raise TypeError(f"unknown node type: {type(node).__name__}")

    def _section_contexts(self, section: SectionNode, value: Any, chain: ContextChain) -> List[Any]:
        enclosing = chain.head if len(chain) else None
        if section.inverted:
            return [enclosing]
        target = unwrap(value)
        if is_sequence(target):
            return list(target)
        if lookup_for(target) is not None:
            return [value]
        # truthy scalars only gate the block; the scope stays as it was.
        return [enclosing]

    def _render_section(self, section: SectionNode, chain: ContextChain, parts: List[str]):
        result = self._resolve(chain, section.name)
        empty = is_empty(result)
        if empty != section.inverted:
            return
        for ctx in self._section_contexts(section, result.value, chain):
            self._render_nodes(section.children, chain.push(ctx), parts)


def render_template(template: Template, contexts: Iterable[Any] = (),
                    diagnostics: Optional[DiagnosticSink] = None) -> str:
    """Renders a parsed template against root contexts given nearest first."""
    return TemplateRenderer(diagnostics).render(template, contexts)


def render(template: Union[Template, str], *contexts: Any,
           diagnostics: Optional[DiagnosticSink] = None) -> str:
    """Renders a Template, or parses and renders raw source. Parse errors propagate."""
    if isinstance(template, str):
        template = parse(template)
    return render_template(template, contexts, diagnostics=diagnostics)


def render_string(source: str, *contexts: Any,
                  diagnostics: Optional[DiagnosticSink] = None) -> str:
    """One-shot parse and render. A parse failure yields the error text instead of raising."""
    try:
        template = parse(source)
    except ParseError as e:
        log.debug("render_string_parse_failed", line=e.line, message=e.message)
        return str(e)
    return render_template(template, contexts, diagnostics=diagnostics)
