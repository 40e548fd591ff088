# stache/core/templating/nodes.py
"""
Immutable node types produced by the parser.

A template is an ordered tuple of nodes. Sections own their children by value,
so the tree is strictly hierarchical and can be shared between threads.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional, Tuple, Union

DEFAULT_OPEN_TAG = "{{"
DEFAULT_CLOSE_TAG = "}}"


@dataclass(frozen=True)
class TextNode:
    """Literal text, copied to the output verbatim."""
    text: str


@dataclass(frozen=True)
class VariableNode:
    """A reference to a context value. Raw variables bypass HTML escaping."""
    name: str
    raw: bool = False


@dataclass(frozen=True)
class SectionNode:
    """A nested block, rendered per element (or once) depending on the resolved value."""
    name: str
    inverted: bool
    start_line: int
    children: Tuple["Node", ...] = ()


Node = Union[TextNode, VariableNode, SectionNode]


@dataclass(frozen=True)
class Template:
    """The result of parsing: top-level nodes plus the delimiters they were parsed with."""
    nodes: Tuple[Node, ...]
    open_tag: str = DEFAULT_OPEN_TAG
    close_tag: str = DEFAULT_CLOSE_TAG
    source: str = field(default="", repr=False, compare=False)

    def render(self, *contexts: Any, diagnostics: Optional[Callable[[str, str], None]] = None) -> str:
        """Renders this template against the given root contexts, nearest first."""
        from .renderer import render_template
        return render_template(self, contexts, diagnostics=diagnostics)

    def walk(self) -> Iterator[Tuple[int, Node]]:
        """Yields (depth, node) pairs in render order."""
        def _walk(nodes: Tuple[Node, ...], depth: int) -> Iterator[Tuple[int, Node]]:
            for node in nodes:
                yield depth, node
                if isinstance(node, SectionNode):
                    yield from _walk(node.children, depth + 1)
        return _walk(self.nodes, 0)
