# stache/core/templating/parser.py
"""
Single-pass parser turning template source into a tree of nodes.

The parser keeps a cursor and a line counter over the source. Each scope
(top level or section body) is parsed by the same loop; sections recurse
until their closing tag is consumed.
"""
from typing import List, Optional
import logging
import structlog

from stache.exceptions import ParseError

from .nodes import (
    DEFAULT_CLOSE_TAG,
    DEFAULT_OPEN_TAG,
    Node,
    SectionNode,
    Template,
    TextNode,
    VariableNode,
)

# stdlib-backed so library use stays quiet until configure_logging attaches a handler.
log = structlog.wrap_logger(logging.getLogger(__name__), wrapper_class=structlog.stdlib.BoundLogger)


class TemplateParser:
    """Parses one template source. Instances are single-use."""

    def __init__(self, source: str, open_tag: str = DEFAULT_OPEN_TAG, close_tag: str = DEFAULT_CLOSE_TAG):
        if not open_tag or not close_tag:
            raise ValueError("open and close tags must be non-empty")
        self.source = source
        self.open_tag = open_tag
        self.close_tag = close_tag
        self.pos = 0
        self.curline = 1

    def parse(self) -> Template:
        nodes = self._parse_scope(None)
        log.debug("template_parsed", top_level_nodes=len(nodes), lines=self.curline)
        return Template(tuple(nodes), self.open_tag, self.close_tag, self.source)

    def _read_until(self, delimiter: str) -> Optional[str]:
        # returns the text before the next delimiter and moves past it, or None at end of input.
        idx = self.source.find(delimiter, self.pos)
        if idx == -1:
            return None
        text = self.source[self.pos:idx]
        self.curline += text.count("\n")
        self.pos = idx + len(delimiter)
        return text

    def _read_tag_body(self) -> str:
        # reads the body of the tag whose open delimiter was just consumed.
        triple = self.source.startswith("{", self.pos)
        closing = "}" + self.close_tag if triple else self.close_tag
        text = self._read_until(closing)
        if text is None:
            raise ParseError(self.curline, "unmatched open tag")
        if triple:
            text += "}"
        return text.strip()

    def _skip_standalone_newline(self):
        if self.source.startswith("\n", self.pos):
            self.pos += 1
        elif self.source.startswith("\r\n", self.pos):
            self.pos += 2
        else:
            return
        self.curline += 1

    def _parse_scope(self, section_name: Optional[str], start_line: int = 0) -> List[Node]:
        nodes: List[Node] = []
        while True:
            text = self._read_until(self.open_tag)
            if text is None:
                if section_name is not None:
                    raise ParseError(start_line, f"section {section_name} has no closing tag")
                tail = self.source[self.pos:]
                if tail:
                    nodes.append(TextNode(tail))
                self.pos = len(self.source)
                return nodes

            if text:
                nodes.append(TextNode(text))

            tag = self._read_tag_body()
            if not tag:
                raise ParseError(self.curline, "empty tag")

            sigil = tag[0]
            if sigil == "!":
                continue
            elif sigil in "#^":
                name = tag[1:].strip()
                line = self.curline
                self._skip_standalone_newline()
                children = self._parse_scope(name, line)
                nodes.append(SectionNode(name, sigil == "^", line, tuple(children)))
            elif sigil == "/":
                name = tag[1:].strip()
                if section_name is None:
                    raise ParseError(self.curline, "unmatched close tag")
                if name != section_name:
                    raise ParseError(self.curline, f"interleaved closing tag: {name}")
                return nodes
            elif sigil == "{":
                if tag.endswith("}"):
                    nodes.append(VariableNode(tag[1:-1].strip(), raw=True))
                else:
                    log.debug("unterminated_raw_tag_ignored", tag=tag, line=self.curline)
            elif sigil == "&":
                nodes.append(VariableNode(tag[1:].strip(), raw=True))
            else:
                nodes.append(VariableNode(tag))


def parse(source: str, open_tag: str = DEFAULT_OPEN_TAG, close_tag: str = DEFAULT_CLOSE_TAG) -> Template:
    """Parses template source into a reusable Template. Raises ParseError on the first syntax error."""
    return TemplateParser(source, open_tag, close_tag).parse()
