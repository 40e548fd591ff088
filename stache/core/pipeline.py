# stache/core/pipeline.py
import sys
from typing import Any, List, Optional, Tuple

import structlog

from stache.config.settings import RenderConfig, ParseErrorMode
from stache.core.templating import (
    SectionNode,
    Template,
    TemplateRenderer,
    VariableNode,
    build_root_contexts,
    parse,
)
from stache.exceptions import ParseError, TemplateError
from stache.util import strip_utf8_bom

log = structlog.get_logger(__name__)


class RenderJob:
    # orchestrates one cli run: load template, build contexts, parse, render.
    def __init__(self, config: RenderConfig):
        self.config: RenderConfig = config
        self.log = structlog.get_logger(f"{__name__}.{self.__class__.__name__}")
        self.template: Optional[Template] = None
        self.parse_error: Optional[ParseError] = None
        self.diagnostics: List[Tuple[str, str]] = []
        self.contexts: Tuple[Any, ...] = ()

    def _record_diagnostic(self, name: str, error: str):
        self.diagnostics.append((name, error))
        self.log.warning("context_lookup_failed", name=name, error=error)

    def _load_template_source(self) -> str:
        if self.config.read_from_stdin:
            self.log.info("reading_template_from_stdin")
            return sys.stdin.read()
        path = self.config.template_path
        if path is None:
            raise TemplateError("No template given. Pass a template path or use --stdin.")
        self.log.info("loading_template_from_path", path=str(path))
        try:
            return strip_utf8_bom(path.read_bytes()).decode(self.config.encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise TemplateError(f"Failed to read template file {path}: {e}") from e

    def parse_template(self) -> Template:
        source = self._load_template_source()
        self.template = parse(source)
        self.log.debug("template_ready", nodes=self.node_count, sections=self.section_count)
        return self.template

    def run(self) -> str:
        """Returns the rendered output, or the parse error text in inline mode."""
        try:
            template = self.parse_template()
        except ParseError as e:
            self.parse_error = e
            if self.config.parse_error_mode == ParseErrorMode.INLINE:
                self.log.info("parse_error_rendered_inline", line=e.line, message=e.message)
                return str(e)
            raise

        if self.config.check_only:
            return ""

        self.contexts = build_root_contexts(self.config.data_files, self.config.user_vars, self.config.encoding)
        renderer = TemplateRenderer(diagnostics=self._record_diagnostic)
        output = renderer.render(template, self.contexts)
        self.log.info("template_rendered", output_chars=len(output), diagnostics=len(self.diagnostics))
        return output

    @property
    def node_count(self) -> int:
        return sum(1 for _ in self.template.walk()) if self.template else 0

    @property
    def section_count(self) -> int:
        if not self.template:
            return 0
        return sum(1 for _, node in self.template.walk() if isinstance(node, SectionNode))

    @property
    def variable_names(self) -> List[str]:
        if not self.template:
            return []
        seen = {node.name: None for _, node in self.template.walk() if isinstance(node, (VariableNode, SectionNode))}
        return list(seen)
