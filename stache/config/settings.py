from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional
import structlog

log = structlog.get_logger(__name__)

class ParseErrorMode(Enum):
    # defines what the cli does when the template fails to parse.
    RAISE = "raise"
    INLINE = "inline"

    @classmethod
    def from_string(cls, s: Optional[str]) -> Optional["ParseErrorMode"]:
        if not s:
            return None
        try:
            return cls(s.lower())
        except ValueError:
            log.warning("invalid_parse_error_mode_string", input_string=s)
            return None

DEFAULT_PARSE_ERROR_MODE = ParseErrorMode.RAISE
DEFAULT_ENCODING = "utf-8"

@dataclass
class RenderConfig:
    # holds all configuration parameters for a single run.
    template_path: Optional[Path] = None
    data_files: List[Path] = field(default_factory=list)
    user_vars: Dict[str, str] = field(default_factory=dict)
    output_file: Optional[Path] = None
    parse_error_mode: ParseErrorMode = DEFAULT_PARSE_ERROR_MODE
    encoding: str = DEFAULT_ENCODING
    check_only: bool = False
    show_tree: bool = False
    console_show_summary: bool = False
    read_from_stdin: bool = False
    save_profile_name: Optional[str] = None

    # internal state, not set directly by user flags.
    base_dir: Path = field(init=False)

    def __post_init__(self):
        # performs initial setup after dataclass instantiation.
        self.base_dir = Path.cwd().resolve()
