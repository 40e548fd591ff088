# stache/core/templating/context_builder.py
"""
Builds the list of root contexts (nearest first) handed to the renderer from
command-line variables and JSON/TOML data files.
"""
import json
from pathlib import Path
from typing import Any, Dict, List, Iterable, Tuple
import toml
import logging
import structlog

from stache.exceptions import ContextError
from stache.util import strip_utf8_bom

# stdlib-backed so library use stays quiet until configure_logging attaches a handler.
log = structlog.wrap_logger(logging.getLogger(__name__), wrapper_class=structlog.stdlib.BoundLogger)

DATA_FILE_LOADERS = {
    ".json": json.loads,
    ".toml": toml.loads,
}

def parse_user_vars(pairs: Iterable[str]) -> Dict[str, str]:
    """Turns KEY=VALUE strings into a mapping; later keys win."""
    user_vars: Dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ContextError(f"Invalid variable '{pair}': expected KEY=VALUE.")
        key, value = pair.split("=", 1)
        key = key.strip()
        if not key:
            raise ContextError(f"Invalid variable '{pair}': key is empty.")
        user_vars[key] = value
    return user_vars

def load_data_file(path: Path, encoding: str = "utf-8") -> Any:
    """Loads one data file as a context value, chosen by extension (.json or .toml)."""
    loader = DATA_FILE_LOADERS.get(path.suffix.lower())
    if loader is None:
        raise ContextError(f"Unsupported data file type '{path.suffix}' for {path}; use .json or .toml.")
    try:
        text = strip_utf8_bom(path.read_bytes()).decode(encoding)
    except (OSError, UnicodeDecodeError) as e:
        raise ContextError(f"Failed to read data file {path}: {e}") from e
    try:
        data = loader(text)
    except (json.JSONDecodeError, toml.TomlDecodeError) as e:
        raise ContextError(f"Failed to decode data file {path}: {e}") from e
    log.debug("data_file_loaded", path=str(path), value_type=type(data).__name__)
    return data

def build_root_contexts(data_files: List[Path], user_vars: Dict[str, str], encoding: str = "utf-8") -> Tuple[Any, ...]:
    """User variables come first (nearest), then data files in the order given."""
    contexts: List[Any] = []
    if user_vars:
        contexts.append(dict(user_vars))
    for path in data_files:
        contexts.append(load_data_file(path, encoding))
    log.info("root_contexts_built", count=len(contexts), data_files=[str(p) for p in data_files])
    return tuple(contexts)
