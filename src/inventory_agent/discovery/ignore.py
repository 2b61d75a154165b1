"""Ignore list handling."""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

logger = logging.getLogger(__name__)


def is_ignored(ignore_list: Optional[Iterable[str]], uri: str) -> bool:
    """Exact, case-sensitive match of uri against the ignore list."""
    if not ignore_list:
        return False
    return any(uri == ignored for ignored in ignore_list)


def load_ignore_list(path: Optional[Union[str, Path]]) -> List[str]:
    """
    Read a newline-delimited ignore file of instance URIs.

    Blank lines and lines starting with '#' are skipped. A missing file
    ignores nothing.
    """
    if not path:
        return []

    ignore_path = Path(path)
    if not ignore_path.is_file():
        logger.debug(f"Ignore file not found: {ignore_path}, ignoring nothing")
        return []

    entries = []
    with ignore_path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                entries.append(line)

    logger.info(f"Loaded {len(entries)} ignored instance(s) from {ignore_path}")
    return entries
