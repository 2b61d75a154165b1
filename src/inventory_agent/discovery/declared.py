"""
Declared inventory loading.

Administrators describe instances in a directory of files. Each file is
either YAML (*.yaml, *.yml) holding one record, a list of records, or an
``instances:`` list, or a Java-style *.properties file holding one record.
Every value is coerced to a string so declared records have the same shape
as discovered ones.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .base import INSTANCE_URI, DiagnosticKind, Diagnostics, InstanceRecord

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")
PROPERTIES_SUFFIX = ".properties"


PROPERTY_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
PROPERTY_WHITESPACE = " \t\f"


def _logical_lines(text: str):
    """Join backslash-continued lines; drop blank and comment lines."""
    pending = None
    for raw in text.splitlines():
        line = raw.lstrip(PROPERTY_WHITESPACE)
        if pending is None and (not line or line[0] in "#!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending = (pending or "") + line[:-1]
            continue
        yield (pending or "") + line
        pending = None
    if pending is not None:
        yield pending


def _unescape(text: str) -> str:
    chars = []
    i = 0
    while i < len(text):
        c = text[i]
        if c == "\\" and i + 1 < len(text):
            n = text[i + 1]
            if n == "u" and i + 6 <= len(text):
                try:
                    chars.append(chr(int(text[i + 2:i + 6], 16)))
                    i += 6
                    continue
                except ValueError:
                    pass
            chars.append(PROPERTY_ESCAPES.get(n, n))
            i += 2
            continue
        chars.append(c)
        i += 1
    return "".join(chars)


def _split_property(line: str):
    end = 0
    while end < len(line):
        c = line[end]
        if c == "\\":
            end += 2
            continue
        if c in "=:" or c in PROPERTY_WHITESPACE:
            break
        end += 1

    rest = line[end:].lstrip(PROPERTY_WHITESPACE)
    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip(PROPERTY_WHITESPACE)
    return _unescape(line[:end]), _unescape(rest)


def parse_properties(text: str) -> Dict[str, str]:
    """
    Parse Java .properties text.

    Keys end at the first unescaped '=', ':' or whitespace. Lines ending in
    an odd number of backslashes continue on the next line, and backslash
    escapes (including \\uXXXX) are decoded in keys and values.
    """
    props = {}
    for line in _logical_lines(text):
        key, value = _split_property(line)
        props[key] = value
    return props


def _normalize(obj: Dict[Any, Any]) -> InstanceRecord:
    return {str(k): "" if v is None else str(v) for k, v in obj.items()}


def _records_from_yaml(data: Any) -> List[Dict[Any, Any]]:
    if data is None:
        return []
    if isinstance(data, dict) and isinstance(data.get("instances"), list):
        data = data["instances"]
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list):
        return [item for item in data if isinstance(item, dict)]
    raise ValueError(f"unsupported document type {type(data).__name__}")


def load_declared_file(path: Path) -> List[InstanceRecord]:
    """Load the records declared in one file."""
    text = path.read_text(encoding="utf-8")
    if path.suffix == PROPERTIES_SUFFIX:
        props = parse_properties(text)
        return [props] if props else []
    return [_normalize(obj) for obj in _records_from_yaml(yaml.safe_load(text))]


def load_declared_inventory(
    declared_dir: Optional[Union[str, Path]],
    diagnostics: Optional[Diagnostics] = None,
) -> List[InstanceRecord]:
    """
    Load every declared record under declared_dir.

    Files are read in name order, so records from later files come later in
    the result. A missing directory declares nothing.

    Args:
        declared_dir: Directory of declared inventory files
        diagnostics: Collector for unreadable files and invalid records

    Returns:
        Declared records in file order
    """
    if diagnostics is None:
        diagnostics = Diagnostics()

    if not declared_dir:
        return []

    directory = Path(declared_dir)
    if not directory.is_dir():
        logger.debug(f"Declared inventory directory not found: {directory}")
        return []

    records: List[InstanceRecord] = []
    for path in sorted(directory.iterdir(), key=lambda p: p.name):
        if not path.is_file() or path.suffix not in YAML_SUFFIXES + (PROPERTIES_SUFFIX,):
            continue

        try:
            loaded = load_declared_file(path)
        except (OSError, UnicodeDecodeError, ValueError, yaml.YAMLError) as e:
            diagnostics.report(DiagnosticKind.UNREADABLE_FILE, f"Cannot read declared file {path}: {e}")
            continue

        for record in loaded:
            if not record.get(INSTANCE_URI):
                diagnostics.report(
                    DiagnosticKind.INVALID_DECLARED_RECORD,
                    f"Declared record in {path} has no {INSTANCE_URI}, skipping",
                )
                continue
            records.append(record)

    logger.info(f"Loaded {len(records)} declared instance(s) from {directory}")
    return records
