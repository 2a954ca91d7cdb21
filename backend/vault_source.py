"""
vault_source.py

Loads Markdown notes from a vault folder as raw records for the pipeline:
YAML frontmatter properties merged over a synthesized `file` namespace
(path, name, basename, folder).
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

_MD_SUFFIX = re.compile(r"\.md$", re.IGNORECASE)
_FRONTMATTER = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)


def file_metadata(path: str) -> Dict[str, str]:
    parts = path.split("/")
    name = parts[-1]
    return {
        "path": path,
        "name": name,
        "basename": _MD_SUFFIX.sub("", name),
        "folder": "/".join(parts[:-1]),
    }


def build_record(path: str, properties: Optional[Mapping[str, Any]] = None,
                 file_info: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    One raw record per note. Note properties win on key collisions, except
    for `file`, which always describes the note's own file. Values the host
    already supplied in `file_info` are kept over computed ones.
    """
    file_ns = file_metadata(path)
    if file_info:
        file_ns.update({k: v for k, v in file_info.items() if v is not None})

    record: Dict[str, Any] = {"file": file_ns}
    for key, value in (properties or {}).items():
        if key == "file":
            continue
        record[key] = value
    return record


def split_frontmatter(text: str) -> Tuple[Dict[str, Any], str]:
    """Returns (properties, body). Malformed YAML yields empty properties."""
    m = _FRONTMATTER.match(text)
    if not m:
        return {}, text

    body = text[m.end():]
    try:
        data = yaml.safe_load(m.group(1)) or {}
    except yaml.YAMLError as exc:
        logger.warning("Unreadable frontmatter ignored: %s", exc)
        return {}, body

    if not isinstance(data, dict):
        logger.warning("Frontmatter is not a mapping, ignored")
        return {}, body
    return {str(k): v for k, v in data.items()}, body


def load_vault_records(root: str) -> List[Dict[str, Any]]:
    """
    Read every `.md` note under `root` (hidden folders such as `.obsidian`
    are skipped) in path order.
    """
    base = Path(root)
    if not base.is_dir():
        raise FileNotFoundError(f"Vault folder not found: {root}")

    records: List[Dict[str, Any]] = []
    for note_path in sorted(base.rglob("*.md")):
        rel = note_path.relative_to(base)
        if any(part.startswith(".") for part in rel.parts):
            continue
        properties, _ = split_frontmatter(note_path.read_text(encoding="utf-8"))
        records.append(build_record(rel.as_posix(), properties))

    logger.info("Loaded %d notes from %s", len(records), base)
    return records
