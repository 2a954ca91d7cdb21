"""
fields.py

Reads a mapped property out of a raw note record.
"""

from typing import Any, Mapping, Optional


def resolve_field(record: Mapping[str, Any], mapping_key: Optional[str]) -> Any:
    """
    Look up `mapping_key` in a record.

    A key with dots ("file.path", "note.owner") is tried as a literal key first,
    then walked segment by segment through nested mappings. Returns None as soon
    as a segment is missing or the current value cannot be traversed. An unset
    mapping always yields None: fields are opt-in.
    """
    if not mapping_key or not isinstance(record, Mapping):
        return None

    if mapping_key in record:
        return record[mapping_key]
    if "." not in mapping_key:
        return None

    current: Any = record
    for segment in mapping_key.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            return None
        current = current[segment]
    return current


def coerce_text(value: Any) -> Optional[str]:
    """Scalar -> stripped string; blanks and containers -> None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
    elif isinstance(value, (int, float)):
        text = str(value)
    else:
        return None
    return text or None
