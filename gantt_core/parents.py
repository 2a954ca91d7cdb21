"""
parents.py

Per-batch id/name index and resolution of parent (and dependency) references.

A note can point at another note in several shapes:
  - a plain id:              "Projects/alpha.md"
  - a wikilink:              "[[alpha]]", "[[Projects/alpha|Alpha]]"
  - an object with a path:   {"path": ...}, {"file": {"path": ...}}, link objects
  - a display name:          "Alpha"

The index is rebuilt for every transform call and thrown away afterwards.
"""

from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from .fields import resolve_field, coerce_text
from .task_schema import FieldMappings


_WIKILINK = re.compile(r"^\[\[([^\]|#]+)(?:#[^\]|]*)?(?:\|[^\]]*)?\]\]$")
_MD_SUFFIX = re.compile(r"\.md$", re.IGNORECASE)

# Record keys that carry a note's display names besides the mapped text field.
_NAME_KEYS = ("file.basename", "file.name", "basename", "name", "title")


@dataclass
class ParentIndex:
    ids: Set[str] = field(default_factory=set)
    names: Dict[str, str] = field(default_factory=dict)
    ambiguous_names: Dict[str, List[str]] = field(default_factory=dict)
    # Names actually used to resolve a reference, in first-use order
    name_hits: List[str] = field(default_factory=list)

    def add(self, task_id: str, names: Iterable[Optional[str]] = ()) -> None:
        self.ids.add(task_id)
        for name in names:
            if not name:
                continue
            owner = self.names.get(name)
            if owner is None:
                self.names[name] = task_id
            elif owner != task_id:
                claimants = self.ambiguous_names.setdefault(name, [owner])
                if task_id not in claimants:
                    claimants.append(task_id)

    def lookup(self, target: str) -> Optional[str]:
        """Match a bare target against ids first, then names, with and without '.md'."""
        target = target.strip()
        if not target:
            return None

        stem = _MD_SUFFIX.sub("", target)
        candidates = [target] if stem == target else [target, stem]
        candidates.append(f"{stem}.md")

        for candidate in candidates:
            if candidate in self.ids:
                return candidate
        for candidate in candidates:
            if candidate in self.names:
                if candidate not in self.name_hits:
                    self.name_hits.append(candidate)
                return self.names[candidate]
        return None

    def ambiguous_hits(self) -> List[str]:
        """Ambiguous names some reference in this batch resolved through."""
        return [name for name in self.name_hits if name in self.ambiguous_names]


def build_parent_index(records: Iterable[Mapping[str, Any]], mappings: FieldMappings) -> ParentIndex:
    """
    First pass over a batch: collect every resolvable id and the names it goes by.
    Only id, text and file-name fields are read here.
    """
    index = ParentIndex()
    for record in records:
        task_id = coerce_text(resolve_field(record, mappings.id))
        if task_id is None:
            continue
        names = [coerce_text(resolve_field(record, mappings.text))]
        names.extend(coerce_text(resolve_field(record, key)) for key in _NAME_KEYS)
        index.add(task_id, names)
    return index


def _reference_path(ref: Any) -> Optional[str]:
    if isinstance(ref, Mapping):
        for key in ("path", "file.path", "note.path"):
            path = coerce_text(resolve_field(ref, key))
            if path:
                return path
        return None
    # Host link/file objects expose the path as an attribute
    path = getattr(ref, "path", None)
    return path if isinstance(path, str) and path.strip() else None


def resolve_parent_reference(ref: Any, index: ParentIndex, self_id: Optional[str] = None) -> Optional[str]:
    """
    Resolve one raw reference to an id present in the current batch.

    Returns None when nothing matches, when the match is the referring task
    itself, or when the reference points outside the batch.
    """
    resolved: Optional[str] = None

    if ref is None or isinstance(ref, bool):
        return None

    if isinstance(ref, str):
        text = ref.strip()
        m = _WIKILINK.match(text)
        resolved = index.lookup(m.group(1) if m else text)
    elif isinstance(ref, (int, float)):
        resolved = index.lookup(str(ref))
    else:
        path = _reference_path(ref)
        if path is not None and path in index.ids:
            resolved = path

    if resolved is None or resolved == self_id or resolved not in index.ids:
        return None
    return resolved


def split_reference_list(value: Any, split_commas: bool = False) -> List[Any]:
    """
    Normalize a parents/dependency value into a list of raw references.

    Lists pass through; a single string becomes a one-item list, or, with
    split_commas, one item per comma-separated part outside wikilink brackets.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [v for v in value if v is not None and not (isinstance(v, str) and not v.strip())]
    if isinstance(value, str):
        if not split_commas:
            return [value] if value.strip() else []
        return [part for part in _split_outside_brackets(value) if part]
    return [value]


def _split_outside_brackets(text: str) -> List[str]:
    parts: List[str] = []
    depth = 0
    current = []
    for ch in text:
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth = max(0, depth - 1)
        if ch == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    parts.append("".join(current).strip())
    return parts
