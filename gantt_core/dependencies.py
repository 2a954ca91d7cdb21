"""
dependencies.py

Finish-to-start links from the `dependency` field mapping. The field may hold
a comma-separated string, a single reference or a list of references; each
one is resolved like a parent reference against the batch index.
"""

from __future__ import annotations
from typing import Any, List, Mapping, Sequence, Set, Tuple

from .fields import resolve_field
from .parents import ParentIndex, resolve_parent_reference, split_reference_list
from .task_schema import FieldMappings, Link, LINK_FINISH_TO_START


def link_id(source: str, target: str) -> str:
    return f"{source}->{target}"


def parse_dependency_targets(value: Any, index: ParentIndex, self_id: str) -> List[str]:
    """Resolved predecessor ids, in listed order, without repeats."""
    targets: List[str] = []
    for ref in split_reference_list(value, split_commas=True):
        resolved = resolve_parent_reference(ref, index, self_id=self_id)
        if resolved is not None and resolved not in targets:
            targets.append(resolved)
    return targets


def derive_links(
    records: Sequence[Tuple[Mapping[str, Any], str]],
    mappings: FieldMappings,
    index: ParentIndex,
) -> List[Link]:
    """
    Build links for (record, task id) pairs of successfully mapped notes.

    The predecessor is the link source and the dependent note is the target.
    Nothing is produced when no dependency mapping is configured.
    """
    if not mappings.dependency:
        return []

    links: List[Link] = []
    seen: Set[str] = set()
    for record, task_id in records:
        for predecessor in parse_dependency_targets(resolve_field(record, mappings.dependency), index, task_id):
            lid = link_id(predecessor, task_id)
            if lid in seen:
                continue
            seen.add(lid)
            links.append(Link(id=lid, source=predecessor, target=task_id, type=LINK_FINISH_TO_START))
    return links
