"""
virtual_tasks.py

A note listing several parents is shown once under each of them. The first
parent keeps the note's own task; every further parent gets a VirtualTask
with id "<id>::v<n>", n being the parent's 1-based position in the list.
"""

from __future__ import annotations
from typing import List, Sequence

from .parents import ParentIndex, resolve_parent_reference
from .task_schema import CanonicalTask, VirtualTask


VIRTUAL_ID_SEPARATOR = "::v"


def virtual_task_id(task_id: str, sequence: int) -> str:
    return f"{task_id}{VIRTUAL_ID_SEPARATOR}{sequence}"


def expand_virtual_multi_parents(tasks: Sequence[CanonicalTask], index: ParentIndex) -> List[CanonicalTask]:
    """
    Expand multi-parent tasks in input order; duplicates directly follow
    their origin. Parents that do not resolve in `index` produce no duplicate.
    """
    out: List[CanonicalTask] = []
    for task in tasks:
        multi = task.multi_parents
        if not multi or len(multi) < 2:
            out.append(task)
            continue

        out.append(task)
        seen = {task.parent} if task.parent else set()
        for sequence, ref in enumerate(multi[1:], start=1):
            parent = resolve_parent_reference(ref, index, self_id=task.note_id)
            if parent is None or parent in seen:
                continue
            seen.add(parent)
            out.append(VirtualTask(
                **task.model_dump(exclude={"kind", "id", "parent"}),
                id=virtual_task_id(task.id, sequence),
                parent=parent,
                sequence=sequence,
            ))
    return out
