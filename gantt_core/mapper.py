"""
mapper.py

Maps one raw note record onto one CanonicalTask using the configured field
mappings, the missing-date policy and the batch's parent index.
"""

from __future__ import annotations
import math
from datetime import date
from typing import Any, Mapping, Optional, Union

from .date_utils import parse_input_to_utc_date, format_date_utc_to_ymd, add_days_utc, today_utc
from .fields import resolve_field, coerce_text
from .parents import ParentIndex, resolve_parent_reference, split_reference_list
from .task_schema import (
    CanonicalTask, GanttConfig, MappingSkip, MappingWarning, TASK_TYPES,
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _finite_float(value: Any) -> Optional[float]:
    """Numbers only; NaN, infinities and ints too large for a float are absent."""
    if not _is_number(value):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def normalize_progress(value: Any) -> Optional[float]:
    """Numbers only: values above 1 are percentages; result is clamped to [0, 1]."""
    if not _is_number(value):
        return None
    try:
        value = float(value)
    except OverflowError:
        return None
    if math.isnan(value):
        return None
    progress = value / 100.0 if value > 1 else value
    return max(0.0, min(1.0, progress))


def apply_missing_date_policy(
    start: Optional[date],
    end: Optional[date],
    config: GanttConfig,
    today: date,
):
    """
    Returns (start, end, inferred_start, inferred_end).

    One side missing: derived from the other when that side's behavior is
    'infer'. Both missing: anchored on today when either behavior is 'infer'.
    Otherwise missing dates stay None for the renderer to handle. A derived
    date that would fall outside the calendar stays None and uninferred.
    """
    duration = config.default_duration
    inferred_start = inferred_end = False

    if start is not None and end is None:
        if config.missing_end_behavior == "infer":
            end = add_days_utc(start, duration)
            inferred_end = end is not None
    elif start is None and end is not None:
        if config.missing_start_behavior == "infer":
            start = add_days_utc(end, -duration)
            inferred_start = start is not None
    elif start is None and end is None:
        if "infer" in (config.missing_start_behavior, config.missing_end_behavior):
            start = today
            end = add_days_utc(today, duration)
            inferred_start = True
            inferred_end = end is not None

    return start, end, inferred_start, inferred_end


def _resolve_parent(record: Mapping[str, Any], config: GanttConfig, index: ParentIndex, task_id: str):
    mappings = config.field_mappings

    parent: Optional[str] = None
    singular = split_reference_list(resolve_field(record, mappings.parent))
    if singular:
        parent = resolve_parent_reference(singular[0], index, self_id=task_id)

    parents = split_reference_list(resolve_field(record, mappings.parents))
    if parent is None and parents:
        parent = resolve_parent_reference(parents[0], index, self_id=task_id)

    multi = parents if len(parents) > 1 else None
    return parent, multi


def map_record(
    record: Mapping[str, Any],
    config: GanttConfig,
    index: ParentIndex,
    today: Optional[date] = None,
    record_index: Optional[int] = None,
) -> Union[CanonicalTask, MappingSkip]:
    """
    Map a single note. Never mutates `record`.

    Returns a MappingSkip (with its warning) when the note has no usable id
    or text; everything else degrades to absent fields.
    """
    mappings = config.field_mappings
    where = f"Record {record_index}" if record_index is not None else "Record"

    task_id = coerce_text(resolve_field(record, mappings.id))
    if task_id is None:
        return MappingSkip(warning=MappingWarning(
            code="missing_id",
            message=f"{where}: missing required id (field '{mappings.id}'), skipped",
            record_index=record_index,
        ))

    text = coerce_text(resolve_field(record, mappings.text))
    if text is None:
        return MappingSkip(warning=MappingWarning(
            code="missing_text",
            message=f"{where} ({task_id}): missing required text (field '{mappings.text}'), skipped",
            record_index=record_index,
            task_id=task_id,
        ))

    start = parse_input_to_utc_date(resolve_field(record, mappings.start))
    end = parse_input_to_utc_date(resolve_field(record, mappings.end))
    start, end, inferred_start, inferred_end = apply_missing_date_policy(
        start, end, config, today or today_utc()
    )

    duration_raw = resolve_field(record, mappings.duration)
    duration = _finite_float(duration_raw)

    type_raw = resolve_field(record, mappings.type)
    task_type = type_raw.strip().lower() if isinstance(type_raw, str) else None
    if task_type not in TASK_TYPES:
        task_type = None

    parent, multi_parents = _resolve_parent(record, config, index, task_id)

    task = CanonicalTask(
        id=task_id,
        note_id=task_id,
        text=text,
        start_date=format_date_utc_to_ymd(start) if start else None,
        end_date=format_date_utc_to_ymd(end) if end else None,
        duration=duration,
        progress=normalize_progress(resolve_field(record, mappings.progress)),
        parent=parent,
        type=task_type,
        inferred_start=inferred_start,
        inferred_end=inferred_end,
    )
    if multi_parents:
        task = task.with_multi_parents(multi_parents)
    return task


def missing_date_warning(task: CanonicalTask, config: GanttConfig, record_index: Optional[int] = None) -> Optional[MappingWarning]:
    """Warning for a task still lacking dates after policy, when showMissingDates is on."""
    if not config.show_missing_dates:
        return None

    if task.start_date is None and task.end_date is None:
        missing = "both start and end dates"
    elif task.start_date is None:
        missing = "start date"
    elif task.end_date is None:
        missing = "end date"
    else:
        return None

    return MappingWarning(
        code="missing_dates",
        message=f"Task {task.id} missing {missing}",
        record_index=record_index,
        task_id=task.id,
    )
