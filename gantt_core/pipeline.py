"""
pipeline.py

Raw note records + view config -> tasks, links and warnings for the Gantt view.

Steps:
  1. Load the config (raw mappings are validated first; see validation.py)
  2. Index every id and display name in the batch
  3. Map each record; bad records are skipped with a warning, never fatal
  4. Derive dependency links
  5. Expand notes with several parents into virtual per-parent rows
  6. Flag parent cycles

The function is pure apart from reading the clock once when `now` is not
given; nothing is cached between calls.
"""

import logging
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Set, Tuple, Union

from .date_utils import today_utc
from .dependencies import derive_links
from .graph import TaskGraph
from .mapper import map_record, missing_date_warning
from .parents import build_parent_index
from .task_schema import CanonicalTask, GanttConfig, MappingSkip, MappingWarning, TransformResult
from .validation import load_config
from .virtual_tasks import expand_virtual_multi_parents

logger = logging.getLogger(__name__)


def transform(
    records: Iterable[Mapping[str, Any]],
    config: Union[GanttConfig, Mapping[str, Any]],
    now: Optional[datetime] = None,
) -> TransformResult:
    """
    Run the full mapping pipeline over one batch.

    Args:
        records: Raw note records, in display order.
        config: A GanttConfig, or a raw config mapping (validated here and
                raising ConfigError when invalid).
        now: Clock override for the "both dates missing" inference branch.

    Returns:
        TransformResult with tasks in record order (virtual rows right after
        their origin), links, and warnings in the order they were produced.
    """
    cfg = load_config(config)
    batch = list(records)
    today = today_utc(now)

    index = build_parent_index(batch, cfg.field_mappings)

    warnings: List[MappingWarning] = []
    tasks: List[CanonicalTask] = []
    mapped: List[Tuple[Mapping[str, Any], str]] = []
    seen_ids: Set[str] = set()

    for position, record in enumerate(batch):
        result = map_record(record, cfg, index, today=today, record_index=position)
        if isinstance(result, MappingSkip):
            logger.debug("Skipping record %d: %s", position, result.warning.code)
            warnings.append(result.warning)
            continue

        if result.id in seen_ids:
            warnings.append(MappingWarning(
                code="duplicate_id",
                message=f"Record {position}: id {result.id} is used by an earlier note",
                record_index=position,
                task_id=result.id,
            ))
        seen_ids.add(result.id)

        missing = missing_date_warning(result, cfg, record_index=position)
        if missing is not None:
            warnings.append(missing)

        tasks.append(result)
        mapped.append((record, result.id))

    links = derive_links(mapped, cfg.field_mappings, index)
    expanded = expand_virtual_multi_parents(tasks, index)

    for name in index.ambiguous_hits():
        claimants = index.ambiguous_names[name]
        warnings.append(MappingWarning(
            code="ambiguous_name",
            message=(
                f"Name '{name}' matches several notes ({', '.join(claimants)}); "
                f"references to it resolve to {claimants[0]}"
            ),
            task_id=claimants[0],
        ))

    graph = TaskGraph()
    graph.add_tasks(expanded)
    for cycle in graph.find_parent_cycles():
        warnings.append(MappingWarning(
            code="parent_cycle",
            message=f"Parent cycle between tasks: {' -> '.join(cycle)}",
            task_id=cycle[0],
        ))

    for warning in warnings:
        logger.warning(warning.message)
    logger.info(
        "Mapped %d tasks (%d virtual), %d links, %d warnings from %d records",
        len(expanded), len(expanded) - len(tasks), len(links), len(warnings), len(batch),
    )

    return TransformResult(tasks=expanded, links=links, warnings=warnings)
