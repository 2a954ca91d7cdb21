"""
render.py

Shapes a TransformResult into the payload the Gantt widget parses:
{"data": [...rows...], "links": [...]} with YYYY-MM-DD date strings.
"""

from typing import Any, Dict, List, Optional

from .task_schema import TransformResult, GanttConfig


def to_widget_rows(result: TransformResult, config: Optional[GanttConfig] = None) -> List[Dict[str, Any]]:
    indicators = config.show_missing_date_indicators if config is not None else True
    rows: List[Dict[str, Any]] = []
    for task in result.tasks:
        row: Dict[str, Any] = {
            "id": task.id,
            "text": task.text,
            "note_id": task.note_id,
            "open": True,
        }
        for key in ("start_date", "end_date", "duration", "progress", "parent", "type"):
            value = getattr(task, key)
            if value is not None:
                row[key] = value
        if task.is_virtual:
            row["virtual"] = True
        if indicators and (task.inferred_start or task.inferred_end):
            row["inferred_start"] = task.inferred_start
            row["inferred_end"] = task.inferred_end
        rows.append(row)
    return rows


def to_widget_payload(result: TransformResult, config: Optional[GanttConfig] = None) -> Dict[str, Any]:
    return {
        "data": to_widget_rows(result, config),
        "links": [link.model_dump() for link in result.links],
    }
