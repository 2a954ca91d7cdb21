"""
validation.py

Checks a user-supplied view configuration (as parsed from YAML) before any
transform runs, and turns a valid one into a GanttConfig with defaults.
"""

from __future__ import annotations
from typing import Any, List, Mapping, Optional

from .config import config as settings
from .task_schema import (
    GanttConfig, FieldMappings, ValidationResult, VIEW_MODES, MISSING_DATE_BEHAVIORS, MAX_DEFAULT_DURATION,
)


REQUIRED_MAPPINGS = ("id", "text")
OPTIONAL_MAPPINGS = (
    "start", "end", "duration", "progress", "parent", "parents",
    "dependency", "type", "tags", "assignee", "status",
)


class ConfigError(ValueError):
    """Raised by load_config for a configuration that fails validation."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("Invalid Gantt configuration: " + "; ".join(self.errors))


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _get(raw: Mapping[str, Any], camel: str, snake: str) -> Any:
    if camel in raw:
        return raw[camel]
    return raw.get(snake)


def validate_field_mappings(mappings: Any) -> List[str]:
    if mappings is None:
        return ["fieldMappings is required"]
    if not isinstance(mappings, Mapping):
        return ["fieldMappings must be a mapping of role -> property name"]

    errors: List[str] = []
    missing = [key for key in REQUIRED_MAPPINGS if not _is_non_empty_string(mappings.get(key))]
    if len(missing) == len(REQUIRED_MAPPINGS):
        errors.append("fieldMappings.id and fieldMappings.text are required")
    else:
        errors.extend(f"fieldMappings.{key} is required" for key in missing)

    for key in OPTIONAL_MAPPINGS:
        if key in mappings and mappings[key] is not None and not _is_non_empty_string(mappings[key]):
            errors.append(f"fieldMappings.{key} must be a non-empty string when provided")
    return errors


def validate_config(raw: Any) -> ValidationResult:
    """
    Validate a raw configuration mapping. Pure and total: never raises,
    never mutates its input.
    """
    if not isinstance(raw, Mapping):
        return ValidationResult(ok=False, errors=["config is required"])

    errors = validate_field_mappings(_get(raw, "fieldMappings", "field_mappings"))

    view_mode = _get(raw, "viewMode", "view_mode")
    if view_mode is not None and view_mode not in VIEW_MODES:
        errors.append("viewMode must be one of Day|Week|Month")

    duration = _get(raw, "defaultDuration", "default_duration")
    if duration is not None:
        # NaN fails both comparisons; huge ints compare without float conversion
        if (
            isinstance(duration, bool)
            or not isinstance(duration, (int, float))
            or not 0 < duration <= MAX_DEFAULT_DURATION
        ):
            errors.append(
                f"defaultDuration must be a positive number of at most {MAX_DEFAULT_DURATION} days when provided"
            )

    for camel, snake in (("missingStartBehavior", "missing_start_behavior"),
                         ("missingEndBehavior", "missing_end_behavior")):
        behavior = _get(raw, camel, snake)
        if behavior is not None and behavior not in MISSING_DATE_BEHAVIORS:
            errors.append(f"{camel} must be one of infer|show|hide")

    width = _get(raw, "tableWidth", "table_width")
    if width is not None and (isinstance(width, bool) or not isinstance(width, (int, float)) or not 0 < width < float("inf")):
        errors.append("tableWidth must be a positive number when provided")

    return ValidationResult(ok=not errors, errors=errors)


def apply_gantt_defaults(raw: Mapping[str, Any]) -> GanttConfig:
    """Build the effective config; unset keys take the environment defaults."""
    mappings = _get(raw, "fieldMappings", "field_mappings") or {}
    width = _get(raw, "tableWidth", "table_width")

    values = {
        "field_mappings": FieldMappings(**{k: v for k, v in mappings.items() if isinstance(k, str)}),
        "view_mode": _pick(raw, "viewMode", "view_mode", settings['view_mode']),
        "show_today_marker": bool(_pick(raw, "showTodayMarker", "show_today_marker", True)),
        "hide_task_names": bool(_pick(raw, "hideTaskNames", "hide_task_names", False)),
        "show_missing_dates": bool(_pick(raw, "showMissingDates", "show_missing_dates", True)),
        "missing_start_behavior": _pick(raw, "missingStartBehavior", "missing_start_behavior", "infer"),
        "missing_end_behavior": _pick(raw, "missingEndBehavior", "missing_end_behavior", "infer"),
        "default_duration": _pick(raw, "defaultDuration", "default_duration", settings['default_duration']),
        "show_missing_date_indicators": bool(
            _pick(raw, "showMissingDateIndicators", "show_missing_date_indicators", True)
        ),
        "table_width": int(width) if width is not None else None,
    }
    return GanttConfig.model_validate(values)


def _pick(raw: Mapping[str, Any], camel: str, snake: str, default: Any) -> Any:
    value = _get(raw, camel, snake)
    return default if value is None else value


def load_config(raw: Any) -> GanttConfig:
    """Validate, then apply defaults. Raises ConfigError on invalid input."""
    if isinstance(raw, GanttConfig):
        return raw
    result = validate_config(raw)
    if not result.ok:
        raise ConfigError(result.errors)
    return apply_gantt_defaults(raw)


def explain(result: ValidationResult) -> Optional[str]:
    if result.ok:
        return None
    return "\n".join(f"- {e}" for e in result.errors)
