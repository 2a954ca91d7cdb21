# gantt_core/task_schema.py

from __future__ import annotations
import math
from typing import Optional, Literal, List, Any, Union, Annotated
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator


MissingDateBehavior = Literal["infer", "show", "hide"]
ViewMode = Literal["Day", "Week", "Month"]
TaskType = Literal["task", "summary", "milestone"]

VIEW_MODES = ("Day", "Week", "Month")
MISSING_DATE_BEHAVIORS = ("infer", "show", "hide")
TASK_TYPES = ("task", "summary", "milestone")

# Finish-to-start, as the widget encodes it.
LINK_FINISH_TO_START = "0"

# Longest defaultDuration accepted, in days.
MAX_DEFAULT_DURATION = 36500


class FieldMappings(BaseModel):
    """Logical task role -> note property name (dotted paths allowed)."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: Optional[str] = Field(default=None, description="Required: property holding the task id")
    text: Optional[str] = Field(default=None, description="Required: property holding the task label")
    start: Optional[str] = None
    end: Optional[str] = None
    duration: Optional[str] = None
    progress: Optional[str] = None
    parent: Optional[str] = None
    parents: Optional[str] = None
    dependency: Optional[str] = None
    type: Optional[str] = None

    tags: Optional[str] = None
    assignee: Optional[str] = None
    status: Optional[str] = None


class GanttConfig(BaseModel):
    """Effective view configuration, defaults applied (see validation.load_config)."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    field_mappings: FieldMappings = Field(alias="fieldMappings")
    view_mode: ViewMode = Field(default="Week", alias="viewMode")
    show_today_marker: bool = True
    hide_task_names: bool = False
    show_missing_dates: bool = Field(default=True, alias="showMissingDates")
    missing_start_behavior: MissingDateBehavior = Field(default="infer", alias="missingStartBehavior")
    missing_end_behavior: MissingDateBehavior = Field(default="infer", alias="missingEndBehavior")
    default_duration: float = Field(default=3, gt=0, le=MAX_DEFAULT_DURATION, alias="defaultDuration", description="Days")
    show_missing_date_indicators: bool = Field(default=True, alias="showMissingDateIndicators")
    table_width: Optional[int] = Field(default=None, gt=0, alias="tableWidth")


class CanonicalTask(BaseModel):
    """One renderer-ready row produced from one note."""
    kind: Literal["primary"] = "primary"

    id: str = Field(..., min_length=1, description="Unique task ID within the batch")
    note_id: str = Field(..., description="ID of the originating note")
    text: str = Field(..., min_length=1, description="Task label")

    start_date: Optional[str] = Field(default=None, description="YYYY-MM-DD")
    end_date: Optional[str] = Field(default=None, description="YYYY-MM-DD")
    duration: Optional[float] = None
    progress: Optional[float] = Field(default=None, description="Completion 0.0-1.0")
    parent: Optional[str] = None
    type: Optional[TaskType] = None

    inferred_start: bool = False
    inferred_end: bool = False

    # Raw multi-parent list, consumed by virtual_tasks.expand_virtual_multi_parents
    _multi_parents: Optional[List[Any]] = PrivateAttr(default=None)

    @field_validator('progress')
    @classmethod
    def clamp_progress(cls, v):
        """Keeps progress within the 0.0 to 1.0 range."""
        if v is None or math.isnan(v):
            return None
        return max(0.0, min(1.0, v))

    @property
    def is_virtual(self) -> bool:
        return self.kind == "virtual"

    @property
    def multi_parents(self) -> Optional[List[Any]]:
        return self._multi_parents

    def with_multi_parents(self, parents: Optional[List[Any]]) -> "CanonicalTask":
        clone = self.model_copy()
        clone._multi_parents = list(parents) if parents is not None else None
        return clone


class VirtualTask(CanonicalTask):
    """Per-parent duplicate of a note that lists several parents."""
    kind: Literal["virtual"] = "virtual"
    sequence: int = Field(..., ge=1, description="1-based position of the parent in the raw parents list")


GanttTask = Annotated[Union[CanonicalTask, VirtualTask], Field(discriminator="kind")]


class Link(BaseModel):
    """Dependency edge between two tasks."""
    id: str
    source: str
    target: str
    type: str = LINK_FINISH_TO_START


WarningCode = Literal[
    "missing_id", "missing_text", "missing_dates",
    "ambiguous_name", "duplicate_id", "parent_cycle",
]


class MappingWarning(BaseModel):
    code: WarningCode
    message: str
    record_index: Optional[int] = None
    task_id: Optional[str] = None

    def __str__(self) -> str:
        return self.message


class MappingSkip(BaseModel):
    """Returned by map_record when a note cannot become a task."""
    skip: Literal[True] = True
    warning: MappingWarning


class TransformResult(BaseModel):
    tasks: List[GanttTask] = []
    links: List[Link] = []
    warnings: List[MappingWarning] = []

    def warning_messages(self) -> List[str]:
        return [w.message for w in self.warnings]


class ValidationResult(BaseModel):
    ok: bool
    errors: List[str] = []
