"""Data models for schedule materialization.

Definitions and one-off entries are read from the tools' repositories;
occurrences and action items are derived per request and never persisted.
"""

from __future__ import annotations

import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from household_schedule.exceptions import ScheduleValidationError


def _compact(value: str) -> str:
    return "".join(ch for ch in value.lower() if ch.isalnum())


class Frequency(str, Enum):
    """Closed set of recurrence frequencies offered by the tools."""

    DAILY = "Daily"
    EVERY_2_DAYS = "Every 2 Days"
    EVERY_3_DAYS = "Every 3 Days"
    WEEKLY = "Weekly"
    EVERY_2_WEEKS = "Every 2 Weeks"
    MONTHLY = "Monthly"
    EVERY_3_MONTHS = "Every 3 Months"
    EVERY_6_MONTHS = "Every 6 Months"
    YEARLY = "Yearly"
    AS_NEEDED = "As Needed"
    ONE_TIME = "One Time"

    @classmethod
    def parse(cls, value: Any) -> Frequency:
        """Parse a frequency label.

        Accepts the canonical label ("Every 2 Days"), the compact spelling
        ("Every2Days", "AsNeeded") in any case, and "Annual" for Yearly.

        Raises:
            ScheduleValidationError: If the value is not a known frequency
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ScheduleValidationError(f"Unknown frequency: {value!r}")
        key = _compact(value)
        if key == "annual":
            return cls.YEARLY
        for member in cls:
            if _compact(member.value) == key:
                return member
        raise ScheduleValidationError(f"Unknown frequency: {value!r}")

    @property
    def day_step(self) -> Optional[int]:
        """Fixed day interval for day-based frequencies."""
        return _DAY_STEPS.get(self)

    @property
    def week_step(self) -> Optional[int]:
        """Week interval for weekday-based frequencies."""
        return _WEEK_STEPS.get(self)

    @property
    def month_step(self) -> Optional[int]:
        """Month interval for month-based frequencies."""
        return _MONTH_STEPS.get(self)


_DAY_STEPS = {Frequency.DAILY: 1, Frequency.EVERY_2_DAYS: 2, Frequency.EVERY_3_DAYS: 3}
_WEEK_STEPS = {Frequency.WEEKLY: 1, Frequency.EVERY_2_WEEKS: 2}
_MONTH_STEPS = {
    Frequency.MONTHLY: 1,
    Frequency.EVERY_3_MONTHS: 3,
    Frequency.EVERY_6_MONTHS: 6,
    Frequency.YEARLY: 12,
}


class SourceTool(str, Enum):
    """Household tool that owns a definition or entry."""

    CARE_PLAN = "care_plan"
    TODO = "todo"
    CALENDAR_EVENT = "calendar_event"
    APPOINTMENT = "appointment"


class Priority(str, Enum):
    """Priority ordinal, used only as a sort tie-break."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @classmethod
    def parse(cls, value: Any) -> Priority:
        """Parse a priority case-insensitively; missing values mean medium."""
        if isinstance(value, cls):
            return value
        if value is None or value == "":
            return cls.MEDIUM
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ScheduleValidationError(f"Unknown priority: {value!r}") from exc


_PRIORITY_RANK = {Priority.LOW: 0, Priority.MEDIUM: 1, Priority.HIGH: 2}


class ItemStatus(str, Enum):
    """Status owned by the source tool and passed through unchanged."""

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: Any) -> ItemStatus:
        """Normalise tool-specific status labels.

        The to-do tool stores "Not Started", "In Progress" and "Completed".
        """
        if isinstance(value, cls):
            return value
        if value is None or value == "":
            return cls.PENDING
        key = _compact(str(value))
        if key in ("notstarted", "inprogress", "pending", "open"):
            return cls.PENDING
        if key in ("completed", "complete", "done"):
            return cls.COMPLETED
        if key in ("cancelled", "canceled"):
            return cls.CANCELLED
        raise ScheduleValidationError(f"Unknown status: {value!r}")


class ItemType(str, Enum):
    """Which dashboard surface an item belongs to."""

    CALENDAR_EVENT = "calendar_event"
    ACTION_ITEM = "action_item"
    BOTH = "both"

    def matches(self, wanted: ItemType) -> bool:
        """Check whether an item of this type is shown for a ``wanted`` filter."""
        if wanted == ItemType.BOTH:
            # The "both" filter is the calendar surface
            return self in (ItemType.CALENDAR_EVENT, ItemType.BOTH)
        return self in (wanted, ItemType.BOTH)


DEFAULT_ITEM_TYPES: dict[SourceTool, ItemType] = {
    SourceTool.CARE_PLAN: ItemType.ACTION_ITEM,
    SourceTool.TODO: ItemType.ACTION_ITEM,
    SourceTool.CALENDAR_EVENT: ItemType.CALENDAR_EVENT,
    SourceTool.APPOINTMENT: ItemType.BOTH,
}

# Time of day used for scheduled_at when the tool stores a bare date
DEFAULT_TIMES: dict[SourceTool, datetime.time] = {
    SourceTool.CARE_PLAN: datetime.time(9, 0),
    SourceTool.TODO: datetime.time(9, 0),
    SourceTool.CALENDAR_EVENT: datetime.time(9, 0),
    SourceTool.APPOINTMENT: datetime.time(12, 0),
}


class InactivePeriod(BaseModel):
    """A half-open ``[start, end)`` interval during which a definition was inactive."""

    start: datetime.date = Field(..., description="Date the definition was inactivated")
    end: Optional[datetime.date] = Field(
        default=None, description="Reactivation date (None while still inactive)"
    )

    model_config = ConfigDict(frozen=True)

    def contains(self, day: datetime.date) -> bool:
        if day < self.start:
            return False
        return self.end is None or day < self.end


class _ScheduledRecord(BaseModel):
    """Fields shared by recurring definitions and one-off entries."""

    id: str = Field(..., description="Opaque identifier owned by the source tool")
    owner_id: str = Field(..., description="Household/user identifier")
    source_tool: SourceTool = Field(..., description="Tool that produced this record")
    title: str = Field(..., description="Display title")
    notes: Optional[str] = Field(default=None, description="Display notes")
    priority: Priority = Field(default=Priority.MEDIUM, description="Sort tie-break priority")
    status: ItemStatus = Field(default=ItemStatus.PENDING, description="Tool-owned status")
    include_in_feed: bool = Field(default=True, description="'Add to dashboard' opt-in flag")
    time_of_day: Optional[datetime.time] = Field(default=None, description="Optional HH:MM")
    item_type: Optional[ItemType] = Field(default=None, description="Dashboard surface")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Pass-through metadata")

    @field_validator("priority", mode="before")
    @classmethod
    def _parse_priority(cls, value: Any) -> Priority:
        return Priority.parse(value)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> ItemStatus:
        return ItemStatus.parse(value)

    @field_validator("notes", mode="before")
    @classmethod
    def _blank_notes_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def effective_item_type(self) -> ItemType:
        return self.item_type or DEFAULT_ITEM_TYPES[self.source_tool]

    @property
    def effective_time(self) -> datetime.time:
        return self.time_of_day or DEFAULT_TIMES[self.source_tool]


class ScheduleDefinition(_ScheduledRecord):
    """A tool-owned description of something that recurs."""

    frequency: Frequency = Field(..., description="Recurrence frequency")
    days_of_week: frozenset[int] = Field(
        default_factory=frozenset, description="Weekday indices, 0=Sunday .. 6=Saturday"
    )
    day_of_month: Optional[int] = Field(default=None, description="Day of month, 1-31")
    start_date: datetime.date = Field(..., description="Anchor date; nothing occurs before it")
    end_date: Optional[datetime.date] = Field(default=None, description="Optional last date")

    # Visibility state (owned by the tool's CRUD layer)
    is_active: bool = Field(default=True, description="Inactive definitions generate nothing new")
    date_inactivated: Optional[datetime.date] = Field(
        default=None, description="Date of the current inactivation"
    )
    inactive_periods: tuple[InactivePeriod, ...] = Field(
        default=(), description="Closed inactive intervals from earlier deactivations"
    )

    @field_validator("frequency", mode="before")
    @classmethod
    def _parse_frequency(cls, value: Any) -> Frequency:
        return Frequency.parse(value)

    @field_validator("days_of_week")
    @classmethod
    def _check_weekdays(cls, value: frozenset[int]) -> frozenset[int]:
        invalid = sorted(day for day in value if not 0 <= day <= 6)
        if invalid:
            raise ScheduleValidationError(f"days_of_week out of range 0-6: {invalid}")
        return value

    @field_validator("day_of_month")
    @classmethod
    def _check_day_of_month(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and not 1 <= value <= 31:
            raise ScheduleValidationError(f"day_of_month must be 1-31, got {value}")
        return value

    @model_validator(mode="after")
    def _check_date_range(self) -> ScheduleDefinition:
        if self.end_date is not None and self.end_date < self.start_date:
            raise ScheduleValidationError(
                f"end_date {self.end_date} is before start_date {self.start_date}"
            )
        return self

    @property
    def anchor_day(self) -> int:
        """Day of month used by the month-based frequencies."""
        return self.day_of_month or self.start_date.day


class OneOffEntry(_ScheduledRecord):
    """A single dated item (appointment or to-do task); exactly one occurrence."""

    due_date: datetime.date = Field(..., description="Date the entry is due or scheduled")


class Occurrence(BaseModel):
    """A concrete due date derived from a definition or a one-off entry."""

    definition_id: str
    source_tool: SourceTool
    title: str
    due_date: datetime.date
    priority: Priority = Priority.MEDIUM
    is_overdue: bool = False

    # Pass-through fields for the aggregated view
    notes: Optional[str] = None
    status: ItemStatus = ItemStatus.PENDING
    item_type: ItemType = ItemType.ACTION_ITEM
    time_of_day: Optional[datetime.time] = None
    frequency: Optional[Frequency] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_definition(cls, definition: ScheduleDefinition, due_date: datetime.date) -> Occurrence:
        return cls(
            definition_id=definition.id,
            source_tool=definition.source_tool,
            title=definition.title,
            due_date=due_date,
            priority=definition.priority,
            notes=definition.notes,
            status=definition.status,
            item_type=definition.effective_item_type,
            time_of_day=definition.effective_time,
            frequency=definition.frequency,
            metadata=definition.metadata,
        )

    @classmethod
    def from_entry(cls, entry: OneOffEntry) -> Occurrence:
        return cls(
            definition_id=entry.id,
            source_tool=entry.source_tool,
            title=entry.title,
            due_date=entry.due_date,
            priority=entry.priority,
            notes=entry.notes,
            status=entry.status,
            item_type=entry.effective_item_type,
            time_of_day=entry.effective_time,
            metadata=entry.metadata,
        )

    @property
    def dedup_key(self) -> tuple[str, str, datetime.date]:
        return (self.source_tool.value, self.definition_id, self.due_date)


class ActionItem(BaseModel):
    """One row of the aggregated feed or calendar."""

    id: str = Field(..., description="Occurrence id: '<definition_id>:<YYYY-MM-DD>'")
    definition_id: str
    source_tool: SourceTool
    title: str
    notes: Optional[str] = None
    due_date: datetime.date
    scheduled_at: Optional[datetime.datetime] = Field(
        default=None, description="Due date combined with the time of day"
    )
    priority: Priority
    status: ItemStatus
    is_overdue: bool
    is_recurring: bool
    frequency: Optional[Frequency] = None
    item_type: ItemType
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_serializer("due_date")
    def serialize_date(self, value: datetime.date) -> str:
        """Serialize dates to ISO format."""
        return value.isoformat()

    @field_serializer("scheduled_at", when_used="unless-none")
    def serialize_datetime(self, value: datetime.datetime) -> str:
        """Serialize datetimes to ISO format."""
        return value.isoformat()


class AggregationFilters(BaseModel):
    """Optional filters applied by the aggregator after sorting."""

    status: Optional[ItemStatus] = None
    item_types: frozenset[ItemType] = Field(default_factory=frozenset)
    source_tools: frozenset[SourceTool] = Field(default_factory=frozenset)
    limit: Optional[int] = Field(default=None, ge=0)
    offset: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)
