"""Pure scheduling logic: models, recurrence, planning, aggregation and visibility."""

from .aggregator import ActionAggregator
from .models import (
    ActionItem,
    AggregationFilters,
    Frequency,
    ItemStatus,
    ItemType,
    Occurrence,
    OneOffEntry,
    Priority,
    ScheduleDefinition,
    SourceTool,
)
from .planner import ScheduleWindow, WindowQueryPlanner, month_window, parse_month, upcoming_window
from .recurrence import expand, next_occurrence

__all__ = [
    "ActionAggregator",
    "ActionItem",
    "AggregationFilters",
    "Frequency",
    "ItemStatus",
    "ItemType",
    "Occurrence",
    "OneOffEntry",
    "Priority",
    "ScheduleDefinition",
    "ScheduleWindow",
    "SourceTool",
    "WindowQueryPlanner",
    "expand",
    "month_window",
    "next_occurrence",
    "parse_month",
    "upcoming_window",
]
