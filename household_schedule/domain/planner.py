"""Window construction and per-definition planning for materialization queries."""

from __future__ import annotations

import calendar
import datetime
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Optional

from household_schedule.domain.models import Frequency, Occurrence, ScheduleDefinition
from household_schedule.domain.recurrence import DEFAULT_LOOKAHEAD_DAYS, expand
from household_schedule.exceptions import ScheduleValidationError

logger = logging.getLogger(__name__)

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


@dataclass(frozen=True)
class ScheduleWindow:
    """Inclusive date range a query is scoped to."""

    start: datetime.date
    end: datetime.date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ScheduleValidationError(f"Window end {self.end} is before start {self.start}")

    def contains(self, day: datetime.date) -> bool:
        return self.start <= day <= self.end

    def intersects(self, start: datetime.date, end: Optional[datetime.date]) -> bool:
        """Check whether ``[start, end]`` (open-ended when ``end`` is None) overlaps."""
        if start > self.end:
            return False
        return end is None or end >= self.start

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


def month_window(year: int, month: int) -> ScheduleWindow:
    """Return the ``[first, last]`` window of a calendar month."""
    if not 1 <= month <= 12:
        raise ScheduleValidationError(f"Month must be 1-12, got {month}")
    last_day = calendar.monthrange(year, month)[1]
    return ScheduleWindow(datetime.date(year, month, 1), datetime.date(year, month, last_day))


def parse_month(value: Optional[str]) -> ScheduleWindow:
    """Parse a ``YYYY-MM`` string into its month window.

    Raises:
        ScheduleValidationError: If the value is missing or malformed
    """
    if not value:
        raise ScheduleValidationError("month is required (YYYY-MM)")
    match = _MONTH_RE.match(value.strip())
    if match is None:
        raise ScheduleValidationError(f"Invalid month {value!r}; expected YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if year < 1:
        raise ScheduleValidationError(f"Invalid month {value!r}; year out of range")
    return month_window(year, month)


def upcoming_window(
    today: datetime.date,
    horizon_days: int = DEFAULT_LOOKAHEAD_DAYS,
    lookback_days: int = 0,
) -> ScheduleWindow:
    """Return the bounded ``[today - lookback, today + horizon]`` window for feeds.

    The lookback part only ever admits one-off entries that are still pending
    (overdue); recurring definitions are planned from ``today``.
    """
    if horizon_days < 0 or lookback_days < 0:
        raise ScheduleValidationError("horizon_days and lookback_days must be non-negative")
    return ScheduleWindow(
        today - datetime.timedelta(days=lookback_days),
        today + datetime.timedelta(days=horizon_days),
    )


@dataclass
class PlannerConfig:
    """Limits for bounded lookahead in upcoming-item queries."""

    horizon_days: int = DEFAULT_LOOKAHEAD_DAYS
    max_occurrences_per_definition: int = 1

    @classmethod
    def from_settings(cls, settings: Any) -> PlannerConfig:
        """Create config from settings object or dict with safe defaults."""
        if isinstance(settings, dict):
            get = settings.get
        else:

            def get(key: str, default: Any = None) -> Any:
                return getattr(settings, key, default)

        return cls(
            horizon_days=max(0, int(get("feed_horizon_days", DEFAULT_LOOKAHEAD_DAYS))),
            max_occurrences_per_definition=max(1, int(get("max_occurrences_per_definition", 1))),
        )


class WindowQueryPlanner:
    """Selects the definitions that can intersect a window and expands only those."""

    def __init__(self, config: Optional[PlannerConfig] = None):
        self.config = config or PlannerConfig()

    def is_eligible(
        self,
        definition: ScheduleDefinition,
        owner_id: str,
        window: ScheduleWindow,
        include_history: bool = False,
    ) -> bool:
        """Check whether ``definition`` may produce anything in ``window``.

        Eligible means: same owner, opted into the feed, not As Needed, its
        ``[start_date, end_date]`` range overlaps the window, and it is active
        (or, for history views, was generating before its inactivation).
        """
        if definition.owner_id != owner_id:
            return False
        if not definition.include_in_feed:
            return False
        if definition.frequency == Frequency.AS_NEEDED:
            return False
        if not window.intersects(definition.start_date, definition.end_date):
            return False
        if definition.is_active:
            return True
        if not include_history or definition.date_inactivated is None:
            return False
        # History views keep occurrences dated before the inactivation
        return definition.date_inactivated > max(window.start, definition.start_date)

    def eligible(
        self,
        definitions: Iterable[ScheduleDefinition],
        owner_id: str,
        window: ScheduleWindow,
        include_history: bool = False,
    ) -> list[ScheduleDefinition]:
        selected = [
            d for d in definitions if self.is_eligible(d, owner_id, window, include_history)
        ]
        logger.debug("Planner selected %d definitions for %s..%s", len(selected), window.start, window.end)
        return selected

    def plan_month(
        self,
        definitions: Iterable[ScheduleDefinition],
        owner_id: str,
        window: ScheduleWindow,
        include_history: bool = False,
    ) -> list[Occurrence]:
        """Expand every eligible definition over the whole window."""
        occurrences: list[Occurrence] = []
        for definition in self.eligible(definitions, owner_id, window, include_history):
            for day in expand(definition, window.start, window.end, include_history=include_history):
                occurrences.append(Occurrence.from_definition(definition, day))
        return occurrences

    def plan_upcoming(
        self,
        definitions: Iterable[ScheduleDefinition],
        owner_id: str,
        today: datetime.date,
    ) -> list[Occurrence]:
        """Return the next occurrence(s) of each eligible definition from ``today``.

        Expansion is bounded by ``horizon_days`` and by
        ``max_occurrences_per_definition`` so the computation stays finite.
        """
        window = upcoming_window(today, self.config.horizon_days)
        occurrences: list[Occurrence] = []
        for definition in self.eligible(definitions, owner_id, window):
            days = expand(
                definition,
                window.start,
                window.end,
                limit=self.config.max_occurrences_per_definition,
            )
            occurrences.extend(Occurrence.from_definition(definition, day) for day in days)
        return occurrences

