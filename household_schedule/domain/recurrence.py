"""Recurrence expansion for schedule definitions.

Turns one ``ScheduleDefinition`` and a date window into the ascending list of
dates it occurs on. Expansion is pure and deterministic: the same definition
and window always produce the same dates.

The first candidate inside a window is located arithmetically (modular
offset for day/week steps, month index arithmetic for month steps), so the
cost depends on the window size and never on how long ago ``start_date`` was.
Month-based frequencies clamp to the last day of shorter months with
``dateutil.relativedelta`` (day 31 in February gives the 28th or 29th).
"""

from __future__ import annotations

import datetime
import heapq
import itertools
import logging
from collections.abc import Callable, Iterator
from typing import Optional

from dateutil.relativedelta import relativedelta

from household_schedule.domain.models import Frequency, ScheduleDefinition
from household_schedule.domain.visibility import generation_cutoff, is_generating_on
from household_schedule.exceptions import ScheduleValidationError

logger = logging.getLogger(__name__)

ONE_DAY = datetime.timedelta(days=1)

# Long enough for every frequency (Yearly included) to produce its next date
DEFAULT_LOOKAHEAD_DAYS = 366


def sunday_weekday(day: datetime.date) -> int:
    """Weekday index with 0=Sunday .. 6=Saturday, as stored by the tools."""
    return (day.weekday() + 1) % 7


def _iter_fixed_steps(
    anchor: datetime.date,
    step_days: int,
    lower: datetime.date,
    upper: datetime.date,
) -> Iterator[datetime.date]:
    """Yield ``anchor + k*step_days`` (k >= 0) within ``[lower, upper]``."""
    lower = max(lower, anchor)
    gap = -(lower - anchor).days % step_days
    # Never step past upper, which may be date.max
    if (upper - lower).days < gap:
        return
    day = lower + datetime.timedelta(days=gap)
    step = datetime.timedelta(days=step_days)
    while True:
        yield day
        if (upper - day).days < step_days:
            return
        day += step


def _iter_daily(
    definition: ScheduleDefinition,
    frequency: Frequency,
    lower: datetime.date,
    upper: datetime.date,
) -> Iterator[datetime.date]:
    step = frequency.day_step or 1
    return _iter_fixed_steps(definition.start_date, step, lower, upper)


def _iter_weekly(
    definition: ScheduleDefinition,
    frequency: Frequency,
    lower: datetime.date,
    upper: datetime.date,
) -> Iterator[datetime.date]:
    week_step = frequency.week_step or 1
    start = definition.start_date

    start_weekday = sunday_weekday(start)
    weekdays = sorted(definition.days_of_week) or [start_weekday]

    # Biweekly streams alternate from the Sunday-based week containing start_date;
    # a weekday earlier in that week first occurs one full step later.
    streams = []
    for weekday in weekdays:
        delta = weekday - start_weekday
        if delta < 0:
            delta += 7 * week_step
        if (upper - start).days < delta:
            continue
        anchor = start + datetime.timedelta(days=delta)
        streams.append(_iter_fixed_steps(anchor, 7 * week_step, lower, upper))
    return heapq.merge(*streams)


def _month_index(day: datetime.date) -> int:
    return day.year * 12 + day.month - 1


_LAST_MONTH_INDEX = _month_index(datetime.date.max)


def clamp_to_month(year: int, month: int, day_of_month: int) -> datetime.date:
    """Return ``day_of_month`` in the given month, clamped to its last day."""
    return datetime.date(year, month, 1) + relativedelta(day=day_of_month)


def _iter_month_steps(
    definition: ScheduleDefinition,
    frequency: Frequency,
    lower: datetime.date,
    upper: datetime.date,
) -> Iterator[datetime.date]:
    step = frequency.month_step or 1
    start = definition.start_date
    if frequency == Frequency.YEARLY:
        anchor_day = start.day
    else:
        anchor_day = definition.anchor_day

    start_index = _month_index(start)
    months_ahead = _month_index(lower) - start_index
    k = max(0, -(-months_ahead // step))

    while start_index + k * step <= _LAST_MONTH_INDEX:
        year, month0 = divmod(start_index + k * step, 12)
        day = clamp_to_month(year, month0 + 1, anchor_day)
        if day > upper:
            return
        if day >= lower:
            yield day
        k += 1


def _iter_one_time(
    definition: ScheduleDefinition,
    frequency: Frequency,
    lower: datetime.date,
    upper: datetime.date,
) -> Iterator[datetime.date]:
    if lower <= definition.start_date <= upper:
        yield definition.start_date


Expander = Callable[
    [ScheduleDefinition, Frequency, datetime.date, datetime.date], Iterator[datetime.date]
]

_EXPANDERS: dict[Frequency, Expander] = {
    Frequency.DAILY: _iter_daily,
    Frequency.EVERY_2_DAYS: _iter_daily,
    Frequency.EVERY_3_DAYS: _iter_daily,
    Frequency.WEEKLY: _iter_weekly,
    Frequency.EVERY_2_WEEKS: _iter_weekly,
    Frequency.MONTHLY: _iter_month_steps,
    Frequency.EVERY_3_MONTHS: _iter_month_steps,
    Frequency.EVERY_6_MONTHS: _iter_month_steps,
    Frequency.YEARLY: _iter_month_steps,
    Frequency.ONE_TIME: _iter_one_time,
}


def iter_occurrences(
    definition: ScheduleDefinition,
    window_start: datetime.date,
    window_end: datetime.date,
    include_history: bool = False,
) -> Iterator[datetime.date]:
    """Lazily yield the occurrence dates of ``definition`` in a window.

    Args:
        definition: Definition to expand
        window_start: First date of the window (inclusive)
        window_end: Last date of the window (inclusive)
        include_history: Keep an inactive definition's occurrences dated
            before its inactivation

    Yields:
        Occurrence dates in ascending order, each within
        ``[start_date, end_date] ∩ [window_start, window_end]``
    """
    try:
        frequency = Frequency.parse(definition.frequency)
    except ScheduleValidationError:
        # Only reachable for records built without validation
        logger.warning(
            "Definition %s has unrecognised frequency %r; treating as As Needed",
            definition.id,
            definition.frequency,
        )
        return

    expander = _EXPANDERS.get(frequency)
    if expander is None:
        return

    lower = max(window_start, definition.start_date)
    upper = window_end if definition.end_date is None else min(window_end, definition.end_date)

    cutoff = generation_cutoff(definition, include_history)
    if cutoff is not None:
        if cutoff <= lower:
            return
        upper = min(upper, cutoff - ONE_DAY)

    if lower > upper:
        return

    for day in expander(definition, frequency, lower, upper):
        if is_generating_on(definition, day, include_history):
            yield day


def expand(
    definition: ScheduleDefinition,
    window_start: datetime.date,
    window_end: datetime.date,
    *,
    limit: Optional[int] = None,
    include_history: bool = False,
) -> list[datetime.date]:
    """Expand ``definition`` into its occurrence dates within a window.

    Args:
        definition: Definition to expand
        window_start: First date of the window (inclusive)
        window_end: Last date of the window (inclusive)
        limit: Stop after this many occurrences
        include_history: See ``iter_occurrences``

    Returns:
        Ascending list of dates; empty for As Needed, inactive definitions and
        windows outside the definition's date range
    """
    occurrences = iter_occurrences(definition, window_start, window_end, include_history)
    if limit is not None:
        occurrences = itertools.islice(occurrences, limit)
    return list(occurrences)


def next_occurrence(
    definition: ScheduleDefinition,
    on_or_after: datetime.date,
    horizon_days: int = DEFAULT_LOOKAHEAD_DAYS,
) -> Optional[datetime.date]:
    """Return the first occurrence on or after a date, searching a bounded horizon."""
    horizon_days = min(horizon_days, (datetime.date.max - on_or_after).days)
    horizon_end = on_or_after + datetime.timedelta(days=horizon_days)
    return next(iter_occurrences(definition, on_or_after, horizon_end), None)
