"""RFC 5545 export of aggregated items so a month can be subscribed to."""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable
from typing import Optional

from icalendar import Calendar, Event as ICalEvent

from household_schedule.domain.models import ActionItem, ItemStatus, Priority

logger = logging.getLogger(__name__)

PRODID = "-//household_schedule//Schedule Export//EN"

# RFC 5545 PRIORITY: 1 highest, 9 lowest
_ICAL_PRIORITY = {Priority.HIGH: 1, Priority.MEDIUM: 5, Priority.LOW: 9}


def _to_ical_event(item: ActionItem, stamp: datetime.datetime) -> ICalEvent:
    event = ICalEvent()
    event.add("uid", item.id)
    event.add("dtstamp", stamp)
    event.add("summary", item.title)
    if item.scheduled_at is not None:
        event.add("dtstart", item.scheduled_at)
    else:
        event.add("dtstart", item.due_date)
    if item.notes:
        event.add("description", item.notes)
    event.add("categories", [item.source_tool.value])
    event.add("priority", _ICAL_PRIORITY[item.priority])
    event.add("status", "CANCELLED" if item.status == ItemStatus.CANCELLED else "CONFIRMED")
    if item.frequency is not None:
        event.add("x-household-frequency", item.frequency.value)
    return event


def build_ics_calendar(
    items: Iterable[ActionItem],
    calendar_name: str = "Household schedule",
    tz_name: Optional[str] = None,
    stamp: Optional[datetime.datetime] = None,
) -> bytes:
    """Render items as a ``VCALENDAR`` document.

    Args:
        items: Aggregated items, typically one month of the calendar view
        calendar_name: Value for ``X-WR-CALNAME``
        tz_name: Household timezone for ``X-WR-TIMEZONE``
        stamp: ``DTSTAMP`` for every event (defaults to now, UTC)

    Returns:
        The serialized calendar
    """
    stamp = stamp or datetime.datetime.now(datetime.UTC)

    cal = Calendar()
    cal.add("prodid", PRODID)
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("x-wr-calname", calendar_name)
    if tz_name:
        cal.add("x-wr-timezone", tz_name)

    count = 0
    for item in items:
        cal.add_component(_to_ical_event(item, stamp))
        count += 1

    logger.debug("Built ICS calendar %r with %d events", calendar_name, count)
    return cal.to_ical()
