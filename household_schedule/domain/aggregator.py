"""Merge, dedupe, order and filter occurrences into dashboard action items.

The aggregator is a read-only projection: it never changes a source status,
it only derives ``is_overdue`` and the presentation fields of ``ActionItem``.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable
from typing import Optional

from household_schedule.domain.models import (
    ActionItem,
    AggregationFilters,
    Frequency,
    ItemStatus,
    Occurrence,
    OneOffEntry,
)

logger = logging.getLogger(__name__)


def sort_key(item: ActionItem) -> tuple[datetime.date, int, str, str]:
    """Due date ascending, then high before medium before low, then title."""
    return (item.due_date, -item.priority.rank, item.title.casefold(), item.definition_id)


def is_overdue(due_date: datetime.date, status: ItemStatus, today: datetime.date) -> bool:
    return due_date < today and status == ItemStatus.PENDING


class ActionAggregator:
    """Builds the ordered, deduplicated feed shown on the dashboard and calendar."""

    def __init__(self, tz: Optional[datetime.tzinfo] = None):
        """Initialize aggregator.

        Args:
            tz: Household timezone attached to ``scheduled_at``; naive when None
        """
        self.tz = tz

    def to_action_item(self, occurrence: Occurrence, today: datetime.date) -> ActionItem:
        scheduled_at = None
        if occurrence.time_of_day is not None:
            scheduled_at = datetime.datetime.combine(
                occurrence.due_date, occurrence.time_of_day, tzinfo=self.tz
            )
        return ActionItem(
            id=f"{occurrence.definition_id}:{occurrence.due_date.isoformat()}",
            definition_id=occurrence.definition_id,
            source_tool=occurrence.source_tool,
            title=occurrence.title,
            notes=occurrence.notes,
            due_date=occurrence.due_date,
            scheduled_at=scheduled_at,
            priority=occurrence.priority,
            status=occurrence.status,
            is_overdue=is_overdue(occurrence.due_date, occurrence.status, today),
            is_recurring=occurrence.frequency not in (None, Frequency.ONE_TIME),
            frequency=occurrence.frequency,
            item_type=occurrence.item_type,
            metadata=dict(occurrence.metadata),
        )

    def aggregate(
        self,
        occurrences: Iterable[Occurrence],
        one_off_entries: Iterable[OneOffEntry],
        filters: Optional[AggregationFilters] = None,
        today: Optional[datetime.date] = None,
    ) -> list[ActionItem]:
        """Merge recurring occurrences with one-off entries into one ordered list.

        Args:
            occurrences: Expanded occurrences from the planner
            one_off_entries: One-off entries already inside the query window
            filters: Optional status/type/source filters, offset and limit
            today: Household-local date used for ``is_overdue``

        Returns:
            Action items sorted by due date, priority (high first) and title,
            deduplicated by source tool, definition id and due date
        """
        filters = filters or AggregationFilters()
        today = today or datetime.date.today()

        merged = list(occurrences)
        merged.extend(
            Occurrence.from_entry(entry) for entry in one_off_entries if entry.include_in_feed
        )

        seen: set[tuple[str, str, datetime.date]] = set()
        items: list[ActionItem] = []
        duplicates = 0
        for occurrence in merged:
            key = occurrence.dedup_key
            if key in seen:
                duplicates += 1
                continue
            seen.add(key)
            items.append(self.to_action_item(occurrence, today))

        if duplicates:
            logger.debug("Dropped %d duplicate occurrences", duplicates)

        items.sort(key=sort_key)
        items = [item for item in items if self._matches(item, filters)]

        end = None if filters.limit is None else filters.offset + filters.limit
        return items[filters.offset : end]

    @staticmethod
    def _matches(item: ActionItem, filters: AggregationFilters) -> bool:
        if filters.status is not None and item.status != filters.status:
            return False
        if filters.source_tools and item.source_tool not in filters.source_tools:
            return False
        if filters.item_types and not any(item.item_type.matches(t) for t in filters.item_types):
            return False
        return True
