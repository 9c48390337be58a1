"""In-memory repositories, used by tests and for embedding the core in-process."""

from __future__ import annotations

from collections.abc import Iterable

from household_schedule.domain.models import OneOffEntry, ScheduleDefinition, SourceTool
from household_schedule.domain.planner import ScheduleWindow


class InMemoryDefinitionRepository:
    """Holds definitions in a list and filters them per request."""

    def __init__(self, definitions: Iterable[ScheduleDefinition] = ()):
        self._definitions = list(definitions)

    def add(self, definition: ScheduleDefinition) -> None:
        self._definitions.append(definition)

    async def fetch_active_by_owner(
        self,
        owner_id: str,
        source_tool: SourceTool,
        *,
        include_inactive: bool = False,
    ) -> list[ScheduleDefinition]:
        return [
            d
            for d in self._definitions
            if d.owner_id == owner_id
            and d.source_tool == source_tool
            and (include_inactive or d.is_active)
        ]


class InMemoryOneOffRepository:
    """Holds one-off entries in a list and filters them per request."""

    def __init__(self, entries: Iterable[OneOffEntry] = ()):
        self._entries = list(entries)

    def add(self, entry: OneOffEntry) -> None:
        self._entries.append(entry)

    async def fetch_by_owner_and_window(
        self, owner_id: str, window: ScheduleWindow
    ) -> list[OneOffEntry]:
        return [e for e in self._entries if e.owner_id == owner_id and window.contains(e.due_date)]
