"""JSON snapshot store so the server can run without the tools' databases.

The snapshot is a JSON object keyed by source tool. Each section may hold a
``definitions`` list (recurring) and an ``entries`` list (one-off)::

    {
      "care_plan": {"definitions": [{"id": "cp-1", "owner_id": "h1", ...}]},
      "todo": {"entries": [{"id": "t-9", "owner_id": "h1", "due_date": "2025-03-03", ...}]}
    }

A tool whose section is missing behaves like an absent table and raises
``RepositoryUnavailableError``. The file is re-read when its mtime changes.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from household_schedule.domain.models import OneOffEntry, ScheduleDefinition, SourceTool
from household_schedule.domain.planner import ScheduleWindow
from household_schedule.exceptions import RepositoryError, RepositoryUnavailableError

logger = logging.getLogger(__name__)


class _ToolSection:
    """Parsed, validated records of one tool."""

    def __init__(self) -> None:
        self.definitions: list[ScheduleDefinition] = []
        self.entries: list[OneOffEntry] = []


def _parse_records(
    model: type[Any], tool: SourceTool, raw_records: Any, kind: str
) -> list[Any]:
    if not isinstance(raw_records, list):
        logger.warning("Snapshot section %s.%s is not a list; ignoring", tool.value, kind)
        return []

    records = []
    for raw in raw_records:
        if not isinstance(raw, dict):
            continue
        payload = {"source_tool": tool.value, **raw}
        try:
            records.append(model.model_validate(payload))
        except (ValidationError, ValueError) as exc:
            logger.warning(
                "Skipping malformed %s record %r in %s: %s", kind, raw.get("id"), tool.value, exc
            )
    return records


class JsonSnapshotStore:
    """Loads a snapshot file and hands out per-tool repository views."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._mtime: Optional[float] = None
        self._sections: dict[SourceTool, _ToolSection] = {}

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[SourceTool, _ToolSection]:
        """Return parsed sections, reloading when the file changed on disk.

        Raises:
            RepositoryUnavailableError: If the file does not exist
            RepositoryError: If the file is not a JSON object
        """
        with self._lock:
            try:
                mtime = self._path.stat().st_mtime
            except FileNotFoundError as exc:
                raise RepositoryUnavailableError(f"Snapshot file not found: {self._path}") from exc

            if self._mtime == mtime:
                return self._sections

            try:
                with self._path.open("r", encoding="utf-8") as fh:
                    data = json.load(fh)
            except (OSError, json.JSONDecodeError) as exc:
                raise RepositoryError(f"Failed to read snapshot {self._path}: {exc}") from exc
            if not isinstance(data, dict):
                raise RepositoryError("Snapshot JSON root must be an object")

            sections: dict[SourceTool, _ToolSection] = {}
            for key, raw_section in data.items():
                try:
                    tool = SourceTool(key)
                except ValueError:
                    logger.warning("Ignoring unknown tool section %r in %s", key, self._path)
                    continue
                if not isinstance(raw_section, dict):
                    logger.warning("Tool section %r is not an object; ignoring", key)
                    continue
                section = _ToolSection()
                section.definitions = _parse_records(
                    ScheduleDefinition, tool, raw_section.get("definitions", []), "definitions"
                )
                section.entries = _parse_records(
                    OneOffEntry, tool, raw_section.get("entries", []), "entries"
                )
                sections[tool] = section

            self._sections = sections
            self._mtime = mtime
            logger.debug(
                "Loaded snapshot %s (%s)",
                self._path,
                ", ".join(
                    f"{t.value}: {len(s.definitions)} defs/{len(s.entries)} entries"
                    for t, s in sections.items()
                ),
            )
            return self._sections

    async def section(self, tool: SourceTool) -> _ToolSection:
        sections = await asyncio.to_thread(self.load)
        section = sections.get(tool)
        if section is None:
            raise RepositoryUnavailableError(f"No {tool.value} section in snapshot {self._path}")
        return section

    def definition_repository(self, tool: SourceTool) -> SnapshotDefinitionRepository:
        return SnapshotDefinitionRepository(self, tool)

    def one_off_repository(self, tool: SourceTool) -> SnapshotOneOffRepository:
        return SnapshotOneOffRepository(self, tool)


class SnapshotDefinitionRepository:
    """``DefinitionRepository`` view over one tool section of a snapshot."""

    def __init__(self, store: JsonSnapshotStore, tool: SourceTool):
        self.store = store
        self.tool = tool

    async def fetch_active_by_owner(
        self,
        owner_id: str,
        source_tool: SourceTool,
        *,
        include_inactive: bool = False,
    ) -> list[ScheduleDefinition]:
        section = await self.store.section(source_tool)
        return [
            d
            for d in section.definitions
            if d.owner_id == owner_id and (include_inactive or d.is_active)
        ]


class SnapshotOneOffRepository:
    """``OneOffRepository`` view over one tool section of a snapshot."""

    def __init__(self, store: JsonSnapshotStore, tool: SourceTool):
        self.store = store
        self.tool = tool

    async def fetch_by_owner_and_window(
        self, owner_id: str, window: ScheduleWindow
    ) -> list[OneOffEntry]:
        section = await self.store.section(self.tool)
        return [
            e for e in section.entries if e.owner_id == owner_id and window.contains(e.due_date)
        ]
