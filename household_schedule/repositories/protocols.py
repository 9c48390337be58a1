"""Protocol definitions for the repositories the materializer reads from.

Each household tool owns its storage; the materializer only needs these two
read operations. Neither performs writes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from household_schedule.domain.models import OneOffEntry, ScheduleDefinition, SourceTool
    from household_schedule.domain.planner import ScheduleWindow


@runtime_checkable
class DefinitionRepository(Protocol):
    """Protocol for per-tool storage of recurring definitions."""

    async def fetch_active_by_owner(
        self,
        owner_id: str,
        source_tool: SourceTool,
        *,
        include_inactive: bool = False,
    ) -> list[ScheduleDefinition]:
        """Fetch an owner's definitions for one tool.

        Args:
            owner_id: Household/user identifier
            source_tool: Tool whose definitions are requested
            include_inactive: Also return inactive definitions (history views)

        Returns:
            Definitions owned by ``owner_id``

        Raises:
            RepositoryError: If the read fails
            RepositoryUnavailableError: If the tool's storage is absent
        """
        ...


@runtime_checkable
class OneOffRepository(Protocol):
    """Protocol for per-tool storage of single dated entries."""

    async def fetch_by_owner_and_window(
        self, owner_id: str, window: ScheduleWindow
    ) -> list[OneOffEntry]:
        """Fetch an owner's one-off entries dated inside ``window``.

        Raises:
            RepositoryError: If the read fails
            RepositoryUnavailableError: If the tool's storage is absent
        """
        ...
