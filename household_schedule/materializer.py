"""Request-scoped materialization: fan-out reads, planning and aggregation.

Each call reads every tool's repository concurrently, expands the eligible
definitions for the requested window and returns one aggregated result.
Nothing is cached between calls.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from household_schedule.core.async_utils import AsyncTimeoutError, gather_with_timeout, run_with_timeout
from household_schedule.core.config_manager import (
    DEFAULT_FEED_HORIZON_DAYS,
    DEFAULT_FEED_LOOKBACK_DAYS,
    DEFAULT_REPOSITORY_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
    get_config_value,
)
from household_schedule.core.health_tracker import HealthTracker
from household_schedule.core.timezone_utils import DEFAULT_HOUSEHOLD_TIMEZONE, TimeProvider
from household_schedule.domain.aggregator import ActionAggregator
from household_schedule.domain.models import (
    ActionItem,
    AggregationFilters,
    ItemStatus,
    OneOffEntry,
    ScheduleDefinition,
    SourceTool,
)
from household_schedule.domain.planner import (
    PlannerConfig,
    ScheduleWindow,
    WindowQueryPlanner,
    parse_month,
    upcoming_window,
)
from household_schedule.exceptions import MaterializationTimeoutError, RepositoryError
from household_schedule.repositories.protocols import DefinitionRepository, OneOffRepository

logger = logging.getLogger(__name__)


@dataclass
class MaterializerConfig:
    """Timeouts and lookahead limits for the materializer."""

    repository_timeout_seconds: float = DEFAULT_REPOSITORY_TIMEOUT
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT
    feed_horizon_days: int = DEFAULT_FEED_HORIZON_DAYS
    feed_lookback_days: int = DEFAULT_FEED_LOOKBACK_DAYS
    max_occurrences_per_definition: int = 1
    default_timezone: str = DEFAULT_HOUSEHOLD_TIMEZONE

    @classmethod
    def from_settings(cls, settings: Any) -> MaterializerConfig:
        """Create config from settings object or dict with safe defaults.

        Args:
            settings: Application settings (dict or attribute object)

        Returns:
            MaterializerConfig with values from settings or defaults
        """
        return cls(
            repository_timeout_seconds=float(
                get_config_value(settings, "repository_timeout_seconds", DEFAULT_REPOSITORY_TIMEOUT)
            ),
            request_timeout_seconds=float(
                get_config_value(settings, "request_timeout_seconds", DEFAULT_REQUEST_TIMEOUT)
            ),
            feed_horizon_days=max(
                0, int(get_config_value(settings, "feed_horizon_days", DEFAULT_FEED_HORIZON_DAYS))
            ),
            feed_lookback_days=max(
                0, int(get_config_value(settings, "feed_lookback_days", DEFAULT_FEED_LOOKBACK_DAYS))
            ),
            max_occurrences_per_definition=max(
                1, int(get_config_value(settings, "max_occurrences_per_definition", 1))
            ),
            default_timezone=str(
                get_config_value(settings, "default_timezone", DEFAULT_HOUSEHOLD_TIMEZONE)
            ),
        )


@dataclass
class MaterializationResult:
    """Items for one window plus the tools that could not be read."""

    items: list[ActionItem]
    window: ScheduleWindow
    degraded_sources: list[str] = field(default_factory=list)
    generated_at: Optional[datetime.datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [item.model_dump(mode="json") for item in self.items],
            "count": len(self.items),
            "window": self.window.to_dict(),
            "degraded_sources": list(self.degraded_sources),
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
        }


@dataclass
class _ReadOutcome:
    definitions: list[ScheduleDefinition] = field(default_factory=list)
    entries: list[OneOffEntry] = field(default_factory=list)
    degraded: set[str] = field(default_factory=set)
    source_count: int = 0


class ScheduleMaterializer:
    """Turns repository reads into the calendar and feed views."""

    def __init__(
        self,
        definition_repositories: Mapping[SourceTool, DefinitionRepository],
        one_off_repositories: Mapping[SourceTool, OneOffRepository],
        config: Optional[MaterializerConfig] = None,
        time_provider: Optional[TimeProvider] = None,
        health_tracker: Optional[HealthTracker] = None,
    ):
        """Initialize materializer.

        Args:
            definition_repositories: Recurring-definition repository per tool
            one_off_repositories: One-off entry repository per tool
            config: Timeouts and lookahead limits
            time_provider: Clock used for "today" (household timezone)
            health_tracker: Optional tracker updated after every request
        """
        self.definition_repositories = dict(definition_repositories)
        self.one_off_repositories = dict(one_off_repositories)
        self.config = config or MaterializerConfig()
        self.time_provider = time_provider or TimeProvider(self.config.default_timezone)
        self.health_tracker = health_tracker
        self.planner = WindowQueryPlanner(PlannerConfig.from_settings(self.config))
        self.aggregator = ActionAggregator(tz=self.time_provider.tz)

    async def _read_one(self, aw: Awaitable[list[Any]]) -> list[Any]:
        return await run_with_timeout(aw, self.config.repository_timeout_seconds)

    async def _read_all(
        self, owner_id: str, window: ScheduleWindow, include_inactive: bool
    ) -> _ReadOutcome:
        """Read every repository concurrently under the request-level timeout.

        Raises:
            MaterializationTimeoutError: If the request budget is exhausted
        """
        labels: list[tuple[SourceTool, str]] = []
        reads: list[Awaitable[list[Any]]] = []

        for tool, repo in self.definition_repositories.items():
            labels.append((tool, "definitions"))
            reads.append(
                self._read_one(
                    repo.fetch_active_by_owner(owner_id, tool, include_inactive=include_inactive)
                )
            )
        for tool, one_off_repo in self.one_off_repositories.items():
            labels.append((tool, "entries"))
            reads.append(self._read_one(one_off_repo.fetch_by_owner_and_window(owner_id, window)))

        outcome = _ReadOutcome(source_count=len({tool for tool, _ in labels}))
        try:
            results = await gather_with_timeout(
                *reads, timeout=self.config.request_timeout_seconds, return_exceptions=True
            )
        except AsyncTimeoutError as exc:
            if self.health_tracker is not None:
                self.health_tracker.record_failure()
            raise MaterializationTimeoutError(
                f"Repository reads for owner {owner_id} exceeded "
                f"{self.config.request_timeout_seconds}s"
            ) from exc

        for (tool, kind), result in zip(labels, results):
            if isinstance(result, BaseException):
                self._log_read_failure(tool, kind, result)
                outcome.degraded.add(tool.value)
                continue
            if kind == "definitions":
                outcome.definitions.extend(result)
            else:
                outcome.entries.extend(result)

        return outcome

    @staticmethod
    def _log_read_failure(tool: SourceTool, kind: str, error: BaseException) -> None:
        if isinstance(error, AsyncTimeoutError):
            logger.warning("Reading %s %s timed out; treating as empty", tool.value, kind)
        elif isinstance(error, RepositoryError):
            logger.warning("Reading %s %s failed: %s; treating as empty", tool.value, kind, error)
        elif isinstance(error, asyncio.CancelledError):
            logger.warning("Reading %s %s was cancelled; treating as empty", tool.value, kind)
        else:
            logger.warning(
                "Unexpected error reading %s %s; treating as empty",
                tool.value,
                kind,
                exc_info=(type(error), error, error.__traceback__),
            )

    def _finish(
        self, items: list[ActionItem], window: ScheduleWindow, outcome: _ReadOutcome
    ) -> MaterializationResult:
        degraded = sorted(outcome.degraded)
        if self.health_tracker is not None:
            self.health_tracker.record_request(degraded, outcome.source_count)
        return MaterializationResult(
            items=items,
            window=window,
            degraded_sources=degraded,
            generated_at=self.time_provider.now_utc(),
        )

    async def calendar(
        self,
        owner_id: str,
        month: Union[str, ScheduleWindow],
        filters: Optional[AggregationFilters] = None,
        include_history: bool = False,
    ) -> MaterializationResult:
        """All occurrences and one-off entries dated in a month.

        Args:
            owner_id: Household/user identifier
            month: ``YYYY-MM`` string or a prebuilt window
            filters: Optional aggregation filters
            include_history: Keep occurrences of inactive definitions dated
                before their inactivation

        Raises:
            ScheduleValidationError: If ``month`` is malformed
            MaterializationTimeoutError: If the request budget is exhausted
        """
        window = parse_month(month) if isinstance(month, str) else month
        outcome = await self._read_all(owner_id, window, include_inactive=include_history)

        occurrences = self.planner.plan_month(
            outcome.definitions, owner_id, window, include_history=include_history
        )
        items = self.aggregator.aggregate(
            occurrences, outcome.entries, filters, today=self.time_provider.today()
        )
        logger.debug(
            "Calendar %s for %s: %d items (%d degraded sources)",
            window.start.strftime("%Y-%m"),
            owner_id,
            len(items),
            len(outcome.degraded),
        )
        return self._finish(items, window, outcome)

    async def feed(
        self, owner_id: str, filters: Optional[AggregationFilters] = None
    ) -> MaterializationResult:
        """Upcoming action items from today, plus pending overdue one-off entries.

        Raises:
            MaterializationTimeoutError: If the request budget is exhausted
        """
        today = self.time_provider.today()
        window = upcoming_window(
            today, self.config.feed_horizon_days, self.config.feed_lookback_days
        )
        outcome = await self._read_all(owner_id, window, include_inactive=False)

        occurrences = self.planner.plan_upcoming(outcome.definitions, owner_id, today)
        # Past one-off entries only matter while they are still pending
        entries = [
            e
            for e in outcome.entries
            if e.owner_id == owner_id and (e.due_date >= today or e.status == ItemStatus.PENDING)
        ]
        items = self.aggregator.aggregate(occurrences, entries, filters, today=today)
        logger.debug("Feed for %s: %d items", owner_id, len(items))
        return self._finish(items, window, outcome)
