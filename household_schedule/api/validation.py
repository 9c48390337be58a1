"""Query-string validation for the schedule endpoints.

Request parameters are parsed into pydantic models; any failure surfaces as
``ScheduleValidationError`` so the error middleware answers 400 before the
materializer is ever called.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from household_schedule.core.config_manager import DEFAULT_FEED_LIMIT, MAX_FEED_LIMIT
from household_schedule.domain.models import AggregationFilters, ItemStatus, ItemType, SourceTool
from household_schedule.domain.planner import ScheduleWindow, parse_month
from household_schedule.exceptions import ScheduleValidationError

_TRUE_VALUES = ("1", "true", "yes", "on")
_ALL_STATUSES = ("", "all", "any")


def _parse_status(value: Any) -> Optional[ItemStatus]:
    if value is None or (isinstance(value, str) and value.strip().lower() in _ALL_STATUSES):
        return None
    return ItemStatus.parse(value)


def _parse_sources(value: Any) -> frozenset[SourceTool]:
    if value is None or value == "":
        return frozenset()
    if isinstance(value, str):
        value = [part for part in value.split(",") if part.strip()]
    try:
        return frozenset(SourceTool(str(part).strip().lower()) for part in value)
    except ValueError as exc:
        raise ScheduleValidationError(f"Unknown source tool in {value!r}") from exc


class _ScheduleQuery(BaseModel):
    """Parameters shared by the feed and calendar endpoints."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    owner_id: str = Field(..., alias="ownerId", min_length=1, description="Household/user id")
    item_type: Optional[ItemType] = Field(
        default=None, alias="type", description="calendar_event, action_item or both"
    )
    sources: frozenset[SourceTool] = Field(
        default_factory=frozenset, alias="source", description="Comma-separated source tools"
    )

    @field_validator("owner_id", mode="before")
    @classmethod
    def _strip_owner(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("item_type", mode="before")
    @classmethod
    def _lower_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() or None
        return value

    @field_validator("sources", mode="before")
    @classmethod
    def _split_sources(cls, value: Any) -> frozenset[SourceTool]:
        return _parse_sources(value)

    def _item_types(self) -> frozenset[ItemType]:
        return frozenset() if self.item_type is None else frozenset({self.item_type})


class FeedQuery(_ScheduleQuery):
    """``GET /schedule/feed`` parameters."""

    status: Optional[ItemStatus] = Field(
        default=ItemStatus.PENDING, description="Status filter; 'all' disables it"
    )
    limit: int = Field(default=DEFAULT_FEED_LIMIT, ge=0, le=MAX_FEED_LIMIT)
    offset: int = Field(default=0, ge=0)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> Optional[ItemStatus]:
        return _parse_status(value)

    def to_filters(self) -> AggregationFilters:
        return AggregationFilters(
            status=self.status,
            item_types=self._item_types(),
            source_tools=self.sources,
            limit=self.limit,
            offset=self.offset,
        )


class CalendarQuery(_ScheduleQuery):
    """``GET /schedule/calendar`` and ``/schedule/calendar.ics`` parameters."""

    month: str = Field(..., description="YYYY-MM")
    status: Optional[ItemStatus] = Field(default=None, description="Optional status filter")
    history: bool = Field(default=False, description="Include inactive definitions' history")

    @field_validator("month")
    @classmethod
    def _check_month(cls, value: str) -> str:
        parse_month(value)
        return value.strip()

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> Optional[ItemStatus]:
        return _parse_status(value)

    @field_validator("history", mode="before")
    @classmethod
    def _truthy(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_VALUES
        return bool(value)

    @property
    def window(self) -> ScheduleWindow:
        return parse_month(self.month)

    def to_filters(self) -> AggregationFilters:
        return AggregationFilters(
            status=self.status,
            item_types=self._item_types(),
            source_tools=self.sources,
        )


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "query"
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}")
    return "; ".join(parts)


def parse_query(model: type[_ScheduleQuery], query: Mapping[str, str], **defaults: Any) -> Any:
    """Validate a request query string against ``model``.

    Args:
        model: FeedQuery or CalendarQuery
        query: Request query mapping (e.g. ``request.query``)
        **defaults: Values used when the parameter is absent (by alias)

    Raises:
        ScheduleValidationError: If any parameter is missing or invalid
    """
    data: dict[str, Any] = dict(defaults)
    data.update({key: value for key, value in query.items()})
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ScheduleValidationError(_describe(exc)) from exc
