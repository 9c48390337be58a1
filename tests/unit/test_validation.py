"""Unit tests for query-string validation."""

import datetime

import pytest

from household_schedule.api.validation import CalendarQuery, FeedQuery, parse_query
from household_schedule.domain.models import ItemStatus, ItemType, SourceTool
from household_schedule.exceptions import ScheduleValidationError

pytestmark = pytest.mark.unit


class TestFeedQuery:
    def test_defaults(self):
        query = parse_query(FeedQuery, {"ownerId": " h1 "}, limit=25)
        filters = query.to_filters()

        assert query.owner_id == "h1"
        assert filters.status == ItemStatus.PENDING
        assert filters.limit == 25
        assert filters.offset == 0
        assert filters.item_types == frozenset()

    def test_status_all_disables_filter(self):
        query = parse_query(FeedQuery, {"ownerId": "h1", "status": "all"})
        assert query.to_filters().status is None

    def test_sources_and_type(self):
        query = parse_query(
            FeedQuery, {"ownerId": "h1", "source": "todo, care_plan", "type": "Calendar_Event"}
        )
        filters = query.to_filters()

        assert filters.source_tools == frozenset({SourceTool.TODO, SourceTool.CARE_PLAN})
        assert filters.item_types == frozenset({ItemType.CALENDAR_EVENT})

    @pytest.mark.parametrize(
        "params",
        [
            {},
            {"ownerId": ""},
            {"ownerId": "h1", "limit": "-1"},
            {"ownerId": "h1", "limit": "100000"},
            {"ownerId": "h1", "source": "garden"},
            {"ownerId": "h1", "status": "sleeping"},
        ],
    )
    def test_invalid_parameters(self, params):
        with pytest.raises(ScheduleValidationError):
            parse_query(FeedQuery, params)


class TestCalendarQuery:
    def test_month_window_and_history(self):
        query = parse_query(CalendarQuery, {"ownerId": "h1", "month": "2024-02", "history": "1"})

        assert query.window.start == datetime.date(2024, 2, 1)
        assert query.window.end == datetime.date(2024, 2, 29)
        assert query.history is True
        assert query.to_filters().status is None

    @pytest.mark.parametrize("month", ["2025-13", "2025-3", "March", ""])
    def test_bad_month(self, month):
        with pytest.raises(ScheduleValidationError) as exc_info:
            parse_query(CalendarQuery, {"ownerId": "h1", "month": month})
        assert "month" in str(exc_info.value)

    def test_missing_month(self):
        with pytest.raises(ScheduleValidationError):
            parse_query(CalendarQuery, {"ownerId": "h1"})
