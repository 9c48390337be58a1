"""Unit tests for the action aggregator."""

import datetime
from datetime import date

import pytest

from household_schedule.domain.aggregator import ActionAggregator
from household_schedule.domain.models import (
    AggregationFilters,
    Frequency,
    ItemStatus,
    ItemType,
    Occurrence,
    Priority,
    SourceTool,
)

pytestmark = pytest.mark.unit

TODAY = date(2025, 3, 4)


def occ(definition_id, due, priority="medium", **kwargs):
    data = {
        "definition_id": definition_id,
        "source_tool": SourceTool.CARE_PLAN,
        "title": definition_id,
        "due_date": due,
        "priority": Priority(priority),
        "frequency": Frequency.DAILY,
        "time_of_day": datetime.time(9, 0),
    }
    data.update(kwargs)
    return Occurrence(**data)


@pytest.fixture
def aggregator():
    return ActionAggregator(tz=datetime.UTC)


class TestOrdering:
    def test_sorted_by_date_then_priority(self, aggregator):
        occurrences = [
            occ("A", date(2025, 3, 5), "high"),
            occ("B", date(2025, 3, 3), "low"),
            occ("C", date(2025, 3, 3), "high"),
        ]
        items = aggregator.aggregate(occurrences, [], today=TODAY)
        assert [i.definition_id for i in items] == ["C", "B", "A"]

    def test_title_breaks_remaining_ties(self, aggregator):
        occurrences = [
            occ("2", date(2025, 3, 5), title="walk dog"),
            occ("1", date(2025, 3, 5), title="Brush cat"),
        ]
        items = aggregator.aggregate(occurrences, [], today=TODAY)
        assert [i.title for i in items] == ["Brush cat", "walk dog"]

    def test_output_is_deterministic_regardless_of_input_order(self, aggregator):
        occurrences = [occ(str(n), date(2025, 3, 5), title="Same") for n in range(5)]
        forward = aggregator.aggregate(occurrences, [], today=TODAY)
        backward = aggregator.aggregate(list(reversed(occurrences)), [], today=TODAY)
        assert [i.id for i in forward] == [i.id for i in backward]


class TestMerging:
    def test_duplicates_are_dropped(self, aggregator):
        occurrences = [occ("A", date(2025, 3, 5)), occ("A", date(2025, 3, 5))]
        assert len(aggregator.aggregate(occurrences, [], today=TODAY)) == 1

    def test_same_id_from_different_tools_is_kept(self, aggregator):
        occurrences = [
            occ("42", date(2025, 3, 5)),
            occ("42", date(2025, 3, 5), source_tool=SourceTool.CALENDAR_EVENT),
        ]
        assert len(aggregator.aggregate(occurrences, [], today=TODAY)) == 2

    def test_one_off_entries_are_merged(self, aggregator, make_entry):
        entry = make_entry(id="t-1", due_date=date(2025, 3, 4), priority="High")
        items = aggregator.aggregate([occ("A", date(2025, 3, 5))], [entry], today=TODAY)

        assert [i.definition_id for i in items] == ["t-1", "A"]
        assert items[0].is_recurring is False
        assert items[0].source_tool is SourceTool.TODO

    def test_one_off_entries_opted_out_of_feed_are_dropped(self, aggregator, make_entry):
        entry = make_entry(include_in_feed=False)
        assert aggregator.aggregate([], [entry], today=TODAY) == []


class TestDerivedFields:
    def test_overdue_only_when_past_and_pending(self, aggregator, make_entry):
        pending = make_entry(id="late", due_date=date(2025, 3, 1))
        done = make_entry(id="done", due_date=date(2025, 3, 1), status="Completed")
        today = make_entry(id="today", due_date=TODAY)

        items = {i.definition_id: i for i in aggregator.aggregate([], [pending, done, today], today=TODAY)}

        assert items["late"].is_overdue
        assert not items["done"].is_overdue
        assert not items["today"].is_overdue

    def test_status_is_passed_through(self, aggregator, make_entry):
        items = aggregator.aggregate([], [make_entry(status="Completed")], today=TODAY)
        assert items[0].status is ItemStatus.COMPLETED

    def test_scheduled_at_and_id(self, aggregator, make_entry):
        appointment = make_entry(id="vet", source_tool="appointment", due_date=date(2025, 3, 6))
        items = aggregator.aggregate([occ("A", date(2025, 3, 5))], [appointment], today=TODAY)

        assert items[0].id == "A:2025-03-05"
        assert items[0].scheduled_at == datetime.datetime(2025, 3, 5, 9, 0, tzinfo=datetime.UTC)
        assert items[1].scheduled_at == datetime.datetime(2025, 3, 6, 12, 0, tzinfo=datetime.UTC)
        assert items[1].item_type is ItemType.BOTH

    def test_serialization_uses_iso_strings(self, aggregator):
        item = aggregator.aggregate([occ("A", date(2025, 3, 5))], [], today=TODAY)[0]
        data = item.model_dump(mode="json")

        assert data["due_date"] == "2025-03-05"
        assert data["scheduled_at"] == "2025-03-05T09:00:00+00:00"
        assert data["priority"] == "medium"
        assert data["frequency"] == "Daily"


class TestFilters:
    def test_status_filter(self, aggregator, make_entry):
        entries = [make_entry(id="open"), make_entry(id="closed", status="Completed")]
        items = aggregator.aggregate(
            [], entries, AggregationFilters(status=ItemStatus.PENDING), today=TODAY
        )
        assert [i.definition_id for i in items] == ["open"]

    def test_item_type_filter_includes_both(self, aggregator):
        occurrences = [
            occ("event", date(2025, 3, 5), item_type=ItemType.CALENDAR_EVENT),
            occ("task", date(2025, 3, 5), item_type=ItemType.ACTION_ITEM),
            occ("appt", date(2025, 3, 5), item_type=ItemType.BOTH),
        ]
        items = aggregator.aggregate(
            occurrences,
            [],
            AggregationFilters(item_types=frozenset({ItemType.CALENDAR_EVENT})),
            today=TODAY,
        )
        assert sorted(i.definition_id for i in items) == ["appt", "event"]

    def test_both_filter_excludes_action_only_items(self, aggregator):
        occurrences = [
            occ("event", date(2025, 3, 5), item_type=ItemType.CALENDAR_EVENT),
            occ("task", date(2025, 3, 5), item_type=ItemType.ACTION_ITEM),
            occ("appt", date(2025, 3, 5), item_type=ItemType.BOTH),
        ]
        items = aggregator.aggregate(
            occurrences,
            [],
            AggregationFilters(item_types=frozenset({ItemType.BOTH})),
            today=TODAY,
        )
        assert sorted(i.definition_id for i in items) == ["appt", "event"]

    def test_source_filter(self, aggregator):
        occurrences = [
            occ("care", date(2025, 3, 5)),
            occ("event", date(2025, 3, 5), source_tool=SourceTool.CALENDAR_EVENT),
        ]
        items = aggregator.aggregate(
            occurrences,
            [],
            AggregationFilters(source_tools=frozenset({SourceTool.CALENDAR_EVENT})),
            today=TODAY,
        )
        assert [i.definition_id for i in items] == ["event"]

    def test_limit_and_offset_apply_after_sorting(self, aggregator):
        occurrences = [occ(f"d{n}", date(2025, 3, 10 - n)) for n in range(5)]
        items = aggregator.aggregate(
            occurrences, [], AggregationFilters(limit=2, offset=1), today=TODAY
        )
        assert [i.due_date for i in items] == [date(2025, 3, 7), date(2025, 3, 8)]

    def test_limit_zero_returns_nothing(self, aggregator):
        items = aggregator.aggregate(
            [occ("A", date(2025, 3, 5))], [], AggregationFilters(limit=0), today=TODAY
        )
        assert items == []
