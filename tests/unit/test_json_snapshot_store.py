"""Unit tests for the JSON snapshot repositories."""

import datetime
import json
import os

import pytest

from household_schedule.domain.models import SourceTool
from household_schedule.domain.planner import ScheduleWindow, month_window
from household_schedule.exceptions import RepositoryError, RepositoryUnavailableError
from household_schedule.repositories.json_file import JsonSnapshotStore

pytestmark = pytest.mark.unit

SNAPSHOT = {
    "care_plan": {
        "definitions": [
            {
                "id": "cp-1",
                "owner_id": "h1",
                "title": "Water plants",
                "frequency": "Weekly",
                "days_of_week": [1],
                "start_date": "2025-01-06",
            },
            {
                "id": "cp-2",
                "owner_id": "h1",
                "title": "Old chore",
                "frequency": "Daily",
                "start_date": "2025-01-01",
                "is_active": False,
                "date_inactivated": "2025-02-01",
            },
            {"id": "cp-bad", "owner_id": "h1", "title": "Broken", "frequency": "Fortnightly"},
            {"id": "cp-3", "owner_id": "h2", "title": "Other house", "frequency": "Daily",
             "start_date": "2025-01-01"},
        ]
    },
    "todo": {
        "entries": [
            {"id": "t-1", "owner_id": "h1", "title": "Call plumber", "due_date": "2025-03-03"},
            {"id": "t-2", "owner_id": "h1", "title": "Book flights", "due_date": "2025-04-10"},
        ]
    },
    "garden_planner": {"definitions": []},
}


@pytest.fixture
def snapshot_path(tmp_path):
    path = tmp_path / "household.json"
    path.write_text(json.dumps(SNAPSHOT), encoding="utf-8")
    return path


class TestJsonSnapshotStore:
    async def test_definitions_filtered_by_owner_and_activity(self, snapshot_path):
        repo = JsonSnapshotStore(snapshot_path).definition_repository(SourceTool.CARE_PLAN)

        active = await repo.fetch_active_by_owner("h1", SourceTool.CARE_PLAN)
        everything = await repo.fetch_active_by_owner("h1", SourceTool.CARE_PLAN, include_inactive=True)

        assert [d.id for d in active] == ["cp-1"]
        assert [d.id for d in everything] == ["cp-1", "cp-2"]
        assert active[0].source_tool == SourceTool.CARE_PLAN
        assert active[0].days_of_week == frozenset({1})

    async def test_malformed_records_are_skipped(self, snapshot_path, caplog):
        repo = JsonSnapshotStore(snapshot_path).definition_repository(SourceTool.CARE_PLAN)

        defs = await repo.fetch_active_by_owner("h1", SourceTool.CARE_PLAN, include_inactive=True)

        assert "cp-bad" not in {d.id for d in defs}
        assert "cp-bad" in caplog.text

    async def test_entries_filtered_by_window(self, snapshot_path):
        repo = JsonSnapshotStore(snapshot_path).one_off_repository(SourceTool.TODO)

        march = await repo.fetch_by_owner_and_window("h1", month_window(2025, 3))
        wide = await repo.fetch_by_owner_and_window(
            "h1", ScheduleWindow(datetime.date(2025, 1, 1), datetime.date(2025, 12, 31))
        )

        assert [e.id for e in march] == ["t-1"]
        assert [e.id for e in wide] == ["t-1", "t-2"]

    async def test_missing_section_is_unavailable(self, snapshot_path):
        store = JsonSnapshotStore(snapshot_path)

        with pytest.raises(RepositoryUnavailableError):
            await store.one_off_repository(SourceTool.APPOINTMENT).fetch_by_owner_and_window(
                "h1", month_window(2025, 3)
            )

    async def test_section_without_entries_is_empty(self, snapshot_path):
        repo = JsonSnapshotStore(snapshot_path).one_off_repository(SourceTool.CARE_PLAN)
        assert await repo.fetch_by_owner_and_window("h1", month_window(2025, 3)) == []

    async def test_missing_file_is_unavailable(self, tmp_path):
        repo = JsonSnapshotStore(tmp_path / "nope.json").definition_repository(SourceTool.TODO)

        with pytest.raises(RepositoryUnavailableError):
            await repo.fetch_active_by_owner("h1", SourceTool.TODO)

    def test_non_object_root_is_an_error(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(RepositoryError):
            JsonSnapshotStore(path).load()

    def test_invalid_json_is_an_error(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(RepositoryError):
            JsonSnapshotStore(path).load()

    def test_reloads_when_file_changes(self, snapshot_path):
        store = JsonSnapshotStore(snapshot_path)
        assert SourceTool.TODO in store.load()

        snapshot_path.write_text(json.dumps({"care_plan": {}}), encoding="utf-8")
        stat = snapshot_path.stat()
        os.utime(snapshot_path, (stat.st_atime, stat.st_mtime + 10))

        assert SourceTool.TODO not in store.load()
