"""Shared fixtures for household_schedule tests."""

from __future__ import annotations

import datetime
from collections.abc import Callable
from typing import Any

import pytest

from household_schedule.domain.models import OneOffEntry, ScheduleDefinition, SourceTool

# "Today" for every test that relies on the clock: Tuesday 2025-03-04 (UTC)
TEST_NOW = "2025-03-04T10:00:00+00:00"
TEST_TODAY = datetime.date(2025, 3, 4)
OWNER = "household-1"


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear HOUSEHOLD_SCHEDULE_* variables and freeze the clock."""
    import os

    for key in list(os.environ):
        if key.startswith("HOUSEHOLD_SCHEDULE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HOUSEHOLD_SCHEDULE_TEST_TIME", TEST_NOW)


@pytest.fixture
def make_definition() -> Callable[..., ScheduleDefinition]:
    """Factory for definitions with sensible defaults; override any field by keyword."""
    counter = iter(range(1, 10_000))

    def _make(**overrides: Any) -> ScheduleDefinition:
        data: dict[str, Any] = {
            "id": f"def-{next(counter)}",
            "owner_id": OWNER,
            "source_tool": SourceTool.CARE_PLAN,
            "title": "Feed the cat",
            "frequency": "Daily",
            "start_date": datetime.date(2025, 1, 1),
        }
        data.update(overrides)
        return ScheduleDefinition.model_validate(data)

    return _make


@pytest.fixture
def make_entry() -> Callable[..., OneOffEntry]:
    """Factory for one-off entries (to-do tasks by default)."""
    counter = iter(range(1, 10_000))

    def _make(**overrides: Any) -> OneOffEntry:
        data: dict[str, Any] = {
            "id": f"entry-{next(counter)}",
            "owner_id": OWNER,
            "source_tool": SourceTool.TODO,
            "title": "Renew insurance",
            "due_date": TEST_TODAY,
        }
        data.update(overrides)
        return OneOffEntry.model_validate(data)

    return _make
