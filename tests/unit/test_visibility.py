"""Unit tests for the Active/Inactive visibility state machine."""

from datetime import date

import pytest

from household_schedule.domain.models import InactivePeriod
from household_schedule.domain.visibility import (
    VisibilityState,
    deactivate,
    generation_cutoff,
    is_generating_on,
    reactivate,
    visibility_state,
)
from household_schedule.exceptions import VisibilityTransitionError

pytestmark = pytest.mark.unit


class TestTransitions:
    def test_deactivate_sets_inactivation_date(self, make_definition):
        defn = make_definition()
        inactive = deactivate(defn, date(2025, 3, 10))

        assert visibility_state(inactive) is VisibilityState.INACTIVE
        assert inactive.date_inactivated == date(2025, 3, 10)
        # The original record is untouched
        assert defn.is_active

    def test_reactivate_records_closed_interval(self, make_definition):
        defn = reactivate(deactivate(make_definition(), date(2025, 3, 10)), date(2025, 3, 15))

        assert visibility_state(defn) is VisibilityState.ACTIVE
        assert defn.date_inactivated is None
        assert defn.inactive_periods == (InactivePeriod(start=date(2025, 3, 10), end=date(2025, 3, 15)),)

    def test_cycles_accumulate_periods(self, make_definition):
        defn = make_definition()
        for start, end in [(date(2025, 3, 1), date(2025, 3, 3)), (date(2025, 4, 1), date(2025, 4, 2))]:
            defn = reactivate(deactivate(defn, start), end)
        assert len(defn.inactive_periods) == 2

    def test_deactivating_inactive_definition_fails(self, make_definition):
        inactive = deactivate(make_definition(), date(2025, 3, 10))
        with pytest.raises(VisibilityTransitionError):
            deactivate(inactive, date(2025, 3, 11))

    def test_reactivating_active_definition_fails(self, make_definition):
        with pytest.raises(VisibilityTransitionError):
            reactivate(make_definition(), date(2025, 3, 11))

    def test_reactivating_before_inactivation_fails(self, make_definition):
        inactive = deactivate(make_definition(), date(2025, 3, 10))
        with pytest.raises(VisibilityTransitionError):
            reactivate(inactive, date(2025, 3, 9))


class TestGenerationQueries:
    def test_inactive_definition_generates_nowhere_without_history(self, make_definition):
        inactive = deactivate(make_definition(), date(2025, 3, 10))
        assert not is_generating_on(inactive, date(2025, 3, 1))
        assert not is_generating_on(inactive, date(2025, 3, 20))

    def test_history_allows_dates_before_inactivation(self, make_definition):
        inactive = deactivate(make_definition(), date(2025, 3, 10))
        assert is_generating_on(inactive, date(2025, 3, 9), include_history=True)
        assert not is_generating_on(inactive, date(2025, 3, 10), include_history=True)

    def test_closed_period_blocks_generation(self, make_definition):
        defn = reactivate(deactivate(make_definition(), date(2025, 3, 10)), date(2025, 3, 15))
        assert is_generating_on(defn, date(2025, 3, 9))
        assert not is_generating_on(defn, date(2025, 3, 14))
        assert is_generating_on(defn, date(2025, 3, 15))

    def test_generation_cutoff(self, make_definition):
        active = make_definition()
        inactive = deactivate(active, date(2025, 3, 10))

        assert generation_cutoff(active) is None
        assert generation_cutoff(inactive, include_history=True) == date(2025, 3, 10)
        assert generation_cutoff(inactive) == date.min
