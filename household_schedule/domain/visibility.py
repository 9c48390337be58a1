"""Active/Inactive visibility state machine for schedule definitions.

The owning tool's CRUD layer drives the transitions; the materialization core
only reads the resulting state. Transitions return new model copies so the
caller decides whether and where to persist them.

    ACTIVE --deactivate(D)--> INACTIVE   (date_inactivated = D)
    INACTIVE --reactivate(R)--> ACTIVE   ([D, R) appended to inactive_periods)

There is no terminal state.
"""

from __future__ import annotations

import datetime
import logging
from enum import Enum

from household_schedule.domain.models import InactivePeriod, ScheduleDefinition
from household_schedule.exceptions import VisibilityTransitionError

logger = logging.getLogger(__name__)


class VisibilityState(str, Enum):
    """Inclusion eligibility of a definition."""

    ACTIVE = "active"
    INACTIVE = "inactive"


def visibility_state(definition: ScheduleDefinition) -> VisibilityState:
    return VisibilityState.ACTIVE if definition.is_active else VisibilityState.INACTIVE


def deactivate(definition: ScheduleDefinition, on: datetime.date) -> ScheduleDefinition:
    """Move a definition to INACTIVE as of ``on``.

    Occurrences dated on or after ``on`` stop being generated; earlier ones
    remain visible to history queries.

    Raises:
        VisibilityTransitionError: If the definition is already inactive
    """
    if not definition.is_active:
        raise VisibilityTransitionError(f"Definition {definition.id} is already inactive")

    logger.debug("Deactivating definition %s on %s", definition.id, on)
    return definition.model_copy(update={"is_active": False, "date_inactivated": on})


def reactivate(definition: ScheduleDefinition, on: datetime.date) -> ScheduleDefinition:
    """Move a definition back to ACTIVE as of ``on``.

    Generation resumes from ``on``; the inactive interval is kept so no
    occurrence is ever produced for it.

    Raises:
        VisibilityTransitionError: If the definition is active, or ``on`` is
            before the inactivation date
    """
    if definition.is_active:
        raise VisibilityTransitionError(f"Definition {definition.id} is already active")

    periods = definition.inactive_periods
    if definition.date_inactivated is not None:
        if on < definition.date_inactivated:
            raise VisibilityTransitionError(
                f"Cannot reactivate {definition.id} on {on}, "
                f"before its inactivation on {definition.date_inactivated}"
            )
        periods = (*periods, InactivePeriod(start=definition.date_inactivated, end=on))

    logger.debug("Reactivating definition %s on %s", definition.id, on)
    return definition.model_copy(
        update={"is_active": True, "date_inactivated": None, "inactive_periods": periods}
    )


def is_generating_on(
    definition: ScheduleDefinition,
    day: datetime.date,
    include_history: bool = False,
) -> bool:
    """Check whether ``definition`` produces an occurrence on ``day``.

    Args:
        definition: Definition to check
        day: Candidate occurrence date
        include_history: Let an inactive definition keep the occurrences it
            had before its inactivation date (history views)

    Returns:
        False inside any inactive interval, True otherwise
    """
    if any(period.contains(day) for period in definition.inactive_periods):
        return False

    if definition.is_active:
        return True

    if not include_history or definition.date_inactivated is None:
        return False

    return day < definition.date_inactivated


def generation_cutoff(
    definition: ScheduleDefinition, include_history: bool = False
) -> datetime.date | None:
    """Last date (exclusive) a definition can generate on, or None if unbounded.

    Used by the planner to skip expansion for definitions that cannot
    produce anything in a window.
    """
    if definition.is_active:
        return None
    if include_history and definition.date_inactivated is not None:
        return definition.date_inactivated
    return datetime.date.min
