"""Custom exception hierarchy for schedule materialization errors.

Specific exception types let the API layer map failures onto proper HTTP
status codes instead of treating every error as a generic 500.
"""


class ScheduleError(Exception):
    """Base exception for all household_schedule errors."""


class ScheduleValidationError(ScheduleError, ValueError):
    """Request or definition validation failed.

    Raised when:
    - The ``month`` parameter is not ``YYYY-MM``
    - A ``frequency`` value is not in the closed enumeration
    - ``day_of_month`` is outside 1-31
    - Required query parameters are missing or out of range

    Should result in HTTP 400 Bad Request response.
    """


class VisibilityTransitionError(ScheduleError):
    """An Active/Inactive transition was requested from the wrong state.

    Raised when deactivating an already inactive definition, reactivating an
    active one, or reactivating on a date before the inactivation date.
    """


class RepositoryError(ScheduleError):
    """A definition or one-off repository read failed.

    The materializer treats this as an empty contribution from the failing
    tool rather than failing the whole request.
    """


class RepositoryUnavailableError(RepositoryError):
    """The backing storage for a tool is absent (e.g. table not set up)."""


class MaterializationTimeoutError(ScheduleError):
    """The request-level read budget was exhausted.

    All in-flight repository reads are cancelled and no partial result is
    returned. Should result in HTTP 504 Gateway Timeout response.
    """
