"""Map domain exceptions onto JSON error responses."""

import logging
from collections.abc import Awaitable, Callable

from aiohttp import web

from household_schedule.exceptions import MaterializationTimeoutError, ScheduleValidationError

logger = logging.getLogger(__name__)


def _error_response(request: web.Request, status: int, error: str, message: str) -> web.Response:
    return web.json_response(
        {
            "error": error,
            "message": message,
            "request_id": request.get("correlation_id"),
        },
        status=status,
    )


@web.middleware
async def error_middleware(
    request: web.Request, handler: Callable[[web.Request], Awaitable[web.StreamResponse]]
) -> web.StreamResponse:
    """Convert exceptions raised by handlers into JSON responses.

    - ScheduleValidationError -> 400
    - MaterializationTimeoutError -> 504
    - any other exception -> 500 (logged with traceback)

    aiohttp's own HTTP exceptions (404, 405, ...) pass through unchanged.
    """
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except ScheduleValidationError as exc:
        logger.info("Rejected %s %s: %s", request.method, request.path, exc)
        return _error_response(request, 400, "validation_error", str(exc))
    except MaterializationTimeoutError as exc:
        logger.warning("Request timed out for %s: %s", request.path, exc)
        return _error_response(request, 504, "timeout", str(exc))
    except Exception:
        logger.exception("Unhandled error serving %s %s", request.method, request.path)
        return _error_response(request, 500, "internal_error", "Internal server error")
