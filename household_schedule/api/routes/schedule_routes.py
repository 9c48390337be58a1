"""Schedule feed, calendar and health routes."""

from __future__ import annotations

import logging
from typing import Any

from aiohttp import web

from household_schedule.api.validation import CalendarQuery, FeedQuery, parse_query
from household_schedule.calendar.ics_export import build_ics_calendar
from household_schedule.core.config_manager import (
    DEFAULT_FEED_LIMIT,
    MAX_FEED_LIMIT,
    get_config_value,
)

logger = logging.getLogger(__name__)


def register_schedule_routes(
    app: web.Application,
    config: Any,
    materializer: Any,
    health_tracker: Any,
    time_provider: Any,
) -> None:
    """Register schedule API routes.

    Args:
        app: aiohttp web application
        config: Application configuration
        materializer: ScheduleMaterializer serving the views
        health_tracker: Health tracking instance
        time_provider: TimeProvider for server time in health output
    """
    feed_limit = int(get_config_value(config, "feed_limit", DEFAULT_FEED_LIMIT))
    if not 0 <= feed_limit <= MAX_FEED_LIMIT:
        logger.warning(
            "Configured feed_limit=%d is outside 0-%d; clamping", feed_limit, MAX_FEED_LIMIT
        )
        feed_limit = min(max(feed_limit, 0), MAX_FEED_LIMIT)

    async def schedule_feed(request: web.Request) -> web.Response:
        """Upcoming action items across all tools for the dashboard."""
        query = parse_query(FeedQuery, request.query, limit=feed_limit)
        result = await materializer.feed(query.owner_id, query.to_filters())
        return web.json_response(result.to_dict())

    async def schedule_calendar(request: web.Request) -> web.Response:
        """Every occurrence in one month, annotated with its source tool."""
        query = parse_query(CalendarQuery, request.query)
        result = await materializer.calendar(
            query.owner_id, query.window, query.to_filters(), include_history=query.history
        )
        payload = result.to_dict()
        payload["month"] = query.month
        return web.json_response(payload)

    async def schedule_calendar_ics(request: web.Request) -> web.Response:
        """The month as a text/calendar document."""
        query = parse_query(CalendarQuery, request.query)
        result = await materializer.calendar(
            query.owner_id, query.window, query.to_filters(), include_history=query.history
        )
        body = build_ics_calendar(
            result.items,
            calendar_name=f"Household schedule {query.month}",
            tz_name=get_config_value(config, "default_timezone"),
            stamp=result.generated_at,
        )
        response = web.Response(body=body, content_type="text/calendar", charset="utf-8")
        response.headers["Content-Disposition"] = (
            f'attachment; filename="schedule-{query.month}.ics"'
        )
        if result.degraded_sources:
            response.headers["X-Degraded-Sources"] = ",".join(result.degraded_sources)
        return response

    async def health_check(_request: web.Request) -> web.Response:
        """Health check endpoint for monitoring system status."""
        now_iso = time_provider.now_utc().isoformat()
        health_status = health_tracker.get_health_status(now_iso)

        health_data = {
            "status": health_status.status,
            "server_time_iso": health_status.server_time_iso,
            "server_status": {
                "uptime_s": health_status.uptime_seconds,
                "pid": health_status.pid,
            },
            "request_status": {
                "total": health_status.requests_total,
                "failed": health_status.requests_failed,
                "degraded": health_status.requests_degraded,
                "last_request_age_s": health_status.last_request_age_seconds,
                "last_degraded_sources": health_status.last_degraded_sources,
            },
        }

        http_status = 503 if health_status.status == "critical" else 200
        return web.json_response(health_data, status=http_status)

    app.router.add_get("/schedule/feed", schedule_feed)
    app.router.add_get("/schedule/calendar", schedule_calendar)
    app.router.add_get("/schedule/calendar.ics", schedule_calendar_ics)
    app.router.add_get("/api/health", health_check)

    logger.debug("Schedule routes registered")
