"""aiohttp server wiring for household_schedule."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import Any, Optional

from aiohttp import web

from household_schedule.api.middleware import correlation_id_middleware, error_middleware
from household_schedule.api.routes import register_schedule_routes
from household_schedule.core.config_manager import (
    DEFAULT_SERVER_BIND,
    DEFAULT_SERVER_PORT,
    ConfigManager,
    get_config_value,
)
from household_schedule.core.health_tracker import HealthTracker
from household_schedule.core.timezone_utils import TimeProvider, get_default_timezone
from household_schedule.domain.models import SourceTool
from household_schedule.materializer import MaterializerConfig, ScheduleMaterializer
from household_schedule.repositories.json_file import JsonSnapshotStore
from household_schedule.repositories.memory import (
    InMemoryDefinitionRepository,
    InMemoryOneOffRepository,
)

logger = logging.getLogger(__name__)

MAX_PORT_ATTEMPTS = 10


def _build_default_config_from_env() -> dict[str, Any]:
    """Build a default config dict from ``.env`` and ``HOUSEHOLD_SCHEDULE_*`` variables."""
    cfg = ConfigManager().load_full_config()
    cfg.setdefault("default_timezone", get_default_timezone())
    return cfg


def build_materializer(config: Any, health_tracker: Optional[HealthTracker] = None) -> ScheduleMaterializer:
    """Create a materializer backed by the configured data file.

    Every tool gets both a definition and a one-off repository view of the
    snapshot. Without ``data_file`` the server runs with empty in-memory
    repositories.
    """
    mat_config = MaterializerConfig.from_settings(config)
    time_provider = TimeProvider(mat_config.default_timezone)

    data_file = get_config_value(config, "data_file")
    if data_file:
        store = JsonSnapshotStore(data_file)
        definition_repos: dict[SourceTool, Any] = {
            tool: store.definition_repository(tool) for tool in SourceTool
        }
        one_off_repos: dict[SourceTool, Any] = {
            tool: store.one_off_repository(tool) for tool in SourceTool
        }
        logger.info("Serving schedules from snapshot %s", data_file)
    else:
        logger.warning("No HOUSEHOLD_SCHEDULE_DATA_FILE configured; serving empty repositories")
        definition_repos = {tool: InMemoryDefinitionRepository() for tool in SourceTool}
        one_off_repos = {tool: InMemoryOneOffRepository() for tool in SourceTool}

    return ScheduleMaterializer(
        definition_repos,
        one_off_repos,
        config=mat_config,
        time_provider=time_provider,
        health_tracker=health_tracker,
    )


def create_app(
    config: Any,
    materializer: Optional[ScheduleMaterializer] = None,
    health_tracker: Optional[HealthTracker] = None,
) -> web.Application:
    """Create the aiohttp application with middleware and routes.

    Args:
        config: Application configuration (dict or attribute object)
        materializer: Prebuilt materializer (tests inject in-memory repositories)
        health_tracker: Shared health tracker; created when omitted
    """
    if health_tracker is None and materializer is not None:
        health_tracker = materializer.health_tracker
    if health_tracker is None:
        health_tracker = HealthTracker()

    if materializer is None:
        materializer = build_materializer(config, health_tracker)
    elif materializer.health_tracker is None:
        materializer.health_tracker = health_tracker

    app = web.Application(middlewares=[correlation_id_middleware, error_middleware])
    app["config"] = config
    app["materializer"] = materializer
    app["health_tracker"] = health_tracker

    register_schedule_routes(
        app=app,
        config=config,
        materializer=materializer,
        health_tracker=health_tracker,
        time_provider=materializer.time_provider,
    )

    async def _shutdown(_app: web.Application) -> None:
        logger.info("Application shutdown requested")

    app.on_shutdown.append(_shutdown)
    return app


async def _start_site(runner: web.AppRunner, host: str, configured_port: int) -> int:
    """Bind the configured port, or the next free one within ``MAX_PORT_ATTEMPTS``."""
    for port_offset in range(MAX_PORT_ATTEMPTS):
        port = configured_port + port_offset
        site = web.TCPSite(runner, host=host, port=port)
        try:
            await site.start()
        except OSError as e:
            if "address already in use" not in str(e).lower():
                logger.exception("Failed to start server on %s:%d", host, port)
                raise
            logger.debug("Port %d in use, trying next port", port)
            continue
        if port != configured_port:
            logger.warning(
                "Configured port %d was in use, using port %d instead", configured_port, port
            )
        return port

    raise RuntimeError(
        f"No available port found in range {configured_port}-"
        f"{configured_port + MAX_PORT_ATTEMPTS - 1}"
    )


async def _serve(config: Any, external_stop_event: asyncio.Event | None = None) -> None:
    """Run the server until signalled to stop.

    Args:
        config: Server configuration object/dict.
        external_stop_event: Optional event to signal shutdown. If provided,
            signal handlers are NOT registered (caller owns signal handling).
    """
    stop_event = external_stop_event or asyncio.Event()

    app = create_app(config)
    runner = web.AppRunner(app)
    await runner.setup()

    host = get_config_value(config, "server_bind", DEFAULT_SERVER_BIND)
    port = await _start_site(runner, host, int(get_config_value(config, "server_port", DEFAULT_SERVER_PORT)))
    logger.info("Server started successfully on %s:%d", host, port)

    if external_stop_event is None:
        loop = asyncio.get_running_loop()

        def _on_signal() -> None:
            logger.info("Shutdown signal received")
            stop_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, _on_signal)

    await stop_event.wait()
    logger.info("Stop event received, shutting down")
    await runner.cleanup()
    logger.info("Server shutdown complete")


def start_server(config: Any) -> None:
    """Start the asyncio event loop and HTTP server.

    Args:
        config: dict or dataclass-like object with keys:
            - server_bind: host to bind (str)
            - server_port: port (int)
            - data_file: JSON snapshot with the tools' records (str)
            - default_timezone: household IANA timezone (str)
            - feed_limit, feed_horizon_days, feed_lookback_days (int)
            - repository_timeout_seconds, request_timeout_seconds (float)
            - debug_logging: enable debug logging (bool)

    Blocks the calling thread until SIGINT/SIGTERM.
    """
    from household_schedule.core.logging_config import configure_logging

    configure_logging(debug_mode=bool(get_config_value(config, "debug_logging", False)))

    try:
        logger.debug("Running asyncio event loop for server")
        asyncio.run(_serve(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
