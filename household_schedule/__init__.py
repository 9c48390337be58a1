"""household_schedule - recurring-schedule materialization for household tools.

Expands the tools' recurring definitions into concrete occurrences for a
window and merges them with one-off entries into one ordered feed. Imports
are kept light so the package can be inspected without starting aiohttp.
"""

__version__ = "0.1.0"

from typing import Optional


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream colorized output to the console.

    Honors HOUSEHOLD_SCHEDULE_DEBUG (truthy values: "1", "true", "yes", "on"),
    which forces DEBUG verbosity regardless of ``level_name``.
    """
    import logging
    import os
    import sys

    from colorlog import ColoredFormatter

    debug_env = os.environ.get("HOUSEHOLD_SCHEDULE_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        # HH:MM:SS  LEVEL   [request-id] logger.name: message
        fmt = (
            "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s "
            "[%(request_id)s] %(name)s: %(message)s"
        )
        log_colors = {
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        }
        handler.setFormatter(
            ColoredFormatter(
                fmt,
                datefmt="%H:%M:%S",
                log_colors=log_colors,
                defaults={"request_id": "-"},
            )
        )
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
    root.setLevel(level)
    logging.getLogger(__name__).debug("Logging initialized at level %s", logging.getLevelName(level))


def run_server(args: Optional[object] = None) -> None:
    """Start the household_schedule server.

    Args:
        args: Optional argparse namespace with ``port``, ``data_file`` and ``debug``

    Behavior:
    - Initialize console logging early using HOUSEHOLD_SCHEDULE_LOG_LEVEL.
    - Build configuration from .env and the environment.
    - Apply command line overrides, then block in ``start_server``.
    """
    import logging
    import os

    _init_logging(os.environ.get("HOUSEHOLD_SCHEDULE_LOG_LEVEL"))

    from household_schedule.api.server import _build_default_config_from_env, start_server

    logger = logging.getLogger(__name__)
    cfg = _build_default_config_from_env()

    if args is not None:
        port = getattr(args, "port", None)
        if port is not None:
            cfg["server_port"] = int(port)
            logger.debug("Applied command line port override: %d", cfg["server_port"])
        data_file = getattr(args, "data_file", None)
        if data_file:
            cfg["data_file"] = str(data_file)
        if getattr(args, "debug", False):
            cfg["debug_logging"] = True

    cfg_level = cfg.get("log_level")
    if isinstance(cfg_level, str):
        logger.info("Applying configured log_level=%s", cfg_level)
        logging.getLogger().setLevel(getattr(logging, cfg_level.upper(), logging.INFO))

    logger.debug(
        "Resolved configuration (diagnostic): %s",
        {k: cfg.get(k) for k in ("data_file", "default_timezone", "server_bind", "server_port")},
    )
    start_server(cfg)
