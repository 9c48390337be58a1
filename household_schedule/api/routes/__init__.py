"""Route modules for the household_schedule server."""

from .schedule_routes import register_schedule_routes

__all__ = ["register_schedule_routes"]
