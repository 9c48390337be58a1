"""Health tracking and monitoring for the household_schedule server."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class HealthStatus:
    """Health status information for the server."""

    status: str  # "ok", "degraded", or "critical"
    server_time_iso: str
    uptime_seconds: int
    pid: int
    requests_total: int
    requests_failed: int
    requests_degraded: int
    last_request_age_seconds: Optional[int]
    last_degraded_sources: list[str] = field(default_factory=list)


class HealthTracker:
    """Request counters and the outcome of the most recent materialization."""

    def __init__(self) -> None:
        self._start_time: float = time.time()
        self._requests_total = 0
        self._requests_failed = 0
        self._requests_degraded = 0
        self._last_request: Optional[float] = None
        self._last_degraded_sources: list[str] = []
        self._last_source_count = 0

    def record_request(self, degraded_sources: list[str], source_count: int) -> None:
        """Record a completed materialization.

        Args:
            degraded_sources: Tools whose reads failed or timed out
            source_count: Number of tools that were read
        """
        self._requests_total += 1
        self._last_request = time.time()
        self._last_degraded_sources = sorted(degraded_sources)
        self._last_source_count = source_count
        if degraded_sources:
            self._requests_degraded += 1

    def record_failure(self) -> None:
        """Record a request that produced no result (timeout or internal error)."""
        self._requests_total += 1
        self._requests_failed += 1
        self._last_request = time.time()

    def get_uptime_seconds(self) -> int:
        return int(time.time() - self._start_time)

    def get_last_request_age_seconds(self) -> Optional[int]:
        if self._last_request is None:
            return None
        return int(time.time() - self._last_request)

    def determine_overall_status(self) -> str:
        """Determine overall health status.

        Returns:
            "critical" when the last request degraded every source,
            "degraded" when it degraded some, otherwise "ok"
        """
        degraded = len(self._last_degraded_sources)
        if degraded and degraded >= self._last_source_count:
            return "critical"
        if degraded:
            return "degraded"
        return "ok"

    def get_health_status(self, current_time_iso: str) -> HealthStatus:
        return HealthStatus(
            status=self.determine_overall_status(),
            server_time_iso=current_time_iso,
            uptime_seconds=self.get_uptime_seconds(),
            pid=os.getpid(),
            requests_total=self._requests_total,
            requests_failed=self._requests_failed,
            requests_degraded=self._requests_degraded,
            last_request_age_seconds=self.get_last_request_age_seconds(),
            last_degraded_sources=list(self._last_degraded_sources),
        )
