"""
Service metrics with Prometheus text exposition.

One collector lives on ``app.state.metrics``. The request middleware records
every response by method and status class; the connection pool records its
events and keeps the capacity gauges current.
"""

from __future__ import annotations

import time
from collections import Counter
from typing import Optional

PREFIX = "channel_api"

POOL_EVENTS = ("acquired", "exhausted", "connect_failed")


def _labels(**labels: str) -> str:
    inner = ",".join(f'{key}="{value}"' for key, value in labels.items())
    return "{" + inner + "}"


class MetricsCollector:
    """
    Request and connection-pool metrics.

    Responses are keyed by ``(method, status_class)`` where the class is
    ``"2xx"``, ``"4xx"`` and so on. Pool events are restricted to
    ``POOL_EVENTS`` and are all exported, zero or not, so dashboards see
    the series before the first failure.
    """

    def __init__(self) -> None:
        self._responses: Counter[tuple[str, str]] = Counter()
        self._pool_events: Counter[str] = Counter()
        self.pool_size = 0
        self.pool_in_use = 0
        self._started = time.monotonic()

    def observe_response(self, method: str, status_code: int) -> None:
        self._responses[(method.upper(), f"{status_code // 100}xx")] += 1

    def observe_pool_event(self, event: str) -> None:
        if event not in POOL_EVENTS:
            raise ValueError(f"Unknown pool event: {event!r}")
        self._pool_events[event] += 1

    def set_pool_usage(self, size: int, in_use: int) -> None:
        self.pool_size = size
        self.pool_in_use = in_use

    def responses(self, status_class: Optional[str] = None, method: Optional[str] = None) -> int:
        """Number of responses recorded, optionally narrowed by class and method."""
        return sum(
            count
            for (m, cls), count in self._responses.items()
            if (status_class is None or cls == status_class)
            and (method is None or m == method.upper())
        )

    def pool_events(self, event: str) -> int:
        return self._pool_events[event]

    def to_prometheus(self) -> str:
        lines = [
            f"# HELP {PREFIX}_http_responses_total Responses by method and status class.",
            f"# TYPE {PREFIX}_http_responses_total counter",
        ]
        for (method, cls), count in sorted(self._responses.items()):
            lines.append(
                f"{PREFIX}_http_responses_total{_labels(method=method, status_class=cls)} {count}"
            )

        lines.append(f"# HELP {PREFIX}_pool_events_total Connection pool events.")
        lines.append(f"# TYPE {PREFIX}_pool_events_total counter")
        for event in POOL_EVENTS:
            lines.append(
                f"{PREFIX}_pool_events_total{_labels(event=event)} {self._pool_events[event]}"
            )

        gauges = (
            ("pool_size", "Maximum open connections.", self.pool_size),
            ("pool_in_use", "Connections currently lent out.", self.pool_in_use),
            ("uptime_seconds", "Seconds since the collector started.",
             round(time.monotonic() - self._started, 1)),
        )
        for name, help_text, value in gauges:
            lines.append(f"# HELP {PREFIX}_{name} {help_text}")
            lines.append(f"# TYPE {PREFIX}_{name} gauge")
            lines.append(f"{PREFIX}_{name} {value}")
        return "\n".join(lines) + "\n"
