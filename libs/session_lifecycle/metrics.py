"""Prometheus metrics for session lifecycle events."""

from prometheus_client import Counter

session_refresh_total = Counter(
    "session_refresh_total", "Session refresh attempts", ["result"]
)
session_expired_total = Counter(
    "session_expired_total", "Sessions found expired by the session monitor", ["reason"]
)
session_monitor_errors_total = Counter(
    "session_monitor_errors_total", "Errors raised during a session monitor tick", ["stage"]
)
inactivity_events_total = Counter(
    "inactivity_events_total", "Inactivity monitor callback events", ["event"]
)

__all__ = [
    "session_refresh_total",
    "session_expired_total",
    "session_monitor_errors_total",
    "inactivity_events_total",
]
