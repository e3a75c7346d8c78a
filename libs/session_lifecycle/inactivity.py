"""User inactivity tracking with a pre-timeout warning.

The monitor holds a single ``last_activity_at`` timestamp plus a ``has_warned``
flag. The Active / Warning / Timed-out states are derived from those on
demand:

- Active:    time remaining > warning window
- Warning:   0 < time remaining <= warning window
- Timed out: time remaining == 0

Two paths raise the warning. The periodic tick (``check``) warns at most once
per activity window; ``trigger_warning`` fires every time it is called.

Callback exceptions are not caught: they propagate out of whichever call
invoked the callback.

Usage:
    monitor = InactivityMonitor(InactivityConfig.from_env())
    monitor.start(
        InactivityCallbacks(
            on_warning=show_warning_dialog,
            on_timeout=force_logout,
            on_activity=hide_warning_dialog,
        )
    )
    # forward user input events
    monitor.update_activity()
"""

from __future__ import annotations

import asyncio
import logging

from libs.session_lifecycle.clock import Clock, SystemClock, to_iso_z
from libs.session_lifecycle.config import InactivityConfig
from libs.session_lifecycle.metrics import inactivity_events_total
from libs.session_lifecycle.models import InactivityCallbacks, InactivityStatus
from libs.session_lifecycle.timefmt import format_duration

logger = logging.getLogger(__name__)


class InactivityMonitor:
    """Idle timer that warns before, and signals, an inactivity timeout."""

    def __init__(
        self,
        config: InactivityConfig | None = None,
        clock: Clock | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """Initialize the monitor.

        Args:
            config: Timeout, warning window and tick interval
            clock: Time source (defaults to wall-clock time)
            loop: Event loop used for the periodic tick; the running loop when None
        """
        self.config = config or InactivityConfig()
        self.clock = clock or SystemClock()
        self._injected_loop = loop
        self._loop: asyncio.AbstractEventLoop | None = None
        self._callbacks: InactivityCallbacks | None = None
        self._handle: asyncio.TimerHandle | None = None
        self._last_activity_at = self.clock.now()
        self._has_warned = False
        self._is_active = False

    @property
    def is_active(self) -> bool:
        return self._is_active

    @property
    def has_warned(self) -> bool:
        return self._has_warned

    @property
    def last_activity_at(self) -> float:
        return self._last_activity_at

    def start(self, callbacks: InactivityCallbacks) -> None:
        """Begin monitoring from a fresh state.

        Raises:
            RuntimeError: If no loop was injected and none is running
        """
        self._cancel_tick()
        self._loop = self._injected_loop or asyncio.get_running_loop()
        self._callbacks = callbacks
        self._last_activity_at = self.clock.now()
        self._has_warned = False
        self._is_active = True
        self._schedule_tick()

        logger.info(
            "inactivity_monitoring_started",
            extra={
                "timeout_hours": self.config.timeout_seconds / 3600,
                "warning_minutes": self.config.warning_seconds / 60,
            },
        )

    def stop(self) -> None:
        """Stop the periodic tick and drop callbacks. ``has_warned`` is kept."""
        self._cancel_tick()
        self._is_active = False
        self._callbacks = None
        logger.info("inactivity_monitoring_stopped")

    def check(self) -> None:
        """Run one monitoring tick."""
        if not self._is_active or self._callbacks is None:
            return

        callbacks = self._callbacks
        time_remaining = self.get_time_remaining()

        if not self._has_warned and self.should_show_warning():
            self._has_warned = True
            inactivity_events_total.labels(event="warning").inc()
            logger.info(
                "inactivity_warning",
                extra={"time_remaining_seconds": time_remaining},
            )
            if callbacks.on_warning is not None:
                callbacks.on_warning(time_remaining)

        if time_remaining == 0:
            inactivity_events_total.labels(event="timeout").inc()
            logger.info("inactivity_timeout")
            if callbacks.on_timeout is not None:
                callbacks.on_timeout()
            self.stop()

    def update_activity(self) -> None:
        """Record user activity.

        Resets the timeout window and the warning flag. ``on_activity`` fires
        only when the monitor had already timed out.
        """
        was_inactive = self.is_inactive()
        self._last_activity_at = self.clock.now()
        self._has_warned = False

        if was_inactive and self._callbacks is not None:
            inactivity_events_total.labels(event="activity").inc()
            logger.info("inactivity_activity_resumed")
            if self._callbacks.on_activity is not None:
                self._callbacks.on_activity()

    def extend_session(self) -> None:
        """Reset the full timeout window and clear the warning flag."""
        self._last_activity_at = self.clock.now()
        self._has_warned = False
        logger.info("inactivity_session_extended")

    def trigger_warning(self) -> None:
        """Fire ``on_warning`` now, regardless of ``has_warned``."""
        if self._callbacks is None or self._callbacks.on_warning is None:
            return
        self._callbacks.on_warning(self.get_time_remaining())
        self._has_warned = True

    def trigger_logout(self) -> None:
        """Fire ``on_timeout`` now, regardless of elapsed time, then stop."""
        if self._callbacks is not None and self._callbacks.on_timeout is not None:
            inactivity_events_total.labels(event="manual_logout").inc()
            self._callbacks.on_timeout()
        self.stop()

    def get_time_remaining(self) -> float:
        elapsed = self.clock.now() - self._last_activity_at
        return max(0.0, self.config.timeout_seconds - elapsed)

    def get_time_until_warning(self) -> float:
        elapsed = self.clock.now() - self._last_activity_at
        warning_at = self.config.timeout_seconds - self.config.warning_seconds
        return max(0.0, warning_at - elapsed)

    def is_inactive(self) -> bool:
        return self.get_time_remaining() == 0

    def should_show_warning(self) -> bool:
        time_remaining = self.get_time_remaining()
        return 0 < time_remaining <= self.config.warning_seconds

    def get_status(self) -> InactivityStatus:
        return InactivityStatus(
            is_active=self._is_active,
            has_warned=self._has_warned,
            time_remaining=format_duration(self.get_time_remaining()),
            time_until_warning=format_duration(self.get_time_until_warning()),
            last_activity=to_iso_z(self._last_activity_at),
        )

    def update_config(self, config: InactivityConfig) -> None:
        """Replace the configuration, restarting with the same callbacks if running."""
        self.config = config
        if self._is_active:
            callbacks = self._callbacks
            self.stop()
            if callbacks is not None:
                self.start(callbacks)

    def _schedule_tick(self) -> None:
        assert self._loop is not None
        self._handle = self._loop.call_later(self.config.check_interval_seconds, self._on_tick)

    def _on_tick(self) -> None:
        self._handle = None
        if not self._is_active:
            return
        # Scheduled before the check so that a stop() inside it cancels the next tick.
        self._schedule_tick()
        self.check()

    def _cancel_tick(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


__all__ = ["InactivityMonitor"]
