"""Periodic session validity monitoring.

Usage:
    monitor = SessionMonitor(provider, visibility=visibility_events)
    monitor.start_session_monitoring(
        on_expired=redirect_to_login,
        on_refreshed=store_session,
    )
    ...
    monitor.stop_session_monitoring()

Each tick fetches the provider's current session and validates it:
- missing session -> ``on_expired()``
- expired session -> sign out (best effort) and ``on_expired()``
- valid but due for refresh -> refresh; ``on_refreshed(session)`` on success.
  A failed refresh keeps the prior session and fires no callback; the next
  tick retries.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from libs.session_lifecycle.clock import Clock, SystemClock
from libs.session_lifecycle.config import SessionMonitorConfig
from libs.session_lifecycle.metrics import session_expired_total, session_monitor_errors_total
from libs.session_lifecycle.models import Session, ValidationResult
from libs.session_lifecycle.provider import IdentityProvider
from libs.session_lifecycle.refresher import SessionRefresher
from libs.session_lifecycle.validator import SessionValidator
from libs.session_lifecycle.visibility import VisibilityEvents

logger = logging.getLogger(__name__)

ExpiredCallback = Callable[[], Awaitable[None] | None]
RefreshedCallback = Callable[[Session], Awaitable[None] | None]


async def _invoke(callback: Callable[..., Any] | None, *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class SessionMonitor:
    """Runs session checks on an interval and when the page becomes visible."""

    def __init__(
        self,
        provider: IdentityProvider,
        refresher: SessionRefresher | None = None,
        validator: SessionValidator | None = None,
        config: SessionMonitorConfig | None = None,
        visibility: VisibilityEvents | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config or SessionMonitorConfig()
        self.clock = clock or SystemClock()
        self.provider = provider
        self.validator = validator or SessionValidator(
            clock=self.clock,
            refresh_threshold_seconds=self.config.refresh_threshold_seconds,
        )
        self.refresher = refresher or SessionRefresher(provider, self.validator)
        self.visibility = visibility or VisibilityEvents()

        self._on_expired: ExpiredCallback | None = None
        self._on_refreshed: RefreshedCallback | None = None
        self._task: asyncio.Task[None] | None = None
        self._visibility_cleanup: Callable[[], None] | None = None
        self._pending_checks: set[asyncio.Task[None]] = set()
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def is_monitoring(self) -> bool:
        return self._task is not None

    def start_session_monitoring(
        self,
        on_expired: ExpiredCallback,
        on_refreshed: RefreshedCallback,
    ) -> None:
        """Start (or restart) monitoring with the given callbacks.

        Calling this while already running replaces the callbacks and leaves
        exactly one interval task and one visibility listener.

        Raises:
            RuntimeError: If no asyncio event loop is running
        """
        self.stop_session_monitoring()

        loop = asyncio.get_running_loop()
        self._loop = loop
        self._on_expired = on_expired
        self._on_refreshed = on_refreshed
        self._task = loop.create_task(self._monitor_loop())
        self._visibility_cleanup = self.handle_visibility_change(self._schedule_check)

        logger.info(
            "session_monitoring_started",
            extra={
                "check_interval_seconds": self.config.check_interval_seconds,
                "refresh_threshold_seconds": self.config.refresh_threshold_seconds,
            },
        )

    def stop_session_monitoring(self) -> None:
        """Cancel the interval and visibility listener. Safe when not running."""
        if self._task is None and self._visibility_cleanup is None:
            return

        if self._task is not None:
            self._task.cancel()
            self._task = None
        if self._visibility_cleanup is not None:
            self._visibility_cleanup()
            self._visibility_cleanup = None
        for task in list(self._pending_checks):
            task.cancel()
        self._pending_checks.clear()
        self._loop = None

        logger.info("session_monitoring_stopped")

    def handle_visibility_change(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Invoke ``callback`` whenever the page becomes visible.

        Each call registers an independent listener.

        Returns:
            Cleanup function removing exactly this listener
        """

        def listener(hidden: bool) -> None:
            if not hidden:
                callback()

        self.visibility.add_listener(listener)

        def cleanup() -> None:
            self.visibility.remove_listener(listener)

        return cleanup

    async def check_session(self) -> ValidationResult:
        """Run one monitoring tick.

        Provider failures are logged and end the tick quietly. Exceptions
        raised by the consumer callbacks propagate to the caller.

        Returns:
            Validation of the session that was current when the tick started
        """
        try:
            session = await self.provider.get_current_session()
        except Exception as e:  # Generic catch justified - provider errors never escape a tick
            logger.error(
                "session_fetch_failed",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            session_monitor_errors_total.labels(stage="fetch").inc()
            return ValidationResult.invalid()

        if session is None:
            logger.info("session_missing")
            session_expired_total.labels(reason="missing").inc()
            await _invoke(self._on_expired)
            return ValidationResult.invalid()

        validation = self.validator.validate(session)

        if not validation.is_valid:
            logger.info(
                "session_expired",
                extra={"expires_at": str(validation.expires_at)},
            )
            session_expired_total.labels(reason="expired").inc()
            await self.refresher.clear_invalid_session()
            await _invoke(self._on_expired)
            return validation

        if validation.needs_refresh:
            logger.info(
                "session_refresh_due",
                extra={"time_remaining_seconds": validation.time_remaining},
            )
            result = await self.refresher.refresh()
            if result.session is not None:
                await _invoke(self._on_refreshed, result.session)
            else:
                logger.warning(
                    "session_refresh_failed_keeping_current",
                    extra={
                        "error": result.error,
                        "time_remaining_seconds": validation.time_remaining,
                    },
                )

        return validation

    async def _monitor_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.check_interval_seconds)
            await self._safe_check()

    async def _safe_check(self) -> None:
        try:
            await self.check_session()
        except asyncio.CancelledError:
            raise
        except Exception:  # Generic catch justified - keep the loop alive, surface via logs
            logger.exception("session_monitoring_error")
            session_monitor_errors_total.labels(stage="callback").inc()

    def _schedule_check(self) -> None:
        # Visibility events may arrive from any thread; hop onto the monitor's loop
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._start_check)

    def _start_check(self) -> None:
        if self._task is None or self._loop is None:
            return
        task = self._loop.create_task(self._safe_check())
        self._pending_checks.add(task)
        task.add_done_callback(self._pending_checks.discard)


__all__ = ["SessionMonitor", "ExpiredCallback", "RefreshedCallback"]
