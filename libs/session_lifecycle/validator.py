"""Pure session validation against expiry metadata.

Usage:
    from libs.session_lifecycle.validator import SessionValidator

    validator = SessionValidator()
    result = validator.validate(session)
    if result.needs_refresh:
        await refresher.refresh()
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from libs.session_lifecycle.clock import Clock, SystemClock, to_utc_datetime
from libs.session_lifecycle.config import DEFAULT_SESSION_REFRESH_THRESHOLD_SECONDS
from libs.session_lifecycle.models import (
    Session,
    SessionInfo,
    SessionUserSummary,
    ValidationResult,
)
from libs.session_lifecycle.timefmt import format_hours_minutes

logger = logging.getLogger(__name__)

REFRESH_THRESHOLD_SECONDS = DEFAULT_SESSION_REFRESH_THRESHOLD_SECONDS
FALLBACK_LIFETIME_SECONDS = 24 * 60 * 60  # Assumed lifetime when expires_at is missing


class SessionValidator:
    """Computes validity, time remaining and refresh need for a session.

    Stateless apart from its configuration; every call recomputes from the
    clock. Fails closed and never raises for malformed input.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        refresh_threshold_seconds: float = REFRESH_THRESHOLD_SECONDS,
    ) -> None:
        self.clock = clock or SystemClock()
        self.refresh_threshold_seconds = refresh_threshold_seconds

    def validate(
        self,
        session: Session | Mapping[str, Any] | None,
        now: float | None = None,
    ) -> ValidationResult:
        """Validate a session.

        Args:
            session: Session model, raw provider mapping, or None
            now: Current Unix time in seconds (defaults to the injected clock)

        Returns:
            ValidationResult. A session expiring in exactly the refresh
            threshold is not yet due for refresh.
        """
        parsed = self._coerce(session)
        if parsed is None or not parsed.access_token:
            return ValidationResult.invalid()

        current = self.clock.now() if now is None else now
        expires_at = (
            parsed.expires_at
            if parsed.expires_at is not None
            else current + FALLBACK_LIFETIME_SECONDS
        )
        if not math.isfinite(expires_at):
            logger.warning("session_expiry_not_finite", extra={"expires_at": str(expires_at)})
            return ValidationResult.invalid()

        try:
            expires_at_dt = to_utc_datetime(expires_at)
        except (OverflowError, ValueError, OSError):
            logger.warning("session_expiry_out_of_range", extra={"expires_at": expires_at})
            return ValidationResult.invalid()

        time_remaining = max(0.0, expires_at - current)

        if time_remaining <= 0:
            return ValidationResult(
                is_valid=False,
                needs_refresh=False,
                time_remaining=0.0,
                expires_at=expires_at_dt,
            )

        return ValidationResult(
            is_valid=True,
            needs_refresh=time_remaining < self.refresh_threshold_seconds,
            time_remaining=time_remaining,
            expires_at=expires_at_dt,
        )

    def get_session_info(
        self,
        session: Session | Mapping[str, Any] | None,
        now: float | None = None,
    ) -> SessionInfo:
        """Summarize a session for display or debugging."""
        parsed = self._coerce(session)
        if parsed is None:
            return SessionInfo(is_valid=False)

        validation = self.validate(parsed, now=now)
        expires_at = (
            validation.expires_at.isoformat().replace("+00:00", "Z")
            if validation.expires_at
            else None
        )
        user = None
        if parsed.user is not None:
            user = SessionUserSummary(
                id=parsed.user.id,
                email=parsed.user.email,
                email_confirmed=bool(parsed.user.email_confirmed_at),
            )

        return SessionInfo(
            is_valid=validation.is_valid,
            expires_at=expires_at,
            time_remaining=format_hours_minutes(validation.time_remaining),
            user=user,
        )

    @staticmethod
    def _coerce(session: Session | Mapping[str, Any] | None) -> Session | None:
        if session is None or isinstance(session, Session):
            return session
        if isinstance(session, Mapping):
            try:
                return Session.model_validate(dict(session))
            except ValidationError as exc:
                logger.warning(
                    "session_payload_malformed",
                    extra={"error_count": exc.error_count()},
                )
                return None
        logger.warning(
            "session_payload_unsupported_type",
            extra={"type": type(session).__name__},
        )
        return None


__all__ = ["SessionValidator", "REFRESH_THRESHOLD_SECONDS", "FALLBACK_LIFETIME_SECONDS"]
