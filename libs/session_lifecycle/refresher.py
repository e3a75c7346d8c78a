"""Session refresh and restore against the identity provider.

Every provider failure is converted into an error result at this boundary.
Concurrent calls are not deduplicated: each call performs its own provider
request and the last one to resolve wins.
"""

from __future__ import annotations

import logging

from libs.session_lifecycle.metrics import session_refresh_total
from libs.session_lifecycle.models import (
    AuthResponse,
    RefreshResult,
    Session,
    SessionRestoreResult,
)
from libs.session_lifecycle.provider import IdentityProvider
from libs.session_lifecycle.validator import SessionValidator

logger = logging.getLogger(__name__)

REFRESH_FAILED_MESSAGE = "Failed to refresh session"


class SessionRefresher:
    """Obtains new sessions from the provider and wraps the outcome."""

    def __init__(
        self, provider: IdentityProvider, validator: SessionValidator | None = None
    ) -> None:
        self.provider = provider
        self.validator = validator or SessionValidator()

    async def refresh(self) -> RefreshResult:
        """Refresh the current session.

        Returns:
            RefreshResult with the new session, or ``session=None`` and an
            error message. Never raises for provider failures.
        """
        try:
            result = await self.provider.refresh_session()
        except Exception as e:  # Generic catch justified - provider errors become results
            message = str(e) or REFRESH_FAILED_MESSAGE
            logger.error(
                "session_refresh_failed",
                extra={"error": message, "error_type": type(e).__name__},
            )
            session_refresh_total.labels(result="error").inc()
            return RefreshResult(session=None, error=message)

        if isinstance(result, AuthResponse):
            if result.error:
                logger.error("session_refresh_failed", extra={"error": result.error})
                session_refresh_total.labels(result="error").inc()
                return RefreshResult(session=None, error=result.error)
            result = result.session

        if not isinstance(result, Session):
            logger.error("session_refresh_returned_no_session")
            session_refresh_total.labels(result="error").inc()
            return RefreshResult(session=None, error=REFRESH_FAILED_MESSAGE)

        session_refresh_total.labels(result="success").inc()
        return RefreshResult(session=result)

    async def force_refresh(self) -> SessionRestoreResult:
        """Refresh and validate the new session in one step."""
        refresh_result = await self.refresh()
        if refresh_result.session is None:
            return SessionRestoreResult(
                session=None,
                user=None,
                is_valid=False,
                error=refresh_result.error,
            )

        validation = self.validator.validate(refresh_result.session)
        if not validation.is_valid:
            logger.warning("refreshed_session_invalid")
            return SessionRestoreResult(
                session=None,
                user=None,
                is_valid=False,
                error="Refreshed session is not valid",
                validation=validation,
            )

        return SessionRestoreResult(
            session=refresh_result.session,
            user=refresh_result.session.user,
            is_valid=True,
            validation=validation,
        )

    async def clear_invalid_session(self) -> None:
        """Sign out best-effort; failures are logged and swallowed."""
        try:
            await self.provider.sign_out()
        except Exception as e:  # Generic catch justified - cleanup must not fail the caller
            logger.warning(
                "session_cleanup_failed",
                extra={"error": str(e), "error_type": type(e).__name__},
            )

    async def restore_session(self) -> SessionRestoreResult:
        """Restore the provider's current session at application start.

        Expired sessions are signed out. A session due for refresh is
        refreshed opportunistically; if that fails the current session is
        kept.
        """
        try:
            session = await self.provider.get_current_session()
        except Exception as e:  # Generic catch justified - provider errors become results
            logger.warning("session_restore_failed", extra={"error": str(e)})
            return SessionRestoreResult(
                session=None,
                user=None,
                is_valid=False,
                error=f"Failed to restore session: {e}",
            )

        if session is None:
            return SessionRestoreResult(session=None, user=None, is_valid=False)

        validation = self.validator.validate(session)
        if not validation.is_valid:
            await self.clear_invalid_session()
            return SessionRestoreResult(
                session=None,
                user=None,
                is_valid=False,
                error="Session has expired",
                validation=validation,
            )

        if validation.needs_refresh:
            refreshed = await self.force_refresh()
            if refreshed.is_valid:
                return refreshed
            logger.warning(
                "session_restore_refresh_failed_keeping_current",
                extra={"error": refreshed.error},
            )

        return SessionRestoreResult(
            session=session,
            user=session.user,
            is_valid=True,
            validation=validation,
        )


__all__ = ["SessionRefresher", "REFRESH_FAILED_MESSAGE"]
