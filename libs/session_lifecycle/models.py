"""Session and monitoring data models.

``Session`` is parsed from provider payloads with pydantic so that malformed
records surface as validation errors instead of attribute errors. Derived
results are plain frozen dataclasses recomputed on every call.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class SessionUser(BaseModel):
    """Subset of the provider's user record that this library reads."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    email: str | None = None
    email_confirmed_at: str | None = None


class Session(BaseModel):
    """Provider-issued credential bundle.

    Only ``access_token``, ``refresh_token`` and ``expires_at`` drive the
    lifecycle logic; everything else is carried through untouched.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    access_token: str = ""
    refresh_token: str = ""
    expires_at: Annotated[float, Field(allow_inf_nan=False)] | None = None  # Unix seconds
    expires_in: int | None = None
    token_type: str | None = None
    user: SessionUser | None = None


@dataclass(frozen=True)
class AuthResponse:
    """Provider result that reports failure by value instead of raising."""

    session: Session | None = None
    error: str | None = None


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a session against the current time."""

    is_valid: bool
    needs_refresh: bool = False
    time_remaining: float = 0.0
    expires_at: datetime | None = None

    @classmethod
    def invalid(cls) -> ValidationResult:
        return cls(is_valid=False)


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of a single refresh attempt."""

    session: Session | None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.session is not None and self.error is None


@dataclass(frozen=True)
class SessionRestoreResult:
    """Validated session outcome shared by restore and force-refresh."""

    session: Session | None
    user: SessionUser | None
    is_valid: bool
    error: str | None = None
    validation: ValidationResult | None = None


@dataclass(frozen=True)
class SessionUserSummary:
    id: str
    email: str | None
    email_confirmed: bool


@dataclass(frozen=True)
class SessionInfo:
    """Display/debug view of a session."""

    is_valid: bool
    expires_at: str | None = None
    time_remaining: str | None = None
    user: SessionUserSummary | None = None


@dataclass(frozen=True)
class InactivityStatus:
    """Snapshot of an inactivity monitor, formatted for display."""

    is_active: bool
    has_warned: bool
    time_remaining: str
    time_until_warning: str
    last_activity: str


@dataclass(frozen=True)
class InactivityCallbacks:
    """Consumer hooks for the inactivity monitor.

    Exceptions raised by these callbacks propagate out of the monitor call
    that invoked them.
    """

    on_warning: Callable[[float], None] | None = None
    on_timeout: Callable[[], None] | None = None
    on_activity: Callable[[], None] | None = None


__all__ = [
    "AuthResponse",
    "InactivityCallbacks",
    "InactivityStatus",
    "RefreshResult",
    "Session",
    "SessionInfo",
    "SessionRestoreResult",
    "SessionUser",
    "SessionUserSummary",
    "ValidationResult",
]
