"""Configuration for session and inactivity monitoring."""

import os
from dataclasses import dataclass

from libs.session_lifecycle.exceptions import InvalidInactivityConfigError

DEFAULT_INACTIVITY_TIMEOUT_SECONDS = 24 * 60 * 60  # 24 hours
DEFAULT_INACTIVITY_WARNING_SECONDS = 5 * 60  # 5 minutes before timeout
DEFAULT_INACTIVITY_CHECK_INTERVAL_SECONDS = 60  # Check every minute

DEFAULT_SESSION_CHECK_INTERVAL_SECONDS = 5 * 60  # Check every 5 minutes
DEFAULT_SESSION_REFRESH_THRESHOLD_SECONDS = 10 * 60  # Refresh if less than 10 minutes remaining


def _float_env(
    name: str,
    default: float,
    error_cls: type[ValueError] = InvalidInactivityConfigError,
) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return float(default)
    try:
        return float(raw)
    except ValueError as exc:
        raise error_cls(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class InactivityConfig:
    """Idle-timer configuration.

    Invariants (checked at construction):
    - every duration is positive
    - warning_seconds < timeout_seconds

    Raises:
        InvalidInactivityConfigError: If an invariant does not hold
    """

    timeout_seconds: float = DEFAULT_INACTIVITY_TIMEOUT_SECONDS
    warning_seconds: float = DEFAULT_INACTIVITY_WARNING_SECONDS
    check_interval_seconds: float = DEFAULT_INACTIVITY_CHECK_INTERVAL_SECONDS

    def __post_init__(self) -> None:
        for name in ("timeout_seconds", "warning_seconds", "check_interval_seconds"):
            value = getattr(self, name)
            if value <= 0:
                raise InvalidInactivityConfigError(f"{name} must be positive, got {value}")
        if self.warning_seconds >= self.timeout_seconds:
            raise InvalidInactivityConfigError(
                f"warning_seconds ({self.warning_seconds}) must be less than "
                f"timeout_seconds ({self.timeout_seconds})"
            )

    @classmethod
    def from_env(cls) -> "InactivityConfig":
        """Load configuration from environment variables.

        Environment variable mapping:
        - INACTIVITY_TIMEOUT_SECONDS: Idle time before forced logout
        - INACTIVITY_WARNING_SECONDS: Warning window before the timeout
        - INACTIVITY_CHECK_INTERVAL_SECONDS: Period of the monitoring tick
        """
        return cls(
            timeout_seconds=_float_env(
                "INACTIVITY_TIMEOUT_SECONDS", DEFAULT_INACTIVITY_TIMEOUT_SECONDS
            ),
            warning_seconds=_float_env(
                "INACTIVITY_WARNING_SECONDS", DEFAULT_INACTIVITY_WARNING_SECONDS
            ),
            check_interval_seconds=_float_env(
                "INACTIVITY_CHECK_INTERVAL_SECONDS", DEFAULT_INACTIVITY_CHECK_INTERVAL_SECONDS
            ),
        )


@dataclass(frozen=True)
class SessionMonitorConfig:
    """Session validity monitoring configuration."""

    check_interval_seconds: float = DEFAULT_SESSION_CHECK_INTERVAL_SECONDS
    refresh_threshold_seconds: float = DEFAULT_SESSION_REFRESH_THRESHOLD_SECONDS

    def __post_init__(self) -> None:
        if self.check_interval_seconds <= 0:
            raise ValueError(
                f"check_interval_seconds must be positive, got {self.check_interval_seconds}"
            )
        if self.refresh_threshold_seconds < 0:
            raise ValueError(
                "refresh_threshold_seconds must not be negative, "
                f"got {self.refresh_threshold_seconds}"
            )

    @classmethod
    def from_env(cls) -> "SessionMonitorConfig":
        """Load configuration from environment variables.

        Environment variable mapping:
        - SESSION_CHECK_INTERVAL_SECONDS: Period of the session check tick
        - SESSION_REFRESH_THRESHOLD_SECONDS: Remaining lifetime below which a refresh is due
        """
        return cls(
            check_interval_seconds=_float_env(
                "SESSION_CHECK_INTERVAL_SECONDS",
                DEFAULT_SESSION_CHECK_INTERVAL_SECONDS,
                error_cls=ValueError,
            ),
            refresh_threshold_seconds=_float_env(
                "SESSION_REFRESH_THRESHOLD_SECONDS",
                DEFAULT_SESSION_REFRESH_THRESHOLD_SECONDS,
                error_cls=ValueError,
            ),
        )


__all__ = [
    "InactivityConfig",
    "SessionMonitorConfig",
    "DEFAULT_INACTIVITY_TIMEOUT_SECONDS",
    "DEFAULT_INACTIVITY_WARNING_SECONDS",
    "DEFAULT_INACTIVITY_CHECK_INTERVAL_SECONDS",
    "DEFAULT_SESSION_CHECK_INTERVAL_SECONDS",
    "DEFAULT_SESSION_REFRESH_THRESHOLD_SECONDS",
]
