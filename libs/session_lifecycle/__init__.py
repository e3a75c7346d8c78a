"""Client session lifecycle library.

Decides when a provider-issued session is valid or due for refresh, keeps it
fresh in the background, and tracks user inactivity against a timeout with a
warning window.

Key Components:
- SessionValidator: Pure validity / refresh-need computation
- SessionRefresher: Provider refresh with errors converted to results
- SessionMonitor: Periodic and on-visible session checks
- InactivityMonitor: Idle timer with warning, timeout and activity callbacks
- HttpIdentityProvider: httpx adapter for GoTrue-style auth services
"""

from libs.session_lifecycle.clock import Clock, ManualClock, SystemClock
from libs.session_lifecycle.config import InactivityConfig, SessionMonitorConfig
from libs.session_lifecycle.exceptions import (
    IdentityProviderError,
    InvalidInactivityConfigError,
    SessionLifecycleError,
)
from libs.session_lifecycle.inactivity import InactivityMonitor
from libs.session_lifecycle.log_config import configure_logging
from libs.session_lifecycle.models import (
    AuthResponse,
    InactivityCallbacks,
    InactivityStatus,
    RefreshResult,
    Session,
    SessionInfo,
    SessionRestoreResult,
    SessionUser,
    ValidationResult,
)
from libs.session_lifecycle.monitor import SessionMonitor
from libs.session_lifecycle.provider import HttpIdentityProvider, IdentityProvider
from libs.session_lifecycle.refresher import SessionRefresher
from libs.session_lifecycle.validator import REFRESH_THRESHOLD_SECONDS, SessionValidator
from libs.session_lifecycle.visibility import VisibilityEvents

__all__ = [
    # Time
    "Clock",
    "ManualClock",
    "SystemClock",
    # Configuration
    "InactivityConfig",
    "SessionMonitorConfig",
    "configure_logging",
    # Exceptions
    "SessionLifecycleError",
    "IdentityProviderError",
    "InvalidInactivityConfigError",
    # Models
    "AuthResponse",
    "InactivityCallbacks",
    "InactivityStatus",
    "RefreshResult",
    "Session",
    "SessionInfo",
    "SessionRestoreResult",
    "SessionUser",
    "ValidationResult",
    # Components
    "HttpIdentityProvider",
    "IdentityProvider",
    "InactivityMonitor",
    "REFRESH_THRESHOLD_SECONDS",
    "SessionMonitor",
    "SessionRefresher",
    "SessionValidator",
    "VisibilityEvents",
]
