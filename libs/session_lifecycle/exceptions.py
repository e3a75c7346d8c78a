"""Session lifecycle exceptions."""


class SessionLifecycleError(Exception):
    """Base exception for all session lifecycle errors."""


class IdentityProviderError(SessionLifecycleError):
    """Raised when the identity provider cannot complete a request.

    Covers network failures, rejected or expired refresh tokens and malformed
    provider responses. The refresher and monitor convert these into error
    results; they are never raised past that boundary.
    """


class InvalidInactivityConfigError(SessionLifecycleError, ValueError):
    """Raised when an inactivity configuration is rejected at construction time."""


__all__ = [
    "SessionLifecycleError",
    "IdentityProviderError",
    "InvalidInactivityConfigError",
]
