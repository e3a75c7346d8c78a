"""Identity-provider interface and HTTP adapter.

The lifecycle components only talk to the provider through the narrow
``IdentityProvider`` protocol. ``HttpIdentityProvider`` implements it for
GoTrue-style REST endpoints:

    POST {base_url}/token?grant_type=refresh_token   {"refresh_token": ...}
    POST {base_url}/logout                           Authorization: Bearer <access_token>

The adapter keeps the current session in memory only.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from libs.session_lifecycle.clock import Clock, SystemClock
from libs.session_lifecycle.exceptions import IdentityProviderError
from libs.session_lifecycle.models import AuthResponse, Session

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class IdentityProvider(Protocol):
    """Operations the lifecycle core needs from an identity provider."""

    async def get_current_session(self) -> Session | None: ...

    async def refresh_session(self) -> Session | AuthResponse: ...

    async def sign_out(self) -> None: ...


class HttpIdentityProvider:
    """IdentityProvider backed by an HTTP auth service."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Clock | None = None,
        session: Session | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            base_url: Auth service root, e.g. "https://project.example.com/auth/v1"
            api_key: Value for the ``apikey`` header, if the service requires one
            client: Shared AsyncClient; a short-lived client is opened per call when None
            timeout: Request timeout in seconds for per-call clients
            clock: Time source used to derive expires_at from expires_in
            session: Initial session (e.g. obtained at sign-in)
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._client = client
        self._clock = clock or SystemClock()
        self._session = session

    def set_session(self, session: Session | None) -> None:
        self._session = session

    async def get_current_session(self) -> Session | None:
        return self._session

    async def refresh_session(self) -> Session:
        """Exchange the refresh token for a new session.

        Raises:
            IdentityProviderError: No refresh token, HTTP failure or malformed response
        """
        if self._session is None or not self._session.refresh_token:
            raise IdentityProviderError("No refresh token available")

        payload = await self._post(
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": self._session.refresh_token},
        )
        session = self._parse_session(payload)
        self._session = session
        logger.info("provider_session_refreshed", extra={"expires_at": session.expires_at})
        return session

    async def sign_out(self) -> None:
        """Revoke the current session and forget it locally.

        The local session is cleared even when the revoke call fails.

        Raises:
            IdentityProviderError: HTTP failure while revoking
        """
        session = self._session
        self._session = None
        if session is None or not session.access_token:
            return

        await self._post(
            "/logout",
            headers={"Authorization": f"Bearer {session.access_token}"},
        )
        logger.info("provider_session_revoked")

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
        if extra:
            headers.update(extra)
        return headers

    async def _post(
        self,
        path: str,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            if self._client is not None:
                response = await self._client.post(
                    url, params=params, json=json, headers=self._headers(headers)
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(
                        url, params=params, json=json, headers=self._headers(headers)
                    )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Identity provider request failed: {e.response.status_code}",
                extra={"path": path, "response_text": e.response.text},
            )
            raise IdentityProviderError(
                _error_message(e.response) or f"HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Identity provider request error: {e}", extra={"path": path})
            raise IdentityProviderError(str(e) or type(e).__name__) from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise IdentityProviderError("Malformed identity provider response") from e

    def _parse_session(self, payload: Any) -> Session:
        if not isinstance(payload, dict):
            raise IdentityProviderError("Malformed identity provider response")
        data = dict(payload)
        try:
            if data.get("expires_at") is None and data.get("expires_in") is not None:
                data["expires_at"] = self._clock.now() + float(data["expires_in"])
            return Session.model_validate(data)
        except (ValidationError, TypeError, ValueError) as e:
            raise IdentityProviderError("Malformed session in identity provider response") from e


def _error_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    for key in ("error_description", "msg", "message", "error"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    return None


__all__ = ["IdentityProvider", "HttpIdentityProvider", "DEFAULT_TIMEOUT_SECONDS"]
