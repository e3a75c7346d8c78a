"""Unit tests for session refresh, force-refresh and restore."""

import asyncio

import pytest
from prometheus_client import REGISTRY

from libs.session_lifecycle.clock import ManualClock
from libs.session_lifecycle.exceptions import IdentityProviderError
from libs.session_lifecycle.models import AuthResponse, Session
from libs.session_lifecycle.refresher import REFRESH_FAILED_MESSAGE, SessionRefresher
from libs.session_lifecycle.validator import SessionValidator
from tests.libs.session_lifecycle.fakes import FakeIdentityProvider, make_session


def _refresh_count(result: str) -> float:
    return REGISTRY.get_sample_value("session_refresh_total", {"result": result}) or 0.0


@pytest.fixture()
def refresher(provider: FakeIdentityProvider, clock: ManualClock) -> SessionRefresher:
    return SessionRefresher(provider, SessionValidator(clock=clock))


class TestRefresh:
    """Test provider errors are converted into results."""

    @pytest.mark.asyncio()
    async def test_refresh_success(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider, clock: ManualClock
    ) -> None:
        new_session = make_session(clock, expires_in=3600, access_token="new-token")
        provider.refresh_session.return_value = new_session
        before = _refresh_count("success")

        result = await refresher.refresh()

        assert result.ok is True
        assert result.session == new_session
        assert result.error is None
        assert _refresh_count("success") == before + 1

    @pytest.mark.asyncio()
    async def test_refresh_provider_raises(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider
    ) -> None:
        provider.refresh_session.side_effect = IdentityProviderError("Invalid Refresh Token")
        before = _refresh_count("error")

        result = await refresher.refresh()

        assert result.ok is False
        assert result.session is None
        assert result.error == "Invalid Refresh Token"
        assert _refresh_count("error") == before + 1

    @pytest.mark.asyncio()
    async def test_refresh_provider_raises_without_message(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider
    ) -> None:
        provider.refresh_session.side_effect = ConnectionError()

        result = await refresher.refresh()

        assert result.error == REFRESH_FAILED_MESSAGE

    @pytest.mark.asyncio()
    async def test_refresh_provider_returns_error_object(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider
    ) -> None:
        provider.refresh_session.return_value = AuthResponse(error="refresh_token_not_found")

        result = await refresher.refresh()

        assert result.session is None
        assert result.error == "refresh_token_not_found"

    @pytest.mark.asyncio()
    async def test_refresh_provider_returns_response_with_session(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider, clock: ManualClock
    ) -> None:
        new_session = make_session(clock)
        provider.refresh_session.return_value = AuthResponse(session=new_session)

        result = await refresher.refresh()

        assert result.session == new_session

    @pytest.mark.asyncio()
    async def test_refresh_provider_returns_nothing(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider
    ) -> None:
        provider.refresh_session.return_value = None

        result = await refresher.refresh()

        assert result.session is None
        assert result.error == REFRESH_FAILED_MESSAGE

    @pytest.mark.asyncio()
    async def test_concurrent_refreshes_are_not_deduplicated(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider, clock: ManualClock
    ) -> None:
        async def slow_refresh() -> object:
            await asyncio.sleep(0)
            return make_session(clock)

        provider.refresh_session.side_effect = slow_refresh

        results = await asyncio.gather(refresher.refresh(), refresher.refresh())

        assert provider.refresh_session.await_count == 2
        assert all(r.ok for r in results)

    @pytest.mark.asyncio()
    async def test_refresh_does_not_retry(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider
    ) -> None:
        provider.refresh_session.side_effect = IdentityProviderError("down")

        await refresher.refresh()

        assert provider.refresh_session.await_count == 1


class TestForceRefresh:
    """Test force_refresh validates the new session."""

    @pytest.mark.asyncio()
    async def test_force_refresh_success(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider, clock: ManualClock
    ) -> None:
        new_session = make_session(clock, expires_in=3600)
        provider.refresh_session.return_value = new_session

        result = await refresher.force_refresh()

        assert result.is_valid is True
        assert result.session == new_session
        assert result.user == new_session.user
        assert result.validation is not None
        assert result.validation.time_remaining == 3600
        assert result.validation.needs_refresh is False

    @pytest.mark.asyncio()
    async def test_force_refresh_failure(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider
    ) -> None:
        provider.refresh_session.side_effect = IdentityProviderError("network down")

        result = await refresher.force_refresh()

        assert result.is_valid is False
        assert result.session is None
        assert result.user is None
        assert result.error == "network down"
        assert result.validation is None

    @pytest.mark.asyncio()
    async def test_force_refresh_rejects_already_expired_session(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider, clock: ManualClock
    ) -> None:
        provider.refresh_session.return_value = make_session(clock, expires_in=-10)

        result = await refresher.force_refresh()

        assert result.is_valid is False
        assert result.session is None
        assert result.validation is not None
        assert result.validation.is_valid is False

    @pytest.mark.asyncio()
    async def test_force_refresh_rejects_out_of_range_expiry(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider
    ) -> None:
        provider.refresh_session.return_value = Session(access_token="abc", expires_at=-1e18)

        result = await refresher.force_refresh()

        assert result.is_valid is False
        assert result.error == "Refreshed session is not valid"


class TestClearInvalidSession:
    @pytest.mark.asyncio()
    async def test_clear_invalid_session_signs_out(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider
    ) -> None:
        await refresher.clear_invalid_session()

        provider.sign_out.assert_awaited_once()

    @pytest.mark.asyncio()
    async def test_clear_invalid_session_swallows_sign_out_errors(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider
    ) -> None:
        provider.sign_out.side_effect = IdentityProviderError("already signed out")

        await refresher.clear_invalid_session()

        provider.sign_out.assert_awaited_once()


class TestRestoreSession:
    """Test application-start session restore."""

    @pytest.mark.asyncio()
    async def test_restore_valid_session(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider, clock: ManualClock
    ) -> None:
        provider.session = make_session(clock, expires_in=3600)

        result = await refresher.restore_session()

        assert result.is_valid is True
        assert result.session == provider.session
        assert result.user is not None and result.user.id == "user-123"
        provider.refresh_session.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_restore_without_session(self, refresher: SessionRefresher) -> None:
        result = await refresher.restore_session()

        assert result.is_valid is False
        assert result.session is None
        assert result.error is None

    @pytest.mark.asyncio()
    async def test_restore_expired_session_signs_out(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider, clock: ManualClock
    ) -> None:
        provider.session = make_session(clock, expires_in=-1)

        result = await refresher.restore_session()

        assert result.is_valid is False
        assert result.error == "Session has expired"
        provider.sign_out.assert_awaited_once()

    @pytest.mark.asyncio()
    async def test_restore_refreshes_when_due(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider, clock: ManualClock
    ) -> None:
        provider.session = make_session(clock, expires_in=300)
        refreshed = make_session(clock, expires_in=3600, access_token="refreshed")
        provider.refresh_session.return_value = refreshed

        result = await refresher.restore_session()

        assert result.is_valid is True
        assert result.session == refreshed

    @pytest.mark.asyncio()
    async def test_restore_keeps_current_session_when_refresh_fails(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider, clock: ManualClock
    ) -> None:
        provider.session = make_session(clock, expires_in=300)
        provider.refresh_session.side_effect = IdentityProviderError("down")

        result = await refresher.restore_session()

        assert result.is_valid is True
        assert result.session == provider.session
        assert result.error is None

    @pytest.mark.asyncio()
    async def test_restore_provider_error(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider
    ) -> None:
        provider.get_current_session.side_effect = IdentityProviderError("storage unavailable")

        result = await refresher.restore_session()

        assert result.is_valid is False
        assert result.error == "Failed to restore session: storage unavailable"

    @pytest.mark.asyncio()
    async def test_restore_session_with_out_of_range_expiry(
        self, refresher: SessionRefresher, provider: FakeIdentityProvider
    ) -> None:
        provider.session = Session(access_token="abc", refresh_token="def", expires_at=1e18)

        result = await refresher.restore_session()

        assert result.is_valid is False
        assert result.session is None
        assert result.error == "Session has expired"
        provider.sign_out.assert_awaited_once()
