"""Shared fixtures for session lifecycle tests."""

import pytest

from libs.session_lifecycle.clock import ManualClock
from tests.libs.session_lifecycle.fakes import START_TIME, FakeIdentityProvider


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock(start=START_TIME)


@pytest.fixture()
def provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()
