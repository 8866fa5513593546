"""Shared fixtures for the Home Search test suite."""

import os

import pytest

os.environ.setdefault("REPLIERS_API_KEY", "test-api-key")

from fakes import FakeClock, FakePool, FakeRedis  # noqa: E402


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def pool():
    return FakePool()


@pytest.fixture
def fake_redis():
    return FakeRedis()
