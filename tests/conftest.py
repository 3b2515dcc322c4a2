"""
Shared test fixtures for the CNV trainer test suite.

Provides common mock provider setup and environment overrides.
"""

from __future__ import annotations

from typing import Generator

import pytest

from cnv_trainer.dependencies import reset_services
from cnv_trainer.models.request import UserProfile
from cnv_trainer.services.mocks import MockContentProvider


@pytest.fixture(autouse=True)
def _mock_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Set USE_MOCKS=true and clear any real credential for all tests."""
    monkeypatch.setenv("USE_MOCKS", "true")
    monkeypatch.setenv("PROVIDER_API_KEY", "")
    monkeypatch.setenv("SCENARIO_COUNT", "10")
    yield
    reset_services()


@pytest.fixture()
def mock_provider() -> MockContentProvider:
    """A fresh deterministic provider with no simulated faults."""
    provider = MockContentProvider(scenario_count=10)
    provider.initialize("test-key-not-real")
    return provider


@pytest.fixture()
def ana() -> UserProfile:
    """The reference trainee profile."""
    return UserProfile(name="Ana", knows_cnv=False, answers=["a", "b"])
