# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests (services against a mocked AsyncSession)
- Integration tests (HTTP layer through TestClient)
"""

from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from schoolboard.api.middleware.rate_limit import limiter
from schoolboard.core.config import clear_settings_cache


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def disable_rate_limits() -> Generator[None, None, None]:
    """Keep the process-wide limiter out of the way of repeated requests."""
    previous = limiter.enabled
    limiter.enabled = False
    yield
    limiter.enabled = previous


@pytest.fixture
def fresh_settings() -> Generator[None, None, None]:
    """Reload settings from the environment for the duration of a test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def mock_db() -> AsyncMock:
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.add_all = MagicMock()
    db.delete = AsyncMock()
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    return db


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def school_id() -> str:
    """The caller's school."""
    return str(uuid4())


@pytest.fixture
def other_school_id() -> str:
    """A school the caller does not belong to."""
    return str(uuid4())
