# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Fixtures for HTTP-level tests.

The application is built with create_app() and driven through
TestClient without entering its lifespan, so no database pool is
opened. get_db is overridden with a mocked AsyncSession and services
are patched per test.
"""

from collections.abc import AsyncGenerator, Callable
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from schoolboard.api.app import create_app
from schoolboard.api.dependencies import get_db
from schoolboard.core.config import get_settings
from schoolboard.domains.auth import JWTManager


@pytest.fixture
def db_session() -> AsyncMock:
    """Mocked session handed to every endpoint."""
    return AsyncMock()


@pytest.fixture
def app(db_session: AsyncMock) -> FastAPI:
    """Create the application with the database dependency overridden."""
    app = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncMock, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """Build an Authorization header for a caller."""
    manager = JWTManager(get_settings().jwt)

    def _headers(
        role: str,
        school_id: str | None = None,
        teacher_id: str | None = None,
    ) -> dict[str, str]:
        token = manager.create_access_token(
            user_id=str(uuid4()),
            role=role,
            school_id=school_id,
            teacher_id=teacher_id,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin_headers(auth_headers, school_id) -> dict[str, str]:
    return auth_headers("school_admin", school_id)


@pytest.fixture
def teacher_id() -> str:
    return str(uuid4())


@pytest.fixture
def teacher_headers(auth_headers, school_id, teacher_id) -> dict[str, str]:
    return auth_headers("teacher", school_id, teacher_id)


@pytest.fixture
def student_headers(auth_headers, school_id) -> dict[str, str]:
    return auth_headers("student", school_id)
