# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the authentication middleware and role checks.

Tests the middleware components in isolation from the database.
"""

from datetime import timedelta
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient
from pydantic import SecretStr

from schoolboard.api.dependencies import require_admin, require_school, require_staff
from schoolboard.api.middleware.auth import AuthMiddleware, CurrentUser, get_current_user
from schoolboard.api.v1.errors import assigning_teacher_id
from schoolboard.domains.auth.jwt import JWTManager


@pytest.fixture
def jwt_settings() -> MagicMock:
    """Create mock JWT settings."""
    settings = MagicMock()
    settings.secret_key = SecretStr("test-secret-key-for-jwt-testing")
    settings.algorithm = "HS256"
    settings.access_token_expire_minutes = 30
    return settings


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock) -> JWTManager:
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings)


@pytest.fixture
def protected_app(jwt_settings: MagicMock):
    """App with the auth middleware and one endpoint per role check."""
    with patch("schoolboard.api.middleware.auth.get_settings") as mock_settings:
        mock_settings.return_value.jwt = jwt_settings

        app = FastAPI()
        app.add_middleware(AuthMiddleware)

        @app.get("/health")
        async def health() -> dict:
            return {"status": "ok"}

        @app.get("/api/v1/whoami")
        async def whoami(request: Request) -> dict:
            user = get_current_user(request)
            return {"user_id": user.id if user else None}

        @app.get("/api/v1/staff")
        async def staff(user: CurrentUser = Depends(require_staff)) -> dict:
            return {"role": user.role}

        @app.get("/api/v1/admin")
        async def admin(user: CurrentUser = Depends(require_admin)) -> dict:
            return {"role": user.role}

        @app.get("/api/v1/school")
        async def school(school_id: str = Depends(require_school)) -> dict:
            return {"school_id": school_id}

        # The middleware is built on the first request
        client = TestClient(app)
        client.get("/health")
        yield client


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestAuthMiddleware:
    """Tests for AuthMiddleware."""

    def test_public_path_bypasses_auth(self, protected_app) -> None:
        response = protected_app.get("/health")

        assert response.status_code == 200

    def test_valid_token_sets_user(self, protected_app, jwt_manager) -> None:
        user_id = str(uuid4())
        token = jwt_manager.create_access_token(user_id=user_id, role="teacher")

        response = protected_app.get("/api/v1/whoami", headers=_bearer(token))

        assert response.status_code == 200
        assert response.json()["user_id"] == user_id

    def test_no_token_sets_user_none(self, protected_app) -> None:
        response = protected_app.get("/api/v1/whoami")

        assert response.json()["user_id"] is None

    def test_invalid_token_sets_user_none(self, protected_app) -> None:
        response = protected_app.get("/api/v1/whoami", headers=_bearer("invalid-token"))

        assert response.json()["user_id"] is None

    def test_expired_token_sets_user_none(self, protected_app, jwt_manager) -> None:
        token = jwt_manager.create_access_token(
            user_id=str(uuid4()), role="teacher", expires_delta=timedelta(seconds=-5)
        )

        response = protected_app.get("/api/v1/whoami", headers=_bearer(token))

        assert response.json()["user_id"] is None

    def test_non_bearer_scheme_is_ignored(self, protected_app, jwt_manager) -> None:
        token = jwt_manager.create_access_token(user_id=str(uuid4()), role="teacher")

        response = protected_app.get("/api/v1/whoami", headers={"Authorization": f"Basic {token}"})

        assert response.json()["user_id"] is None

    def test_request_id_is_echoed(self, protected_app) -> None:
        response = protected_app.get("/api/v1/whoami", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"


class TestRoleChecks:
    """Tests for the role dependencies."""

    def test_staff_endpoint_without_token(self, protected_app) -> None:
        response = protected_app.get("/api/v1/staff")

        assert response.status_code == 401

    @pytest.mark.parametrize("role", ["teacher", "school_admin", "super_admin"])
    def test_staff_roles(self, protected_app, jwt_manager, role) -> None:
        token = jwt_manager.create_access_token(user_id=str(uuid4()), role=role)

        response = protected_app.get("/api/v1/staff", headers=_bearer(token))

        assert response.status_code == 200

    @pytest.mark.parametrize("role", ["student", "parent"])
    def test_non_staff_roles(self, protected_app, jwt_manager, role) -> None:
        token = jwt_manager.create_access_token(user_id=str(uuid4()), role=role)

        response = protected_app.get("/api/v1/staff", headers=_bearer(token))

        assert response.status_code == 403

    def test_teacher_is_not_admin(self, protected_app, jwt_manager) -> None:
        token = jwt_manager.create_access_token(user_id=str(uuid4()), role="teacher")

        response = protected_app.get("/api/v1/admin", headers=_bearer(token))

        assert response.status_code == 403

    def test_school_from_token(self, protected_app, jwt_manager) -> None:
        school_id = str(uuid4())
        token = jwt_manager.create_access_token(
            user_id=str(uuid4()), role="teacher", school_id=school_id
        )

        response = protected_app.get("/api/v1/school", headers=_bearer(token))

        assert response.json() == {"school_id": school_id}

    def test_uppercase_school_claim_is_canonical(self, protected_app, jwt_manager) -> None:
        school_id = str(uuid4())
        token = jwt_manager.create_access_token(
            user_id=str(uuid4()), role="school_admin", school_id=school_id.upper()
        )

        response = protected_app.get("/api/v1/school", headers=_bearer(token))

        assert response.json() == {"school_id": school_id}

    def test_token_without_school(self, protected_app, jwt_manager) -> None:
        token = jwt_manager.create_access_token(user_id=str(uuid4()), role="super_admin")

        response = protected_app.get("/api/v1/school", headers=_bearer(token))

        assert response.status_code == 400


class TestCurrentUser:
    """Tests for CurrentUser class."""

    def test_teacher_flags(self, jwt_manager) -> None:
        teacher_id = str(uuid4())
        payload = jwt_manager.decode_token(
            jwt_manager.create_access_token(
                user_id=str(uuid4()), role="teacher", teacher_id=teacher_id
            )
        )
        user = CurrentUser(payload)

        assert user.is_teacher is True
        assert user.is_staff is True
        assert user.is_admin is False
        assert assigning_teacher_id(user) == teacher_id

    def test_ids_are_lowercased(self, jwt_manager) -> None:
        school_id = str(uuid4())
        teacher_id = str(uuid4())
        payload = jwt_manager.decode_token(
            jwt_manager.create_access_token(
                user_id=str(uuid4()),
                role="teacher",
                school_id=school_id.upper(),
                teacher_id=teacher_id.upper(),
            )
        )
        user = CurrentUser(payload)

        assert user.school_id == school_id
        assert user.teacher_id == teacher_id

    def test_admin_assigns_without_teacher_scope(self, jwt_manager) -> None:
        payload = jwt_manager.decode_token(
            jwt_manager.create_access_token(user_id=str(uuid4()), role="school_admin")
        )

        assert assigning_teacher_id(CurrentUser(payload)) is None
