# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain package.

Token decoding and caller roles. Accounts and login live with the
external identity provider.
"""

from schoolboard.domains.auth.jwt import (
    InvalidTokenError,
    JWTError,
    JWTManager,
    TokenExpiredError,
    TokenPayload,
)
from schoolboard.domains.auth.roles import ADMIN_ROLES, STAFF_ROLES, Role

__all__ = [
    "ADMIN_ROLES",
    "STAFF_ROLES",
    "InvalidTokenError",
    "JWTError",
    "JWTManager",
    "Role",
    "TokenExpiredError",
    "TokenPayload",
]
