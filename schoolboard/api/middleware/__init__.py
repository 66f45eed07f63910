# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware package."""

from schoolboard.api.middleware.auth import AuthMiddleware, CurrentUser, get_current_user
from schoolboard.api.middleware.rate_limit import MUTATION_LIMIT, limiter

__all__ = [
    "AuthMiddleware",
    "CurrentUser",
    "MUTATION_LIMIT",
    "get_current_user",
    "limiter",
]
