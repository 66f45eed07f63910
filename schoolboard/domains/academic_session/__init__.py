# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic session domain package.

This package provides academic session management including:
- Academic session CRUD operations
- Setting the current session of a school
"""

from schoolboard.domains.academic_session.service import (
    AcademicSessionAccessDeniedError,
    AcademicSessionInUseError,
    AcademicSessionNotFoundError,
    AcademicSessionService,
    AcademicSessionServiceError,
    InvalidSessionDatesError,
)

__all__ = [
    "AcademicSessionAccessDeniedError",
    "AcademicSessionInUseError",
    "AcademicSessionNotFoundError",
    "AcademicSessionService",
    "AcademicSessionServiceError",
    "InvalidSessionDatesError",
]
