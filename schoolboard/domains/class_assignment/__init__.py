# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class assignment domain package.

This package decides what happens when a student is added to a class for
an academic session: create, no-op, conflict or forced move. It also
reads and removes assignments and lists class rosters.
"""

from schoolboard.domains.class_assignment.service import (
    AssignmentNotFoundError,
    ClassAccessDeniedError,
    ClassAssignmentConflictError,
    ClassAssignmentService,
    ClassAssignmentServiceError,
    ClassNotFoundError,
    ConcurrentAssignmentError,
    NoCurrentSessionError,
    SessionAccessDeniedError,
    SessionNotFoundError,
    StudentNotFoundError,
)

__all__ = [
    "AssignmentNotFoundError",
    "ClassAccessDeniedError",
    "ClassAssignmentConflictError",
    "ClassAssignmentService",
    "ClassAssignmentServiceError",
    "ClassNotFoundError",
    "ConcurrentAssignmentError",
    "NoCurrentSessionError",
    "SessionAccessDeniedError",
    "SessionNotFoundError",
    "StudentNotFoundError",
]
