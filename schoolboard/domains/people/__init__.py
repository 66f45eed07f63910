# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""People domain package.

Create, update and delete for students, teachers and parents.
"""

from schoolboard.domains.people.service import (
    DepartmentAlreadyAssignedError,
    DepartmentNotFoundError,
    EmailInUseError,
    PeopleService,
    PeopleServiceError,
    PersonAccessDeniedError,
    PersonNotFoundError,
)

__all__ = [
    "DepartmentAlreadyAssignedError",
    "DepartmentNotFoundError",
    "EmailInUseError",
    "PeopleService",
    "PeopleServiceError",
    "PersonAccessDeniedError",
    "PersonNotFoundError",
]
