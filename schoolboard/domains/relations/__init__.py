# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Relations domain package.

Link and unlink operations for student-parent, teacher-subject,
teacher-class and class-subject pairs.
"""

from schoolboard.domains.relations.service import (
    EntityAccessDeniedError,
    EntityNotFoundError,
    RelationExistsError,
    RelationNotFoundError,
    RelationsService,
    RelationsServiceError,
)

__all__ = [
    "EntityAccessDeniedError",
    "EntityNotFoundError",
    "RelationExistsError",
    "RelationNotFoundError",
    "RelationsService",
    "RelationsServiceError",
]
