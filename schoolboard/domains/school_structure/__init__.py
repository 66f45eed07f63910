# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School structure domain package.

Departments, school levels, subjects and classes.
"""

from schoolboard.domains.school_structure.service import (
    ReferenceNotFoundError,
    SchoolStructureService,
    SchoolStructureServiceError,
    StructureAccessDeniedError,
    StructureExistsError,
    StructureInUseError,
    StructureNotFoundError,
)

__all__ = [
    "ReferenceNotFoundError",
    "SchoolStructureService",
    "SchoolStructureServiceError",
    "StructureAccessDeniedError",
    "StructureExistsError",
    "StructureInUseError",
    "StructureNotFoundError",
]
