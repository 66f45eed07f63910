# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Directory domain package.

School-scoped read models for students, teachers, parents, subjects and
classes.
"""

from schoolboard.domains.directory.service import (
    DirectoryService,
    DirectoryServiceError,
    RecordNotFoundError,
)

__all__ = [
    "DirectoryService",
    "DirectoryServiceError",
    "RecordNotFoundError",
]
