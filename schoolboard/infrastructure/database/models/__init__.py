# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models.

Importing this package registers every table on ``Base.metadata``.
"""

from schoolboard.infrastructure.database.models.base import Base, TimestampMixin
from schoolboard.infrastructure.database.models.enrollment import (
    AssignmentStatus,
    StudentClassAssignment,
)
from schoolboard.infrastructure.database.models.people import (
    Parent,
    Student,
    StudentParent,
    Teacher,
    TeacherClass,
    TeacherSubject,
)
from schoolboard.infrastructure.database.models.school import (
    AcademicSession,
    Class,
    ClassSubject,
    Department,
    School,
    SchoolLevel,
    Subject,
)

__all__ = [
    "Base",
    "TimestampMixin",
    # School structure
    "School",
    "SchoolLevel",
    "Department",
    "AcademicSession",
    "Class",
    "Subject",
    "ClassSubject",
    # People
    "Student",
    "Teacher",
    "Parent",
    "StudentParent",
    "TeacherSubject",
    "TeacherClass",
    # Enrollment
    "AssignmentStatus",
    "StudentClassAssignment",
]
