# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Each module provides a FastAPI router for one resource.

Modules:
    academic_sessions: Academic session management endpoints.
    students: Student listing, class assignment and parent links.
    classes: Class listing, rosters and subject links.
    teachers: Teacher listing, subject and class links.
    parents: Parent listing and provisioning.
    subjects: Subject listing and provisioning.
    departments: Department provisioning.
    school_levels: School level provisioning.
"""

from fastapi import APIRouter

from schoolboard.api.v1 import (
    academic_sessions,
    classes,
    departments,
    parents,
    school_levels,
    students,
    subjects,
    teachers,
)

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(
    academic_sessions.router, prefix="/academic-sessions", tags=["Academic Sessions"]
)
router.include_router(students.router, prefix="/students", tags=["Students"])
router.include_router(classes.router, prefix="/classes", tags=["Classes"])
router.include_router(teachers.router, prefix="/teachers", tags=["Teachers"])
router.include_router(parents.router, prefix="/parents", tags=["Parents"])
router.include_router(subjects.router, prefix="/subjects", tags=["Subjects"])
router.include_router(departments.router, prefix="/departments", tags=["Departments"])
router.include_router(school_levels.router, prefix="/school-levels", tags=["School Levels"])

__all__ = ["router"]
