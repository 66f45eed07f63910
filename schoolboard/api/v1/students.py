# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student API endpoints.

This module provides endpoints for students:
- GET / - List students with current class and parents
- POST / - Create a student
- GET /{student_id} - Get student details
- PUT /{student_id} - Update a student
- DELETE /{student_id} - Delete a student
- POST /{student_id}/department - Assign a department
- GET /{student_id}/class - Get the student's class assignments
- POST /{student_id}/class - Assign the student to a class
- POST /{student_id}/parents - Link a parent
- DELETE /{student_id}/parents/{parent_id} - Unlink a parent

Assigning a class answers 409 with the current class when the student
is already active in another class and forceReassign is not set.
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from schoolboard.api.dependencies import (
    get_db,
    require_admin,
    require_school,
    require_staff,
)
from schoolboard.api.middleware.auth import CurrentUser
from schoolboard.api.middleware.rate_limit import MUTATION_LIMIT, limiter
from schoolboard.api.v1.errors import (
    assigning_teacher_id,
    class_assignment_error,
    conflict_response,
    people_error,
    relations_error,
)
from schoolboard.domains.class_assignment import (
    ClassAssignmentConflictError,
    ClassAssignmentService,
    ClassAssignmentServiceError,
)
from schoolboard.domains.directory import (
    DirectoryService,
    RecordNotFoundError,
)
from schoolboard.domains.people import PeopleService, PeopleServiceError
from schoolboard.domains.relations import RelationsService, RelationsServiceError
from schoolboard.models.class_assignment import (
    AssignClassRequest,
    ClassAssignmentConflict,
    ClassAssignmentResult,
    StudentClassesResponse,
)
from schoolboard.models.directory import StudentListResponse, StudentResponse
from schoolboard.models.people import (
    AssignDepartmentRequest,
    StudentCreateRequest,
    StudentUpdateRequest,
)
from schoolboard.models.relations import LinkParentRequest, StudentParentLinkResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_assignment_service(db: AsyncSession) -> ClassAssignmentService:
    return ClassAssignmentService(db=db)


def _get_directory_service(db: AsyncSession) -> DirectoryService:
    return DirectoryService(db=db)


def _get_people_service(db: AsyncSession) -> PeopleService:
    return PeopleService(db=db)


def _get_relations_service(db: AsyncSession) -> RelationsService:
    return RelationsService(db=db)


@router.get(
    "",
    response_model=StudentListResponse,
    summary="List students",
    description="List the school's students with their current class and parents.",
)
async def list_students(
    class_id: Annotated[
        UUID | None, Query(description="Only students in this class this session")
    ] = None,
    department_id: Annotated[UUID | None, Query(description="Department filter")] = None,
    not_in_class: Annotated[
        UUID | None, Query(description="Exclude students in this class this session")
    ] = None,
    search: Annotated[
        str | None, Query(max_length=100, description="Name, email or number")
    ] = None,
    offset: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    current_user: CurrentUser = Depends(require_staff),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> StudentListResponse:
    """List students.

    Args:
        class_id: Class filter.
        department_id: Department filter.
        not_in_class: Class to exclude.
        search: Free-text search.
        offset: Rows to skip.
        limit: Page size.
        current_user: Authenticated staff member.
        school_id: Caller's school.
        db: Database session.

    Returns:
        Page of students.
    """
    service = _get_directory_service(db)

    return await service.list_students(
        school_id,
        class_id=class_id,
        department_id=department_id,
        not_in_class=not_in_class,
        search=search,
        offset=offset,
        limit=limit,
    )


@router.get(
    "/{student_id}",
    response_model=StudentResponse,
    summary="Get student",
)
async def get_student(
    student_id: UUID,
    current_user: CurrentUser = Depends(require_staff),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> StudentResponse:
    """Get a student with current class and parents.

    Raises:
        HTTPException: 404 if the student is not in the school.
    """
    service = _get_directory_service(db)

    try:
        return await service.get_student(school_id, student_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get(
    "/{student_id}/class",
    response_model=StudentClassesResponse,
    summary="Get student class assignments",
)
async def get_student_classes(
    student_id: UUID,
    current_user: CurrentUser = Depends(require_staff),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> StudentClassesResponse:
    """Get the student's assignments, current session first.

    Args:
        student_id: Student identifier.
        current_user: Authenticated staff member.
        school_id: Caller's school.
        db: Database session.

    Returns:
        Current-session assignments and full history.
    """
    service = _get_assignment_service(db)

    try:
        return await service.get_student_classes(school_id, student_id)
    except ClassAssignmentServiceError as e:
        raise class_assignment_error(e) from e


@router.post(
    "/{student_id}/class",
    response_model=ClassAssignmentResult,
    summary="Assign student to class",
    description=(
        "Assign the student to a class for an academic session. "
        "Returns 409 with the current class when the student is already "
        "in another class and forceReassign is false."
    ),
    responses={status.HTTP_409_CONFLICT: {"model": ClassAssignmentConflict}},
)
@limiter.limit(MUTATION_LIMIT)
async def assign_student_class(
    request: Request,
    student_id: UUID,
    data: AssignClassRequest,
    current_user: CurrentUser = Depends(require_staff),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> ClassAssignmentResult | JSONResponse:
    """Assign a student to a class.

    Args:
        request: HTTP request.
        student_id: Student identifier.
        data: Class, session, roll number and force flag.
        current_user: Authenticated admin or teacher.
        school_id: Caller's school.
        db: Database session.

    Returns:
        Outcome (created, unchanged or reassigned) with the assignment,
        or a 409 conflict body.

    Raises:
        HTTPException: 404 for unknown student, class or session; 403 for
            another school's class or session, or a teacher's foreign class.
    """
    logger.info(
        "Assigning student %s to class %s (session %s, force=%s) by %s",
        student_id,
        data.class_id,
        data.session_id,
        data.force_reassign,
        current_user.id,
    )

    service = _get_assignment_service(db)

    try:
        return await service.assign_student(
            school_id,
            student_id,
            data,
            teacher_id=assigning_teacher_id(current_user),
        )
    except ClassAssignmentConflictError as e:
        return conflict_response(e)
    except ClassAssignmentServiceError as e:
        raise class_assignment_error(e) from e


@router.post(
    "/{student_id}/parents",
    response_model=StudentParentLinkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Link parent",
)
@limiter.limit(MUTATION_LIMIT)
async def link_parent(
    request: Request,
    student_id: UUID,
    data: LinkParentRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> StudentParentLinkResponse:
    """Link a parent to a student.

    Raises:
        HTTPException: 404 unknown student or parent, 403 other school,
            409 already linked.
    """
    service = _get_relations_service(db)

    try:
        return await service.link_parent(school_id, student_id, data)
    except RelationsServiceError as e:
        raise relations_error(e) from e


@router.delete(
    "/{student_id}/parents/{parent_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unlink parent",
)
@limiter.limit(MUTATION_LIMIT)
async def unlink_parent(
    request: Request,
    student_id: UUID,
    parent_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Remove a parent from a student."""
    service = _get_relations_service(db)

    try:
        await service.unlink_parent(school_id, student_id, parent_id)
    except RelationsServiceError as e:
        raise relations_error(e) from e


@router.post(
    "",
    response_model=StudentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create student",
)
@limiter.limit(MUTATION_LIMIT)
async def create_student(
    request: Request,
    data: StudentCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> StudentResponse:
    """Create a student in the caller's school.

    Raises:
        HTTPException: 404 unknown department, 409 email in use.
    """
    logger.info("Creating student %s %s by %s", data.first_name, data.last_name, current_user.id)

    service = _get_people_service(db)

    try:
        return await service.create_student(school_id, data)
    except PeopleServiceError as e:
        raise people_error(e) from e


@router.put(
    "/{student_id}",
    response_model=StudentResponse,
    summary="Update student",
)
@limiter.limit(MUTATION_LIMIT)
async def update_student(
    request: Request,
    student_id: UUID,
    data: StudentUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> StudentResponse:
    """Update a student. Omitted fields are kept."""
    service = _get_people_service(db)

    try:
        return await service.update_student(school_id, student_id, data)
    except PeopleServiceError as e:
        raise people_error(e) from e


@router.delete(
    "/{student_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete student",
)
@limiter.limit(MUTATION_LIMIT)
async def delete_student(
    request: Request,
    student_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a student with their parent links and class history."""
    logger.info("Deleting student %s by %s", student_id, current_user.id)

    service = _get_people_service(db)

    try:
        await service.delete_student(school_id, student_id)
    except PeopleServiceError as e:
        raise people_error(e) from e


@router.post(
    "/{student_id}/department",
    response_model=StudentResponse,
    summary="Assign department",
    description="Place a student who has no department yet into one.",
)
@limiter.limit(MUTATION_LIMIT)
async def assign_department(
    request: Request,
    student_id: UUID,
    data: AssignDepartmentRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> StudentResponse:
    """Assign a department to a student.

    Raises:
        HTTPException: 400 if the student already has a department,
            404 unknown student or department, 403 other school.
    """
    service = _get_people_service(db)

    try:
        return await service.assign_department(school_id, student_id, data)
    except PeopleServiceError as e:
        raise people_error(e) from e
