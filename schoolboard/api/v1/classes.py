# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class API endpoints.

This module provides endpoints for classes:
- GET / - List classes with level, subjects, teachers and student count
- POST / - Create a class
- GET /{class_id} - Get class details
- PUT /{class_id} - Update a class
- DELETE /{class_id} - Delete a class
- GET /{class_id}/students - Class roster for a session
- POST /{class_id}/students - Assign a student to the class
- DELETE /{class_id}/students/{student_id} - Remove a student
- GET /{class_id}/subjects - Subjects taught in the class
- POST /{class_id}/subjects - Add a subject to the class
- DELETE /{class_id}/subjects/{subject_id} - Remove a subject
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
    relations_error,
    structure_error,
)
from schoolboard.domains.class_assignment import (
    ClassAssignmentConflictError,
    ClassAssignmentService,
    ClassAssignmentServiceError,
)
from schoolboard.domains.directory import DirectoryService, RecordNotFoundError
from schoolboard.domains.relations import RelationsService, RelationsServiceError
from schoolboard.domains.school_structure import (
    SchoolStructureService,
    SchoolStructureServiceError,
)
from schoolboard.models.class_assignment import (
    AddStudentToClassRequest,
    ClassAssignmentConflict,
    ClassAssignmentResponse,
    ClassAssignmentResult,
    ClassRosterResponse,
)
from schoolboard.models.directory import ClassListResponse, ClassResponse, ClassSubjectsResponse
from schoolboard.models.relations import ClassSubjectLinkResponse, LinkSubjectRequest
from schoolboard.models.school_structure import ClassCreateRequest, ClassUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_assignment_service(db: AsyncSession) -> ClassAssignmentService:
    return ClassAssignmentService(db=db)


def _get_structure_service(db: AsyncSession) -> SchoolStructureService:
    return SchoolStructureService(db=db)


@router.get(
    "",
    response_model=ClassListResponse,
    summary="List classes",
    description="List the school's classes with subjects, teachers and current student count.",
)
async def list_classes(
    current_user: CurrentUser = Depends(require_staff),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> ClassListResponse:
    """List classes of the caller's school."""
    return await DirectoryService(db=db).list_classes(school_id)


@router.post(
    "",
    response_model=ClassResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create class",
)
@limiter.limit(MUTATION_LIMIT)
async def create_class(
    request: Request,
    data: ClassCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> ClassResponse:
    """Create a class, linking the given teacher as its class teacher.

    Raises:
        HTTPException: 404 if the level or teacher is not in the school.
    """
    logger.info("Creating class %s by %s", data.name, current_user.id)

    try:
        return await _get_structure_service(db).create_class(school_id, data)
    except SchoolStructureServiceError as e:
        raise structure_error(e) from e


@router.get(
    "/{class_id}",
    response_model=ClassResponse,
    summary="Get class",
)
async def get_class(
    class_id: UUID,
    current_user: CurrentUser = Depends(require_staff),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> ClassResponse:
    try:
        return await DirectoryService(db=db).get_class(school_id, class_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.put(
    "/{class_id}",
    response_model=ClassResponse,
    summary="Update class",
)
@limiter.limit(MUTATION_LIMIT)
async def update_class(
    request: Request,
    class_id: UUID,
    data: ClassUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> ClassResponse:
    try:
        return await _get_structure_service(db).update_class(school_id, class_id, data)
    except SchoolStructureServiceError as e:
        raise structure_error(e) from e


@router.delete(
    "/{class_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete class",
    description="Refused while students are active in the class.",
)
@limiter.limit(MUTATION_LIMIT)
async def delete_class(
    request: Request,
    class_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> None:
    logger.info("Deleting class %s by %s", class_id, current_user.id)

    try:
        await _get_structure_service(db).delete_class(school_id, class_id)
    except SchoolStructureServiceError as e:
        raise structure_error(e) from e


@router.get(
    "/{class_id}/students",
    response_model=ClassRosterResponse,
    summary="Get class roster",
)
async def get_class_roster(
    class_id: UUID,
    session_id: Annotated[
        UUID | None, Query(description="Academic session; defaults to the current one")
    ] = None,
    current_user: CurrentUser = Depends(require_staff),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> ClassRosterResponse:
    """List students active in a class.

    Args:
        class_id: Class identifier.
        session_id: Academic session, current when omitted.
        current_user: Authenticated staff member.
        school_id: Caller's school.
        db: Database session.

    Returns:
        Class roster.
    """
    service = _get_assignment_service(db)

    try:
        return await service.list_class_roster(school_id, class_id, session_id)
    except ClassAssignmentServiceError as e:
        raise class_assignment_error(e) from e


@router.post(
    "/{class_id}/students",
    response_model=ClassAssignmentResult,
    summary="Add student to class",
    description="Same resolution as POST /students/{id}/class, addressed from the class.",
    responses={status.HTTP_409_CONFLICT: {"model": ClassAssignmentConflict}},
)
@limiter.limit(MUTATION_LIMIT)
async def add_student_to_class(
    request: Request,
    class_id: UUID,
    data: AddStudentToClassRequest,
    current_user: CurrentUser = Depends(require_staff),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> ClassAssignmentResult | JSONResponse:
    """Assign a student to this class.

    Args:
        request: HTTP request.
        class_id: Class identifier.
        data: Student, session, roll number and force flag.
        current_user: Authenticated admin or teacher.
        school_id: Caller's school.
        db: Database session.

    Returns:
        Assignment outcome, or a 409 conflict body.
    """
    logger.info(
        "Adding student %s to class %s (session %s, force=%s) by %s",
        data.student_id,
        class_id,
        data.session_id,
        data.force_reassign,
        current_user.id,
    )

    service = _get_assignment_service(db)

    try:
        return await service.assign_student(
            school_id,
            data.student_id,
            data.to_assign_request(class_id),
            teacher_id=assigning_teacher_id(current_user),
        )
    except ClassAssignmentConflictError as e:
        return conflict_response(e)
    except ClassAssignmentServiceError as e:
        raise class_assignment_error(e) from e


@router.delete(
    "/{class_id}/students/{student_id}",
    response_model=ClassAssignmentResponse,
    summary="Remove student from class",
)
@limiter.limit(MUTATION_LIMIT)
async def remove_student_from_class(
    request: Request,
    class_id: UUID,
    student_id: UUID,
    session_id: Annotated[
        UUID | None, Query(description="Academic session; defaults to the current one")
    ] = None,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> ClassAssignmentResponse:
    """Deactivate the student's assignment to this class.

    Returns:
        The deactivated assignment.

    Raises:
        HTTPException: 404 if the student is not active in the class.
    """
    logger.info(
        "Removing student %s from class %s by %s", student_id, class_id, current_user.id
    )

    service = _get_assignment_service(db)

    try:
        return await service.remove_student(school_id, class_id, student_id, session_id)
    except ClassAssignmentServiceError as e:
        raise class_assignment_error(e) from e


@router.get(
    "/{class_id}/subjects",
    response_model=ClassSubjectsResponse,
    summary="List class subjects",
)
async def list_class_subjects(
    class_id: UUID,
    current_user: CurrentUser = Depends(require_staff),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> ClassSubjectsResponse:
    """List the subjects linked to a class of the caller's school."""
    try:
        return await DirectoryService(db=db).get_class_subjects(school_id, class_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.post(
    "/{class_id}/subjects",
    response_model=ClassSubjectLinkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add subject to class",
)
@limiter.limit(MUTATION_LIMIT)
async def link_class_subject(
    request: Request,
    class_id: UUID,
    data: LinkSubjectRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> ClassSubjectLinkResponse:
    """Add a subject to a class."""
    try:
        return await RelationsService(db=db).link_class_subject(
            school_id, class_id, data.subject_id
        )
    except RelationsServiceError as e:
        raise relations_error(e) from e


@router.delete(
    "/{class_id}/subjects/{subject_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove subject from class",
)
@limiter.limit(MUTATION_LIMIT)
async def unlink_class_subject(
    request: Request,
    class_id: UUID,
    subject_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Remove a subject from a class."""
    try:
        await RelationsService(db=db).unlink_class_subject(school_id, class_id, subject_id)
    except RelationsServiceError as e:
        raise relations_error(e) from e
