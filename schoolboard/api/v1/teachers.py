# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher API endpoints.

This module provides endpoints for teachers:
- GET / - List teachers with subjects and classes
- POST / - Create a teacher
- GET /{teacher_id} - Get teacher details
- PUT /{teacher_id} - Update a teacher
- DELETE /{teacher_id} - Delete a teacher
- PUT /{teacher_id}/subjects - Replace the teacher's subjects
- POST /{teacher_id}/subjects - Add a subject
- DELETE /{teacher_id}/subjects/{subject_id} - Remove a subject
- POST /{teacher_id}/classes - Link a class
- DELETE /{teacher_id}/classes/{class_id} - Unlink a class
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolboard.api.dependencies import (
    get_db,
    require_admin,
    require_school,
    require_staff,
)
from schoolboard.api.middleware.auth import CurrentUser
from schoolboard.api.middleware.rate_limit import MUTATION_LIMIT, limiter
from schoolboard.api.v1.errors import people_error, relations_error
from schoolboard.domains.directory import DirectoryService, RecordNotFoundError
from schoolboard.domains.people import PeopleService, PeopleServiceError
from schoolboard.domains.relations import RelationsService, RelationsServiceError
from schoolboard.models.directory import TeacherListResponse, TeacherResponse
from schoolboard.models.people import TeacherCreateRequest, TeacherUpdateRequest
from schoolboard.models.relations import (
    LinkSubjectRequest,
    LinkTeacherClassRequest,
    ReplaceTeacherSubjectsRequest,
    TeacherClassLinkResponse,
    TeacherSubjectLinkResponse,
    TeacherSubjectsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_people_service(db: AsyncSession) -> PeopleService:
    return PeopleService(db=db)


def _get_relations_service(db: AsyncSession) -> RelationsService:
    return RelationsService(db=db)


@router.get(
    "",
    response_model=TeacherListResponse,
    summary="List teachers",
)
async def list_teachers(
    search: Annotated[str | None, Query(max_length=100)] = None,
    offset: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    current_user: CurrentUser = Depends(require_staff),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> TeacherListResponse:
    """List teachers with their subjects and classes."""
    return await DirectoryService(db=db).list_teachers(
        school_id, search=search, offset=offset, limit=limit
    )


@router.get(
    "/{teacher_id}",
    response_model=TeacherResponse,
    summary="Get teacher",
)
async def get_teacher(
    teacher_id: UUID,
    current_user: CurrentUser = Depends(require_staff),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> TeacherResponse:
    """Get a teacher with subjects and classes.

    Raises:
        HTTPException: 404 if the teacher is not in the school.
    """
    try:
        return await DirectoryService(db=db).get_teacher(school_id, teacher_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.put(
    "/{teacher_id}/subjects",
    response_model=TeacherSubjectsResponse,
    summary="Replace teacher subjects",
    description="Swap the teacher's whole subject set. Every id is checked first.",
)
@limiter.limit(MUTATION_LIMIT)
async def replace_teacher_subjects(
    request: Request,
    teacher_id: UUID,
    data: ReplaceTeacherSubjectsRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> TeacherSubjectsResponse:
    """Replace a teacher's subjects.

    Args:
        request: HTTP request.
        teacher_id: Teacher identifier.
        data: New subject id set.
        current_user: Authenticated admin.
        school_id: Caller's school.
        db: Database session.

    Returns:
        The teacher's subjects after the swap.
    """
    logger.info(
        "Replacing subjects of teacher %s (%d ids) by %s",
        teacher_id,
        len(data.subject_ids),
        current_user.id,
    )

    try:
        return await _get_relations_service(db).replace_teacher_subjects(
            school_id, teacher_id, data.subject_ids
        )
    except RelationsServiceError as e:
        raise relations_error(e) from e


@router.post(
    "/{teacher_id}/subjects",
    response_model=TeacherSubjectLinkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add subject to teacher",
)
@limiter.limit(MUTATION_LIMIT)
async def link_teacher_subject(
    request: Request,
    teacher_id: UUID,
    data: LinkSubjectRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> TeacherSubjectLinkResponse:
    try:
        return await _get_relations_service(db).link_teacher_subject(
            school_id, teacher_id, data.subject_id
        )
    except RelationsServiceError as e:
        raise relations_error(e) from e


@router.delete(
    "/{teacher_id}/subjects/{subject_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove subject from teacher",
)
@limiter.limit(MUTATION_LIMIT)
async def unlink_teacher_subject(
    request: Request,
    teacher_id: UUID,
    subject_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> None:
    try:
        await _get_relations_service(db).unlink_teacher_subject(
            school_id, teacher_id, subject_id
        )
    except RelationsServiceError as e:
        raise relations_error(e) from e


@router.post(
    "/{teacher_id}/classes",
    response_model=TeacherClassLinkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Link teacher to class",
)
@limiter.limit(MUTATION_LIMIT)
async def link_teacher_class(
    request: Request,
    teacher_id: UUID,
    data: LinkTeacherClassRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> TeacherClassLinkResponse:
    """Link a teacher to a class, optionally as its class teacher.

    Raises:
        HTTPException: 404 unknown teacher or class, 403 other school,
            409 already linked.
    """
    try:
        return await _get_relations_service(db).link_teacher_class(school_id, teacher_id, data)
    except RelationsServiceError as e:
        raise relations_error(e) from e


@router.delete(
    "/{teacher_id}/classes/{class_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unlink teacher from class",
)
@limiter.limit(MUTATION_LIMIT)
async def unlink_teacher_class(
    request: Request,
    teacher_id: UUID,
    class_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> None:
    try:
        await _get_relations_service(db).unlink_teacher_class(school_id, teacher_id, class_id)
    except RelationsServiceError as e:
        raise relations_error(e) from e


@router.post(
    "",
    response_model=TeacherResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create teacher",
)
@limiter.limit(MUTATION_LIMIT)
async def create_teacher(
    request: Request,
    data: TeacherCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> TeacherResponse:
    """Create a teacher in the caller's school.

    Raises:
        HTTPException: 404 unknown department, 409 email in use.
    """
    logger.info("Creating teacher %s %s by %s", data.first_name, data.last_name, current_user.id)

    try:
        return await _get_people_service(db).create_teacher(school_id, data)
    except PeopleServiceError as e:
        raise people_error(e) from e


@router.put(
    "/{teacher_id}",
    response_model=TeacherResponse,
    summary="Update teacher",
)
@limiter.limit(MUTATION_LIMIT)
async def update_teacher(
    request: Request,
    teacher_id: UUID,
    data: TeacherUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> TeacherResponse:
    try:
        return await _get_people_service(db).update_teacher(school_id, teacher_id, data)
    except PeopleServiceError as e:
        raise people_error(e) from e


@router.delete(
    "/{teacher_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete teacher",
)
@limiter.limit(MUTATION_LIMIT)
async def delete_teacher(
    request: Request,
    teacher_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a teacher with their subject and class links."""
    logger.info("Deleting teacher %s by %s", teacher_id, current_user.id)

    try:
        await _get_people_service(db).delete_teacher(school_id, teacher_id)
    except PeopleServiceError as e:
        raise people_error(e) from e
