# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subject API endpoints.

- GET / - List subjects with teachers and classes
- POST / - Create a subject
- GET /{subject_id} - Get subject details
- PUT /{subject_id} - Update a subject
- DELETE /{subject_id} - Delete a subject
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolboard.api.dependencies import get_db, require_admin, require_school, require_staff
from schoolboard.api.middleware.auth import CurrentUser
from schoolboard.api.middleware.rate_limit import MUTATION_LIMIT, limiter
from schoolboard.api.v1.errors import structure_error
from schoolboard.domains.directory import DirectoryService, RecordNotFoundError
from schoolboard.domains.school_structure import (
    SchoolStructureService,
    SchoolStructureServiceError,
)
from schoolboard.models.directory import SubjectListResponse, SubjectResponse
from schoolboard.models.school_structure import SubjectCreateRequest, SubjectUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_structure_service(db: AsyncSession) -> SchoolStructureService:
    return SchoolStructureService(db=db)


@router.get("", response_model=SubjectListResponse, summary="List subjects")
async def list_subjects(
    search: Annotated[str | None, Query(max_length=100)] = None,
    department_id: Annotated[UUID | None, Query()] = None,
    current_user: CurrentUser = Depends(require_staff),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> SubjectListResponse:
    """List subjects with their teachers and classes."""
    return await DirectoryService(db=db).list_subjects(
        school_id, search=search, department_id=department_id
    )


@router.post(
    "",
    response_model=SubjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create subject",
)
@limiter.limit(MUTATION_LIMIT)
async def create_subject(
    request: Request,
    data: SubjectCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> SubjectResponse:
    """Create a subject.

    Raises:
        HTTPException: 404 if the department or level is not in the school.
    """
    logger.info("Creating subject %s by %s", data.name, current_user.id)

    try:
        return await _get_structure_service(db).create_subject(school_id, data)
    except SchoolStructureServiceError as e:
        raise structure_error(e) from e


@router.get("/{subject_id}", response_model=SubjectResponse, summary="Get subject")
async def get_subject(
    subject_id: UUID,
    current_user: CurrentUser = Depends(require_staff),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> SubjectResponse:
    try:
        return await DirectoryService(db=db).get_subject(school_id, subject_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.put("/{subject_id}", response_model=SubjectResponse, summary="Update subject")
@limiter.limit(MUTATION_LIMIT)
async def update_subject(
    request: Request,
    subject_id: UUID,
    data: SubjectUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> SubjectResponse:
    try:
        return await _get_structure_service(db).update_subject(school_id, subject_id, data)
    except SchoolStructureServiceError as e:
        raise structure_error(e) from e


@router.delete(
    "/{subject_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete subject",
)
@limiter.limit(MUTATION_LIMIT)
async def delete_subject(
    request: Request,
    subject_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a subject with its teacher and class links."""
    logger.info("Deleting subject %s by %s", subject_id, current_user.id)

    try:
        await _get_structure_service(db).delete_subject(school_id, subject_id)
    except SchoolStructureServiceError as e:
        raise structure_error(e) from e
