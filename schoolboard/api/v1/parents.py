# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Parent API endpoints.

- GET / - List parents with their students
- POST / - Create a parent
- GET /{parent_id} - Get parent details
- PUT /{parent_id} - Update a parent
- DELETE /{parent_id} - Delete a parent
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolboard.api.dependencies import get_db, require_admin, require_school, require_staff
from schoolboard.api.middleware.auth import CurrentUser
from schoolboard.api.middleware.rate_limit import MUTATION_LIMIT, limiter
from schoolboard.api.v1.errors import people_error
from schoolboard.domains.directory import DirectoryService, RecordNotFoundError
from schoolboard.domains.people import PeopleService, PeopleServiceError
from schoolboard.models.directory import ParentListResponse, ParentResponse
from schoolboard.models.people import ParentCreateRequest, ParentUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_people_service(db: AsyncSession) -> PeopleService:
    return PeopleService(db=db)


@router.get("", response_model=ParentListResponse, summary="List parents")
async def list_parents(
    search: Annotated[str | None, Query(max_length=100)] = None,
    offset: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    current_user: CurrentUser = Depends(require_staff),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> ParentListResponse:
    """List parents with their linked students."""
    return await DirectoryService(db=db).list_parents(
        school_id, search=search, offset=offset, limit=limit
    )


@router.post(
    "",
    response_model=ParentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create parent",
)
@limiter.limit(MUTATION_LIMIT)
async def create_parent(
    request: Request,
    data: ParentCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> ParentResponse:
    """Create a parent in the caller's school.

    Raises:
        HTTPException: 409 if the email is in use.
    """
    logger.info("Creating parent %s %s by %s", data.first_name, data.last_name, current_user.id)

    try:
        return await _get_people_service(db).create_parent(school_id, data)
    except PeopleServiceError as e:
        raise people_error(e) from e


@router.get("/{parent_id}", response_model=ParentResponse, summary="Get parent")
async def get_parent(
    parent_id: UUID,
    current_user: CurrentUser = Depends(require_staff),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> ParentResponse:
    """Get a parent with linked students.

    Raises:
        HTTPException: 404 if the parent is not in the school.
    """
    try:
        return await DirectoryService(db=db).get_parent(school_id, parent_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.put("/{parent_id}", response_model=ParentResponse, summary="Update parent")
@limiter.limit(MUTATION_LIMIT)
async def update_parent(
    request: Request,
    parent_id: UUID,
    data: ParentUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> ParentResponse:
    try:
        return await _get_people_service(db).update_parent(school_id, parent_id, data)
    except PeopleServiceError as e:
        raise people_error(e) from e


@router.delete(
    "/{parent_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete parent",
)
@limiter.limit(MUTATION_LIMIT)
async def delete_parent(
    request: Request,
    parent_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a parent with their student links."""
    logger.info("Deleting parent %s by %s", parent_id, current_user.id)

    try:
        await _get_people_service(db).delete_parent(school_id, parent_id)
    except PeopleServiceError as e:
        raise people_error(e) from e
