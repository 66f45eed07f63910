# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School level API endpoints.

- GET / - List levels in display order
- POST / - Create a level
- PUT /{level_id} - Update a level
- DELETE /{level_id} - Delete an unused level
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolboard.api.dependencies import get_db, require_admin, require_school, require_staff
from schoolboard.api.middleware.auth import CurrentUser
from schoolboard.api.middleware.rate_limit import MUTATION_LIMIT, limiter
from schoolboard.api.v1.errors import structure_error
from schoolboard.domains.school_structure import (
    SchoolStructureService,
    SchoolStructureServiceError,
)
from schoolboard.models.school_structure import (
    SchoolLevelCreateRequest,
    SchoolLevelListResponse,
    SchoolLevelResponse,
    SchoolLevelUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_structure_service(db: AsyncSession) -> SchoolStructureService:
    return SchoolStructureService(db=db)


@router.get("", response_model=SchoolLevelListResponse, summary="List school levels")
async def list_levels(
    current_user: CurrentUser = Depends(require_staff),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> SchoolLevelListResponse:
    """List levels ordered by sort order, then name."""
    return await _get_structure_service(db).list_levels(school_id)


@router.post(
    "",
    response_model=SchoolLevelResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create school level",
)
@limiter.limit(MUTATION_LIMIT)
async def create_level(
    request: Request,
    data: SchoolLevelCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> SchoolLevelResponse:
    logger.info("Creating school level %s by %s", data.name, current_user.id)

    try:
        return await _get_structure_service(db).create_level(school_id, data)
    except SchoolStructureServiceError as e:
        raise structure_error(e) from e


@router.put("/{level_id}", response_model=SchoolLevelResponse, summary="Update school level")
@limiter.limit(MUTATION_LIMIT)
async def update_level(
    request: Request,
    level_id: UUID,
    data: SchoolLevelUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> SchoolLevelResponse:
    try:
        return await _get_structure_service(db).update_level(school_id, level_id, data)
    except SchoolStructureServiceError as e:
        raise structure_error(e) from e


@router.delete(
    "/{level_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete school level",
    description="Refused while classes or subjects reference the level.",
)
@limiter.limit(MUTATION_LIMIT)
async def delete_level(
    request: Request,
    level_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> None:
    logger.info("Deleting school level %s by %s", level_id, current_user.id)

    try:
        await _get_structure_service(db).delete_level(school_id, level_id)
    except SchoolStructureServiceError as e:
        raise structure_error(e) from e
