# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Department API endpoints.

- GET / - List departments with usage counts
- POST / - Create a department
- PUT /{department_id} - Rename a department
- DELETE /{department_id} - Delete an unused department
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
    DepartmentCreateRequest,
    DepartmentListResponse,
    DepartmentResponse,
    DepartmentUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_structure_service(db: AsyncSession) -> SchoolStructureService:
    return SchoolStructureService(db=db)


@router.get(
    "",
    response_model=DepartmentListResponse,
    summary="List departments",
)
async def list_departments(
    current_user: CurrentUser = Depends(require_staff),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> DepartmentListResponse:
    """List departments with the number of students, teachers and subjects in each."""
    return await _get_structure_service(db).list_departments(school_id)


@router.post(
    "",
    response_model=DepartmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create department",
)
@limiter.limit(MUTATION_LIMIT)
async def create_department(
    request: Request,
    data: DepartmentCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> DepartmentResponse:
    """Create a department.

    Raises:
        HTTPException: 409 if the name is taken.
    """
    logger.info("Creating department %s by %s", data.name, current_user.id)

    try:
        return await _get_structure_service(db).create_department(school_id, data)
    except SchoolStructureServiceError as e:
        raise structure_error(e) from e


@router.put(
    "/{department_id}",
    response_model=DepartmentResponse,
    summary="Update department",
)
@limiter.limit(MUTATION_LIMIT)
async def update_department(
    request: Request,
    department_id: UUID,
    data: DepartmentUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> DepartmentResponse:
    try:
        return await _get_structure_service(db).update_department(school_id, department_id, data)
    except SchoolStructureServiceError as e:
        raise structure_error(e) from e


@router.delete(
    "/{department_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete department",
    description="Refused while students, teachers or subjects reference the department.",
)
@limiter.limit(MUTATION_LIMIT)
async def delete_department(
    request: Request,
    department_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> None:
    logger.info("Deleting department %s by %s", department_id, current_user.id)

    try:
        await _get_structure_service(db).delete_department(school_id, department_id)
    except SchoolStructureServiceError as e:
        raise structure_error(e) from e
