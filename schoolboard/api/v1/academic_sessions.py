# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic session management API endpoints.

This module provides endpoints for academic session management:
- POST / - Create a new academic session
- GET / - List academic sessions
- GET /current - Get the current academic session
- GET /{session_id} - Get academic session details
- PUT /{session_id} - Update academic session
- DELETE /{session_id} - Delete academic session
- POST /{session_id}/set-current - Make it the current session

Reads are open to any caller of the school; changes require an admin.
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolboard.api.dependencies import (
    get_db,
    require_admin,
    require_auth,
    require_school,
)
from schoolboard.api.middleware.auth import CurrentUser
from schoolboard.api.middleware.rate_limit import MUTATION_LIMIT, limiter
from schoolboard.domains.academic_session import (
    AcademicSessionAccessDeniedError,
    AcademicSessionInUseError,
    AcademicSessionNotFoundError,
    AcademicSessionService,
    AcademicSessionServiceError,
    InvalidSessionDatesError,
)
from schoolboard.models.academic_session import (
    AcademicSessionCreateRequest,
    AcademicSessionListResponse,
    AcademicSessionResponse,
    AcademicSessionUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> AcademicSessionService:
    """Get academic session service instance.

    Args:
        db: Database session.

    Returns:
        Configured AcademicSessionService instance.
    """
    return AcademicSessionService(db=db)


def _to_http_error(e: AcademicSessionServiceError) -> HTTPException:
    if isinstance(e, AcademicSessionNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, AcademicSessionAccessDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, InvalidSessionDatesError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, AcademicSessionInUseError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post(
    "",
    response_model=AcademicSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create academic session",
    description="Create a new academic session. Requires admin access.",
)
@limiter.limit(MUTATION_LIMIT)
async def create_academic_session(
    request: Request,
    data: AcademicSessionCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> AcademicSessionResponse:
    """Create a new academic session.

    Args:
        request: HTTP request.
        data: Academic session creation request.
        current_user: Authenticated admin.
        school_id: Caller's school.
        db: Database session.

    Returns:
        Created academic session.

    Raises:
        HTTPException: If the dates are out of order.
    """
    logger.info(
        "Creating academic session: %s (%s to %s) by %s",
        data.name,
        data.start_date,
        data.end_date,
        current_user.id,
    )

    service = _get_service(db)

    try:
        return await service.create_session(school_id, data)
    except AcademicSessionServiceError as e:
        raise _to_http_error(e) from e


@router.get(
    "",
    response_model=AcademicSessionListResponse,
    summary="List academic sessions",
    description="List the school's academic sessions, newest first.",
)
async def list_academic_sessions(
    is_current: Annotated[
        bool | None, Query(description="Filter on the current flag")
    ] = None,
    current_user: CurrentUser = Depends(require_auth),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> AcademicSessionListResponse:
    """List academic sessions.

    Args:
        is_current: Optional filter on the current flag.
        current_user: Authenticated user.
        school_id: Caller's school.
        db: Database session.

    Returns:
        List of academic sessions.
    """
    service = _get_service(db)

    items, total = await service.list_sessions(school_id, is_current=is_current)

    return AcademicSessionListResponse(items=items, total=total)


@router.get(
    "/current",
    response_model=AcademicSessionResponse,
    summary="Get current academic session",
)
async def get_current_academic_session(
    current_user: CurrentUser = Depends(require_auth),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> AcademicSessionResponse:
    """Get the school's current academic session.

    Raises:
        HTTPException: 404 if the school has no current session.
    """
    service = _get_service(db)

    session = await service.get_current_session(school_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No current academic session set",
        )
    return session


@router.get(
    "/{session_id}",
    response_model=AcademicSessionResponse,
    summary="Get academic session",
)
async def get_academic_session(
    session_id: UUID,
    current_user: CurrentUser = Depends(require_auth),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> AcademicSessionResponse:
    """Get academic session details.

    Args:
        session_id: Academic session identifier.
        current_user: Authenticated user.
        school_id: Caller's school.
        db: Database session.

    Returns:
        Academic session details.

    Raises:
        HTTPException: If not found or in another school.
    """
    service = _get_service(db)

    try:
        return await service.get_session(school_id, session_id)
    except AcademicSessionServiceError as e:
        raise _to_http_error(e) from e


@router.put(
    "/{session_id}",
    response_model=AcademicSessionResponse,
    summary="Update academic session",
    description="Update an academic session. Requires admin access.",
)
@limiter.limit(MUTATION_LIMIT)
async def update_academic_session(
    request: Request,
    session_id: UUID,
    data: AcademicSessionUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> AcademicSessionResponse:
    """Update an academic session.

    Args:
        request: HTTP request.
        session_id: Academic session identifier.
        data: Fields to update.
        current_user: Authenticated admin.
        school_id: Caller's school.
        db: Database session.

    Returns:
        Updated academic session.

    Raises:
        HTTPException: If not found, in another school, or dates invalid.
    """
    logger.info("Updating academic session %s by %s", session_id, current_user.id)

    service = _get_service(db)

    try:
        return await service.update_session(school_id, session_id, data)
    except AcademicSessionServiceError as e:
        raise _to_http_error(e) from e


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete academic session",
    description="Delete an academic session that has no class assignments.",
)
@limiter.limit(MUTATION_LIMIT)
async def delete_academic_session(
    request: Request,
    session_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete an academic session.

    Raises:
        HTTPException: 409 if class assignments reference the session.
    """
    logger.info("Deleting academic session %s by %s", session_id, current_user.id)

    service = _get_service(db)

    try:
        await service.delete_session(school_id, session_id)
    except AcademicSessionServiceError as e:
        raise _to_http_error(e) from e


@router.post(
    "/{session_id}/set-current",
    response_model=AcademicSessionResponse,
    summary="Set current academic session",
    description="Make this the school's current session. Requires admin access.",
)
@limiter.limit(MUTATION_LIMIT)
async def set_current_academic_session(
    request: Request,
    session_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    school_id: str = Depends(require_school),
    db: AsyncSession = Depends(get_db),
) -> AcademicSessionResponse:
    """Set an academic session as current.

    Args:
        request: HTTP request.
        session_id: Academic session identifier.
        current_user: Authenticated admin.
        school_id: Caller's school.
        db: Database session.

    Returns:
        The now-current academic session.
    """
    logger.info("Setting academic session %s as current by %s", session_id, current_user.id)

    service = _get_service(db)

    try:
        return await service.set_current_session(school_id, session_id)
    except AcademicSessionServiceError as e:
        raise _to_http_error(e) from e
