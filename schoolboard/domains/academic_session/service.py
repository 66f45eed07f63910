# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic session service.

This module provides the AcademicSessionService class for:
- Academic session CRUD operations
- Setting the current session of a school
- Date validation

A school has at most one current session. Every method takes the
caller's school id explicitly; nothing about the current session is
cached between calls.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from schoolboard.infrastructure.database.models import (
    AcademicSession,
    StudentClassAssignment,
)
from schoolboard.models.academic_session import (
    AcademicSessionCreateRequest,
    AcademicSessionResponse,
    AcademicSessionUpdateRequest,
)

logger = logging.getLogger(__name__)


class AcademicSessionServiceError(Exception):
    """Base exception for academic session service errors."""

    pass


class AcademicSessionNotFoundError(AcademicSessionServiceError):
    """Raised when an academic session does not exist."""

    pass


class AcademicSessionAccessDeniedError(AcademicSessionServiceError):
    """Raised when the session belongs to another school."""

    pass


class InvalidSessionDatesError(AcademicSessionServiceError):
    """Raised when the end date is not after the start date."""

    pass


class AcademicSessionInUseError(AcademicSessionServiceError):
    """Raised when deleting a session that class assignments reference."""

    pass


class AcademicSessionService:
    """Service for managing academic sessions.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize academic session service.

        Args:
            db: Async database session.
        """
        self.db = db

    async def create_session(
        self,
        school_id: str,
        request: AcademicSessionCreateRequest,
    ) -> AcademicSessionResponse:
        """Create a new academic session.

        Args:
            school_id: Caller's school.
            request: Session creation data.

        Returns:
            Created academic session.

        Raises:
            InvalidSessionDatesError: If end_date is not after start_date.
        """
        if request.end_date <= request.start_date:
            raise InvalidSessionDatesError("End date must be after start date")

        if request.is_current:
            await self._unset_current(school_id)

        session = AcademicSession(
            school_id=school_id,
            name=request.name,
            start_date=request.start_date,
            end_date=request.end_date,
            is_current=request.is_current,
        )

        self.db.add(session)
        await self.db.commit()
        await self.db.refresh(session)

        logger.info(
            "Created academic session: %s (%s) school=%s current=%s",
            session.name,
            session.id,
            school_id,
            session.is_current,
        )

        return self._to_response(session)

    async def list_sessions(
        self,
        school_id: str,
        is_current: bool | None = None,
    ) -> tuple[list[AcademicSessionResponse], int]:
        """List academic sessions of a school, newest start date first.

        Args:
            school_id: Caller's school.
            is_current: Only current (True) or only non-current (False) sessions.

        Returns:
            Tuple of (sessions, total count).
        """
        query = select(AcademicSession).where(AcademicSession.school_id == school_id)
        if is_current is not None:
            query = query.where(AcademicSession.is_current.is_(is_current))
        query = query.order_by(AcademicSession.start_date.desc())

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        result = await self.db.execute(query)
        sessions = result.scalars().all()

        return [self._to_response(s) for s in sessions], total

    async def get_session(self, school_id: str, session_id: UUID | str) -> AcademicSessionResponse:
        """Get an academic session.

        Raises:
            AcademicSessionNotFoundError: If the session does not exist.
            AcademicSessionAccessDeniedError: If it belongs to another school.
        """
        session = await self._get_owned(school_id, session_id)
        return self._to_response(session)

    async def get_current_session(self, school_id: str) -> AcademicSessionResponse | None:
        """Get the current academic session of a school.

        Args:
            school_id: School to look up.

        Returns:
            The current session, or None when the school has none.
        """
        result = await self.db.execute(
            select(AcademicSession).where(
                AcademicSession.school_id == school_id,
                AcademicSession.is_current.is_(True),
            )
        )
        session = result.scalar_one_or_none()
        if session is None:
            return None
        return self._to_response(session)

    async def update_session(
        self,
        school_id: str,
        session_id: UUID | str,
        request: AcademicSessionUpdateRequest,
    ) -> AcademicSessionResponse:
        """Update an academic session.

        Args:
            school_id: Caller's school.
            session_id: Session to update.
            request: Fields to change.

        Returns:
            Updated academic session.

        Raises:
            AcademicSessionNotFoundError: If the session does not exist.
            AcademicSessionAccessDeniedError: If it belongs to another school.
            InvalidSessionDatesError: If the resulting dates are out of order.
        """
        session = await self._get_owned(school_id, session_id)

        new_start = request.start_date or session.start_date
        new_end = request.end_date or session.end_date
        if new_end <= new_start:
            raise InvalidSessionDatesError("End date must be after start date")

        if request.is_current:
            await self._unset_current(school_id, exclude_id=session.id)

        if request.name is not None:
            session.name = request.name
        if request.start_date is not None:
            session.start_date = request.start_date
        if request.end_date is not None:
            session.end_date = request.end_date
        if request.is_current is not None:
            session.is_current = request.is_current

        await self.db.commit()
        await self.db.refresh(session)

        logger.info("Updated academic session: %s school=%s", session.id, school_id)

        return self._to_response(session)

    async def set_current_session(
        self,
        school_id: str,
        session_id: UUID | str,
    ) -> AcademicSessionResponse:
        """Make a session the current one of its school.

        Raises:
            AcademicSessionNotFoundError: If the session does not exist.
            AcademicSessionAccessDeniedError: If it belongs to another school.
        """
        session = await self._get_owned(school_id, session_id)

        await self._unset_current(school_id, exclude_id=session.id)
        session.is_current = True

        await self.db.commit()
        await self.db.refresh(session)

        logger.info("Set academic session %s as current for school %s", session.id, school_id)

        return self._to_response(session)

    async def delete_session(self, school_id: str, session_id: UUID | str) -> None:
        """Delete an academic session.

        Raises:
            AcademicSessionNotFoundError: If the session does not exist.
            AcademicSessionAccessDeniedError: If it belongs to another school.
            AcademicSessionInUseError: If class assignments reference it.
        """
        session = await self._get_owned(school_id, session_id)

        count_result = await self.db.execute(
            select(func.count())
            .select_from(StudentClassAssignment)
            .where(StudentClassAssignment.session_id == session.id)
        )
        assignment_count = count_result.scalar() or 0
        if assignment_count > 0:
            raise AcademicSessionInUseError(
                f"Cannot delete academic session with {assignment_count} class assignments"
            )

        await self.db.delete(session)
        await self.db.commit()

        logger.info("Deleted academic session: %s school=%s", session_id, school_id)

    async def _get_owned(self, school_id: str, session_id: UUID | str) -> AcademicSession:
        result = await self.db.execute(
            select(AcademicSession).where(AcademicSession.id == str(session_id))
        )
        session = result.scalar_one_or_none()

        if session is None:
            raise AcademicSessionNotFoundError(f"Academic session {session_id} not found")
        if session.school_id != school_id:
            raise AcademicSessionAccessDeniedError(
                "Academic session belongs to another school"
            )

        return session

    async def _unset_current(self, school_id: str, exclude_id: str | None = None) -> None:
        """Clear the current flag on every other session of the school."""
        stmt = update(AcademicSession).where(
            AcademicSession.school_id == school_id,
            AcademicSession.is_current.is_(True),
        )
        if exclude_id is not None:
            stmt = stmt.where(AcademicSession.id != exclude_id)
        await self.db.execute(stmt.values(is_current=False))

    def _to_response(self, session: AcademicSession) -> AcademicSessionResponse:
        return AcademicSessionResponse(
            id=str(session.id),
            school_id=str(session.school_id),
            name=session.name,
            start_date=session.start_date,
            end_date=session.end_date,
            is_current=session.is_current,
            created_at=session.created_at,
        )
