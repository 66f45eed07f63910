# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class assignment service.

This module provides the ClassAssignmentService class for:
- Placing a student in a class for an academic session
- Reading a student's assignments
- Removing a student from a class
- Listing the roster of a class

A student has at most one active assignment per academic session.
Assigning a student who is already active in another class is refused
with ClassAssignmentConflictError unless ``force_reassign`` is set, in
which case the old row is deactivated and a new one created in the same
transaction. The partial unique index on
``(student_id, session_id) WHERE status = 'active'`` catches two writers
racing on the same student; the loser rolls back and resolves its
request again against the committed state.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from schoolboard.infrastructure.database.models import (
    AcademicSession,
    AssignmentStatus,
    Class,
    Student,
    StudentClassAssignment,
    TeacherClass,
)
from schoolboard.infrastructure.database.models.base import new_id
from schoolboard.models.class_assignment import (
    AssignClassRequest,
    AssignedClass,
    AssignedSession,
    ClassAssignmentOutcome,
    ClassAssignmentResponse,
    ClassAssignmentResult,
    ClassRosterEntry,
    ClassRosterResponse,
    StudentClassesResponse,
)
from schoolboard.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class ClassAssignmentServiceError(Exception):
    """Base exception for class assignment service errors."""

    pass


class StudentNotFoundError(ClassAssignmentServiceError):
    """Raised when the student is not in the caller's school."""

    pass


class ClassNotFoundError(ClassAssignmentServiceError):
    """Raised when the class does not exist."""

    pass


class SessionNotFoundError(ClassAssignmentServiceError):
    """Raised when the academic session does not exist."""

    pass


class NoCurrentSessionError(ClassAssignmentServiceError):
    """Raised when no session was given and the school has no current one."""

    pass


class ClassAccessDeniedError(ClassAssignmentServiceError):
    """Raised when the class is outside the caller's reach.

    Either it belongs to another school, or the caller is a teacher who
    is not linked to it.
    """

    pass


class SessionAccessDeniedError(ClassAssignmentServiceError):
    """Raised when the academic session belongs to another school."""

    pass


class AssignmentNotFoundError(ClassAssignmentServiceError):
    """Raised when the student has no active assignment in the class."""

    pass


class ConcurrentAssignmentError(ClassAssignmentServiceError):
    """Raised when a request keeps losing the race for the same student."""

    pass


class ClassAssignmentConflictError(ClassAssignmentServiceError):
    """Raised when the student is already active in another class.

    Attributes:
        current_class: The class the student currently belongs to.
        assignment_id: The active assignment row.
    """

    def __init__(self, message: str, current_class: AssignedClass, assignment_id: str) -> None:
        super().__init__(message)
        self.message = message
        self.current_class = current_class
        self.assignment_id = assignment_id


class ClassAssignmentService:
    """Service for student class assignments.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize class assignment service.

        Args:
            db: Async database session.
        """
        self.db = db

    async def assign_student(
        self,
        school_id: str,
        student_id: UUID | str,
        request: AssignClassRequest,
        teacher_id: str | None = None,
    ) -> ClassAssignmentResult:
        """Assign a student to a class for an academic session.

        Args:
            school_id: Caller's school.
            student_id: Student to assign.
            request: Target class and session, optional roll number and
                the force flag.
            teacher_id: When set, the caller is this teacher and may only
                assign to classes linked to them.

        Returns:
            Result with outcome created, unchanged or reassigned.

        Raises:
            StudentNotFoundError: If the student is not in the school.
            ClassNotFoundError: If the class does not exist.
            SessionNotFoundError: If the session does not exist.
            ClassAccessDeniedError: If the class belongs to another school
                or the teacher is not linked to it.
            SessionAccessDeniedError: If the session belongs to another school.
            ClassAssignmentConflictError: If the student is active in another
                class and force_reassign is not set.
            ConcurrentAssignmentError: If the request loses the race twice.
        """
        student_id = str(student_id)
        student_name = (await self._get_student(school_id, student_id)).full_name
        target = self._class_summary(await self._get_class(school_id, request.class_id))
        session = await self._get_session(school_id, request.session_id)
        session_summary = self._session_summary(session)

        if teacher_id is not None:
            await self._ensure_teacher_class(teacher_id, target.id)

        try:
            result = await self._resolve(
                student_id, student_name, request, target, session_summary
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning(
                "Concurrent class assignment, resolving again: student=%s, session=%s",
                student_id,
                request.session_id,
            )
            try:
                result = await self._resolve(
                    student_id, student_name, request, target, session_summary
                )
                await self.db.commit()
            except IntegrityError as e:
                await self.db.rollback()
                raise ConcurrentAssignmentError(
                    "Class assignment changed concurrently, please retry"
                ) from e

        logger.info(
            "Class assignment %s: student=%s, class=%s, session=%s",
            result.outcome.value,
            student_id,
            target.id,
            session_summary.id,
        )

        return result

    async def get_student_classes(
        self,
        school_id: str,
        student_id: UUID | str,
    ) -> StudentClassesResponse:
        """Get every class assignment of a student.

        Args:
            school_id: Caller's school.
            student_id: Student to read.

        Returns:
            Full history (newest first), the active assignments in the
            school's current session, and that session.

        Raises:
            StudentNotFoundError: If the student is not in the school.
        """
        student_id = str(student_id)
        await self._get_student(school_id, student_id)
        current_session = await self._get_current_session(school_id)

        result = await self.db.execute(
            select(StudentClassAssignment)
            .options(
                selectinload(StudentClassAssignment.class_),
                selectinload(StudentClassAssignment.session),
            )
            .where(StudentClassAssignment.student_id == student_id)
            .order_by(StudentClassAssignment.assigned_at.desc())
        )
        assignments = result.scalars().all()

        history = [self._to_response(a) for a in assignments]
        current: list[ClassAssignmentResponse] = []
        if current_session is not None:
            current = [
                item
                for item in history
                if item.session_id == current_session.id
                and item.status == AssignmentStatus.ACTIVE.value
            ]

        return StudentClassesResponse(
            student_id=student_id,
            current_session=(
                self._session_summary(current_session) if current_session else None
            ),
            current=current,
            history=history,
        )

    async def remove_student(
        self,
        school_id: str,
        class_id: UUID | str,
        student_id: UUID | str,
        session_id: UUID | str | None = None,
    ) -> ClassAssignmentResponse:
        """Remove a student from a class.

        The active row is marked inactive; nothing is deleted.

        Args:
            school_id: Caller's school.
            class_id: Class to remove the student from.
            student_id: Student to remove.
            session_id: Session to act on; the current session when omitted.

        Returns:
            The deactivated assignment.

        Raises:
            ClassNotFoundError: If the class does not exist.
            ClassAccessDeniedError: If the class belongs to another school.
            SessionNotFoundError: If the given session does not exist.
            SessionAccessDeniedError: If it belongs to another school.
            NoCurrentSessionError: If no session was given and there is no
                current one.
            AssignmentNotFoundError: If the student is not active in the class.
        """
        class_ = await self._get_class(school_id, class_id)
        session = await self._resolve_session(school_id, session_id)

        result = await self.db.execute(
            select(StudentClassAssignment)
            .options(
                selectinload(StudentClassAssignment.class_),
                selectinload(StudentClassAssignment.session),
            )
            .where(
                StudentClassAssignment.student_id == str(student_id),
                StudentClassAssignment.class_id == class_.id,
                StudentClassAssignment.session_id == session.id,
                StudentClassAssignment.status == AssignmentStatus.ACTIVE.value,
            )
        )
        assignment = result.scalar_one_or_none()
        if assignment is None:
            raise AssignmentNotFoundError("Student is not assigned to this class")

        assignment.status = AssignmentStatus.INACTIVE.value
        assignment.ended_at = utc_now()
        response = self._to_response(assignment)

        await self.db.commit()

        logger.info(
            "Removed student from class: student=%s, class=%s, session=%s",
            student_id,
            class_.id,
            session.id,
        )

        return response

    async def list_class_roster(
        self,
        school_id: str,
        class_id: UUID | str,
        session_id: UUID | str | None = None,
    ) -> ClassRosterResponse:
        """List students actively assigned to a class.

        Args:
            school_id: Caller's school.
            class_id: Class to list.
            session_id: Session to list; the current session when omitted.

        Returns:
            Roster ordered by student name.

        Raises:
            ClassNotFoundError: If the class does not exist.
            ClassAccessDeniedError: If the class belongs to another school.
            SessionNotFoundError: If the given session does not exist.
            SessionAccessDeniedError: If it belongs to another school.
            NoCurrentSessionError: If no session was given and there is no
                current one.
        """
        class_ = await self._get_class(school_id, class_id)
        session = await self._resolve_session(school_id, session_id)

        result = await self.db.execute(
            select(StudentClassAssignment, Student)
            .join(Student, Student.id == StudentClassAssignment.student_id)
            .where(
                StudentClassAssignment.class_id == class_.id,
                StudentClassAssignment.session_id == session.id,
                StudentClassAssignment.status == AssignmentStatus.ACTIVE.value,
            )
            .order_by(Student.last_name, Student.first_name)
        )

        items = [
            ClassRosterEntry(
                assignment_id=str(assignment.id),
                student_id=str(student.id),
                first_name=student.first_name,
                last_name=student.last_name,
                full_name=student.full_name,
                admission_number=student.admission_number,
                roll_number=assignment.roll_number,
                assigned_at=assignment.assigned_at,
            )
            for assignment, student in result.all()
        ]

        return ClassRosterResponse(
            class_id=str(class_.id),
            session_id=str(session.id),
            items=items,
            total=len(items),
        )

    # =========================================================================
    # Resolution
    # =========================================================================

    async def _resolve(
        self,
        student_id: str,
        student_name: str,
        request: AssignClassRequest,
        target: AssignedClass,
        session: AssignedSession,
    ) -> ClassAssignmentResult:
        """Apply the request against the student's active row, if any.

        Writes are flushed but not committed so that a unique index
        violation surfaces here.
        """
        existing = await self._get_active_assignment(student_id, session.id)

        if existing is None:
            assignment = self._new_assignment(student_id, target.id, session.id, request)
            self.db.add(assignment)
            await self.db.flush()
            return ClassAssignmentResult(
                outcome=ClassAssignmentOutcome.CREATED,
                message=f"{student_name} assigned to {target.display_name}",
                assignment=self._to_response(assignment, target, session),
            )

        if str(existing.class_id) == target.id:
            if request.roll_number is not None and request.roll_number != existing.roll_number:
                existing.roll_number = request.roll_number
                await self.db.flush()
            return ClassAssignmentResult(
                outcome=ClassAssignmentOutcome.UNCHANGED,
                message=f"{student_name} is already in {target.display_name} for this session",
                assignment=self._to_response(existing, target, session),
            )

        current = self._class_summary(existing.class_)
        if not request.force_reassign:
            raise ClassAssignmentConflictError(
                f"{student_name} is already in {current.display_name} for this session",
                current_class=current,
                assignment_id=str(existing.id),
            )

        existing.status = AssignmentStatus.INACTIVE.value
        existing.ended_at = utc_now()
        await self.db.flush()

        assignment = self._new_assignment(student_id, target.id, session.id, request)
        self.db.add(assignment)
        await self.db.flush()

        return ClassAssignmentResult(
            outcome=ClassAssignmentOutcome.REASSIGNED,
            message=f"{student_name} moved from {current.display_name} to {target.display_name}",
            assignment=self._to_response(assignment, target, session),
        )

    def _new_assignment(
        self,
        student_id: str,
        class_id: str,
        session_id: str,
        request: AssignClassRequest,
    ) -> StudentClassAssignment:
        return StudentClassAssignment(
            id=new_id(),
            student_id=student_id,
            class_id=class_id,
            session_id=session_id,
            roll_number=request.roll_number,
            status=AssignmentStatus.ACTIVE.value,
            assigned_at=utc_now(),
        )

    # =========================================================================
    # Lookups
    # =========================================================================

    async def _get_student(self, school_id: str, student_id: str) -> Student:
        result = await self.db.execute(
            select(Student).where(
                Student.id == student_id,
                Student.school_id == school_id,
            )
        )
        student = result.scalar_one_or_none()
        if student is None:
            raise StudentNotFoundError(f"Student {student_id} not found")
        return student

    async def _get_class(self, school_id: str, class_id: UUID | str) -> Class:
        result = await self.db.execute(select(Class).where(Class.id == str(class_id)))
        class_ = result.scalar_one_or_none()
        if class_ is None:
            raise ClassNotFoundError(f"Class {class_id} not found")
        if class_.school_id != school_id:
            raise ClassAccessDeniedError("Class belongs to another school")
        return class_

    async def _get_session(self, school_id: str, session_id: UUID | str) -> AcademicSession:
        result = await self.db.execute(
            select(AcademicSession).where(AcademicSession.id == str(session_id))
        )
        session = result.scalar_one_or_none()
        if session is None:
            raise SessionNotFoundError(f"Academic session {session_id} not found")
        if session.school_id != school_id:
            raise SessionAccessDeniedError("Academic session belongs to another school")
        return session

    async def _get_current_session(self, school_id: str) -> AcademicSession | None:
        result = await self.db.execute(
            select(AcademicSession).where(
                AcademicSession.school_id == school_id,
                AcademicSession.is_current.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def _resolve_session(
        self,
        school_id: str,
        session_id: UUID | str | None,
    ) -> AcademicSession:
        if session_id is not None:
            return await self._get_session(school_id, session_id)
        session = await self._get_current_session(school_id)
        if session is None:
            raise NoCurrentSessionError("School has no current academic session")
        return session

    async def _ensure_teacher_class(self, teacher_id: str, class_id: str) -> None:
        result = await self.db.execute(
            select(TeacherClass).where(
                TeacherClass.teacher_id == teacher_id,
                TeacherClass.class_id == class_id,
            )
        )
        if result.scalar_one_or_none() is None:
            raise ClassAccessDeniedError("Teachers can only assign students to their own classes")

    async def _get_active_assignment(
        self,
        student_id: str,
        session_id: str,
    ) -> StudentClassAssignment | None:
        result = await self.db.execute(
            select(StudentClassAssignment)
            .options(selectinload(StudentClassAssignment.class_))
            .where(
                StudentClassAssignment.student_id == student_id,
                StudentClassAssignment.session_id == session_id,
                StudentClassAssignment.status == AssignmentStatus.ACTIVE.value,
            )
        )
        return result.scalar_one_or_none()

    # =========================================================================
    # Converters
    # =========================================================================

    @staticmethod
    def _class_summary(class_: Class) -> AssignedClass:
        return AssignedClass(
            id=str(class_.id),
            name=class_.name,
            section=class_.section,
            display_name=class_.display_name,
        )

    @staticmethod
    def _session_summary(session: AcademicSession) -> AssignedSession:
        return AssignedSession(
            id=str(session.id),
            name=session.name,
            is_current=session.is_current,
        )

    def _to_response(
        self,
        assignment: StudentClassAssignment,
        class_summary: AssignedClass | None = None,
        session_summary: AssignedSession | None = None,
    ) -> ClassAssignmentResponse:
        """Convert an assignment row to its response DTO.

        Summaries default to the loaded class_ and session relationships.
        """
        if class_summary is None:
            class_summary = self._class_summary(assignment.class_)
        if session_summary is None:
            session_summary = self._session_summary(assignment.session)

        return ClassAssignmentResponse(
            id=str(assignment.id),
            student_id=str(assignment.student_id),
            class_id=str(assignment.class_id),
            session_id=str(assignment.session_id),
            roll_number=assignment.roll_number,
            status=assignment.status,
            assigned_at=assignment.assigned_at,
            ended_at=assignment.ended_at,
            assigned_class=class_summary,
            session=session_summary,
        )
