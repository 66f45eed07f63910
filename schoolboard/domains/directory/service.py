# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Directory service for school-scoped listings.

This module provides the DirectoryService class for:
- Listing and reading students with current class and parents
- Listing and reading teachers with subjects and classes
- Listing and reading parents with their students
- Listing and reading subjects with teachers and classes
- Listing and reading classes with level, subjects, teachers and student counts

"Current class" and "student count" are always relative to the school's
current academic session, looked up on each call.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from schoolboard.infrastructure.database.models import (
    AcademicSession,
    AssignmentStatus,
    Class,
    ClassSubject,
    Parent,
    Student,
    StudentClassAssignment,
    StudentParent,
    Subject,
    Teacher,
    TeacherClass,
    TeacherSubject,
)
from schoolboard.models.common import ClassSummary, PersonSummary, SubjectSummary
from schoolboard.models.directory import (
    ClassListResponse,
    ClassResponse,
    ClassSubjectsResponse,
    ParentListResponse,
    ParentResponse,
    StudentListResponse,
    StudentResponse,
    SubjectListResponse,
    SubjectResponse,
    TeacherListResponse,
    TeacherResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


class DirectoryServiceError(Exception):
    """Base exception for directory service errors."""

    pass


class RecordNotFoundError(DirectoryServiceError):
    """Raised when a record is not found in the caller's school."""

    pass


class DirectoryService:
    """Read-only service over the school's people, subjects and classes.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize directory service.

        Args:
            db: Async database session.
        """
        self.db = db

    # =========================================================================
    # Students
    # =========================================================================

    async def list_students(
        self,
        school_id: str,
        class_id: UUID | str | None = None,
        department_id: UUID | str | None = None,
        not_in_class: UUID | str | None = None,
        search: str | None = None,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> StudentListResponse:
        """List students of a school.

        Args:
            school_id: Caller's school.
            class_id: Only students active in this class this session.
            department_id: Only students of this department.
            not_in_class: Exclude students active in this class this session.
            search: Case-insensitive match on name, email or admission number.
            offset: Rows to skip.
            limit: Maximum rows to return.

        Returns:
            Page of students and the total matching count.
        """
        session_id = await self._get_current_session_id(school_id)

        query = select(Student).where(Student.school_id == school_id)
        if department_id:
            query = query.where(Student.department_id == str(department_id))
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.where(
                or_(
                    Student.first_name.ilike(pattern),
                    Student.last_name.ilike(pattern),
                    Student.email.ilike(pattern),
                    Student.admission_number.ilike(pattern),
                )
            )
        if class_id:
            if session_id is None:
                return StudentListResponse(items=[], total=0)
            query = query.where(Student.id.in_(self._active_in_class(class_id, session_id)))
        if not_in_class and session_id is not None:
            query = query.where(
                Student.id.not_in(self._active_in_class(not_in_class, session_id))
            )

        total = await self._count(query)

        result = await self.db.execute(
            query.options(
                selectinload(Student.department),
                selectinload(Student.parent_links).selectinload(StudentParent.parent),
            )
            .order_by(Student.last_name, Student.first_name)
            .offset(offset)
            .limit(limit)
        )
        students = result.scalars().all()

        current_classes = await self._current_classes(
            [str(s.id) for s in students], session_id
        )

        return StudentListResponse(
            items=[self._student_response(s, current_classes.get(str(s.id))) for s in students],
            total=total,
        )

    async def get_student(self, school_id: str, student_id: UUID | str) -> StudentResponse:
        """Get a single student.

        Raises:
            RecordNotFoundError: If the student is not in the school.
        """
        result = await self.db.execute(
            select(Student)
            .options(
                selectinload(Student.department),
                selectinload(Student.parent_links).selectinload(StudentParent.parent),
            )
            .where(Student.id == str(student_id), Student.school_id == school_id)
        )
        student = result.scalar_one_or_none()
        if student is None:
            raise RecordNotFoundError(f"Student {student_id} not found")

        session_id = await self._get_current_session_id(school_id)
        current_classes = await self._current_classes([str(student.id)], session_id)

        return self._student_response(student, current_classes.get(str(student.id)))

    # =========================================================================
    # Teachers
    # =========================================================================

    async def list_teachers(
        self,
        school_id: str,
        search: str | None = None,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> TeacherListResponse:
        """List teachers of a school with their subjects and classes."""
        query = select(Teacher).where(Teacher.school_id == school_id)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.where(
                or_(
                    Teacher.first_name.ilike(pattern),
                    Teacher.last_name.ilike(pattern),
                    Teacher.email.ilike(pattern),
                    Teacher.employee_number.ilike(pattern),
                )
            )

        total = await self._count(query)

        result = await self.db.execute(
            self._with_teacher_links(query)
            .order_by(Teacher.last_name, Teacher.first_name)
            .offset(offset)
            .limit(limit)
        )
        teachers = result.scalars().all()

        return TeacherListResponse(
            items=[self._teacher_response(t) for t in teachers],
            total=total,
        )

    async def get_teacher(self, school_id: str, teacher_id: UUID | str) -> TeacherResponse:
        """Get a single teacher.

        Raises:
            RecordNotFoundError: If the teacher is not in the school.
        """
        result = await self.db.execute(
            self._with_teacher_links(select(Teacher)).where(
                Teacher.id == str(teacher_id), Teacher.school_id == school_id
            )
        )
        teacher = result.scalar_one_or_none()
        if teacher is None:
            raise RecordNotFoundError(f"Teacher {teacher_id} not found")
        return self._teacher_response(teacher)

    # =========================================================================
    # Parents
    # =========================================================================

    async def list_parents(
        self,
        school_id: str,
        search: str | None = None,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> ParentListResponse:
        """List parents of a school with their linked students."""
        query = select(Parent).where(Parent.school_id == school_id)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.where(
                or_(
                    Parent.first_name.ilike(pattern),
                    Parent.last_name.ilike(pattern),
                    Parent.email.ilike(pattern),
                    Parent.phone.ilike(pattern),
                )
            )

        total = await self._count(query)

        result = await self.db.execute(
            query.options(selectinload(Parent.student_links).selectinload(StudentParent.student))
            .order_by(Parent.last_name, Parent.first_name)
            .offset(offset)
            .limit(limit)
        )
        parents = result.scalars().all()

        return ParentListResponse(
            items=[self._parent_response(p) for p in parents],
            total=total,
        )

    async def get_parent(self, school_id: str, parent_id: UUID | str) -> ParentResponse:
        """Get a single parent.

        Raises:
            RecordNotFoundError: If the parent is not in the school.
        """
        result = await self.db.execute(
            select(Parent)
            .options(selectinload(Parent.student_links).selectinload(StudentParent.student))
            .where(Parent.id == str(parent_id), Parent.school_id == school_id)
        )
        parent = result.scalar_one_or_none()
        if parent is None:
            raise RecordNotFoundError(f"Parent {parent_id} not found")
        return self._parent_response(parent)

    # =========================================================================
    # Subjects and classes
    # =========================================================================

    async def list_subjects(
        self,
        school_id: str,
        search: str | None = None,
        department_id: UUID | str | None = None,
    ) -> SubjectListResponse:
        """List subjects of a school with their teachers and classes."""
        query = select(Subject).where(Subject.school_id == school_id)
        if department_id:
            query = query.where(Subject.department_id == str(department_id))
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.where(or_(Subject.name.ilike(pattern), Subject.code.ilike(pattern)))

        result = await self.db.execute(self._with_subject_links(query).order_by(Subject.name))
        subjects = result.scalars().all()

        items = [self._subject_response(s) for s in subjects]
        return SubjectListResponse(items=items, total=len(items))

    async def get_subject(self, school_id: str, subject_id: UUID | str) -> SubjectResponse:
        """Get a single subject.

        Raises:
            RecordNotFoundError: If the subject is not in the school.
        """
        result = await self.db.execute(
            self._with_subject_links(select(Subject)).where(
                Subject.id == str(subject_id), Subject.school_id == school_id
            )
        )
        subject = result.scalar_one_or_none()
        if subject is None:
            raise RecordNotFoundError(f"Subject {subject_id} not found")
        return self._subject_response(subject)

    async def list_classes(self, school_id: str) -> ClassListResponse:
        """List classes of a school.

        Student counts are active assignments in the current session;
        every count is zero when the school has no current session.
        """
        result = await self.db.execute(
            self._with_class_links(select(Class))
            .where(Class.school_id == school_id)
            .order_by(Class.name, Class.section)
        )
        classes = result.scalars().all()

        counts = await self._student_counts(school_id, [str(c.id) for c in classes])

        items = [self._class_response(c, counts.get(str(c.id), 0)) for c in classes]
        return ClassListResponse(items=items, total=len(items))

    async def get_class(self, school_id: str, class_id: UUID | str) -> ClassResponse:
        """Get a single class with its current student count.

        Raises:
            RecordNotFoundError: If the class is not in the school.
        """
        result = await self.db.execute(
            self._with_class_links(select(Class)).where(
                Class.id == str(class_id), Class.school_id == school_id
            )
        )
        class_ = result.scalar_one_or_none()
        if class_ is None:
            raise RecordNotFoundError(f"Class {class_id} not found")

        counts = await self._student_counts(school_id, [str(class_.id)])
        return self._class_response(class_, counts.get(str(class_.id), 0))

    async def get_class_subjects(
        self, school_id: str, class_id: UUID | str
    ) -> ClassSubjectsResponse:
        """List the subjects linked to a class.

        Raises:
            RecordNotFoundError: If the class is not in the school.
        """
        result = await self.db.execute(
            select(Class)
            .options(selectinload(Class.subject_links).selectinload(ClassSubject.subject))
            .where(Class.id == str(class_id), Class.school_id == school_id)
        )
        class_ = result.scalar_one_or_none()
        if class_ is None:
            raise RecordNotFoundError(f"Class {class_id} not found")

        items = sorted(
            (self._subject_summary(link.subject) for link in class_.subject_links),
            key=lambda s: s.name,
        )
        return ClassSubjectsResponse(class_id=str(class_.id), items=items, total=len(items))

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get_current_session_id(self, school_id: str) -> str | None:
        result = await self.db.execute(
            select(AcademicSession.id).where(
                AcademicSession.school_id == school_id,
                AcademicSession.is_current.is_(True),
            )
        )
        session_id = result.scalar_one_or_none()
        return str(session_id) if session_id else None

    async def _count(self, query: Select) -> int:
        result = await self.db.execute(select(func.count()).select_from(query.subquery()))
        return result.scalar() or 0

    @staticmethod
    def _active_in_class(class_id: UUID | str, session_id: str) -> Select:
        return select(StudentClassAssignment.student_id).where(
            StudentClassAssignment.class_id == str(class_id),
            StudentClassAssignment.session_id == session_id,
            StudentClassAssignment.status == AssignmentStatus.ACTIVE.value,
        )

    async def _current_classes(
        self,
        student_ids: list[str],
        session_id: str | None,
    ) -> dict[str, ClassSummary]:
        """Map student id to the class they are active in this session."""
        if session_id is None or not student_ids:
            return {}

        result = await self.db.execute(
            select(StudentClassAssignment)
            .options(selectinload(StudentClassAssignment.class_))
            .where(
                StudentClassAssignment.student_id.in_(student_ids),
                StudentClassAssignment.session_id == session_id,
                StudentClassAssignment.status == AssignmentStatus.ACTIVE.value,
            )
        )
        return {
            str(a.student_id): self._class_summary(a.class_) for a in result.scalars().all()
        }

    async def _student_counts(self, school_id: str, class_ids: list[str]) -> dict[str, int]:
        """Active assignments per class in the current session."""
        session_id = await self._get_current_session_id(school_id)
        if session_id is None or not class_ids:
            return {}

        result = await self.db.execute(
            select(StudentClassAssignment.class_id, func.count())
            .where(
                StudentClassAssignment.session_id == session_id,
                StudentClassAssignment.status == AssignmentStatus.ACTIVE.value,
                StudentClassAssignment.class_id.in_(class_ids),
            )
            .group_by(StudentClassAssignment.class_id)
        )
        return {str(class_id): count for class_id, count in result.all()}

    @staticmethod
    def _with_subject_links(query: Select) -> Select:
        return query.options(
            selectinload(Subject.department),
            selectinload(Subject.teacher_links).selectinload(TeacherSubject.teacher),
            selectinload(Subject.class_links).selectinload(ClassSubject.class_),
        )

    @staticmethod
    def _with_class_links(query: Select) -> Select:
        return query.options(
            selectinload(Class.level),
            selectinload(Class.subject_links).selectinload(ClassSubject.subject),
            selectinload(Class.teacher_links).selectinload(TeacherClass.teacher),
        )

    @staticmethod
    def _with_teacher_links(query: Select) -> Select:
        return query.options(
            selectinload(Teacher.subject_links).selectinload(TeacherSubject.subject),
            selectinload(Teacher.class_links).selectinload(TeacherClass.class_),
        )

    @staticmethod
    def _person(person: Student | Teacher | Parent) -> PersonSummary:
        return PersonSummary(
            id=str(person.id),
            first_name=person.first_name,
            last_name=person.last_name,
            full_name=person.full_name,
            email=person.email,
        )

    @staticmethod
    def _class_summary(class_: Class) -> ClassSummary:
        return ClassSummary(
            id=str(class_.id),
            name=class_.name,
            section=class_.section,
            display_name=class_.display_name,
        )

    @staticmethod
    def _subject_summary(subject: Subject) -> SubjectSummary:
        return SubjectSummary(id=str(subject.id), name=subject.name, code=subject.code)

    def _student_response(
        self,
        student: Student,
        current_class: ClassSummary | None,
    ) -> StudentResponse:
        return StudentResponse(
            id=str(student.id),
            first_name=student.first_name,
            last_name=student.last_name,
            full_name=student.full_name,
            email=student.email,
            admission_number=student.admission_number,
            department_id=str(student.department_id) if student.department_id else None,
            department_name=student.department.name if student.department else None,
            is_active=student.is_active,
            current_class=current_class,
            parents=[self._person(link.parent) for link in student.parent_links],
        )

    def _teacher_response(self, teacher: Teacher) -> TeacherResponse:
        return TeacherResponse(
            id=str(teacher.id),
            first_name=teacher.first_name,
            last_name=teacher.last_name,
            full_name=teacher.full_name,
            email=teacher.email,
            employee_number=teacher.employee_number,
            department_id=str(teacher.department_id) if teacher.department_id else None,
            is_active=teacher.is_active,
            subjects=[self._subject_summary(link.subject) for link in teacher.subject_links],
            classes=[self._class_summary(link.class_) for link in teacher.class_links],
        )

    def _subject_response(self, subject: Subject) -> SubjectResponse:
        return SubjectResponse(
            id=str(subject.id),
            name=subject.name,
            code=subject.code,
            department_id=str(subject.department_id) if subject.department_id else None,
            department_name=subject.department.name if subject.department else None,
            level_id=str(subject.level_id) if subject.level_id else None,
            teachers=[self._person(link.teacher) for link in subject.teacher_links],
            classes=[self._class_summary(link.class_) for link in subject.class_links],
        )

    def _class_response(self, class_: Class, student_count: int) -> ClassResponse:
        return ClassResponse(
            id=str(class_.id),
            name=class_.name,
            section=class_.section,
            display_name=class_.display_name,
            capacity=class_.capacity,
            level_id=str(class_.level_id) if class_.level_id else None,
            level_name=class_.level.name if class_.level else None,
            subjects=[self._subject_summary(link.subject) for link in class_.subject_links],
            teachers=[self._person(link.teacher) for link in class_.teacher_links],
            student_count=student_count,
        )

    def _parent_response(self, parent: Parent) -> ParentResponse:
        return ParentResponse(
            id=str(parent.id),
            first_name=parent.first_name,
            last_name=parent.last_name,
            full_name=parent.full_name,
            email=parent.email,
            phone=parent.phone,
            students=[self._person(link.student) for link in parent.student_links],
        )
