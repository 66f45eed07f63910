# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""People service for student, teacher and parent records.

This module provides the PeopleService class for:
- Student create, update and delete
- Assigning a student without a department to one
- Teacher create, update and delete
- Parent create, update and delete

Every record belongs to the caller's school. Emails are unique per table
within a school, compared case-insensitively. Written records are returned
in their directory shape, see DirectoryService.
"""

from __future__ import annotations

import logging
from typing import TypeVar
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolboard.domains.directory import DirectoryService
from schoolboard.infrastructure.database.models import Department, Parent, Student, Teacher
from schoolboard.infrastructure.database.models.base import new_id
from schoolboard.models.directory import ParentResponse, StudentResponse, TeacherResponse
from schoolboard.models.people import (
    AssignDepartmentRequest,
    ParentCreateRequest,
    ParentUpdateRequest,
    StudentCreateRequest,
    StudentUpdateRequest,
    TeacherCreateRequest,
    TeacherUpdateRequest,
)

logger = logging.getLogger(__name__)

Person = TypeVar("Person", Student, Teacher, Parent)


class PeopleServiceError(Exception):
    """Base exception for people service errors."""

    pass


class PersonNotFoundError(PeopleServiceError):
    """Raised when a student, teacher or parent does not exist."""

    pass


class PersonAccessDeniedError(PeopleServiceError):
    """Raised when the record belongs to another school."""

    pass


class DepartmentNotFoundError(PeopleServiceError):
    """Raised when a referenced department is not in the caller's school."""

    pass


class EmailInUseError(PeopleServiceError):
    """Raised when another record of the school already uses the email."""

    pass


class DepartmentAlreadyAssignedError(PeopleServiceError):
    """Raised when assigning a department to a student who has one."""

    pass


class PeopleService:
    """Service for people record mutations.

    Attributes:
        db: Async database session.
        directory: Renders written records the way listings do.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize people service.

        Args:
            db: Async database session.
        """
        self.db = db
        self.directory = DirectoryService(db=db)

    # =========================================================================
    # Students
    # =========================================================================

    async def create_student(
        self,
        school_id: str,
        request: StudentCreateRequest,
    ) -> StudentResponse:
        """Create a student in the caller's school.

        Args:
            school_id: Caller's school.
            request: Student data.

        Returns:
            Created student.

        Raises:
            DepartmentNotFoundError: If the department is not in the school.
            EmailInUseError: If another student of the school has the email.
        """
        department_id = await self._check_department(school_id, request.department_id)
        await self._check_email_free(Student, school_id, request.email)

        student = Student(
            id=new_id(),
            school_id=school_id,
            first_name=request.first_name,
            last_name=request.last_name,
            email=request.email,
            admission_number=request.admission_number,
            department_id=department_id,
            is_active=True,
        )
        self.db.add(student)
        await self.db.commit()

        logger.info("Created student: %s (%s) school=%s", student.full_name, student.id, school_id)

        return await self.directory.get_student(school_id, student.id)

    async def update_student(
        self,
        school_id: str,
        student_id: UUID | str,
        request: StudentUpdateRequest,
    ) -> StudentResponse:
        """Update a student. Omitted fields are kept.

        Raises:
            PersonNotFoundError: If the student does not exist.
            PersonAccessDeniedError: If the student belongs to another school.
            DepartmentNotFoundError: If the department is not in the school.
            EmailInUseError: If another student of the school has the email.
        """
        student = await self._get_owned(Student, school_id, student_id, "Student")

        if request.email is not None:
            await self._check_email_free(Student, school_id, request.email, exclude_id=student.id)
            student.email = request.email
        if request.department_id is not None:
            student.department_id = await self._check_department(school_id, request.department_id)
        self._apply(student, request, ("first_name", "last_name", "admission_number", "is_active"))

        await self.db.commit()

        logger.info("Updated student: %s", student.id)

        return await self.directory.get_student(school_id, student.id)

    async def delete_student(self, school_id: str, student_id: UUID | str) -> None:
        """Delete a student with their parent links and class assignments.

        Raises:
            PersonNotFoundError: If the student does not exist.
            PersonAccessDeniedError: If the student belongs to another school.
        """
        student = await self._get_owned(Student, school_id, student_id, "Student")

        await self.db.delete(student)
        await self.db.commit()

        logger.info("Deleted student: %s school=%s", student_id, school_id)

    async def assign_department(
        self,
        school_id: str,
        student_id: UUID | str,
        request: AssignDepartmentRequest,
    ) -> StudentResponse:
        """Place a student who has no department into one.

        Raises:
            PersonNotFoundError: If the student does not exist.
            PersonAccessDeniedError: If the student belongs to another school.
            DepartmentAlreadyAssignedError: If the student has a department.
            DepartmentNotFoundError: If the department is not in the school.
        """
        student = await self._get_owned(Student, school_id, student_id, "Student")
        if student.department_id:
            raise DepartmentAlreadyAssignedError("Student is already assigned to a department")

        student.department_id = await self._check_department(school_id, request.department_id)
        await self.db.commit()

        logger.info(
            "Assigned student %s to department %s", student.id, student.department_id
        )

        return await self.directory.get_student(school_id, student.id)

    # =========================================================================
    # Teachers
    # =========================================================================

    async def create_teacher(
        self,
        school_id: str,
        request: TeacherCreateRequest,
    ) -> TeacherResponse:
        """Create a teacher in the caller's school.

        Raises:
            DepartmentNotFoundError: If the department is not in the school.
            EmailInUseError: If another teacher of the school has the email.
        """
        department_id = await self._check_department(school_id, request.department_id)
        await self._check_email_free(Teacher, school_id, request.email)

        teacher = Teacher(
            id=new_id(),
            school_id=school_id,
            first_name=request.first_name,
            last_name=request.last_name,
            email=request.email,
            employee_number=request.employee_number,
            department_id=department_id,
            is_active=True,
        )
        self.db.add(teacher)
        await self.db.commit()

        logger.info("Created teacher: %s (%s) school=%s", teacher.full_name, teacher.id, school_id)

        return await self.directory.get_teacher(school_id, teacher.id)

    async def update_teacher(
        self,
        school_id: str,
        teacher_id: UUID | str,
        request: TeacherUpdateRequest,
    ) -> TeacherResponse:
        """Update a teacher. Omitted fields are kept."""
        teacher = await self._get_owned(Teacher, school_id, teacher_id, "Teacher")

        if request.email is not None:
            await self._check_email_free(Teacher, school_id, request.email, exclude_id=teacher.id)
            teacher.email = request.email
        if request.department_id is not None:
            teacher.department_id = await self._check_department(school_id, request.department_id)
        self._apply(teacher, request, ("first_name", "last_name", "employee_number", "is_active"))

        await self.db.commit()

        logger.info("Updated teacher: %s", teacher.id)

        return await self.directory.get_teacher(school_id, teacher.id)

    async def delete_teacher(self, school_id: str, teacher_id: UUID | str) -> None:
        """Delete a teacher with their subject and class links."""
        teacher = await self._get_owned(Teacher, school_id, teacher_id, "Teacher")

        await self.db.delete(teacher)
        await self.db.commit()

        logger.info("Deleted teacher: %s school=%s", teacher_id, school_id)

    # =========================================================================
    # Parents
    # =========================================================================

    async def create_parent(
        self,
        school_id: str,
        request: ParentCreateRequest,
    ) -> ParentResponse:
        """Create a parent in the caller's school.

        Raises:
            EmailInUseError: If another parent of the school has the email.
        """
        await self._check_email_free(Parent, school_id, request.email)

        parent = Parent(
            id=new_id(),
            school_id=school_id,
            first_name=request.first_name,
            last_name=request.last_name,
            email=request.email,
            phone=request.phone,
        )
        self.db.add(parent)
        await self.db.commit()

        logger.info("Created parent: %s (%s) school=%s", parent.full_name, parent.id, school_id)

        return await self.directory.get_parent(school_id, parent.id)

    async def update_parent(
        self,
        school_id: str,
        parent_id: UUID | str,
        request: ParentUpdateRequest,
    ) -> ParentResponse:
        """Update a parent. Omitted fields are kept."""
        parent = await self._get_owned(Parent, school_id, parent_id, "Parent")

        if request.email is not None:
            await self._check_email_free(Parent, school_id, request.email, exclude_id=parent.id)
            parent.email = request.email
        self._apply(parent, request, ("first_name", "last_name", "phone"))

        await self.db.commit()

        logger.info("Updated parent: %s", parent.id)

        return await self.directory.get_parent(school_id, parent.id)

    async def delete_parent(self, school_id: str, parent_id: UUID | str) -> None:
        """Delete a parent with their student links."""
        parent = await self._get_owned(Parent, school_id, parent_id, "Parent")

        await self.db.delete(parent)
        await self.db.commit()

        logger.info("Deleted parent: %s school=%s", parent_id, school_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get_owned(
        self,
        model: type[Person],
        school_id: str,
        person_id: UUID | str,
        label: str,
    ) -> Person:
        result = await self.db.execute(select(model).where(model.id == str(person_id)))
        person = result.scalar_one_or_none()
        if person is None:
            raise PersonNotFoundError(f"{label} {person_id} not found")
        if person.school_id != school_id:
            raise PersonAccessDeniedError(f"{label} belongs to another school")
        return person

    async def _check_department(
        self,
        school_id: str,
        department_id: UUID | str | None,
    ) -> str | None:
        """Return the department id when it exists in the school."""
        if department_id is None:
            return None

        result = await self.db.execute(
            select(Department).where(
                Department.id == str(department_id),
                Department.school_id == school_id,
            )
        )
        department = result.scalar_one_or_none()
        if department is None:
            raise DepartmentNotFoundError(f"Department {department_id} not found")
        return department.id

    async def _check_email_free(
        self,
        model: type[Person],
        school_id: str,
        email: str | None,
        exclude_id: str | None = None,
    ) -> None:
        if not email:
            return

        query = select(model.id).where(
            model.school_id == school_id,
            func.lower(model.email) == email.lower(),
        )
        if exclude_id is not None:
            query = query.where(model.id != exclude_id)

        result = await self.db.execute(query.limit(1))
        if result.scalar_one_or_none() is not None:
            raise EmailInUseError(f"Email {email} is already in use")

    @staticmethod
    def _apply(entity: Person, request: object, fields: tuple[str, ...]) -> None:
        for field in fields:
            value = getattr(request, field)
            if value is not None:
                setattr(entity, field, value)
