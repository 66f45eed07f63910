# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School structure service for departments, levels, subjects and classes.

This module provides the SchoolStructureService class for:
- Department list, create, update and delete
- School level list, create, update and delete
- Subject create, update and delete
- Class create, update and delete

Departments and levels cannot be deleted while records reference them, and
a class cannot be deleted while students are active in it.
"""

from __future__ import annotations

import logging
from typing import TypeVar
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolboard.domains.directory import DirectoryService
from schoolboard.infrastructure.database.models import (
    AssignmentStatus,
    Class,
    Department,
    SchoolLevel,
    Student,
    StudentClassAssignment,
    Subject,
    Teacher,
    TeacherClass,
)
from schoolboard.infrastructure.database.models.base import new_id
from schoolboard.models.directory import ClassResponse, SubjectResponse
from schoolboard.models.school_structure import (
    ClassCreateRequest,
    ClassUpdateRequest,
    DepartmentCreateRequest,
    DepartmentListResponse,
    DepartmentResponse,
    DepartmentUpdateRequest,
    SchoolLevelCreateRequest,
    SchoolLevelListResponse,
    SchoolLevelResponse,
    SchoolLevelUpdateRequest,
    SubjectCreateRequest,
    SubjectUpdateRequest,
)
from schoolboard.utils.datetime import utc_now

logger = logging.getLogger(__name__)

Structure = TypeVar("Structure", Department, SchoolLevel, Subject, Class)


class SchoolStructureServiceError(Exception):
    """Base exception for school structure service errors."""

    pass


class StructureNotFoundError(SchoolStructureServiceError):
    """Raised when the department, level, subject or class does not exist."""

    pass


class StructureAccessDeniedError(SchoolStructureServiceError):
    """Raised when the record belongs to another school."""

    pass


class StructureExistsError(SchoolStructureServiceError):
    """Raised when a department or level name is already taken in the school."""

    pass


class StructureInUseError(SchoolStructureServiceError):
    """Raised when deleting a record that others still reference."""

    pass


class ReferenceNotFoundError(SchoolStructureServiceError):
    """Raised when a referenced level, department or teacher is not in the school."""

    pass


class SchoolStructureService:
    """Service for the school's departments, levels, subjects and classes.

    Attributes:
        db: Async database session.
        directory: Renders written subjects and classes the way listings do.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize school structure service.

        Args:
            db: Async database session.
        """
        self.db = db
        self.directory = DirectoryService(db=db)

    # =========================================================================
    # Departments
    # =========================================================================

    async def list_departments(self, school_id: str) -> DepartmentListResponse:
        """List departments with the students, teachers and subjects in each."""
        result = await self.db.execute(
            self._department_query().where(Department.school_id == school_id)
        )
        items = [self._department_response(*row) for row in result.all()]
        return DepartmentListResponse(items=items, total=len(items))

    async def create_department(
        self,
        school_id: str,
        request: DepartmentCreateRequest,
    ) -> DepartmentResponse:
        """Create a department.

        Raises:
            StructureExistsError: If the school has a department of that name.
        """
        await self._check_name_free(Department, school_id, request.name)

        department = Department(id=new_id(), school_id=school_id, name=request.name)
        self.db.add(department)
        await self.db.commit()
        await self.db.refresh(department)

        logger.info(
            "Created department: %s (%s) school=%s", department.name, department.id, school_id
        )

        return self._department_response(department, 0, 0, 0)

    async def update_department(
        self,
        school_id: str,
        department_id: UUID | str,
        request: DepartmentUpdateRequest,
    ) -> DepartmentResponse:
        """Rename a department.

        Raises:
            StructureNotFoundError: If the department does not exist.
            StructureAccessDeniedError: If it belongs to another school.
            StructureExistsError: If the new name is taken.
        """
        department = await self._get_owned(Department, school_id, department_id, "Department")

        if request.name is not None and request.name != department.name:
            await self._check_name_free(Department, school_id, request.name, department.id)
            department.name = request.name
            await self.db.commit()
            logger.info("Updated department: %s", department.id)

        return await self._get_department_response(department.id)

    async def delete_department(self, school_id: str, department_id: UUID | str) -> None:
        """Delete a department nobody references.

        Raises:
            StructureNotFoundError: If the department does not exist.
            StructureAccessDeniedError: If it belongs to another school.
            StructureInUseError: If students, teachers or subjects reference it.
        """
        department = await self._get_owned(Department, school_id, department_id, "Department")

        usage = await self._get_department_response(department.id)
        if usage.student_count or usage.teacher_count or usage.subject_count:
            raise StructureInUseError(
                "Cannot delete a department with associated students, teachers or subjects"
            )

        await self.db.delete(department)
        await self.db.commit()

        logger.info("Deleted department: %s school=%s", department_id, school_id)

    # =========================================================================
    # School levels
    # =========================================================================

    async def list_levels(self, school_id: str) -> SchoolLevelListResponse:
        result = await self.db.execute(
            select(SchoolLevel)
            .where(SchoolLevel.school_id == school_id)
            .order_by(SchoolLevel.sort_order, SchoolLevel.name)
        )
        items = [self._level_response(level) for level in result.scalars().all()]
        return SchoolLevelListResponse(items=items, total=len(items))

    async def create_level(
        self,
        school_id: str,
        request: SchoolLevelCreateRequest,
    ) -> SchoolLevelResponse:
        """Create a school level.

        Raises:
            StructureExistsError: If the school has a level of that name.
        """
        await self._check_name_free(SchoolLevel, school_id, request.name)

        level = SchoolLevel(
            id=new_id(),
            school_id=school_id,
            name=request.name,
            sort_order=request.sort_order,
        )
        self.db.add(level)
        await self.db.commit()
        await self.db.refresh(level)

        logger.info("Created school level: %s (%s) school=%s", level.name, level.id, school_id)

        return self._level_response(level)

    async def update_level(
        self,
        school_id: str,
        level_id: UUID | str,
        request: SchoolLevelUpdateRequest,
    ) -> SchoolLevelResponse:
        """Update a school level. Omitted fields are kept."""
        level = await self._get_owned(SchoolLevel, school_id, level_id, "School level")

        if request.name is not None and request.name != level.name:
            await self._check_name_free(SchoolLevel, school_id, request.name, level.id)
            level.name = request.name
        if request.sort_order is not None:
            level.sort_order = request.sort_order

        await self.db.commit()
        await self.db.refresh(level)

        logger.info("Updated school level: %s", level.id)

        return self._level_response(level)

    async def delete_level(self, school_id: str, level_id: UUID | str) -> None:
        """Delete a school level no class or subject uses.

        Raises:
            StructureInUseError: If classes or subjects reference the level.
        """
        level = await self._get_owned(SchoolLevel, school_id, level_id, "School level")

        class_count_query = select(func.count(Class.id)).where(Class.level_id == level.id)
        subject_count_query = select(func.count(Subject.id)).where(Subject.level_id == level.id)
        result = await self.db.execute(
            select(class_count_query.scalar_subquery(), subject_count_query.scalar_subquery())
        )
        class_count, subject_count = result.one()
        if class_count or subject_count:
            raise StructureInUseError(
                f"Cannot delete a level in use by {class_count} classes "
                f"and {subject_count} subjects"
            )

        await self.db.delete(level)
        await self.db.commit()

        logger.info("Deleted school level: %s school=%s", level_id, school_id)

    # =========================================================================
    # Subjects
    # =========================================================================

    async def create_subject(
        self,
        school_id: str,
        request: SubjectCreateRequest,
    ) -> SubjectResponse:
        """Create a subject.

        Raises:
            ReferenceNotFoundError: If the department or level is not in
                the school.
        """
        department_id = await self._check_reference(
            Department, school_id, request.department_id, "Department"
        )
        level_id = await self._check_reference(
            SchoolLevel, school_id, request.level_id, "School level"
        )

        subject = Subject(
            id=new_id(),
            school_id=school_id,
            name=request.name,
            code=request.code,
            department_id=department_id,
            level_id=level_id,
        )
        self.db.add(subject)
        await self.db.commit()

        logger.info("Created subject: %s (%s) school=%s", subject.name, subject.id, school_id)

        return await self.directory.get_subject(school_id, subject.id)

    async def update_subject(
        self,
        school_id: str,
        subject_id: UUID | str,
        request: SubjectUpdateRequest,
    ) -> SubjectResponse:
        """Update a subject. Omitted fields are kept."""
        subject = await self._get_owned(Subject, school_id, subject_id, "Subject")

        if request.name is not None:
            subject.name = request.name
        if request.code is not None:
            subject.code = request.code
        if request.department_id is not None:
            subject.department_id = await self._check_reference(
                Department, school_id, request.department_id, "Department"
            )
        if request.level_id is not None:
            subject.level_id = await self._check_reference(
                SchoolLevel, school_id, request.level_id, "School level"
            )

        await self.db.commit()

        logger.info("Updated subject: %s", subject.id)

        return await self.directory.get_subject(school_id, subject.id)

    async def delete_subject(self, school_id: str, subject_id: UUID | str) -> None:
        """Delete a subject with its teacher and class links."""
        subject = await self._get_owned(Subject, school_id, subject_id, "Subject")

        await self.db.delete(subject)
        await self.db.commit()

        logger.info("Deleted subject: %s school=%s", subject_id, school_id)

    # =========================================================================
    # Classes
    # =========================================================================

    async def create_class(
        self,
        school_id: str,
        request: ClassCreateRequest,
    ) -> ClassResponse:
        """Create a class, optionally linking its class teacher.

        Args:
            school_id: Caller's school.
            request: Class data.

        Returns:
            Created class.

        Raises:
            ReferenceNotFoundError: If the level or teacher is not in the
                school.
        """
        level_id = await self._check_reference(
            SchoolLevel, school_id, request.level_id, "School level"
        )
        teacher_id = await self._check_reference(
            Teacher, school_id, request.teacher_id, "Teacher"
        )

        class_ = Class(
            id=new_id(),
            school_id=school_id,
            name=request.name,
            section=request.section,
            capacity=request.capacity,
            level_id=level_id,
        )
        self.db.add(class_)
        if teacher_id is not None:
            self.db.add(
                TeacherClass(
                    teacher_id=teacher_id,
                    class_id=class_.id,
                    is_class_teacher=True,
                    created_at=utc_now(),
                )
            )
        await self.db.commit()

        logger.info(
            "Created class: %s (%s) school=%s teacher=%s",
            class_.display_name,
            class_.id,
            school_id,
            teacher_id,
        )

        return await self.directory.get_class(school_id, class_.id)

    async def update_class(
        self,
        school_id: str,
        class_id: UUID | str,
        request: ClassUpdateRequest,
    ) -> ClassResponse:
        """Update a class. Omitted fields are kept."""
        class_ = await self._get_owned(Class, school_id, class_id, "Class")

        if request.name is not None:
            class_.name = request.name
        if request.section is not None:
            class_.section = request.section
        if request.capacity is not None:
            class_.capacity = request.capacity
        if request.level_id is not None:
            class_.level_id = await self._check_reference(
                SchoolLevel, school_id, request.level_id, "School level"
            )

        await self.db.commit()

        logger.info("Updated class: %s", class_.id)

        return await self.directory.get_class(school_id, class_.id)

    async def delete_class(self, school_id: str, class_id: UUID | str) -> None:
        """Delete a class nobody is active in.

        Raises:
            StructureNotFoundError: If the class does not exist.
            StructureAccessDeniedError: If it belongs to another school.
            StructureInUseError: If students are active in the class in any
                session.
        """
        class_ = await self._get_owned(Class, school_id, class_id, "Class")

        result = await self.db.execute(
            select(func.count())
            .select_from(StudentClassAssignment)
            .where(
                StudentClassAssignment.class_id == class_.id,
                StudentClassAssignment.status == AssignmentStatus.ACTIVE.value,
            )
        )
        active = result.scalar() or 0
        if active:
            raise StructureInUseError(f"Cannot delete a class with {active} active students")

        await self.db.delete(class_)
        await self.db.commit()

        logger.info("Deleted class: %s school=%s", class_id, school_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get_owned(
        self,
        model: type[Structure],
        school_id: str,
        entity_id: UUID | str,
        label: str,
    ) -> Structure:
        result = await self.db.execute(select(model).where(model.id == str(entity_id)))
        entity = result.scalar_one_or_none()
        if entity is None:
            raise StructureNotFoundError(f"{label} {entity_id} not found")
        if entity.school_id != school_id:
            raise StructureAccessDeniedError(f"{label} belongs to another school")
        return entity

    async def _check_reference(
        self,
        model: type,
        school_id: str,
        entity_id: UUID | str | None,
        label: str,
    ) -> str | None:
        """Return the id when the referenced row exists in the school."""
        if entity_id is None:
            return None

        result = await self.db.execute(
            select(model.id).where(model.id == str(entity_id), model.school_id == school_id)
        )
        found = result.scalar_one_or_none()
        if found is None:
            raise ReferenceNotFoundError(f"{label} {entity_id} not found")
        return str(found)

    async def _check_name_free(
        self,
        model: type[Department] | type[SchoolLevel],
        school_id: str,
        name: str,
        exclude_id: str | None = None,
    ) -> None:
        query = select(model.id).where(
            model.school_id == school_id,
            func.lower(model.name) == name.lower(),
        )
        if exclude_id is not None:
            query = query.where(model.id != exclude_id)

        result = await self.db.execute(query.limit(1))
        if result.scalar_one_or_none() is not None:
            raise StructureExistsError(f"'{name}' already exists")

    @staticmethod
    def _department_query():
        """Departments with student, teacher and subject counts."""

        def count_of(model: type):
            return (
                select(func.count(model.id))
                .where(model.department_id == Department.id)
                .correlate(Department)
                .scalar_subquery()
            )

        return select(
            Department,
            count_of(Student),
            count_of(Teacher),
            count_of(Subject),
        ).order_by(Department.name)

    async def _get_department_response(self, department_id: str) -> DepartmentResponse:
        result = await self.db.execute(
            self._department_query().where(Department.id == department_id)
        )
        return self._department_response(*result.one())

    @staticmethod
    def _department_response(
        department: Department,
        student_count: int,
        teacher_count: int,
        subject_count: int,
    ) -> DepartmentResponse:
        return DepartmentResponse(
            id=str(department.id),
            name=department.name,
            student_count=student_count or 0,
            teacher_count=teacher_count or 0,
            subject_count=subject_count or 0,
            created_at=department.created_at,
        )

    @staticmethod
    def _level_response(level: SchoolLevel) -> SchoolLevelResponse:
        return SchoolLevelResponse(
            id=str(level.id),
            name=level.name,
            sort_order=level.sort_order,
            created_at=level.created_at,
        )
