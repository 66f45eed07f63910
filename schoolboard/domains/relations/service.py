# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Relations service for the many-to-many link tables.

This module provides the RelationsService class for:
- Linking and unlinking parents and students
- Linking, unlinking and replacing a teacher's subjects
- Linking and unlinking teachers and classes
- Linking and unlinking subjects and classes

Both sides of a link must belong to the caller's school. A pair can be
linked only once.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolboard.infrastructure.database.models import (
    Class,
    ClassSubject,
    Parent,
    Student,
    StudentParent,
    Subject,
    Teacher,
    TeacherClass,
    TeacherSubject,
)
from schoolboard.models.common import SubjectSummary
from schoolboard.models.relations import (
    ClassSubjectLinkResponse,
    LinkParentRequest,
    LinkTeacherClassRequest,
    StudentParentLinkResponse,
    TeacherClassLinkResponse,
    TeacherSubjectLinkResponse,
    TeacherSubjectsResponse,
)
from schoolboard.utils.datetime import utc_now

logger = logging.getLogger(__name__)

SchoolOwned = TypeVar("SchoolOwned", Student, Parent, Teacher, Subject, Class)


class RelationsServiceError(Exception):
    """Base exception for relations service errors."""

    pass


class EntityNotFoundError(RelationsServiceError):
    """Raised when one side of a link does not exist."""

    pass


class EntityAccessDeniedError(RelationsServiceError):
    """Raised when one side of a link belongs to another school."""

    pass


class RelationExistsError(RelationsServiceError):
    """Raised when the pair is already linked."""

    pass


class RelationNotFoundError(RelationsServiceError):
    """Raised when unlinking a pair that is not linked."""

    pass


class RelationsService:
    """Service for link table mutations.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize relations service.

        Args:
            db: Async database session.
        """
        self.db = db

    # =========================================================================
    # Student <-> Parent
    # =========================================================================

    async def link_parent(
        self,
        school_id: str,
        student_id: UUID | str,
        request: LinkParentRequest,
    ) -> StudentParentLinkResponse:
        """Link a parent to a student.

        Args:
            school_id: Caller's school.
            student_id: Student to link.
            request: Parent id and relationship label.

        Returns:
            Created link.

        Raises:
            EntityNotFoundError: If the student or parent does not exist.
            EntityAccessDeniedError: If either belongs to another school.
            RelationExistsError: If they are already linked.
        """
        student = await self._get_owned(Student, school_id, student_id, "Student")
        parent = await self._get_owned(Parent, school_id, request.parent_id, "Parent")

        link = StudentParent(
            student_id=student.id,
            parent_id=parent.id,
            relationship_type=request.relationship_type,
            created_at=utc_now(),
        )
        await self._insert_link(link, StudentParent, student_id=student.id, parent_id=parent.id)

        logger.info(
            "Linked parent: student=%s, parent=%s, relationship=%s",
            student.id,
            parent.id,
            request.relationship_type,
        )

        return StudentParentLinkResponse(
            student_id=str(link.student_id),
            parent_id=str(link.parent_id),
            relationship_type=link.relationship_type,
            created_at=link.created_at,
        )

    async def unlink_parent(
        self,
        school_id: str,
        student_id: UUID | str,
        parent_id: UUID | str,
    ) -> None:
        """Remove a parent from a student.

        Raises:
            EntityNotFoundError: If the student or parent does not exist.
            EntityAccessDeniedError: If either belongs to another school.
            RelationNotFoundError: If they are not linked.
        """
        student = await self._get_owned(Student, school_id, student_id, "Student")
        parent = await self._get_owned(Parent, school_id, parent_id, "Parent")

        await self._delete_link(StudentParent, student_id=student.id, parent_id=parent.id)

        logger.info("Unlinked parent: student=%s, parent=%s", student.id, parent.id)

    # =========================================================================
    # Teacher <-> Subject
    # =========================================================================

    async def link_teacher_subject(
        self,
        school_id: str,
        teacher_id: UUID | str,
        subject_id: UUID | str,
    ) -> TeacherSubjectLinkResponse:
        """Add a subject to a teacher.

        Raises:
            EntityNotFoundError: If the teacher or subject does not exist.
            EntityAccessDeniedError: If either belongs to another school.
            RelationExistsError: If the teacher already teaches the subject.
        """
        teacher = await self._get_owned(Teacher, school_id, teacher_id, "Teacher")
        subject = await self._get_owned(Subject, school_id, subject_id, "Subject")

        link = TeacherSubject(teacher_id=teacher.id, subject_id=subject.id, created_at=utc_now())
        await self._insert_link(
            link, TeacherSubject, teacher_id=teacher.id, subject_id=subject.id
        )

        logger.info("Linked subject: teacher=%s, subject=%s", teacher.id, subject.id)

        return TeacherSubjectLinkResponse(
            teacher_id=str(link.teacher_id),
            subject_id=str(link.subject_id),
            created_at=link.created_at,
        )

    async def unlink_teacher_subject(
        self,
        school_id: str,
        teacher_id: UUID | str,
        subject_id: UUID | str,
    ) -> None:
        """Remove a subject from a teacher.

        Raises:
            EntityNotFoundError: If the teacher or subject does not exist.
            EntityAccessDeniedError: If either belongs to another school.
            RelationNotFoundError: If the teacher does not teach the subject.
        """
        teacher = await self._get_owned(Teacher, school_id, teacher_id, "Teacher")
        subject = await self._get_owned(Subject, school_id, subject_id, "Subject")

        await self._delete_link(TeacherSubject, teacher_id=teacher.id, subject_id=subject.id)

        logger.info("Unlinked subject: teacher=%s, subject=%s", teacher.id, subject.id)

    async def replace_teacher_subjects(
        self,
        school_id: str,
        teacher_id: UUID | str,
        subject_ids: list[UUID] | list[str],
    ) -> TeacherSubjectsResponse:
        """Replace the whole set of subjects a teacher teaches.

        Every id is validated before anything changes; the old set is
        dropped and the new one inserted in one transaction.

        Args:
            school_id: Caller's school.
            teacher_id: Teacher to update.
            subject_ids: New subject set; duplicates are ignored.

        Returns:
            The teacher's subjects after the swap, ordered by name.

        Raises:
            EntityNotFoundError: If the teacher or any subject does not exist.
            EntityAccessDeniedError: If any of them belongs to another school.
        """
        teacher = await self._get_owned(Teacher, school_id, teacher_id, "Teacher")
        wanted = list(dict.fromkeys(str(s) for s in subject_ids))

        subjects: list[Subject] = []
        if wanted:
            result = await self.db.execute(select(Subject).where(Subject.id.in_(wanted)))
            found = {str(s.id): s for s in result.scalars().all()}
            missing = [s for s in wanted if s not in found]
            if missing:
                raise EntityNotFoundError(f"Subject {missing[0]} not found")
            for subject in found.values():
                if subject.school_id != school_id:
                    raise EntityAccessDeniedError("Subject belongs to another school")
            subjects = [found[s] for s in wanted]

        await self.db.execute(delete(TeacherSubject).where(TeacherSubject.teacher_id == teacher.id))
        now = utc_now()
        self.db.add_all(
            [
                TeacherSubject(teacher_id=teacher.id, subject_id=subject.id, created_at=now)
                for subject in subjects
            ]
        )
        await self.db.commit()

        logger.info(
            "Replaced teacher subjects: teacher=%s, count=%d",
            teacher.id,
            len(subjects),
        )

        return TeacherSubjectsResponse(
            teacher_id=str(teacher.id),
            subjects=[
                SubjectSummary(id=str(s.id), name=s.name, code=s.code)
                for s in sorted(subjects, key=lambda s: s.name)
            ],
        )

    # =========================================================================
    # Teacher <-> Class
    # =========================================================================

    async def link_teacher_class(
        self,
        school_id: str,
        teacher_id: UUID | str,
        request: LinkTeacherClassRequest,
    ) -> TeacherClassLinkResponse:
        """Link a teacher to a class.

        Raises:
            EntityNotFoundError: If the teacher or class does not exist.
            EntityAccessDeniedError: If either belongs to another school.
            RelationExistsError: If they are already linked.
        """
        teacher = await self._get_owned(Teacher, school_id, teacher_id, "Teacher")
        class_ = await self._get_owned(Class, school_id, request.class_id, "Class")

        link = TeacherClass(
            teacher_id=teacher.id,
            class_id=class_.id,
            is_class_teacher=request.is_class_teacher,
            created_at=utc_now(),
        )
        await self._insert_link(link, TeacherClass, teacher_id=teacher.id, class_id=class_.id)

        logger.info(
            "Linked class: teacher=%s, class=%s, class_teacher=%s",
            teacher.id,
            class_.id,
            request.is_class_teacher,
        )

        return TeacherClassLinkResponse(
            teacher_id=str(link.teacher_id),
            class_id=str(link.class_id),
            is_class_teacher=link.is_class_teacher,
            created_at=link.created_at,
        )

    async def unlink_teacher_class(
        self,
        school_id: str,
        teacher_id: UUID | str,
        class_id: UUID | str,
    ) -> None:
        """Remove a teacher from a class.

        Raises:
            EntityNotFoundError: If the teacher or class does not exist.
            EntityAccessDeniedError: If either belongs to another school.
            RelationNotFoundError: If they are not linked.
        """
        teacher = await self._get_owned(Teacher, school_id, teacher_id, "Teacher")
        class_ = await self._get_owned(Class, school_id, class_id, "Class")

        await self._delete_link(TeacherClass, teacher_id=teacher.id, class_id=class_.id)

        logger.info("Unlinked class: teacher=%s, class=%s", teacher.id, class_.id)

    # =========================================================================
    # Class <-> Subject
    # =========================================================================

    async def link_class_subject(
        self,
        school_id: str,
        class_id: UUID | str,
        subject_id: UUID | str,
    ) -> ClassSubjectLinkResponse:
        """Add a subject to a class.

        Raises:
            EntityNotFoundError: If the class or subject does not exist.
            EntityAccessDeniedError: If either belongs to another school.
            RelationExistsError: If the subject is already on the class.
        """
        class_ = await self._get_owned(Class, school_id, class_id, "Class")
        subject = await self._get_owned(Subject, school_id, subject_id, "Subject")

        link = ClassSubject(class_id=class_.id, subject_id=subject.id, created_at=utc_now())
        await self._insert_link(link, ClassSubject, class_id=class_.id, subject_id=subject.id)

        logger.info("Linked subject to class: class=%s, subject=%s", class_.id, subject.id)

        return ClassSubjectLinkResponse(
            class_id=str(link.class_id),
            subject_id=str(link.subject_id),
            created_at=link.created_at,
        )

    async def unlink_class_subject(
        self,
        school_id: str,
        class_id: UUID | str,
        subject_id: UUID | str,
    ) -> None:
        """Remove a subject from a class.

        Raises:
            EntityNotFoundError: If the class or subject does not exist.
            EntityAccessDeniedError: If either belongs to another school.
            RelationNotFoundError: If the subject is not on the class.
        """
        class_ = await self._get_owned(Class, school_id, class_id, "Class")
        subject = await self._get_owned(Subject, school_id, subject_id, "Subject")

        await self._delete_link(ClassSubject, class_id=class_.id, subject_id=subject.id)

        logger.info("Unlinked subject from class: class=%s, subject=%s", class_.id, subject.id)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get_owned(
        self,
        model: type[SchoolOwned],
        school_id: str,
        entity_id: UUID | str,
        label: str,
    ) -> SchoolOwned:
        result = await self.db.execute(select(model).where(model.id == str(entity_id)))
        entity = result.scalar_one_or_none()
        if entity is None:
            raise EntityNotFoundError(f"{label} {entity_id} not found")
        if entity.school_id != school_id:
            raise EntityAccessDeniedError(f"{label} belongs to another school")
        return entity

    async def _find_link(self, model: type, **keys: Any) -> Any:
        result = await self.db.execute(select(model).filter_by(**keys))
        return result.scalar_one_or_none()

    async def _insert_link(self, link: Any, model: type, **keys: Any) -> None:
        """Insert a link row, refusing duplicates.

        Raises:
            RelationExistsError: If the pair exists, including when another
                request inserted it first.
        """
        if await self._find_link(model, **keys) is not None:
            raise RelationExistsError("Relation already exists")

        self.db.add(link)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise RelationExistsError("Relation already exists") from e

    async def _delete_link(self, model: type, **keys: Any) -> None:
        """Delete a link row.

        Raises:
            RelationNotFoundError: If the pair is not linked.
        """
        link = await self._find_link(model, **keys)
        if link is None:
            raise RelationNotFoundError("Relation not found")

        await self.db.delete(link)
        await self.db.commit()
