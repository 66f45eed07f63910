# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""People models and their many-to-many links.

Students, teachers and parents, together with the student-parent,
teacher-subject and teacher-class link tables.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schoolboard.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from schoolboard.infrastructure.database.models.school import Class, Department, Subject
from schoolboard.utils.datetime import utc_now

if TYPE_CHECKING:
    from schoolboard.infrastructure.database.models.enrollment import StudentClassAssignment


class PersonMixin:
    """Name and contact columns shared by every person table."""

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Student(UUIDPrimaryKeyMixin, PersonMixin, TimestampMixin, Base):
    __tablename__ = "students"

    school_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True
    )
    department_id: Mapped[str | None] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("departments.id", ondelete="SET NULL"), nullable=True
    )
    admission_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    department: Mapped[Department | None] = relationship()
    parent_links: Mapped[list[StudentParent]] = relationship(
        back_populates="student", cascade="all, delete-orphan"
    )
    class_assignments: Mapped[list[StudentClassAssignment]] = relationship(
        back_populates="student", cascade="all, delete-orphan"
    )


class Teacher(UUIDPrimaryKeyMixin, PersonMixin, TimestampMixin, Base):
    __tablename__ = "teachers"

    school_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True
    )
    department_id: Mapped[str | None] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("departments.id", ondelete="SET NULL"), nullable=True
    )
    employee_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    subject_links: Mapped[list[TeacherSubject]] = relationship(
        back_populates="teacher", cascade="all, delete-orphan"
    )
    class_links: Mapped[list[TeacherClass]] = relationship(
        back_populates="teacher", cascade="all, delete-orphan"
    )


class Parent(UUIDPrimaryKeyMixin, PersonMixin, TimestampMixin, Base):
    __tablename__ = "parents"

    school_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True
    )
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)

    student_links: Mapped[list[StudentParent]] = relationship(
        back_populates="parent", cascade="all, delete-orphan"
    )


class StudentParent(Base):
    """Guardian link between a student and a parent."""

    __tablename__ = "student_parents"

    student_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("students.id", ondelete="CASCADE"), primary_key=True
    )
    parent_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("parents.id", ondelete="CASCADE"), primary_key=True
    )
    relationship_type: Mapped[str] = mapped_column(String(30), nullable=False, default="guardian")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now()
    )

    student: Mapped[Student] = relationship(back_populates="parent_links")
    parent: Mapped[Parent] = relationship(back_populates="student_links")


class TeacherSubject(Base):
    __tablename__ = "teacher_subjects"

    teacher_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("teachers.id", ondelete="CASCADE"), primary_key=True
    )
    subject_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("subjects.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now()
    )

    teacher: Mapped[Teacher] = relationship(back_populates="subject_links")
    subject: Mapped[Subject] = relationship(back_populates="teacher_links")


class TeacherClass(Base):
    """Teacher linked to a class; class teachers may manage its roster."""

    __tablename__ = "teacher_classes"

    teacher_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("teachers.id", ondelete="CASCADE"), primary_key=True
    )
    class_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("classes.id", ondelete="CASCADE"), primary_key=True
    )
    is_class_teacher: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now()
    )

    teacher: Mapped[Teacher] = relationship(back_populates="class_links")
    class_: Mapped[Class] = relationship(back_populates="teacher_links")
