# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School structure models.

Schools, levels, departments, academic sessions, classes and subjects,
plus the class-subject link table.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schoolboard.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from schoolboard.utils.datetime import utc_now

if TYPE_CHECKING:
    from schoolboard.infrastructure.database.models.people import TeacherClass, TeacherSubject


class School(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A tenant. Every other row belongs to exactly one school."""

    __tablename__ = "schools"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class SchoolLevel(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Grouping of classes and subjects (e.g. Primary, Junior Secondary)."""

    __tablename__ = "school_levels"

    school_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Department(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Academic department (Science, Arts, ...)."""

    __tablename__ = "departments"

    school_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)


class AcademicSession(UUIDPrimaryKeyMixin, Base):
    """School-scoped time period; at most one per school is current."""

    __tablename__ = "academic_sessions"
    __table_args__ = (
        Index(
            "uq_academic_sessions_current_per_school",
            "school_id",
            unique=True,
            postgresql_where=text("is_current"),
            sqlite_where=text("is_current"),
        ),
    )

    school_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now()
    )


class Class(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A class (form/grade group), optionally split into a section."""

    __tablename__ = "classes"

    school_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True
    )
    level_id: Mapped[str | None] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("school_levels.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    section: Mapped[str | None] = mapped_column(String(20), nullable=True)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)

    level: Mapped[SchoolLevel | None] = relationship()
    subject_links: Mapped[list[ClassSubject]] = relationship(
        back_populates="class_", cascade="all, delete-orphan"
    )
    teacher_links: Mapped[list[TeacherClass]] = relationship(
        back_populates="class_", cascade="all, delete-orphan"
    )

    @property
    def display_name(self) -> str:
        """Name with the section label appended, e.g. ``Grade 5 (A)``."""
        if self.section:
            return f"{self.name} ({self.section})"
        return self.name


class Subject(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A taught subject."""

    __tablename__ = "subjects"

    school_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True
    )
    department_id: Mapped[str | None] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("departments.id", ondelete="SET NULL"), nullable=True
    )
    level_id: Mapped[str | None] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("school_levels.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str | None] = mapped_column(String(20), nullable=True)

    department: Mapped[Department | None] = relationship()
    class_links: Mapped[list[ClassSubject]] = relationship(
        back_populates="subject", cascade="all, delete-orphan"
    )
    teacher_links: Mapped[list[TeacherSubject]] = relationship(
        back_populates="subject", cascade="all, delete-orphan"
    )


class ClassSubject(Base):
    """Subject taught in a class."""

    __tablename__ = "class_subjects"

    class_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("classes.id", ondelete="CASCADE"), primary_key=True
    )
    subject_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("subjects.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, server_default=func.now()
    )

    class_: Mapped[Class] = relationship(back_populates="subject_links")
    subject: Mapped[Subject] = relationship(back_populates="class_links")
