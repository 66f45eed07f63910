# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student class assignment model.

One row per (student, class, academic session) membership. Rows are never
deleted when a student moves: the old row is marked inactive so the
history of a session stays readable.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schoolboard.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from schoolboard.infrastructure.database.models.school import AcademicSession, Class
from schoolboard.utils.datetime import utc_now

if TYPE_CHECKING:
    from schoolboard.infrastructure.database.models.people import Student


class AssignmentStatus(str, Enum):
    """Lifecycle of a class assignment row."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class StudentClassAssignment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A student's membership of a class within an academic session.

    The partial unique index guarantees at most one active row per
    (student, session) even when two requests race.
    """

    __tablename__ = "student_class_assignments"
    __table_args__ = (
        Index(
            "uq_student_class_assignments_active",
            "student_id",
            "session_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        Index("ix_student_class_assignments_class_session", "class_id", "session_id"),
    )

    student_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    class_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False
    )
    session_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("academic_sessions.id", ondelete="RESTRICT"),
        nullable=False,
    )
    roll_number: Mapped[str | None] = mapped_column(String(30), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AssignmentStatus.ACTIVE.value
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    student: Mapped[Student] = relationship(back_populates="class_assignments")
    class_: Mapped[Class] = relationship()
    session: Mapped[AcademicSession] = relationship()

    @property
    def is_active(self) -> bool:
        return self.status == AssignmentStatus.ACTIVE.value
