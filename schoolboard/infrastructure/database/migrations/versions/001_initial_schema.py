# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial SchoolBoard schema.

Revision ID: 001_initial
Revises: None
Create Date: 2025-01-15
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=False),
        server_default=sa.text("gen_random_uuid()"),
        primary_key=True,
    )


def _fk(name: str, target: str, ondelete: str = "CASCADE", **kwargs) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=False),
        sa.ForeignKey(target, ondelete=ondelete),
        **kwargs,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("now()"),
    )


def upgrade() -> None:
    """Create SchoolBoard tables."""
    # =========================================================================
    # SCHOOL STRUCTURE
    # =========================================================================

    op.create_table(
        "schools",
        _id(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("code", sa.String(50), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        *_timestamps(),
    )

    op.create_table(
        "school_levels",
        _id(),
        _fk("school_id", "schools.id", nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_school_levels_school_id", "school_levels", ["school_id"])

    op.create_table(
        "departments",
        _id(),
        _fk("school_id", "schools.id", nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_departments_school_id", "departments", ["school_id"])

    op.create_table(
        "academic_sessions",
        _id(),
        _fk("school_id", "schools.id", nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("is_current", sa.Boolean, nullable=False, server_default="false"),
        _created_at(),
    )
    op.create_index("ix_academic_sessions_school_id", "academic_sessions", ["school_id"])
    op.create_index(
        "uq_academic_sessions_current_per_school",
        "academic_sessions",
        ["school_id"],
        unique=True,
        postgresql_where=sa.text("is_current"),
    )

    op.create_table(
        "classes",
        _id(),
        _fk("school_id", "schools.id", nullable=False),
        _fk("level_id", "school_levels.id", ondelete="SET NULL", nullable=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("section", sa.String(20), nullable=True),
        sa.Column("capacity", sa.Integer, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_classes_school_id", "classes", ["school_id"])

    op.create_table(
        "subjects",
        _id(),
        _fk("school_id", "schools.id", nullable=False),
        _fk("department_id", "departments.id", ondelete="SET NULL", nullable=True),
        _fk("level_id", "school_levels.id", ondelete="SET NULL", nullable=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(20), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_subjects_school_id", "subjects", ["school_id"])

    op.create_table(
        "class_subjects",
        _fk("class_id", "classes.id", primary_key=True),
        _fk("subject_id", "subjects.id", primary_key=True),
        _created_at(),
    )

    # =========================================================================
    # PEOPLE
    # =========================================================================

    person_columns = lambda: [  # noqa: E731
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
    ]

    op.create_table(
        "students",
        _id(),
        _fk("school_id", "schools.id", nullable=False),
        _fk("department_id", "departments.id", ondelete="SET NULL", nullable=True),
        *person_columns(),
        sa.Column("admission_number", sa.String(50), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        *_timestamps(),
    )
    op.create_index("ix_students_school_id", "students", ["school_id"])

    op.create_table(
        "teachers",
        _id(),
        _fk("school_id", "schools.id", nullable=False),
        _fk("department_id", "departments.id", ondelete="SET NULL", nullable=True),
        *person_columns(),
        sa.Column("employee_number", sa.String(50), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        *_timestamps(),
    )
    op.create_index("ix_teachers_school_id", "teachers", ["school_id"])

    op.create_table(
        "parents",
        _id(),
        _fk("school_id", "schools.id", nullable=False),
        *person_columns(),
        sa.Column("phone", sa.String(30), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_parents_school_id", "parents", ["school_id"])

    op.create_table(
        "student_parents",
        _fk("student_id", "students.id", primary_key=True),
        _fk("parent_id", "parents.id", primary_key=True),
        sa.Column(
            "relationship_type", sa.String(30), nullable=False, server_default="guardian"
        ),
        _created_at(),
    )

    op.create_table(
        "teacher_subjects",
        _fk("teacher_id", "teachers.id", primary_key=True),
        _fk("subject_id", "subjects.id", primary_key=True),
        _created_at(),
    )

    op.create_table(
        "teacher_classes",
        _fk("teacher_id", "teachers.id", primary_key=True),
        _fk("class_id", "classes.id", primary_key=True),
        sa.Column("is_class_teacher", sa.Boolean, nullable=False, server_default="false"),
        _created_at(),
    )

    # =========================================================================
    # CLASS ASSIGNMENTS
    # =========================================================================

    op.create_table(
        "student_class_assignments",
        _id(),
        _fk("student_id", "students.id", nullable=False),
        _fk("class_id", "classes.id", nullable=False),
        _fk("session_id", "academic_sessions.id", ondelete="RESTRICT", nullable=False),
        sa.Column("roll_number", sa.String(30), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column(
            "assigned_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_student_class_assignments_student_id",
        "student_class_assignments",
        ["student_id"],
    )
    op.create_index(
        "ix_student_class_assignments_class_session",
        "student_class_assignments",
        ["class_id", "session_id"],
    )
    # At most one active class per student per session
    op.create_index(
        "uq_student_class_assignments_active",
        "student_class_assignments",
        ["student_id", "session_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )


def downgrade() -> None:
    """Drop SchoolBoard tables."""
    op.drop_table("student_class_assignments")
    op.drop_table("teacher_classes")
    op.drop_table("teacher_subjects")
    op.drop_table("student_parents")
    op.drop_table("parents")
    op.drop_table("teachers")
    op.drop_table("students")
    op.drop_table("class_subjects")
    op.drop_table("subjects")
    op.drop_table("classes")
    op.drop_table("academic_sessions")
    op.drop_table("departments")
    op.drop_table("school_levels")
    op.drop_table("schools")
