# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request and response models for link tables."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from schoolboard.models.common import SubjectSummary


class LinkParentRequest(BaseModel):
    """Link a parent to a student."""

    parent_id: UUID
    relationship_type: str = Field(
        default="guardian",
        min_length=1,
        max_length=30,
        description="Relationship label, e.g. mother, father, guardian",
    )


class StudentParentLinkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    student_id: str
    parent_id: str
    relationship_type: str
    created_at: datetime | None = None


class LinkSubjectRequest(BaseModel):
    subject_id: UUID


class ReplaceTeacherSubjectsRequest(BaseModel):
    """Full set of subjects a teacher teaches. An empty list clears it."""

    subject_ids: list[UUID] = Field(default_factory=list)


class TeacherSubjectsResponse(BaseModel):
    teacher_id: str
    subjects: list[SubjectSummary]


class LinkTeacherClassRequest(BaseModel):
    class_id: UUID
    is_class_teacher: bool = False


class TeacherClassLinkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    teacher_id: str
    class_id: str
    is_class_teacher: bool = False
    created_at: datetime | None = None


class ClassSubjectLinkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    class_id: str
    subject_id: str
    created_at: datetime | None = None


class TeacherSubjectLinkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    teacher_id: str
    subject_id: str
    created_at: datetime | None = None
