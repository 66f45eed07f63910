# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Department, school level, subject and class request/response models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class DepartmentCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class DepartmentUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)


class DepartmentResponse(BaseModel):
    """Department with the number of records that reference it."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    student_count: int = 0
    teacher_count: int = 0
    subject_count: int = 0
    created_at: datetime | None = None


class DepartmentListResponse(BaseModel):
    items: list[DepartmentResponse]
    total: int


class SchoolLevelCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100, description="e.g. Primary, Junior Secondary")
    sort_order: int = Field(default=0, ge=0)


class SchoolLevelUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    sort_order: int | None = Field(default=None, ge=0)


class SchoolLevelResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    sort_order: int = 0
    created_at: datetime | None = None


class SchoolLevelListResponse(BaseModel):
    items: list[SchoolLevelResponse]
    total: int


class SubjectCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    code: str | None = Field(default=None, max_length=20)
    department_id: UUID | None = None
    level_id: UUID | None = None


class SubjectUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    code: str | None = Field(default=None, max_length=20)
    department_id: UUID | None = None
    level_id: UUID | None = None


class ClassCreateRequest(BaseModel):
    """Request to create a class.

    Attributes:
        name: Class name, e.g. Grade 5.
        section: Optional section label, e.g. A.
        capacity: Optional seat limit, informational only.
        level_id: School level the class belongs to.
        teacher_id: Teacher linked as class teacher on creation.
    """

    name: str = Field(min_length=1, max_length=50)
    section: str | None = Field(default=None, max_length=20)
    capacity: int | None = Field(default=None, ge=1)
    level_id: UUID | None = None
    teacher_id: UUID | None = None


class ClassUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    section: str | None = Field(default=None, max_length=20)
    capacity: int | None = Field(default=None, ge=1)
    level_id: UUID | None = None
