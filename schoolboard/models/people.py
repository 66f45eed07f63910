# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student, teacher and parent create/update request models.

Responses reuse the directory models (StudentResponse, TeacherResponse,
ParentResponse) so a record reads the same whether it was just written or
listed.
"""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class StudentCreateRequest(BaseModel):
    """Request to enrol a new student in the caller's school."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr | None = None
    admission_number: str | None = Field(default=None, max_length=50)
    department_id: UUID | None = None


class StudentUpdateRequest(BaseModel):
    """Partial update of a student. Omitted fields are kept."""

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None
    admission_number: str | None = Field(default=None, max_length=50)
    department_id: UUID | None = None
    is_active: bool | None = None


class AssignDepartmentRequest(BaseModel):
    """Place a student without a department into one."""

    department_id: UUID


class TeacherCreateRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr | None = None
    employee_number: str | None = Field(default=None, max_length=50)
    department_id: UUID | None = None


class TeacherUpdateRequest(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None
    employee_number: str | None = Field(default=None, max_length=50)
    department_id: UUID | None = None
    is_active: bool | None = None


class ParentCreateRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=30)


class ParentUpdateRequest(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=30)
