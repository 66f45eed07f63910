# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Directory listing models for students, teachers, parents, subjects and classes."""

from pydantic import BaseModel, ConfigDict, Field

from schoolboard.models.common import ClassSummary, PersonSummary, SubjectSummary


class StudentResponse(BaseModel):
    """Student with current class (in the current session) and parents."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    full_name: str
    email: str | None = None
    admission_number: str | None = None
    department_id: str | None = None
    department_name: str | None = None
    is_active: bool = True
    current_class: ClassSummary | None = None
    parents: list[PersonSummary] = Field(default_factory=list)


class StudentListResponse(BaseModel):
    items: list[StudentResponse]
    total: int


class TeacherResponse(BaseModel):
    """Teacher with the subjects and classes linked to them."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    full_name: str
    email: str | None = None
    employee_number: str | None = None
    department_id: str | None = None
    is_active: bool = True
    subjects: list[SubjectSummary] = Field(default_factory=list)
    classes: list[ClassSummary] = Field(default_factory=list)


class TeacherListResponse(BaseModel):
    items: list[TeacherResponse]
    total: int


class ParentResponse(BaseModel):
    """Parent with their linked students."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    full_name: str
    email: str | None = None
    phone: str | None = None
    students: list[PersonSummary] = Field(default_factory=list)


class ParentListResponse(BaseModel):
    items: list[ParentResponse]
    total: int


class SubjectResponse(BaseModel):
    """Subject with its teachers and the classes it is taught in."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    code: str | None = None
    department_id: str | None = None
    department_name: str | None = None
    level_id: str | None = None
    teachers: list[PersonSummary] = Field(default_factory=list)
    classes: list[ClassSummary] = Field(default_factory=list)


class SubjectListResponse(BaseModel):
    items: list[SubjectResponse]
    total: int


class ClassResponse(BaseModel):
    """Class with level, subjects, teachers and current student count."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    section: str | None = None
    display_name: str
    capacity: int | None = None
    level_id: str | None = None
    level_name: str | None = None
    subjects: list[SubjectSummary] = Field(default_factory=list)
    teachers: list[PersonSummary] = Field(default_factory=list)
    student_count: int = 0


class ClassListResponse(BaseModel):
    items: list[ClassResponse]
    total: int


class ClassSubjectsResponse(BaseModel):
    """Subjects taught in one class."""

    class_id: str
    items: list[SubjectSummary]
    total: int
