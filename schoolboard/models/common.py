# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Summary models shared by several API responses."""

from pydantic import BaseModel, ConfigDict, Field


class PersonSummary(BaseModel):
    """Compact view of a student, teacher or parent."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    full_name: str
    email: str | None = None


class ClassSummary(BaseModel):
    """Compact view of a class."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    section: str | None = None
    display_name: str


class SubjectSummary(BaseModel):
    """Compact view of a subject."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    code: str | None = None


class SessionSummary(BaseModel):
    """Compact view of an academic session."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    is_current: bool = False


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str = Field(description="Human readable result")
