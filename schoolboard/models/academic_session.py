# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic session request and response models."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class AcademicSessionCreateRequest(BaseModel):
    """Request to create an academic session."""

    name: str = Field(min_length=1, max_length=50, description="Session name, e.g. 2024/2025")
    start_date: date
    end_date: date
    is_current: bool = Field(default=False, description="Make this the school's current session")


class AcademicSessionUpdateRequest(BaseModel):
    """Partial update of an academic session. Omitted fields are kept."""

    name: str | None = Field(default=None, min_length=1, max_length=50)
    start_date: date | None = None
    end_date: date | None = None
    is_current: bool | None = None


class AcademicSessionResponse(BaseModel):
    """Academic session as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    name: str
    start_date: date
    end_date: date
    is_current: bool
    created_at: datetime | None = None


class AcademicSessionListResponse(BaseModel):
    items: list[AcademicSessionResponse]
    total: int
