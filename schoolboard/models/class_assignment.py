# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class assignment request and response models.

These models speak camelCase on the wire (``classId``, ``forceReassign``)
and also accept snake_case input, because the dashboard that calls these
endpoints sends camelCase bodies.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ClassAssignmentOutcome(str, Enum):
    """What an assign request did."""

    CREATED = "created"
    UNCHANGED = "unchanged"
    REASSIGNED = "reassigned"


class AssignClassRequest(CamelModel):
    """Request to place a student in a class for an academic session.

    Attributes:
        class_id: Target class.
        session_id: Academic session the assignment belongs to.
        roll_number: Optional free-text roll number.
        force_reassign: Move the student when already active in another
            class for the session.
    """

    class_id: UUID
    session_id: UUID
    roll_number: str | None = Field(default=None, max_length=30)
    force_reassign: bool = False


class AddStudentToClassRequest(CamelModel):
    """Same as AssignClassRequest, addressed from the class side."""

    student_id: UUID
    session_id: UUID
    roll_number: str | None = Field(default=None, max_length=30)
    force_reassign: bool = False

    def to_assign_request(self, class_id: UUID | str) -> AssignClassRequest:
        return AssignClassRequest(
            class_id=class_id,
            session_id=self.session_id,
            roll_number=self.roll_number,
            force_reassign=self.force_reassign,
        )


class AssignedClass(CamelModel):
    """Class reference embedded in assignment payloads."""

    id: str
    name: str
    section: str | None = None
    display_name: str


class AssignedSession(CamelModel):
    id: str
    name: str
    is_current: bool = False


class ClassAssignmentResponse(CamelModel):
    """A single student class assignment row."""

    id: str
    student_id: str
    class_id: str
    session_id: str
    roll_number: str | None = None
    status: str
    assigned_at: datetime | None = None
    ended_at: datetime | None = None
    assigned_class: AssignedClass | None = None
    session: AssignedSession | None = None


class ClassAssignmentResult(CamelModel):
    """Successful assign outcome."""

    outcome: ClassAssignmentOutcome
    message: str
    assignment: ClassAssignmentResponse


class ClassAssignmentConflict(CamelModel):
    """Body of the 409 answer when the student already has another class."""

    conflict: bool = True
    message: str
    current_class: AssignedClass
    assignment_id: str


class StudentClassesResponse(CamelModel):
    """All class assignments of a student.

    Attributes:
        student_id: The student.
        current_session: The school's current session, if any.
        current: Active assignments in the current session.
        history: Every assignment, newest first.
    """

    student_id: str
    current_session: AssignedSession | None = None
    current: list[ClassAssignmentResponse] = Field(default_factory=list)
    history: list[ClassAssignmentResponse] = Field(default_factory=list)


class ClassRosterEntry(CamelModel):
    assignment_id: str
    student_id: str
    first_name: str
    last_name: str
    full_name: str
    admission_number: str | None = None
    roll_number: str | None = None
    assigned_at: datetime | None = None


class ClassRosterResponse(CamelModel):
    """Active students of a class for one session."""

    class_id: str
    session_id: str
    items: list[ClassRosterEntry]
    total: int
