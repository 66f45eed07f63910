# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Translation of domain errors shared by several routers into HTTP answers."""

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse

from schoolboard.api.middleware.auth import CurrentUser
from schoolboard.domains.class_assignment import (
    AssignmentNotFoundError,
    ClassAccessDeniedError,
    ClassAssignmentConflictError,
    ClassAssignmentServiceError,
    ClassNotFoundError,
    ConcurrentAssignmentError,
    NoCurrentSessionError,
    SessionAccessDeniedError,
    SessionNotFoundError,
    StudentNotFoundError,
)
from schoolboard.domains.people import (
    DepartmentNotFoundError,
    EmailInUseError,
    PeopleServiceError,
    PersonAccessDeniedError,
    PersonNotFoundError,
)
from schoolboard.domains.relations import (
    EntityAccessDeniedError,
    EntityNotFoundError,
    RelationExistsError,
    RelationNotFoundError,
    RelationsServiceError,
)
from schoolboard.domains.school_structure import (
    ReferenceNotFoundError,
    SchoolStructureServiceError,
    StructureAccessDeniedError,
    StructureExistsError,
    StructureInUseError,
    StructureNotFoundError,
)
from schoolboard.models.class_assignment import ClassAssignmentConflict


def class_assignment_error(e: ClassAssignmentServiceError) -> HTTPException:
    """Map a class assignment error to an HTTPException.

    ClassAssignmentConflictError is answered with a body of its own, see
    conflict_response.
    """
    if isinstance(
        e,
        (StudentNotFoundError, ClassNotFoundError, SessionNotFoundError, AssignmentNotFoundError),
    ):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, (ClassAccessDeniedError, SessionAccessDeniedError)):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, (ConcurrentAssignmentError, ClassAssignmentConflictError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, NoCurrentSessionError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def conflict_response(e: ClassAssignmentConflictError) -> JSONResponse:
    """409 body naming the class the student is already in."""
    body = ClassAssignmentConflict(
        message=e.message,
        current_class=e.current_class,
        assignment_id=e.assignment_id,
    )
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=body.model_dump(mode="json", by_alias=True),
    )


def relations_error(e: RelationsServiceError) -> HTTPException:
    """Map a relations error to an HTTPException."""
    if isinstance(e, (EntityNotFoundError, RelationNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, EntityAccessDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, RelationExistsError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def people_error(e: PeopleServiceError) -> HTTPException:
    """Map a people error to an HTTPException."""
    if isinstance(e, (PersonNotFoundError, DepartmentNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, PersonAccessDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, EmailInUseError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def structure_error(e: SchoolStructureServiceError) -> HTTPException:
    """Map a school structure error to an HTTPException."""
    if isinstance(e, (StructureNotFoundError, ReferenceNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, StructureAccessDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, (StructureExistsError, StructureInUseError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def assigning_teacher_id(current_user: CurrentUser) -> str | None:
    """Teacher scope for class assignment.

    Admins may assign to any class of their school (None). Teachers are
    limited to their linked classes, so their teacher record is required.

    Raises:
        HTTPException: 403 for a teacher token without a teacher id.
    """
    if current_user.is_admin:
        return None
    if not current_user.teacher_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Teacher profile required to assign classes",
        )
    return current_user.teacher_id
