# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the class assignment service."""

from datetime import datetime, timezone
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from schoolboard.domains.class_assignment.service import (
    AssignmentNotFoundError,
    ClassAccessDeniedError,
    ClassAssignmentConflictError,
    ClassAssignmentService,
    ClassNotFoundError,
    ConcurrentAssignmentError,
    NoCurrentSessionError,
    SessionAccessDeniedError,
    SessionNotFoundError,
    StudentNotFoundError,
)
from schoolboard.infrastructure.database.models import StudentClassAssignment
from schoolboard.models.class_assignment import AssignClassRequest, ClassAssignmentOutcome


def _result(value):
    """Mock execute() result whose scalar_one_or_none() returns value."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def _scalars(values):
    result = MagicMock()
    result.scalars.return_value.all.return_value = values
    return result


def _duplicate_key() -> IntegrityError:
    return IntegrityError("INSERT INTO student_class_assignments", {}, Exception("duplicate key"))


def _make_class(school_id: str, name: str, section: str | None = None):
    cls = MagicMock()
    cls.id = str(uuid4())
    cls.school_id = school_id
    cls.name = name
    cls.section = section
    cls.display_name = f"{name} ({section})" if section else name
    return cls


def _make_assignment(student_id: str, class_, session, roll_number=None, status="active"):
    assignment = MagicMock()
    assignment.id = str(uuid4())
    assignment.student_id = student_id
    assignment.class_id = class_.id
    assignment.session_id = session.id
    assignment.roll_number = roll_number
    assignment.status = status
    assignment.assigned_at = datetime(2024, 9, 2, tzinfo=timezone.utc)
    assignment.ended_at = None
    assignment.class_ = class_
    assignment.session = session
    return assignment


@pytest.fixture
def service(mock_db):
    """Create class assignment service with mock database."""
    return ClassAssignmentService(db=mock_db)


@pytest.fixture
def student(school_id):
    student = MagicMock()
    student.id = str(uuid4())
    student.school_id = school_id
    student.first_name = "Ada"
    student.last_name = "Obi"
    student.full_name = "Ada Obi"
    student.admission_number = "ADM-001"
    return student


@pytest.fixture
def session(school_id):
    session = MagicMock()
    session.id = str(uuid4())
    session.school_id = school_id
    session.name = "2024"
    session.is_current = True
    return session


@pytest.fixture
def grade_5a(school_id):
    return _make_class(school_id, "Grade 5A")


@pytest.fixture
def grade_5b(school_id):
    return _make_class(school_id, "Grade 5B")


def _request(class_, session, **kwargs) -> AssignClassRequest:
    return AssignClassRequest(class_id=class_.id, session_id=session.id, **kwargs)


class TestAssignStudent:
    """Tests for the create / unchanged / conflict / reassign resolution."""

    @pytest.mark.asyncio
    async def test_unassigned_student_is_created(
        self, service, mock_db, school_id, student, session, grade_5a
    ):
        """An unassigned student gets a new active row."""
        mock_db.execute.side_effect = [
            _result(student),
            _result(grade_5a),
            _result(session),
            _result(None),
        ]

        result = await service.assign_student(
            school_id, student.id, _request(grade_5a, session, roll_number="12")
        )

        assert result.outcome == ClassAssignmentOutcome.CREATED
        assert result.assignment.class_id == grade_5a.id
        assert result.assignment.session_id == session.id
        assert result.assignment.status == "active"
        assert result.assignment.roll_number == "12"
        assert result.assignment.assigned_class.name == "Grade 5A"
        assert result.message == "Ada Obi assigned to Grade 5A"

        added = mock_db.add.call_args.args[0]
        assert isinstance(added, StudentClassAssignment)
        assert added.student_id == student.id
        assert added.class_id == grade_5a.id
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_same_class_is_unchanged(
        self, service, mock_db, school_id, student, session, grade_5a
    ):
        """Assigning to the class the student is already in writes nothing."""
        existing = _make_assignment(student.id, grade_5a, session, roll_number="7")
        mock_db.execute.side_effect = [
            _result(student),
            _result(grade_5a),
            _result(session),
            _result(existing),
        ]

        result = await service.assign_student(school_id, student.id, _request(grade_5a, session))

        assert result.outcome == ClassAssignmentOutcome.UNCHANGED
        assert result.assignment.id == existing.id
        assert existing.roll_number == "7"
        mock_db.add.assert_not_called()
        mock_db.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_same_class_updates_roll_number(
        self, service, mock_db, school_id, student, session, grade_5a
    ):
        """A roll number supplied on an unchanged assignment replaces the old one."""
        existing = _make_assignment(student.id, grade_5a, session, roll_number="7")
        mock_db.execute.side_effect = [
            _result(student),
            _result(grade_5a),
            _result(session),
            _result(existing),
        ]

        result = await service.assign_student(
            school_id, student.id, _request(grade_5a, session, roll_number="12")
        )

        assert result.outcome == ClassAssignmentOutcome.UNCHANGED
        assert existing.roll_number == "12"
        assert result.assignment.roll_number == "12"
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_other_class_without_force_conflicts(
        self, service, mock_db, school_id, student, session, grade_5a, grade_5b
    ):
        """Active in Grade 5A, adding to Grade 5B without force is refused."""
        existing = _make_assignment(student.id, grade_5a, session)
        mock_db.execute.side_effect = [
            _result(student),
            _result(grade_5b),
            _result(session),
            _result(existing),
        ]

        with pytest.raises(ClassAssignmentConflictError) as exc_info:
            await service.assign_student(school_id, student.id, _request(grade_5b, session))

        assert exc_info.value.current_class.name == "Grade 5A"
        assert exc_info.value.current_class.id == grade_5a.id
        assert exc_info.value.assignment_id == existing.id
        assert str(exc_info.value) == "Ada Obi is already in Grade 5A for this session"
        assert existing.status == "active"
        mock_db.add.assert_not_called()
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_class_with_force_reassigns(
        self, service, mock_db, school_id, student, session, grade_5a, grade_5b
    ):
        """With force the old row is deactivated and a new one created."""
        existing = _make_assignment(student.id, grade_5a, session)
        mock_db.execute.side_effect = [
            _result(student),
            _result(grade_5b),
            _result(session),
            _result(existing),
        ]

        result = await service.assign_student(
            school_id, student.id, _request(grade_5b, session, force_reassign=True)
        )

        assert result.outcome == ClassAssignmentOutcome.REASSIGNED
        assert result.assignment.class_id == grade_5b.id
        assert result.assignment.assigned_class.name == "Grade 5B"
        assert existing.status == "inactive"
        assert result.message == "Ada Obi moved from Grade 5A to Grade 5B"
        assert existing.ended_at is not None

        added = mock_db.add.call_args.args[0]
        assert added.class_id == grade_5b.id
        assert added.status == "active"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_student_not_in_school(self, service, mock_db, school_id, session, grade_5a):
        """A student outside the caller's school is not found."""
        mock_db.execute.side_effect = [_result(None)]

        with pytest.raises(StudentNotFoundError):
            await service.assign_student(school_id, str(uuid4()), _request(grade_5a, session))

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_class_not_found(self, service, mock_db, school_id, student, session):
        mock_db.execute.side_effect = [_result(student), _result(None)]

        with pytest.raises(ClassNotFoundError):
            await service.assign_student(
                school_id,
                student.id,
                AssignClassRequest(class_id=uuid4(), session_id=session.id),
            )

    @pytest.mark.asyncio
    async def test_class_of_other_school_is_forbidden_even_with_force(
        self, service, mock_db, school_id, other_school_id, student, session
    ):
        """Another school's class is refused regardless of the force flag."""
        foreign = _make_class(other_school_id, "Grade 5A")
        mock_db.execute.side_effect = [_result(student), _result(foreign)]

        with pytest.raises(ClassAccessDeniedError):
            await service.assign_student(
                school_id, student.id, _request(foreign, session, force_reassign=True)
            )

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_session_not_found(self, service, mock_db, school_id, student, grade_5a):
        mock_db.execute.side_effect = [_result(student), _result(grade_5a), _result(None)]

        with pytest.raises(SessionNotFoundError):
            await service.assign_student(
                school_id,
                student.id,
                AssignClassRequest(class_id=grade_5a.id, session_id=uuid4()),
            )

    @pytest.mark.asyncio
    async def test_session_of_other_school_is_forbidden(
        self, service, mock_db, school_id, other_school_id, student, session, grade_5a
    ):
        session.school_id = other_school_id
        mock_db.execute.side_effect = [_result(student), _result(grade_5a), _result(session)]

        with pytest.raises(SessionAccessDeniedError):
            await service.assign_student(school_id, student.id, _request(grade_5a, session))

    @pytest.mark.asyncio
    async def test_teacher_not_linked_to_class_is_forbidden(
        self, service, mock_db, school_id, student, session, grade_5a
    ):
        """Teachers may only assign to classes they are linked to."""
        mock_db.execute.side_effect = [
            _result(student),
            _result(grade_5a),
            _result(session),
            _result(None),
        ]

        with pytest.raises(ClassAccessDeniedError):
            await service.assign_student(
                school_id, student.id, _request(grade_5a, session), teacher_id=str(uuid4())
            )

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_teacher_linked_to_class_can_assign(
        self, service, mock_db, school_id, student, session, grade_5a
    ):
        mock_db.execute.side_effect = [
            _result(student),
            _result(grade_5a),
            _result(session),
            _result(MagicMock()),
            _result(None),
        ]

        result = await service.assign_student(
            school_id, student.id, _request(grade_5a, session), teacher_id=str(uuid4())
        )

        assert result.outcome == ClassAssignmentOutcome.CREATED


class TestAssignStudentRace:
    """Tests for losing the race on the active-assignment unique index."""

    @pytest.mark.asyncio
    async def test_lost_race_same_class_resolves_to_unchanged(
        self, service, mock_db, school_id, student, session, grade_5a
    ):
        """A concurrent writer created the same assignment first."""
        winner = _make_assignment(student.id, grade_5a, session)
        mock_db.execute.side_effect = [
            _result(student),
            _result(grade_5a),
            _result(session),
            _result(None),
            _result(winner),
        ]
        mock_db.flush.side_effect = [_duplicate_key(), None]

        result = await service.assign_student(school_id, student.id, _request(grade_5a, session))

        assert result.outcome == ClassAssignmentOutcome.UNCHANGED
        assert result.assignment.id == winner.id
        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_lost_race_other_class_resolves_to_conflict(
        self, service, mock_db, school_id, student, session, grade_5a, grade_5b
    ):
        """A concurrent writer put the student in another class first."""
        winner = _make_assignment(student.id, grade_5a, session)
        mock_db.execute.side_effect = [
            _result(student),
            _result(grade_5b),
            _result(session),
            _result(None),
            _result(winner),
        ]
        mock_db.flush.side_effect = [_duplicate_key(), None]

        with pytest.raises(ClassAssignmentConflictError) as exc_info:
            await service.assign_student(school_id, student.id, _request(grade_5b, session))

        assert exc_info.value.current_class.name == "Grade 5A"
        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_losing_twice_gives_up(
        self, service, mock_db, school_id, student, session, grade_5a
    ):
        mock_db.execute.side_effect = [
            _result(student),
            _result(grade_5a),
            _result(session),
            _result(None),
            _result(None),
        ]
        mock_db.flush.side_effect = [_duplicate_key(), _duplicate_key()]

        with pytest.raises(ConcurrentAssignmentError):
            await service.assign_student(school_id, student.id, _request(grade_5a, session))

        assert mock_db.rollback.await_count == 2


class TestGetStudentClasses:
    """Tests for reading a student's assignments."""

    @pytest.mark.asyncio
    async def test_splits_current_from_history(
        self, service, mock_db, school_id, student, session, grade_5a, grade_5b
    ):
        old_session = MagicMock()
        old_session.id = str(uuid4())
        old_session.name = "2023"
        old_session.is_current = False

        current = _make_assignment(student.id, grade_5b, session)
        moved_out = _make_assignment(student.id, grade_5a, session, status="inactive")
        last_year = _make_assignment(student.id, grade_5a, old_session, status="inactive")

        mock_db.execute.side_effect = [
            _result(student),
            _result(session),
            _scalars([current, moved_out, last_year]),
        ]

        result = await service.get_student_classes(school_id, student.id)

        assert result.current_session.id == session.id
        assert [a.id for a in result.current] == [current.id]
        assert result.current[0].assigned_class.name == "Grade 5B"
        assert len(result.history) == 3

    @pytest.mark.asyncio
    async def test_no_current_session(self, service, mock_db, school_id, student):
        mock_db.execute.side_effect = [_result(student), _result(None), _scalars([])]

        result = await service.get_student_classes(school_id, student.id)

        assert result.current_session is None
        assert result.current == []
        assert result.history == []

    @pytest.mark.asyncio
    async def test_student_not_found(self, service, mock_db, school_id):
        mock_db.execute.side_effect = [_result(None)]

        with pytest.raises(StudentNotFoundError):
            await service.get_student_classes(school_id, str(uuid4()))


class TestRemoveStudent:
    """Tests for removing a student from a class."""

    @pytest.mark.asyncio
    async def test_deactivates_in_current_session(
        self, service, mock_db, school_id, student, session, grade_5a
    ):
        assignment = _make_assignment(student.id, grade_5a, session)
        mock_db.execute.side_effect = [
            _result(grade_5a),
            _result(session),
            _result(assignment),
        ]

        result = await service.remove_student(school_id, grade_5a.id, student.id)

        assert assignment.status == "inactive"
        assert assignment.ended_at is not None
        assert result.status == "inactive"
        mock_db.delete.assert_not_awaited()
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_not_assigned(self, service, mock_db, school_id, student, session, grade_5a):
        mock_db.execute.side_effect = [_result(grade_5a), _result(session), _result(None)]

        with pytest.raises(AssignmentNotFoundError):
            await service.remove_student(school_id, grade_5a.id, student.id)

        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_current_session(self, service, mock_db, school_id, student, grade_5a):
        mock_db.execute.side_effect = [_result(grade_5a), _result(None)]

        with pytest.raises(NoCurrentSessionError):
            await service.remove_student(school_id, grade_5a.id, student.id)


class TestListClassRoster:
    """Tests for class rosters."""

    @pytest.mark.asyncio
    async def test_lists_active_students(
        self, service, mock_db, school_id, student, session, grade_5a
    ):
        assignment = _make_assignment(student.id, grade_5a, session, roll_number="3")
        rows = MagicMock()
        rows.all.return_value = [(assignment, student)]
        mock_db.execute.side_effect = [_result(grade_5a), _result(session), rows]

        result = await service.list_class_roster(school_id, grade_5a.id, session.id)

        assert result.total == 1
        assert result.class_id == grade_5a.id
        assert result.session_id == session.id
        entry = result.items[0]
        assert entry.student_id == student.id
        assert entry.full_name == "Ada Obi"
        assert entry.roll_number == "3"

    @pytest.mark.asyncio
    async def test_class_of_other_school(self, service, mock_db, school_id, other_school_id):
        foreign = _make_class(other_school_id, "Grade 1")
        mock_db.execute.side_effect = [_result(foreign)]

        with pytest.raises(ClassAccessDeniedError):
            await service.list_class_roster(school_id, foreign.id)
