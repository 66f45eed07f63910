# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the school structure service."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from schoolboard.domains.school_structure.service import (
    ReferenceNotFoundError,
    SchoolStructureService,
    StructureAccessDeniedError,
    StructureExistsError,
    StructureInUseError,
    StructureNotFoundError,
)
from schoolboard.infrastructure.database.models import (
    Class,
    Department,
    SchoolLevel,
    Subject,
    TeacherClass,
)
from schoolboard.models.school_structure import (
    ClassCreateRequest,
    ClassUpdateRequest,
    DepartmentCreateRequest,
    DepartmentUpdateRequest,
    SchoolLevelCreateRequest,
    SchoolLevelUpdateRequest,
    SubjectCreateRequest,
    SubjectUpdateRequest,
)


@pytest.fixture
def structure_service(mock_db):
    """Create structure service with mock database and directory."""
    service = SchoolStructureService(db=mock_db)
    service.directory = MagicMock()
    service.directory.get_subject = AsyncMock(return_value="subject-response")
    service.directory.get_class = AsyncMock(return_value="class-response")
    return service


def _entity(school_id: str, **attrs):
    entity = MagicMock()
    entity.id = str(uuid4())
    entity.school_id = school_id
    entity.created_at = datetime(2025, 1, 6, tzinfo=timezone.utc)
    for key, value in attrs.items():
        setattr(entity, key, value)
    return entity


def _found(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def _one(row):
    result = MagicMock()
    result.one.return_value = row
    return result


def _count(value):
    result = MagicMock()
    result.scalar.return_value = value
    return result


class TestDepartments:
    """Tests for department management."""

    @pytest.mark.asyncio
    async def test_list_departments_with_counts(self, structure_service, mock_db, school_id):
        science = _entity(school_id, name="Science")
        arts = _entity(school_id, name="Arts")
        result = MagicMock()
        result.all.return_value = [(arts, 0, None, 2), (science, 12, 3, 4)]
        mock_db.execute.return_value = result

        response = await structure_service.list_departments(school_id)

        assert response.total == 2
        assert [d.name for d in response.items] == ["Arts", "Science"]
        assert response.items[0].teacher_count == 0
        assert response.items[1].student_count == 12

    @pytest.mark.asyncio
    async def test_create_department(self, structure_service, mock_db, school_id):
        mock_db.execute.side_effect = [_found(None)]

        response = await structure_service.create_department(
            school_id, DepartmentCreateRequest(name="Science")
        )

        department = mock_db.add.call_args.args[0]
        assert isinstance(department, Department)
        assert department.school_id == school_id
        assert response.name == "Science"
        assert response.student_count == 0
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_department_name_taken(self, structure_service, mock_db, school_id):
        """Names compare case-insensitively within the school."""
        mock_db.execute.side_effect = [_found(str(uuid4()))]

        with pytest.raises(StructureExistsError):
            await structure_service.create_department(
                school_id, DepartmentCreateRequest(name="science")
            )

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_rename_department(self, structure_service, mock_db, school_id):
        department = _entity(school_id, name="Science")
        mock_db.execute.side_effect = [
            _found(department),
            _found(None),
            _one((department, 5, 2, 1)),
        ]

        response = await structure_service.update_department(
            school_id, department.id, DepartmentUpdateRequest(name="Sciences")
        )

        assert department.name == "Sciences"
        assert response.student_count == 5
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_department_same_name_skips_commit(
        self, structure_service, mock_db, school_id
    ):
        department = _entity(school_id, name="Science")
        mock_db.execute.side_effect = [_found(department), _one((department, 0, 0, 0))]

        await structure_service.update_department(
            school_id, department.id, DepartmentUpdateRequest(name="Science")
        )

        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_department_in_use(self, structure_service, mock_db, school_id):
        department = _entity(school_id, name="Science")
        mock_db.execute.side_effect = [_found(department), _one((department, 0, 1, 0))]

        with pytest.raises(StructureInUseError):
            await structure_service.delete_department(school_id, department.id)

        mock_db.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_unused_department(self, structure_service, mock_db, school_id):
        department = _entity(school_id, name="Science")
        mock_db.execute.side_effect = [_found(department), _one((department, 0, 0, 0))]

        await structure_service.delete_department(school_id, department.id)

        mock_db.delete.assert_awaited_once_with(department)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_department_of_other_school(
        self, structure_service, mock_db, school_id, other_school_id
    ):
        mock_db.execute.side_effect = [_found(_entity(other_school_id))]

        with pytest.raises(StructureAccessDeniedError):
            await structure_service.delete_department(school_id, uuid4())


class TestSchoolLevels:
    @pytest.mark.asyncio
    async def test_list_levels(self, structure_service, mock_db, school_id):
        primary = _entity(school_id, name="Primary", sort_order=0)
        secondary = _entity(school_id, name="Secondary", sort_order=1)
        result = MagicMock()
        result.scalars.return_value.all.return_value = [primary, secondary]
        mock_db.execute.return_value = result

        response = await structure_service.list_levels(school_id)

        assert [level.name for level in response.items] == ["Primary", "Secondary"]
        assert response.total == 2

    @pytest.mark.asyncio
    async def test_create_level(self, structure_service, mock_db, school_id):
        mock_db.execute.side_effect = [_found(None)]

        response = await structure_service.create_level(
            school_id, SchoolLevelCreateRequest(name="Junior Secondary", sort_order=2)
        )

        level = mock_db.add.call_args.args[0]
        assert isinstance(level, SchoolLevel)
        assert level.sort_order == 2
        assert response.name == "Junior Secondary"

    @pytest.mark.asyncio
    async def test_update_level_sort_order_only(self, structure_service, mock_db, school_id):
        level = _entity(school_id, name="Primary", sort_order=0)
        mock_db.execute.side_effect = [_found(level)]

        response = await structure_service.update_level(
            school_id, level.id, SchoolLevelUpdateRequest(sort_order=3)
        )

        assert level.sort_order == 3
        assert response.sort_order == 3
        assert response.name == "Primary"

    @pytest.mark.asyncio
    async def test_delete_level_in_use(self, structure_service, mock_db, school_id):
        level = _entity(school_id, name="Primary")
        mock_db.execute.side_effect = [_found(level), _one((2, 0))]

        with pytest.raises(StructureInUseError, match="2 classes"):
            await structure_service.delete_level(school_id, level.id)

        mock_db.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_level_missing(self, structure_service, mock_db, school_id):
        mock_db.execute.side_effect = [_found(None)]

        with pytest.raises(StructureNotFoundError):
            await structure_service.delete_level(school_id, uuid4())


class TestSubjects:
    @pytest.mark.asyncio
    async def test_create_subject(self, structure_service, mock_db, school_id):
        department_id = str(uuid4())
        level_id = str(uuid4())
        mock_db.execute.side_effect = [_found(department_id), _found(level_id)]

        result = await structure_service.create_subject(
            school_id,
            SubjectCreateRequest(
                name="Mathematics",
                code="MTH",
                department_id=department_id,
                level_id=level_id,
            ),
        )

        subject = mock_db.add.call_args.args[0]
        assert isinstance(subject, Subject)
        assert subject.department_id == department_id
        assert subject.level_id == level_id
        structure_service.directory.get_subject.assert_awaited_once_with(school_id, subject.id)
        assert result == "subject-response"

    @pytest.mark.asyncio
    async def test_create_subject_unknown_level(self, structure_service, mock_db, school_id):
        mock_db.execute.side_effect = [_found(None)]

        with pytest.raises(ReferenceNotFoundError, match="School level"):
            await structure_service.create_subject(
                school_id, SubjectCreateRequest(name="Mathematics", level_id=uuid4())
            )

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_subject_code(self, structure_service, mock_db, school_id):
        subject = _entity(school_id, name="Mathematics", code="MTH")
        mock_db.execute.side_effect = [_found(subject)]

        await structure_service.update_subject(
            school_id, subject.id, SubjectUpdateRequest(code="MATH")
        )

        assert subject.code == "MATH"
        assert subject.name == "Mathematics"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_subject(self, structure_service, mock_db, school_id):
        subject = _entity(school_id)
        mock_db.execute.side_effect = [_found(subject)]

        await structure_service.delete_subject(school_id, subject.id)

        mock_db.delete.assert_awaited_once_with(subject)


class TestClasses:
    @pytest.mark.asyncio
    async def test_create_class_with_class_teacher(self, structure_service, mock_db, school_id):
        teacher_id = str(uuid4())
        mock_db.execute.side_effect = [_found(teacher_id)]

        result = await structure_service.create_class(
            school_id,
            ClassCreateRequest(name="Grade 5", section="A", capacity=30, teacher_id=teacher_id),
        )

        added = [call.args[0] for call in mock_db.add.call_args_list]
        class_, link = added
        assert isinstance(class_, Class)
        assert class_.display_name == "Grade 5 (A)"
        assert isinstance(link, TeacherClass)
        assert link.teacher_id == teacher_id
        assert link.class_id == class_.id
        assert link.is_class_teacher is True
        mock_db.commit.assert_awaited_once()
        assert result == "class-response"

    @pytest.mark.asyncio
    async def test_create_class_without_teacher(self, structure_service, mock_db, school_id):
        await structure_service.create_class(school_id, ClassCreateRequest(name="Grade 6"))

        mock_db.execute.assert_not_called()
        assert mock_db.add.call_count == 1

    @pytest.mark.asyncio
    async def test_create_class_unknown_teacher(self, structure_service, mock_db, school_id):
        mock_db.execute.side_effect = [_found(None)]

        with pytest.raises(ReferenceNotFoundError, match="Teacher"):
            await structure_service.create_class(
                school_id, ClassCreateRequest(name="Grade 5", teacher_id=uuid4())
            )

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_class_capacity(self, structure_service, mock_db, school_id):
        class_ = _entity(school_id, name="Grade 5", capacity=30)
        mock_db.execute.side_effect = [_found(class_)]

        await structure_service.update_class(
            school_id, class_.id, ClassUpdateRequest(capacity=35)
        )

        assert class_.capacity == 35
        assert class_.name == "Grade 5"

    @pytest.mark.asyncio
    async def test_delete_class_with_active_students(
        self, structure_service, mock_db, school_id
    ):
        class_ = _entity(school_id)
        mock_db.execute.side_effect = [_found(class_), _count(3)]

        with pytest.raises(StructureInUseError, match="3 active students"):
            await structure_service.delete_class(school_id, class_.id)

        mock_db.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_empty_class(self, structure_service, mock_db, school_id):
        class_ = _entity(school_id)
        mock_db.execute.side_effect = [_found(class_), _count(0)]

        await structure_service.delete_class(school_id, class_.id)

        mock_db.delete.assert_awaited_once_with(class_)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_class_of_other_school(
        self, structure_service, mock_db, school_id, other_school_id
    ):
        mock_db.execute.side_effect = [_found(_entity(other_school_id))]

        with pytest.raises(StructureAccessDeniedError):
            await structure_service.delete_class(school_id, uuid4())
