# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for department, level, subject and class provisioning."""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

from schoolboard.domains.directory import RecordNotFoundError
from schoolboard.domains.school_structure import (
    ReferenceNotFoundError,
    StructureAccessDeniedError,
    StructureExistsError,
    StructureInUseError,
    StructureNotFoundError,
)
from schoolboard.models.directory import ClassResponse, SubjectResponse
from schoolboard.models.school_structure import (
    DepartmentListResponse,
    DepartmentResponse,
    SchoolLevelListResponse,
    SchoolLevelResponse,
)


def _service(**methods) -> MagicMock:
    service = MagicMock()
    for name, value in methods.items():
        setattr(service, name, AsyncMock(**value))
    return service


class TestRouting:
    def test_routes_registered(self, app):
        routes = [route.path for route in app.routes]

        assert "/api/v1/departments" in routes
        assert "/api/v1/departments/{department_id}" in routes
        assert "/api/v1/school-levels" in routes
        assert "/api/v1/school-levels/{level_id}" in routes
        assert "/api/v1/subjects/{subject_id}" in routes
        assert "/api/v1/classes/{class_id}" in routes


class TestDepartmentsAPI:
    SERVICE = "schoolboard.api.v1.departments._get_structure_service"

    def test_list_departments(self, client, teacher_headers, school_id):
        service = _service(
            list_departments={
                "return_value": DepartmentListResponse(
                    items=[DepartmentResponse(id=str(uuid4()), name="Science", student_count=40)],
                    total=1,
                )
            }
        )

        with patch(self.SERVICE, return_value=service):
            response = client.get("/api/v1/departments", headers=teacher_headers)

        assert response.status_code == 200
        assert response.json()["items"][0]["student_count"] == 40
        service.list_departments.assert_awaited_once_with(school_id)

    def test_list_departments_requires_staff(self, client, student_headers):
        response = client.get("/api/v1/departments", headers=student_headers)

        assert response.status_code == 403

    def test_create_department(self, client, admin_headers):
        service = _service(
            create_department={
                "return_value": DepartmentResponse(id=str(uuid4()), name="Science")
            }
        )

        with patch(self.SERVICE, return_value=service):
            response = client.post(
                "/api/v1/departments", json={"name": "Science"}, headers=admin_headers
            )

        assert response.status_code == 201
        assert response.json()["name"] == "Science"

    def test_create_department_duplicate_name(self, client, admin_headers):
        service = _service(create_department={"side_effect": StructureExistsError("exists")})

        with patch(self.SERVICE, return_value=service):
            response = client.post(
                "/api/v1/departments", json={"name": "Science"}, headers=admin_headers
            )

        assert response.status_code == 409

    def test_create_department_empty_name(self, client, admin_headers):
        response = client.post("/api/v1/departments", json={"name": ""}, headers=admin_headers)

        assert response.status_code == 422

    def test_create_department_requires_admin(self, client, teacher_headers):
        response = client.post(
            "/api/v1/departments", json={"name": "Science"}, headers=teacher_headers
        )

        assert response.status_code == 403

    def test_rename_department_of_other_school(self, client, admin_headers):
        service = _service(
            update_department={"side_effect": StructureAccessDeniedError("other school")}
        )

        with patch(self.SERVICE, return_value=service):
            response = client.put(
                f"/api/v1/departments/{uuid4()}", json={"name": "Arts"}, headers=admin_headers
            )

        assert response.status_code == 403

    def test_delete_department_in_use(self, client, admin_headers):
        service = _service(
            delete_department={"side_effect": StructureInUseError("has students")}
        )

        with patch(self.SERVICE, return_value=service):
            response = client.delete(f"/api/v1/departments/{uuid4()}", headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["detail"] == "has students"


class TestSchoolLevelsAPI:
    SERVICE = "schoolboard.api.v1.school_levels._get_structure_service"

    def test_list_levels(self, client, admin_headers):
        service = _service(
            list_levels={
                "return_value": SchoolLevelListResponse(
                    items=[
                        SchoolLevelResponse(id=str(uuid4()), name="Primary", sort_order=0),
                        SchoolLevelResponse(id=str(uuid4()), name="Secondary", sort_order=1),
                    ],
                    total=2,
                )
            }
        )

        with patch(self.SERVICE, return_value=service):
            response = client.get("/api/v1/school-levels", headers=admin_headers)

        assert response.status_code == 200
        assert [level["name"] for level in response.json()["items"]] == ["Primary", "Secondary"]

    def test_create_level(self, client, admin_headers):
        service = _service(
            create_level={
                "return_value": SchoolLevelResponse(
                    id=str(uuid4()), name="Junior Secondary", sort_order=2
                )
            }
        )

        with patch(self.SERVICE, return_value=service):
            response = client.post(
                "/api/v1/school-levels",
                json={"name": "Junior Secondary", "sort_order": 2},
                headers=admin_headers,
            )

        assert response.status_code == 201
        data = service.create_level.await_args.args[1]
        assert data.sort_order == 2

    def test_create_level_negative_sort_order(self, client, admin_headers):
        response = client.post(
            "/api/v1/school-levels",
            json={"name": "Primary", "sort_order": -1},
            headers=admin_headers,
        )

        assert response.status_code == 422

    def test_update_missing_level(self, client, admin_headers):
        service = _service(update_level={"side_effect": StructureNotFoundError("missing")})

        with patch(self.SERVICE, return_value=service):
            response = client.put(
                f"/api/v1/school-levels/{uuid4()}", json={"sort_order": 1}, headers=admin_headers
            )

        assert response.status_code == 404

    def test_delete_level(self, client, admin_headers):
        service = _service(delete_level={"return_value": None})

        with patch(self.SERVICE, return_value=service):
            response = client.delete(f"/api/v1/school-levels/{uuid4()}", headers=admin_headers)

        assert response.status_code == 204

    def test_delete_level_requires_admin(self, client, teacher_headers):
        response = client.delete(f"/api/v1/school-levels/{uuid4()}", headers=teacher_headers)

        assert response.status_code == 403


class TestSubjectProvisioning:
    SERVICE = "schoolboard.api.v1.subjects._get_structure_service"

    def test_create_subject(self, client, admin_headers, school_id):
        service = _service(
            create_subject={
                "return_value": SubjectResponse(id=str(uuid4()), name="Mathematics", code="MTH")
            }
        )

        with patch(self.SERVICE, return_value=service):
            response = client.post(
                "/api/v1/subjects",
                json={"name": "Mathematics", "code": "MTH"},
                headers=admin_headers,
            )

        assert response.status_code == 201
        assert response.json()["code"] == "MTH"
        assert service.create_subject.await_args.args[0] == school_id

    def test_create_subject_unknown_department(self, client, admin_headers):
        service = _service(
            create_subject={"side_effect": ReferenceNotFoundError("Department not found")}
        )

        with patch(self.SERVICE, return_value=service):
            response = client.post(
                "/api/v1/subjects",
                json={"name": "Mathematics", "department_id": str(uuid4())},
                headers=admin_headers,
            )

        assert response.status_code == 404

    def test_get_subject(self, client, teacher_headers):
        subject_id = str(uuid4())
        directory = MagicMock()
        directory.get_subject = AsyncMock(
            return_value=SubjectResponse(id=subject_id, name="Mathematics")
        )

        with patch("schoolboard.api.v1.subjects.DirectoryService", return_value=directory):
            response = client.get(f"/api/v1/subjects/{subject_id}", headers=teacher_headers)

        assert response.status_code == 200
        assert response.json()["id"] == subject_id

    def test_get_subject_not_found(self, client, admin_headers):
        directory = MagicMock()
        directory.get_subject = AsyncMock(side_effect=RecordNotFoundError("Subject not found"))

        with patch("schoolboard.api.v1.subjects.DirectoryService", return_value=directory):
            response = client.get(f"/api/v1/subjects/{uuid4()}", headers=admin_headers)

        assert response.status_code == 404

    def test_delete_subject_requires_admin(self, client, teacher_headers):
        response = client.delete(f"/api/v1/subjects/{uuid4()}", headers=teacher_headers)

        assert response.status_code == 403


class TestClassProvisioning:
    SERVICE = "schoolboard.api.v1.classes._get_structure_service"

    def test_create_class(self, client, admin_headers):
        teacher_id = str(uuid4())
        service = _service(
            create_class={
                "return_value": ClassResponse(
                    id=str(uuid4()),
                    name="Grade 5",
                    section="A",
                    display_name="Grade 5 (A)",
                    capacity=30,
                )
            }
        )

        with patch(self.SERVICE, return_value=service):
            response = client.post(
                "/api/v1/classes",
                json={"name": "Grade 5", "section": "A", "capacity": 30, "teacher_id": teacher_id},
                headers=admin_headers,
            )

        assert response.status_code == 201
        assert response.json()["display_name"] == "Grade 5 (A)"
        data = service.create_class.await_args.args[1]
        assert str(data.teacher_id) == teacher_id

    def test_create_class_zero_capacity(self, client, admin_headers):
        response = client.post(
            "/api/v1/classes", json={"name": "Grade 5", "capacity": 0}, headers=admin_headers
        )

        assert response.status_code == 422

    def test_create_class_unknown_level(self, client, admin_headers):
        service = _service(
            create_class={"side_effect": ReferenceNotFoundError("School level not found")}
        )

        with patch(self.SERVICE, return_value=service):
            response = client.post(
                "/api/v1/classes",
                json={"name": "Grade 5", "level_id": str(uuid4())},
                headers=admin_headers,
            )

        assert response.status_code == 404

    def test_get_class(self, client, teacher_headers):
        class_id = str(uuid4())
        directory = MagicMock()
        directory.get_class = AsyncMock(
            return_value=ClassResponse(
                id=class_id, name="Grade 5", display_name="Grade 5", student_count=18
            )
        )

        with patch("schoolboard.api.v1.classes.DirectoryService", return_value=directory):
            response = client.get(f"/api/v1/classes/{class_id}", headers=teacher_headers)

        assert response.status_code == 200
        assert response.json()["student_count"] == 18

    def test_update_class(self, client, admin_headers):
        class_id = str(uuid4())
        service = _service(
            update_class={
                "return_value": ClassResponse(
                    id=class_id, name="Grade 5", display_name="Grade 5", capacity=35
                )
            }
        )

        with patch(self.SERVICE, return_value=service):
            response = client.put(
                f"/api/v1/classes/{class_id}", json={"capacity": 35}, headers=admin_headers
            )

        assert response.status_code == 200
        assert response.json()["capacity"] == 35

    def test_delete_class_with_active_students(self, client, admin_headers):
        service = _service(
            delete_class={
                "side_effect": StructureInUseError("Cannot delete a class with 3 active students")
            }
        )

        with patch(self.SERVICE, return_value=service):
            response = client.delete(f"/api/v1/classes/{uuid4()}", headers=admin_headers)

        assert response.status_code == 409

    def test_delete_class_requires_admin(self, client, teacher_headers):
        response = client.delete(f"/api/v1/classes/{uuid4()}", headers=teacher_headers)

        assert response.status_code == 403
