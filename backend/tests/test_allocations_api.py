from datetime import timedelta

import pytest
from sqlalchemy import select

from app.core.exceptions import AllocationConflictError, DataStoreError
from app.models.course import Course
from app.models.faculty import FacultyRole
from app.models.school_class import SchoolClass
from app.models.timetable import TimetableEntry
from app.services.data_store import SqlAlchemyDataStore
from app.services.grouping import NewAllocation, TimetableEntryDraft

TERM = {"academic_year": 2025, "semester": 1}


def create_course(client, headers, department_id, code, required=None, semester=1):
    response = client.post(
        "/api/courses/",
        json={
            "code": code,
            "name": f"Course {code}",
            "department_id": department_id,
            "semester": semester,
            "required_expertise": required or [],
        },
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


def create_class(client, headers, department_id, section, semester=1, academic_year=2025):
    response = client.post(
        "/api/classes/",
        json={
            "section": section,
            "semester": semester,
            "academic_year": academic_year,
            "department_id": department_id,
        },
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture()
def seeded_term(client, admin_headers, make_member, department):
    first = make_member(department.id, name="Ada Lovelace", expertise=["Databases"])
    second = make_member(department.id, name="Alan Turing", expertise=["Machine Learning"])
    course = create_course(client, admin_headers, department.id, "CS101", required=["machine learning"])
    section_a = create_class(client, admin_headers, department.id, "A")
    section_b = create_class(client, admin_headers, department.id, "B")
    return {
        "faculty": [first, second],
        "course": course,
        "classes": [section_a, section_b],
    }


def test_allocation_routes_require_authentication(client):
    assert client.get("/api/allocations/").status_code == 401
    assert client.post("/api/allocations/auto-allocate", json=TERM).status_code == 401

    bad_token = client.get("/api/allocations/", headers={"Authorization": "Bearer not-a-token"})
    assert bad_token.status_code == 401


def test_expired_token_is_rejected(client, admin, issue_token):
    token = issue_token(admin.id, role="admin", expires_in=timedelta(minutes=-1))
    response = client.get("/api/allocations/", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_auto_allocate_is_admin_only(client, make_member, headers_for, department):
    member = make_member(department.id, name="Grace Hopper")

    response = client.post("/api/allocations/auto-allocate", json=TERM, headers=headers_for(member))

    assert response.status_code == 403


def test_inactive_account_is_forbidden(client, admin, admin_headers, db_session):
    admin.is_active = False
    db_session.commit()

    response = client.get("/api/allocations/", headers=admin_headers)

    assert response.status_code == 403


def test_auto_allocate_validates_term(client, admin_headers):
    assert client.post("/api/allocations/auto-allocate", json={"academic_year": 2025}, headers=admin_headers).status_code == 422
    assert (
        client.post(
            "/api/allocations/auto-allocate",
            json={"academic_year": 2025, "semester": 9},
            headers=admin_headers,
        ).status_code
        == 422
    )


def test_auto_allocate_end_to_end(client, admin, admin_headers, seeded_term, department):
    first, second = seeded_term["faculty"]
    section_a, section_b = seeded_term["classes"]

    response = client.post("/api/allocations/auto-allocate", json=TERM, headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Auto-allocation completed successfully"
    assert body["allocations_created"] == 2
    assert body["timetable_entries_created"] == 2
    assert [(item["faculty_id"], item["class_id"], item["status"]) for item in body["allocations"]] == [
        (first.id, section_a["id"], "pending"),
        (second.id, section_b["id"], "approved"),
    ]
    assert admin.id not in {item["faculty_id"] for item in body["allocations"]}

    timetable = client.get("/api/timetable/", headers=admin_headers).json()
    assert [(item["day_of_week"], item["time_slot"]) for item in timetable] == [(1, 1), (1, 1)]
    assert sorted(item["room_number"] for item in timetable) == [f"D{department.id}101", f"D{department.id}102"]

    again = client.post("/api/allocations/auto-allocate", json=TERM, headers=admin_headers)
    assert again.status_code == 200
    assert again.json() == {"message": "no new allocations needed", "allocations_created": 0}


def test_auto_allocate_with_nothing_to_allocate(client, admin_headers):
    response = client.post("/api/allocations/auto-allocate", json=TERM, headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {"message": "no new allocations needed", "allocations_created": 0}


def test_inactive_faculty_are_not_allocated(client, admin_headers, seeded_term, db_session):
    first, second = seeded_term["faculty"]
    first.is_active = False
    db_session.commit()

    body = client.post("/api/allocations/auto-allocate", json=TERM, headers=admin_headers).json()

    assert {item["faculty_id"] for item in body["allocations"]} == {second.id}


def test_timetable_failure_keeps_allocations(client, admin_headers, seeded_term, monkeypatch):
    def failing_insert(self, entries):
        raise DataStoreError("insert timetable entries", "disk full")

    monkeypatch.setattr(SqlAlchemyDataStore, "insert_timetable_entries", failing_insert)

    response = client.post("/api/allocations/auto-allocate", json=TERM, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["allocations_created"] == 2
    assert response.json()["timetable_entries_created"] == 0
    assert len(client.get("/api/allocations/", headers=admin_headers).json()) == 2
    assert client.get("/api/timetable/", headers=admin_headers).json() == []


def test_fetch_failure_returns_error_envelope(client, admin_headers, monkeypatch):
    def failing_fetch(self, role):
        raise DataStoreError("fetch faculty", "connection refused")

    monkeypatch.setattr(SqlAlchemyDataStore, "fetch_faculty_by_role", failing_fetch)

    response = client.post("/api/allocations/auto-allocate", json=TERM, headers=admin_headers)

    assert response.status_code == 500
    assert response.json()["message"] == "fetch faculty failed: connection refused"


def test_allocation_listing_is_enriched(client, admin_headers, seeded_term):
    client.post("/api/allocations/auto-allocate", json=TERM, headers=admin_headers)

    response = client.get("/api/allocations/", headers=admin_headers)

    assert response.status_code == 200
    rows = response.json()
    assert len(rows) == 2
    by_section = {item["class"]["section"]: item for item in rows}
    assert by_section["A"]["faculty"]["name"] == "Ada Lovelace"
    assert by_section["A"]["course"]["code"] == "CS101"
    assert by_section["A"]["class"]["display_name"] == "CSE A - Semester 1"


def test_manual_allocation_lifecycle(client, admin_headers, seeded_term):
    first, _ = seeded_term["faculty"]
    section_a, _ = seeded_term["classes"]
    payload = {
        **TERM,
        "faculty_id": first.id,
        "class_id": section_a["id"],
        "course_id": seeded_term["course"]["id"],
    }

    created = client.post("/api/allocations/", json=payload, headers=admin_headers)
    assert created.status_code == 201
    assert created.json()["status"] == "approved"
    allocation_id = created.json()["id"]

    duplicate = client.post("/api/allocations/", json=payload, headers=admin_headers)
    assert duplicate.status_code == 409

    missing_course = client.post("/api/allocations/", json={**payload, "course_id": 999}, headers=admin_headers)
    assert missing_course.status_code == 400

    rejected = client.post(f"/api/allocations/{allocation_id}/reject", headers=admin_headers)
    assert rejected.json()["status"] == "rejected"
    approved = client.post(f"/api/allocations/{allocation_id}/approve", headers=admin_headers)
    assert approved.json()["status"] == "approved"

    deleted = client.delete(f"/api/allocations/{allocation_id}", headers=admin_headers)
    assert deleted.status_code == 200
    assert client.post(f"/api/allocations/{allocation_id}/approve", headers=admin_headers).status_code == 404


def test_deleting_allocation_removes_its_timetable_entries(client, admin_headers, seeded_term):
    body = client.post("/api/allocations/auto-allocate", json=TERM, headers=admin_headers).json()
    allocation_id = body["allocations"][0]["id"]

    client.delete(f"/api/allocations/{allocation_id}", headers=admin_headers)

    remaining = client.get("/api/timetable/", headers=admin_headers).json()
    assert allocation_id not in {item["allocation_id"] for item in remaining}
    assert len(remaining) == 1


def test_allocation_windows(client, admin_headers):
    response = client.get("/api/allocations/windows", headers=admin_headers)

    assert response.status_code == 200
    window = response.json()[0]
    assert window["status"] == "active"
    assert window["semester"] in {1, 2}


def test_data_store_maps_duplicate_batch_to_conflict(db_session, make_member, department):
    member = make_member(department.id, name="Barbara Liskov", role=FacultyRole.faculty)
    store = SqlAlchemyDataStore(db_session)

    course = Course(code="CS200", name="Systems", department_id=department.id, semester=1)
    school_class = SchoolClass(section="A", semester=1, academic_year=2025, department_id=department.id)
    db_session.add_all([course, school_class])
    db_session.commit()
    batch = [NewAllocation(member.id, school_class.id, course.id, 2025, 1, "approved")]

    inserted = store.insert_allocations(batch)
    assert [item.faculty_id for item in inserted] == [member.id]

    with pytest.raises(AllocationConflictError) as exc_info:
        store.insert_allocations(batch)
    assert exc_info.value.status_code == 409
    assert len(store.fetch_allocations(2025, 1)) == 1


def test_data_store_replace_rolls_back_on_failure(db_session, make_member, department):
    member = make_member(department.id, name="Frances Allen")
    course = Course(code="CS300", name="Compilers", department_id=department.id, semester=1)
    school_class = SchoolClass(section="A", semester=1, academic_year=2025, department_id=department.id)
    db_session.add_all([course, school_class])
    db_session.commit()
    store = SqlAlchemyDataStore(db_session)
    (allocation,) = store.insert_allocations([NewAllocation(member.id, school_class.id, course.id, 2025, 1, "approved")])
    store.insert_timetable_entries([TimetableEntryDraft(allocation.id, 1, 1, "D1101")])

    # Day 9 violates the grid check constraint, so the whole swap must be undone.
    with pytest.raises(DataStoreError):
        store.replace_timetable_entries([allocation.id], [TimetableEntryDraft(allocation.id, 9, 1, "D1101")])

    rows = db_session.execute(select(TimetableEntry)).scalars().all()
    assert [(row.allocation_id, row.day_of_week, row.time_slot) for row in rows] == [(allocation.id, 1, 1)]

    removed, inserted = store.replace_timetable_entries([allocation.id], [TimetableEntryDraft(allocation.id, 2, 3, "D1101")])
    assert removed == 1
    assert len(inserted) == 1
    rows = db_session.execute(select(TimetableEntry)).scalars().all()
    assert [(row.day_of_week, row.time_slot) for row in rows] == [(2, 3)]
