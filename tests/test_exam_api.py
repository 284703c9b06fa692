# tests/test_exam_api.py

from datetime import datetime

import pytest

from conftest import auth_header, make_result


def as_teacher():
    return auth_header("teacher", user_id="USR_T")


@pytest.fixture
def seeded_db(fake_db):
    """One active batch of three students and a 50 mark exam taught by USR_T"""
    fake_db.batches.docs.append({
        "batch_id": "BAT_1",
        "name": "Morning Batch",
        "teacher_id": "USR_T",
        "students": ["S1", "S2", "S3"],
        "is_active": True,
    })
    fake_db.exams.docs.append({
        "exam_id": "EXM_1",
        "name": "Midterm",
        "batch_id": "BAT_1",
        "total_marks": 50,
        "date": datetime(2030, 1, 10),
    })
    fake_db.users.docs.extend([
        {"user_id": "S1", "name": "Asha", "role": "student"},
        {"user_id": "S2", "name": "Bilal", "role": "student"},
        {"user_id": "S3", "name": "Chen", "role": "student"},
    ])
    return fake_db


def test_assign_marks_stores_derived_grade(client, seeded_db):
    response = client.post("/api/exams/assign-marks", headers=as_teacher(), json={
        "exam_id": "EXM_1", "student_id": "S1", "marks_obtained": 42,
    })

    assert response.status_code == 200
    stored = seeded_db.exam_results.docs[0]
    assert stored["grade"] == "A"
    assert stored["result_id"].startswith("RES_")
    assert response.json()["result"]["grade"] == "A"


def test_assign_marks_twice_overwrites(client, seeded_db):
    for marks in (20, 46):
        client.post("/api/exams/assign-marks", headers=as_teacher(), json={
            "exam_id": "EXM_1", "student_id": "S1", "marks_obtained": marks,
        })

    assert len(seeded_db.exam_results.docs) == 1
    assert seeded_db.exam_results.docs[0]["marks_obtained"] == 46
    assert seeded_db.exam_results.docs[0]["grade"] == "A+"


def test_assign_marks_above_total_is_rejected(client, seeded_db):
    response = client.post("/api/exams/assign-marks", headers=as_teacher(), json={
        "exam_id": "EXM_1", "student_id": "S1", "marks_obtained": 60,
    })

    assert response.status_code == 400
    assert "cannot exceed total marks" in response.json()["detail"]
    assert seeded_db.exam_results.docs == []


def test_assign_marks_for_student_outside_batch(client, seeded_db):
    response = client.post("/api/exams/assign-marks", headers=as_teacher(), json={
        "exam_id": "EXM_1", "student_id": "S9", "marks_obtained": 10,
    })

    assert response.status_code == 400


def test_lowering_total_below_a_result_is_rejected(client, seeded_db):
    seeded_db.exam_results.docs.append(dict(make_result("EXM_1", "S1", 42), grade="A"))

    response = client.put("/api/exams/EXM_1", headers=as_teacher(), json={"total_marks": 40})

    assert response.status_code == 400
    assert seeded_db.exams.docs[0]["total_marks"] == 50


def test_changing_total_regrades_results(client, seeded_db):
    seeded_db.exam_results.docs.append(dict(make_result("EXM_1", "S1", 42), grade="A"))

    response = client.put("/api/exams/EXM_1", headers=as_teacher(), json={"total_marks": 100})

    assert response.status_code == 200
    assert response.json()["exam"]["total_marks"] == 100
    assert seeded_db.exam_results.docs[0]["grade"] == "D"


def test_exam_results_are_ranked_with_statistics(client, seeded_db):
    seeded_db.exam_results.docs.extend([
        make_result("EXM_1", "S1", 40, datetime(2030, 1, 12)),
        make_result("EXM_1", "S2", 45, datetime(2030, 1, 13)),
        make_result("EXM_1", "S3", 40, datetime(2030, 1, 11)),
    ])

    response = client.get("/api/exams/batch/EXM_1", headers=auth_header("admin"))

    assert response.status_code == 200
    body = response.json()
    assert [r["student_id"] for r in body["results"]] == ["S2", "S3", "S1"]
    assert [r["rank"] for r in body["results"]] == [1, 2, 3]
    assert body["results"][0]["percentage"] == 90
    assert body["results"][0]["grade"] == "A+"
    assert body["results"][0]["student_name"] == "Bilal"
    assert body["statistics"] == {
        "total_students": 3,
        "average_marks": 41.67,
        "highest_marks": 45,
        "lowest_marks": 40,
        "total_marks": 50,
    }


def test_bulk_assignment_reports_bad_rows(client, seeded_db):
    response = client.post("/api/exam-results/assign-multiple", headers=as_teacher(), json={
        "exam_id": "EXM_1",
        "results": [
            {"student_id": "S1", "marks_obtained": 30},
            {"student_id": "OUTSIDER", "marks_obtained": 10},
            {"student_id": "S2", "marks_obtained": 70},
        ],
    })

    assert response.status_code == 200
    body = response.json()
    assert body["summary"] == {"total_processed": 3, "successful": 1, "failed": 2}
    assert [e["student_id"] for e in body["errors"]] == ["OUTSIDER", "S2"]
    assert [r["student_id"] for r in seeded_db.exam_results.docs] == ["S1"]


def test_deleting_an_exam_removes_its_results(client, seeded_db):
    seeded_db.exam_results.docs.extend([
        make_result("EXM_1", "S1", 40),
        make_result("EXM_1", "S2", 30),
        make_result("EXM_OTHER", "S1", 5),
    ])

    response = client.delete("/api/exams/EXM_1", headers=auth_header("admin"))

    assert response.status_code == 200
    assert response.json()["results_deleted"] == 2
    assert seeded_db.exams.docs == []
    assert [r["exam_id"] for r in seeded_db.exam_results.docs] == ["EXM_OTHER"]


def test_exam_on_inactive_batch_is_not_found(client, seeded_db):
    seeded_db.batches.docs[0]["is_active"] = False

    create = client.post("/api/exams/create", headers=as_teacher(), json={
        "name": "Final",
        "batch_id": "BAT_1",
        "date": "2099-01-01T10:00:00",
        "duration": 90,
        "total_marks": 100,
    })
    assign = client.post("/api/exams/assign-marks", headers=as_teacher(), json={
        "exam_id": "EXM_1", "student_id": "S1", "marks_obtained": 10,
    })

    assert create.status_code == 404
    assert assign.status_code == 404
