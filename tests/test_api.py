# tests/test_api.py

from datetime import datetime

import pytest

from conftest import auth_header
from institute.core.security import decode_access_token, hash_password


COURSE = {"name": "Web Development", "description": "Full stack web course", "duration": 6, "fees": 1200}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/version").status_code == 200


def test_missing_token_is_unauthorized(client):
    response = client.get("/api/users/profile")

    assert response.status_code == 401


def test_malformed_token_is_unauthorized(client):
    response = client.get("/api/users/profile", headers={"Authorization": "Bearer nope"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or Expired Token"


@pytest.mark.parametrize(
    "method, path, role, body",
    [
        ("post", "/api/courses/create", "student", COURSE),
        ("post", "/api/courses/create", "teacher", COURSE),
        ("get", "/api/teachers/all", "teacher", None),
        ("get", "/api/reports/all-courses-enrollment", "teacher", None),
        ("get", "/api/reports/batch-performance/BAT_1", "student", None),
        ("get", "/api/attendance/stats/BAT_1", "student", None),
        ("get", "/api/enrollments/my-enrollments", "admin", None),
        ("get", "/api/dashboard/admin", "student", None),
        ("post", "/api/exams/assign-marks", "admin", {"exam_id": "E", "student_id": "S", "marks_obtained": 1}),
    ],
)
def test_role_gates(client, method, path, role, body):
    kwargs = {"headers": auth_header(role)}
    if body is not None:
        kwargs["json"] = body

    response = getattr(client, method)(path, **kwargs)

    assert response.status_code == 403


def test_students_cannot_read_other_students(client):
    response = client.get("/api/reports/student-performance/USR_OTHER", headers=auth_header("student"))

    assert response.status_code == 403


def test_signup_rejects_bad_payload(client):
    response = client.post("/api/auth/signup", json={
        "name": "A",
        "email": "not-an-email",
        "password": "123",
        "contact_info": "short",
    })

    assert response.status_code == 422


def test_signup_creates_unverified_user(client, fake_db):
    response = client.post("/api/auth/signup", json={
        "name": "Asha Rao",
        "email": "Asha@Example.com",
        "password": "secret1",
        "contact_info": "+91 98765 43210",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["user"]["role"] == "student"
    assert body["user"]["email"] == "asha@example.com"

    stored = fake_db.users.docs[0]
    assert stored["is_email_verified"] is False
    assert stored["password_hash"] != "secret1"
    assert stored["email_verification_token"]
    assert stored["profile_picture"] == "default-avatar.png"


def test_signup_duplicate_email(client, fake_db):
    fake_db.users.docs.append({"user_id": "USR_1", "email": "asha@example.com", "role": "student"})

    response = client.post("/api/auth/signup", json={
        "name": "Asha Rao",
        "email": "asha@example.com",
        "password": "secret1",
        "contact_info": "+91 98765 43210",
    })

    assert response.status_code == 400
    assert response.json()["detail"] == "Email already registered"


def test_login_issues_token(client, fake_db):
    fake_db.users.docs.append({
        "user_id": "USR_1",
        "name": "Asha Rao",
        "email": "asha@example.com",
        "role": "teacher",
        "password_hash": hash_password("secret1"),
    })

    response = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "secret1"})

    assert response.status_code == 200
    payload = decode_access_token(response.json()["token"])
    assert payload["user_id"] == "USR_1"
    assert payload["role"] == "teacher"


def test_login_with_wrong_password(client, fake_db):
    fake_db.users.docs.append({
        "user_id": "USR_1",
        "email": "asha@example.com",
        "role": "student",
        "password_hash": hash_password("secret1"),
    })

    response = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "wrong1"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid email or password"


def test_profile_hides_password_hash(client, fake_db):
    fake_db.users.docs.append({
        "user_id": "USR_TEST",
        "name": "Asha Rao",
        "email": "user@example.com",
        "role": "student",
        "password_hash": "hash",
        "contact_info": "+91 98765 43210",
    })

    response = client.get("/api/users/profile", headers=auth_header("student"))

    assert response.status_code == 200
    assert "password_hash" not in response.json()["user"]


def test_public_courses_lists_active_only(client, fake_db):
    fake_db.courses.docs.extend([
        {"course_id": "CRS_1", "name": "Web", "is_active": True, "created_at": datetime(2025, 1, 1)},
        {"course_id": "CRS_2", "name": "Old", "is_active": False, "created_at": datetime(2024, 1, 1)},
    ])

    response = client.get("/api/courses/public")

    assert response.status_code == 200
    assert [c["course_id"] for c in response.json()["courses"]] == ["CRS_1"]


def test_broken_exam_maps_to_server_error(client, fake_db):
    fake_db.exams.docs.append({"exam_id": "EXM_1", "batch_id": "BAT_1", "total_marks": 0, "name": "Broken"})
    fake_db.batches.docs.append({"batch_id": "BAT_1", "teacher_id": "USR_T", "students": [], "is_active": True})

    response = client.get("/api/exams/batch/EXM_1", headers=auth_header("admin"))

    assert response.status_code == 500
    assert response.json()["detail"] == "Invalid exam configuration"


def test_teacher_outside_batch_is_forbidden(client, fake_db):
    fake_db.batches.docs.append({"batch_id": "BAT_1", "teacher_id": "USR_OWNER", "students": [], "is_active": True})

    response = client.get("/api/attendance/stats/BAT_1", headers=auth_header("teacher", user_id="USR_OTHER"))

    assert response.status_code == 403


@pytest.mark.parametrize(
    "method, path, body",
    [
        ("put", "/api/courses/CRS_1", {"fees": 900}),
        ("delete", "/api/batches/BAT_1", None),
        ("put", "/api/exams/EXM_1", {"duration": 45}),
    ],
)
def test_database_failure_is_a_json_server_error(client, fake_db, method, path, body):
    async def broken(*args, **kwargs):
        raise RuntimeError("connection reset")

    for name in ("courses", "batches", "exams"):
        getattr(fake_db, name).update_one = broken
    fake_db.batches.docs.append({"batch_id": "BAT_1", "teacher_id": "USR_T", "students": [], "is_active": True})
    fake_db.exams.docs.append({"exam_id": "EXM_1", "batch_id": "BAT_1", "total_marks": 50, "name": "Quiz"})

    role, user_id = ("teacher", "USR_T") if path.startswith("/api/exams") else ("admin", "USR_TEST")
    kwargs = {"headers": auth_header(role, user_id=user_id)}
    if body is not None:
        kwargs["json"] = body

    response = getattr(client, method)(path, **kwargs)

    assert response.status_code == 500
    assert response.json()["detail"] == "Internal Server Error"
