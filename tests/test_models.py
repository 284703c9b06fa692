# tests/test_models.py

from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from institute.attendance.models import AttendanceMark
from institute.batches.models import BatchCreate
from institute.dashboard.service import profile_completion
from institute.exams.models import ExamCreate
from institute.users.models import SignupRequest, TeacherCreate


def future(days):
    return datetime.utcnow() + timedelta(days=days)


def test_attendance_sets_must_be_disjoint():
    with pytest.raises(ValidationError):
        AttendanceMark(
            batch_id="BAT_1",
            date=date(2025, 3, 3),
            present_students=["S1", "S2"],
            absent_students=["S2"],
        )


def test_attendance_drops_repeated_ids():
    mark = AttendanceMark(
        batch_id="BAT_1",
        date=date(2025, 3, 3),
        present_students=["S1", "S1"],
        absent_students=[],
    )

    assert mark.present_students == ["S1"]


def test_batch_dates():
    with pytest.raises(ValidationError):
        BatchCreate(name="Evening", course_id="C", teacher_id="T",
                    start_date=future(10), end_date=future(5))

    with pytest.raises(ValidationError):
        BatchCreate(name="Evening", course_id="C", teacher_id="T",
                    start_date=future(-1), end_date=future(5))

    batch = BatchCreate(name="Evening", course_id="C", teacher_id="T",
                        start_date=future(1), end_date=future(90))
    assert batch.max_students == 30


def test_batch_accepts_timezone_aware_dates():
    start = datetime.now(timezone.utc) + timedelta(days=2)
    batch = BatchCreate(name="Evening", course_id="C", teacher_id="T",
                        start_date=start, end_date=start + timedelta(days=30))

    assert batch.start_date.tzinfo is None


def test_exam_needs_positive_total_and_future_date():
    with pytest.raises(ValidationError):
        ExamCreate(name="Mid", batch_id="B", date=future(3), duration=60, total_marks=0)

    with pytest.raises(ValidationError):
        ExamCreate(name="Mid", batch_id="B", date=future(-3), duration=60, total_marks=50)


def test_signup_defaults_to_student():
    signup = SignupRequest(
        name="Asha Rao",
        email=" ASHA@example.com ",
        password="secret1",
        contact_info="+91 98765 43210",
    )

    assert signup.role.value == "student"
    assert signup.email == "asha@example.com"


@pytest.mark.parametrize("email", ["a@b..c", "x@-.com", "a@b.c.", "no-at-sign.com", "two@@example.com"])
def test_signup_rejects_malformed_email(email):
    with pytest.raises(ValidationError):
        SignupRequest(name="Asha", email=email, password="secret1", contact_info="9876543210")


def test_teacher_email_is_lowercased():
    teacher = TeacherCreate(
        name="Ravi Kumar",
        email="Ravi.Kumar@Example.COM",
        password="secret1",
        contact_info="+91 98765 43210",
    )

    assert teacher.email == "ravi.kumar@example.com"


@pytest.mark.parametrize(
    "user, percentage",
    [
        ({"name": "A", "email": "a@x.io"}, 33),
        ({"name": "A", "email": "a@x.io", "contact_info": "+1 555 0100 22"}, 67),
        ({"name": "A", "email": "a@x.io", "contact_info": "+1 555 0100 22",
          "profile_picture": "default-avatar.png"}, 67),
        ({"name": "A", "email": "a@x.io", "contact_info": "+1 555 0100 22",
          "profile_picture": "https://cdn.example.com/a.png"}, 100),
    ],
)
def test_profile_completion(user, percentage):
    assert profile_completion(user)["overall_percentage"] == percentage
