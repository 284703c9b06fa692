"""
Role dashboards

Each builder pulls the caller's own data through the feature CRUD modules
and reuses the analytics engine for every percentage it shows.
"""

import logging
from datetime import datetime, timedelta

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from institute.analytics.attendance import status_of, summarize
from institute.analytics.reports import compose_student_report
from institute.analytics.sources import MongoAttendanceSource, MongoExamResultSource
from institute.attendance import database as attendance_db
from institute.batches import database as batches_db
from institute.core import config
from institute.core.permissions import Role
from institute.courses import database as courses_db
from institute.dashboard import database as dashboard_db
from institute.enrollments import database as enrollments_db
from institute.enrollments.models import EnrollmentStatus
from institute.exams import database as exams_db

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5


def profile_completion(user: dict) -> dict:
    """Basic info, contact info and a custom picture; percentage as an integer"""
    checks = {
        "basic_info": bool(user.get("name") and user.get("email")),
        "contact_info": bool(user.get("contact_info")),
        "profile_picture": bool(user.get("profile_picture"))
        and user.get("profile_picture") != config.DEFAULT_AVATAR,
    }
    completed = sum(1 for done in checks.values() if done)
    checks["overall_percentage"] = int(completed / 3 * 100 + 0.5)
    return checks


def profile_card(user: dict) -> dict:
    return {
        "user_id": user["user_id"],
        "name": user.get("name"),
        "email": user.get("email"),
        "profile_picture": user.get("profile_picture"),
        "contact_info": user.get("contact_info"),
        "member_since": user.get("created_at"),
    }


def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


# ==================== STUDENT ====================

async def student_dashboard(db: AsyncIOMotorDatabase, student: dict) -> dict:
    now = datetime.utcnow()
    student_id = student["user_id"]

    enrollments = await enrollments_db.list_student_enrollments(db, student_id)
    courses = await courses_db.get_courses_by_ids(db, {e["course_id"] for e in enrollments})
    batches = await batches_db.list_student_batches(db, student_id)
    batch_names = {b["batch_id"]: b.get("name") for b in batches}

    upcoming = await exams_db.list_upcoming_exams(db, list(batch_names), limit=RECENT_LIMIT)

    records = await MongoAttendanceSource(db).fetch_by_student(student_id)
    results_with_exam = await MongoExamResultSource(db).fetch_by_student(student_id)
    report = compose_student_report(student, records, results_with_exam)
    this_month = [r for r in records if r["date"] >= month_start(now)]

    exams_this_month = 0
    for batch_id in batch_names:
        exams_this_month += sum(
            1 for exam in await exams_db.list_batch_exams(db, batch_id)
            if (exam["date"].year, exam["date"].month) == (now.year, now.month)
        )

    return {
        "student": profile_card(student),
        "recent_enrollments": [
            {
                "enrollment_id": e["enrollment_id"],
                "course_name": courses.get(e["course_id"], {}).get("name"),
                "enrollment_date": e.get("enrollment_date"),
                "status": e.get("status"),
                "batch_name": batch_names.get(e.get("batch_id")),
            }
            for e in enrollments[:RECENT_LIMIT]
        ],
        "upcoming_exams": [
            {
                "exam_id": exam["exam_id"],
                "exam_name": exam.get("name"),
                "date": exam.get("date"),
                "batch_name": batch_names.get(exam["batch_id"]),
                "total_marks": exam.get("total_marks"),
            }
            for exam in upcoming
        ],
        "attendance_summary": {
            **report["attendance"],
            "recent_attendance": [
                {"date": r["date"], "batch_id": r["batch_id"], "status": status_of(r, student_id)}
                for r in records[:RECENT_LIMIT]
            ],
        },
        "recent_results": report["exam_results"][:RECENT_LIMIT],
        "quick_stats": {
            "total_courses": len(enrollments),
            "active_courses": sum(1 for e in enrollments if e.get("status") == EnrollmentStatus.ACTIVE.value),
            "exams_this_month": exams_this_month,
            "attendance_this_month": summarize(this_month, student_id)["percentage"],
        },
        "profile_completion": profile_completion(student),
    }


# ==================== TEACHER ====================

async def teacher_dashboard(db: AsyncIOMotorDatabase, teacher: dict) -> dict:
    now = datetime.utcnow()
    today = now.date()

    batches = await batches_db.list_teacher_batches(db, teacher["user_id"])
    batch_ids = [b["batch_id"] for b in batches]
    courses = await courses_db.get_courses_by_ids(db, {b["course_id"] for b in batches})

    running = [
        b for b in batches
        if b.get("start_date") and b.get("end_date") and b["start_date"] <= now <= b["end_date"]
    ]
    marked_today = await attendance_db.marked_batches_on(db, [b["batch_id"] for b in running], today)
    pending = [b for b in running if b["batch_id"] not in marked_today]

    upcoming = await exams_db.list_upcoming_exams(db, batch_ids, limit=RECENT_LIMIT)
    rosters = {b["batch_id"]: b for b in batches}
    week_end = now + timedelta(days=7)

    students = set()
    for batch in batches:
        students.update(batch.get("students", []))

    return {
        "teacher": profile_card(teacher),
        "assigned_batches": [
            {
                "batch_id": b["batch_id"],
                "name": b.get("name"),
                "course_name": courses.get(b["course_id"], {}).get("name"),
                "student_count": len(b.get("students", [])),
                "start_date": b.get("start_date"),
                "end_date": b.get("end_date"),
            }
            for b in batches
        ],
        "todays_attendance": [
            {
                "batch_id": b["batch_id"],
                "batch_name": b.get("name"),
                "course_name": courses.get(b["course_id"], {}).get("name"),
                "attendance_marked": b["batch_id"] in marked_today,
            }
            for b in running
        ],
        "upcoming_exams": [
            {
                "exam_id": exam["exam_id"],
                "exam_name": exam.get("name"),
                "batch_name": rosters.get(exam["batch_id"], {}).get("name"),
                "date": exam.get("date"),
                "total_students": len(rosters.get(exam["batch_id"], {}).get("students", [])),
            }
            for exam in upcoming
        ],
        "pending_tasks": [
            {
                "type": "attendance",
                "count": len(pending),
                "description": "Mark attendance for today's classes",
            }
        ] if pending else [],
        "quick_stats": {
            "total_batches": len(batches),
            "total_students": len(students),
            "exams_this_week": sum(1 for exam in upcoming if exam["date"] <= week_end),
            "attendance_pending": len(pending),
        },
        "profile_completion": profile_completion(teacher),
    }


# ==================== ADMIN ====================

QUICK_ACTIONS = [
    {"action": "Create Course", "endpoint": "/api/courses/create", "description": "Add a new course"},
    {"action": "Create Batch", "endpoint": "/api/batches/create", "description": "Create a new batch for a course"},
    {"action": "Create Teacher", "endpoint": "/api/teachers/create", "description": "Add a teacher account"},
    {"action": "Enrollment Report", "endpoint": "/api/reports/all-courses-enrollment", "description": "Enrollments and revenue per course"},
]


async def system_health(db: AsyncIOMotorDatabase) -> dict:
    try:
        await dashboard_db.database_ping(db)
        database = "connected"
    except PyMongoError:
        logger.exception("Database ping failed")
        database = "unreachable"
    return {"database": database, "checked_at": datetime.utcnow()}


async def admin_dashboard(db: AsyncIOMotorDatabase, admin: dict) -> dict:
    now = datetime.utcnow()

    popular = await enrollments_db.popular_courses(db, limit=RECENT_LIMIT)
    courses = await courses_db.get_courses_by_ids(db, [p["course_id"] for p in popular])

    return {
        "admin": profile_card(admin),
        "overview": {
            "total_students": await dashboard_db.count_users(db, Role.STUDENT),
            "total_teachers": await dashboard_db.count_users(db, Role.TEACHER),
            "total_courses": await dashboard_db.count_active_courses(db),
            "total_batches": await dashboard_db.count_active_batches(db),
            "active_enrollments": await dashboard_db.count_active_enrollments(db),
            "revenue_this_month": await dashboard_db.revenue_since(db, month_start(now)),
            "pending_approvals": await dashboard_db.count_unverified_users(db),
        },
        "popular_courses": [
            {
                "course_id": p["course_id"],
                "name": courses.get(p["course_id"], {}).get("name"),
                "enrollment_count": p["enrollments"],
                "revenue": p["enrollments"] * courses.get(p["course_id"], {}).get("fees", 0),
            }
            for p in popular
        ],
        "recent_users": [
            {
                "user_id": u["user_id"],
                "name": u.get("name"),
                "email": u.get("email"),
                "role": u.get("role"),
                "joined_date": u.get("created_at"),
            }
            for u in await dashboard_db.recent_users(db)
        ],
        "system_health": await system_health(db),
        "quick_actions": QUICK_ACTIONS,
        "profile_completion": profile_completion(admin),
    }
