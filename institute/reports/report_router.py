import logging

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from institute.analytics.errors import InvalidExamConfiguration
from institute.analytics.sources import MongoAttendanceSource, MongoExamResultSource
from institute.batches.batch_permissions import verify_batch_access
from institute.core.database import get_db
from institute.core.permissions import (
    Role,
    UserContext,
    ensure_self_or_staff,
    get_current_user,
    require_roles,
)
from institute.courses import database as courses_db
from institute.exams import database as exams_db
from institute.reports import database as reports_db
from institute.reports.service import batch_performance, student_performance
from institute.users import database as users_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])

staff_only = require_roles(Role.ADMIN, Role.TEACHER)
student_only = require_roles(Role.STUDENT)
admin_only = require_roles(Role.ADMIN)


async def _student_report(db: AsyncIOMotorDatabase, student_id: str) -> dict:
    student = await users_db.get_user(db, student_id)
    if not student or student.get("role") != Role.STUDENT.value:
        raise HTTPException(status_code=404, detail="Student not found")

    return await student_performance(
        student,
        MongoAttendanceSource(db),
        MongoExamResultSource(db)
    )


@router.get("/student-performance/{student_id}")
async def get_student_performance(
    student_id: str,
    user: UserContext = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        ensure_self_or_staff(user, student_id)

        report = await _student_report(db, student_id)
        return {"success": True, "message": "Student performance report generated", "report": report}

    except (HTTPException, InvalidExamConfiguration):
        raise
    except Exception:
        logger.exception("Student report for %s failed", student_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/my-performance")
async def get_my_performance(
    user: UserContext = Depends(student_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        report = await _student_report(db, user.user_id)
        return {"success": True, "message": "Your performance report generated", "report": report}

    except (HTTPException, InvalidExamConfiguration):
        raise
    except Exception:
        logger.exception("Student report for %s failed", user.user_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/batch-performance/{batch_id}")
async def get_batch_performance(
    batch_id: str,
    user: UserContext = Depends(staff_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        batch = await verify_batch_access(db, batch_id, user)
        exams = await exams_db.list_batch_exams(db, batch_id)

        report = await batch_performance(
            batch,
            exams,
            MongoAttendanceSource(db),
            MongoExamResultSource(db)
        )

        # Names for display only; the composer works on ids
        students = await users_db.get_users_by_ids(db, batch.get("students", []))
        for standing in report["student_performance"]:
            standing["student_name"] = students.get(standing["student_id"], {}).get("name")
        top = report["overall_stats"]["top_performer"]
        if top:
            top["student_name"] = students.get(top["student_id"], {}).get("name")

        return {"success": True, "message": "Batch performance report generated", "report": report}

    except (HTTPException, InvalidExamConfiguration):
        raise
    except Exception:
        logger.exception("Batch report for %s failed", batch_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/course-enrollment/{course_id}")
async def get_course_enrollment(
    course_id: str,
    user: UserContext = Depends(staff_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        course = await courses_db.get_course(db, course_id)
        if not course:
            raise HTTPException(status_code=404, detail="Course not found")

        report = await reports_db.course_enrollment_report(db, course)
        return {"success": True, "message": "Course enrollment report generated", "report": report}

    except HTTPException:
        raise
    except Exception:
        logger.exception("Enrollment report for course %s failed", course_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/all-courses-enrollment")
async def get_all_courses_enrollment(
    admin: UserContext = Depends(admin_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        courses = await reports_db.all_courses_enrollment_report(db)
        return {
            "success": True,
            "message": "All courses enrollment report generated",
            "count": len(courses),
            "courses": courses
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("All courses enrollment report failed")
        raise HTTPException(status_code=500, detail="Internal Server Error")
