import logging

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from institute.analytics.errors import InvalidExamConfiguration
from institute.analytics.grading import grade_of
from institute.analytics.exam_stats import percentage_of
from institute.analytics.sources import MongoAttendanceSource, MongoExamResultSource
from institute.core.database import get_db
from institute.core.permissions import (
    Role,
    UserContext,
    ensure_self_or_staff,
    get_current_user,
    require_roles,
)
from institute.exams import database as exams_db
from institute.exams.exam_router import verify_exam_access
from institute.exams.models import BulkMarksAssign
from institute.reports.service import student_performance
from institute.users import database as users_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exam-results", tags=["Exam Results"])

staff_only = require_roles(Role.ADMIN, Role.TEACHER)
teacher_only = require_roles(Role.TEACHER)


@router.post("/assign-multiple")
async def assign_multiple(
    data: BulkMarksAssign,
    teacher: UserContext = Depends(teacher_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Assign marks for many students at once

    Rows are processed independently: a bad row is reported in `errors`
    and does not stop the others.
    """
    try:
        exam, batch = await verify_exam_access(db, data.exam_id, teacher)
        roster = set(batch.get("students", []))

        saved = []
        errors = []
        for row in data.results:
            if row.student_id not in roster:
                errors.append({"student_id": row.student_id, "error": "Student is not in this batch"})
                continue
            if row.marks_obtained > exam["total_marks"]:
                errors.append({
                    "student_id": row.student_id,
                    "error": f"Marks obtained cannot exceed total marks ({exam['total_marks']})"
                })
                continue

            saved.append(await exams_db.upsert_result(
                db, exam, row.student_id, row.marks_obtained, row.remarks, teacher.user_id
            ))

        logger.info(
            "Bulk marks for exam %s: %d saved, %d failed",
            data.exam_id, len(saved), len(errors)
        )

        return {
            "success": True,
            "message": "Marks assigned successfully",
            "results": saved,
            "errors": errors,
            "summary": {
                "total_processed": len(data.results),
                "successful": len(saved),
                "failed": len(errors),
            }
        }

    except (HTTPException, InvalidExamConfiguration):
        raise
    except Exception:
        logger.exception("Bulk mark assignment failed")
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/student-performance/{student_id}")
async def get_student_performance(
    student_id: str,
    user: UserContext = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        ensure_self_or_staff(user, student_id)

        student = await users_db.get_user(db, student_id)
        if not student:
            raise HTTPException(status_code=404, detail="Student not found")

        report = await student_performance(
            student,
            MongoAttendanceSource(db),
            MongoExamResultSource(db)
        )

        if not report["exam_results"]:
            raise HTTPException(status_code=404, detail="No exam results found for this student")

        return {
            "success": True,
            "message": "Student performance fetched successfully",
            "student": report["student"],
            "performance": report["overall_performance"],
            "recent_results": report["exam_results"][:5]
        }

    except (HTTPException, InvalidExamConfiguration):
        raise
    except Exception:
        logger.exception("Student performance for %s failed", student_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/{result_id}")
async def get_result(
    result_id: str,
    user: UserContext = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        result = await exams_db.get_result(db, result_id)
        if not result:
            raise HTTPException(status_code=404, detail="Exam result not found")

        ensure_self_or_staff(user, result["student_id"])

        exam = await exams_db.get_exam(db, result["exam_id"])
        if exam:
            percentage = percentage_of(result["marks_obtained"], exam["total_marks"])
            result["percentage"] = percentage
            result["grade"] = grade_of(percentage)
            result["exam"] = {
                "exam_id": exam["exam_id"],
                "name": exam.get("name"),
                "total_marks": exam["total_marks"],
                "date": exam.get("date"),
                "subject": exam.get("subject"),
            }

        return {"success": True, "message": "Exam result fetched successfully", "result": result}

    except (HTTPException, InvalidExamConfiguration):
        raise
    except Exception:
        logger.exception("Fetch exam result %s failed", result_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.delete("/{result_id}")
async def delete_result(
    result_id: str,
    user: UserContext = Depends(staff_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        result = await exams_db.get_result(db, result_id)
        if not result:
            raise HTTPException(status_code=404, detail="Exam result not found")

        # Teachers may only remove results of their own batches
        await verify_exam_access(db, result["exam_id"], user)

        await exams_db.delete_result(db, result_id)
        logger.info("Exam result %s deleted by %s", result_id, user.user_id)

        return {"success": True, "message": "Exam result deleted successfully"}

    except HTTPException:
        raise
    except Exception:
        logger.exception("Delete exam result %s failed", result_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")
