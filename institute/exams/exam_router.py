import logging

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from institute.analytics.errors import InvalidExamConfiguration
from institute.analytics.exam_stats import percentage_of, rank_results, stats_of
from institute.analytics.grading import grade_of
from institute.analytics.reports import exam_entry
from institute.analytics.sources import MongoExamResultSource
from institute.batches import database as batches_db
from institute.batches.batch_permissions import verify_batch_access, verify_batch_membership
from institute.core.database import get_db
from institute.core.permissions import (
    Role,
    UserContext,
    ensure_self_or_staff,
    get_current_user,
    require_roles,
)
from institute.exams import database as exams_db
from institute.exams.models import ExamCreate, ExamUpdate, MarksAssign
from institute.users import database as users_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exams", tags=["Exams"])

staff_only = require_roles(Role.ADMIN, Role.TEACHER)
teacher_only = require_roles(Role.TEACHER)


async def verify_exam_access(db: AsyncIOMotorDatabase, exam_id: str, user: UserContext):
    """
    Returns:
        (exam, batch)

    Raises:
        404: Exam or batch not found
        403: Teacher not assigned to the exam's batch
    """
    exam = await exams_db.get_exam(db, exam_id)
    if not exam:
        raise HTTPException(status_code=404, detail="Exam not found")

    batch = await verify_batch_access(db, exam["batch_id"], user)
    return exam, batch


@router.post("/create", status_code=201)
async def create_exam(
    data: ExamCreate,
    user: UserContext = Depends(staff_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        await verify_batch_access(db, data.batch_id, user)

        exam = await exams_db.create_exam(db, data.model_dump(), user.user_id)
        logger.info("Exam %s created for batch %s", exam["exam_id"], data.batch_id)

        return {"success": True, "message": "Exam created successfully", "exam": exam}

    except HTTPException:
        raise
    except Exception:
        logger.exception("Create exam failed")
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.post("/assign-marks")
async def assign_marks(
    data: MarksAssign,
    teacher: UserContext = Depends(teacher_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Create or overwrite one student's result; the grade is derived from the marks
    """
    try:
        exam, batch = await verify_exam_access(db, data.exam_id, teacher)
        verify_batch_membership(batch, data.student_id)

        if data.marks_obtained > exam["total_marks"]:
            raise HTTPException(
                status_code=400,
                detail=f"Marks obtained cannot exceed total marks ({exam['total_marks']})"
            )

        result = await exams_db.upsert_result(
            db, exam, data.student_id, data.marks_obtained, data.remarks, teacher.user_id
        )
        logger.info("Marks assigned: exam %s student %s", data.exam_id, data.student_id)

        return {"success": True, "message": "Marks assigned successfully", "result": result}

    except (HTTPException, InvalidExamConfiguration):
        raise
    except Exception:
        logger.exception("Assign marks failed")
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/student/{student_id}")
async def get_student_results(
    student_id: str,
    user: UserContext = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        ensure_self_or_staff(user, student_id)

        pairs = await MongoExamResultSource(db).fetch_by_student(student_id)
        results = []
        for result, exam in pairs:
            entry = exam_entry(result, exam)
            entry["result_id"] = result["result_id"]
            entry["remarks"] = result.get("remarks")
            results.append(entry)
        results.sort(key=lambda r: r["exam_id"])
        results.sort(key=lambda r: r["date"], reverse=True)

        return {
            "success": True,
            "message": "Student results fetched successfully",
            "count": len(results),
            "results": results
        }

    except (HTTPException, InvalidExamConfiguration):
        raise
    except Exception:
        logger.exception("Fetch results for student %s failed", student_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/batch/{exam_id}")
async def get_exam_results(
    exam_id: str,
    user: UserContext = Depends(staff_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Ranked results of one exam with percentages and exam statistics
    """
    try:
        exam, _ = await verify_exam_access(db, exam_id, user)

        results = await MongoExamResultSource(db).fetch_by_exam(exam_id)
        students = await users_db.get_users_by_ids(db, {r["student_id"] for r in results})

        ranked = []
        for rank, result in enumerate(rank_results(results), start=1):
            percentage = percentage_of(result["marks_obtained"], exam["total_marks"])
            student = students.get(result["student_id"], {})
            ranked.append({
                "rank": rank,
                "result_id": result["result_id"],
                "student_id": result["student_id"],
                "student_name": student.get("name"),
                "marks_obtained": result["marks_obtained"],
                "percentage": percentage,
                "grade": grade_of(percentage),
                "remarks": result.get("remarks"),
                "submitted_at": result.get("created_at"),
            })

        return {
            "success": True,
            "message": "Batch results fetched successfully",
            "exam": exam,
            "results": ranked,
            "statistics": stats_of(results, exam["total_marks"])
        }

    except (HTTPException, InvalidExamConfiguration):
        raise
    except Exception:
        logger.exception("Fetch results for exam %s failed", exam_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.put("/{exam_id}")
async def update_exam(
    exam_id: str,
    data: ExamUpdate,
    teacher: UserContext = Depends(teacher_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Update exam details; a changed total_marks regrades every stored result
    """
    try:
        exam, _ = await verify_exam_access(db, exam_id, teacher)

        updates = data.model_dump(exclude_none=True)
        if not updates:
            raise HTTPException(status_code=400, detail="No fields to update")

        new_total = updates.get("total_marks")
        total_changed = new_total is not None and new_total != exam["total_marks"]
        if total_changed:
            results = await exams_db.list_exam_results(db, exam_id)
            highest = max((r["marks_obtained"] for r in results), default=0)
            if highest > new_total:
                raise HTTPException(
                    status_code=400,
                    detail=f"total_marks cannot be lower than an existing result ({highest})"
                )

        updated = await exams_db.update_exam(db, exam_id, updates)

        if total_changed:
            regraded = await exams_db.regrade_exam(db, updated)
            logger.info("Exam %s total marks changed, %d results regraded", exam_id, regraded)

        return {"success": True, "message": "Exam updated successfully", "exam": updated}

    except (HTTPException, InvalidExamConfiguration):
        raise
    except Exception:
        logger.exception("Update exam %s failed", exam_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/by-batch/{batch_id}")
async def get_batch_exams(
    batch_id: str,
    user: UserContext = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        if user.is_student:
            batch = await batches_db.get_active_batch(db, batch_id)
            if not batch:
                raise HTTPException(status_code=404, detail="Batch not found")
            if user.user_id not in batch.get("students", []):
                raise HTTPException(status_code=403, detail="You are not a member of this batch")
        else:
            await verify_batch_access(db, batch_id, user)

        exams = await exams_db.list_batch_exams(db, batch_id)
        return {
            "success": True,
            "message": "Exams fetched successfully",
            "count": len(exams),
            "exams": exams
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("List exams for batch %s failed", batch_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.delete("/{exam_id}")
async def delete_exam(
    exam_id: str,
    user: UserContext = Depends(staff_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        await verify_exam_access(db, exam_id, user)

        removed = await exams_db.delete_exam(db, exam_id)
        logger.info("Exam %s deleted with %d results", exam_id, removed)

        return {"success": True, "message": "Exam deleted successfully", "results_deleted": removed}

    except HTTPException:
        raise
    except Exception:
        logger.exception("Delete exam %s failed", exam_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")
