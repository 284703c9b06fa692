import logging

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from institute.batches import database as batches_db
from institute.batches.batch_permissions import verify_batch_access
from institute.batches.models import AssignStudentRequest, BatchCreate, BatchUpdate
from institute.core.database import get_db
from institute.core.permissions import Role, UserContext, require_roles
from institute.courses import database as courses_db
from institute.users import database as users_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/batches", tags=["Batches"])

staff_only = require_roles(Role.ADMIN, Role.TEACHER)
admin_only = require_roles(Role.ADMIN)


async def _require_teacher(db: AsyncIOMotorDatabase, teacher_id: str) -> dict:
    teacher = await users_db.get_teacher(db, teacher_id)
    if not teacher:
        raise HTTPException(status_code=400, detail="Teacher not found or invalid teacher ID")
    return teacher


@router.post("/create", status_code=201)
async def create_batch(
    data: BatchCreate,
    user: UserContext = Depends(staff_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        if not await courses_db.get_active_course(db, data.course_id):
            raise HTTPException(status_code=404, detail="Course not found")

        await _require_teacher(db, data.teacher_id)

        batch = await batches_db.create_batch(db, data.model_dump(), user.user_id)
        logger.info("Batch %s created for course %s", batch["batch_id"], data.course_id)

        return {"success": True, "message": "Batch created successfully", "batch": batch}

    except HTTPException:
        raise
    except Exception:
        logger.exception("Create batch failed")
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/course/{course_id}")
async def get_course_batches(course_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    """
    Active batches of a course, no auth required
    """
    try:
        batches = await batches_db.list_course_batches(db, course_id)
        return {
            "success": True,
            "message": "Batches fetched successfully",
            "count": len(batches),
            "batches": batches
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("List batches for course %s failed", course_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.post("/{batch_id}/assign-student")
async def assign_student(
    batch_id: str,
    data: AssignStudentRequest,
    admin: UserContext = Depends(admin_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        student = await users_db.get_user(db, data.student_id)
        if not student or student.get("role") != Role.STUDENT.value:
            raise HTTPException(status_code=400, detail="Student not found or invalid student ID")

        batch = await batches_db.get_active_batch(db, batch_id)
        if not batch:
            raise HTTPException(status_code=404, detail="Batch not found")

        if data.student_id in batch.get("students", []):
            raise HTTPException(status_code=400, detail="Student already assigned to this batch")

        updated = await batches_db.add_student(db, batch_id, data.student_id)
        if not updated:
            raise HTTPException(status_code=400, detail="Batch is full")

        logger.info("Student %s assigned to batch %s", data.student_id, batch_id)
        return {"success": True, "message": "Student assigned to batch successfully", "batch": updated}

    except HTTPException:
        raise
    except Exception:
        logger.exception("Assign student to batch %s failed", batch_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.put("/{batch_id}")
async def update_batch(
    batch_id: str,
    data: BatchUpdate,
    user: UserContext = Depends(staff_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        batch = await verify_batch_access(db, batch_id, user)

        updates = data.model_dump(exclude_none=True)
        if not updates:
            raise HTTPException(status_code=400, detail="No fields to update")

        start = updates.get("start_date", batch.get("start_date"))
        end = updates.get("end_date", batch.get("end_date"))
        if start and end and end <= start:
            raise HTTPException(status_code=400, detail="end_date must be after start_date")

        if "max_students" in updates and updates["max_students"] < len(batch.get("students", [])):
            raise HTTPException(status_code=400, detail="max_students cannot be lower than the current roster size")

        if "teacher_id" in updates:
            await _require_teacher(db, updates["teacher_id"])

        updated = await batches_db.update_batch(db, batch_id, updates)
        return {"success": True, "message": "Batch updated successfully", "batch": updated}

    except HTTPException:
        raise
    except Exception:
        logger.exception("Update batch %s failed", batch_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.delete("/{batch_id}")
async def delete_batch(
    batch_id: str,
    admin: UserContext = Depends(admin_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        if not await batches_db.deactivate_batch(db, batch_id):
            raise HTTPException(status_code=404, detail="Batch not found")

        logger.info("Batch %s deactivated by %s", batch_id, admin.user_id)
        return {"success": True, "message": "Batch deleted successfully"}

    except HTTPException:
        raise
    except Exception:
        logger.exception("Delete batch %s failed", batch_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")
