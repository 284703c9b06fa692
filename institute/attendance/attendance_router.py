import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from institute.analytics.attendance import batch_attendance, status_of, summarize
from institute.analytics.sources import MongoAttendanceSource
from institute.attendance import database as attendance_db
from institute.attendance.models import AttendanceMark
from institute.batches import database as batches_db
from institute.batches.batch_permissions import verify_batch_access
from institute.core.database import get_db
from institute.core.permissions import (
    Role,
    UserContext,
    ensure_self_or_staff,
    get_current_user,
    require_roles,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/attendance", tags=["Attendance"])

staff_only = require_roles(Role.ADMIN, Role.TEACHER)


@router.post("/mark", status_code=201)
async def mark_attendance(
    data: AttendanceMark,
    user: UserContext = Depends(staff_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Record one day of attendance for a batch
    Only the assigned teacher or an admin may mark it, once per day
    """
    try:
        batch = await verify_batch_access(db, data.batch_id, user)

        roster = set(batch.get("students", []))
        unknown = [s for s in data.present_students + data.absent_students if s not in roster]
        if unknown:
            raise HTTPException(
                status_code=400,
                detail=f"Students not in this batch: {', '.join(unknown)}"
            )

        if await attendance_db.find_by_batch_and_date(db, data.batch_id, data.date):
            raise HTTPException(status_code=400, detail="Attendance already marked for this date")

        try:
            record = await attendance_db.create_attendance(db, data.model_dump(), user.user_id)
        except DuplicateKeyError:
            raise HTTPException(status_code=400, detail="Attendance already marked for this date")

        logger.info(
            "Attendance marked for batch %s on %s (%d present, %d absent)",
            data.batch_id, data.date, len(data.present_students), len(data.absent_students)
        )

        return {"success": True, "message": "Attendance marked successfully", "attendance": record}

    except HTTPException:
        raise
    except Exception:
        logger.exception("Mark attendance failed")
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/batch/{batch_id}")
async def get_batch_attendance(
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

        records = await attendance_db.list_batch_attendance(db, batch_id)
        return {
            "success": True,
            "message": "Attendance records fetched successfully",
            "count": len(records),
            "attendance": records
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("Fetch attendance for batch %s failed", batch_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/student")
async def get_student_attendance(
    student_id: Optional[str] = Query(None),
    batch_id: Optional[str] = Query(None),
    user: UserContext = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        if not student_id:
            if not user.is_student:
                raise HTTPException(status_code=400, detail="student_id is required")
            student_id = user.user_id

        ensure_self_or_staff(user, student_id)

        records = await MongoAttendanceSource(db).fetch_by_student(student_id, batch_id)

        return {
            "success": True,
            "message": "Student attendance fetched successfully",
            "student_id": student_id,
            "attendance": [
                {
                    "attendance_id": record["attendance_id"],
                    "batch_id": record["batch_id"],
                    "date": record["date"],
                    "status": status_of(record, student_id),
                }
                for record in records
            ],
            "summary": summarize(records, student_id)
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("Fetch student attendance failed")
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/stats/{batch_id}")
async def get_attendance_stats(
    batch_id: str,
    user: UserContext = Depends(staff_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        batch = await verify_batch_access(db, batch_id, user)
        records = await MongoAttendanceSource(db).fetch_by_batch(batch_id)

        return {
            "success": True,
            "message": "Attendance statistics fetched successfully",
            "batch_id": batch_id,
            "stats": batch_attendance(records, batch.get("students", []))
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("Attendance stats for batch %s failed", batch_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")
