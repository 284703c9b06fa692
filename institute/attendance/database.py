from datetime import date, datetime, time
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from institute.core.database import generate_id, serialize_many, serialize_mongo


def day_start(day: date) -> datetime:
    """Attendance is keyed by calendar day, stored as midnight UTC"""
    return datetime.combine(day, time.min)


# ==================== ATTENDANCE CRUD ====================

async def create_attendance(db: AsyncIOMotorDatabase, data: dict, recorded_by: str) -> dict:
    """
    Raises pymongo DuplicateKeyError when the batch already has a record for that day
    """
    attendance = {
        "attendance_id": generate_id("ATT"),
        "batch_id": data["batch_id"],
        "date": day_start(data["date"]),
        "present_students": data["present_students"],
        "absent_students": data["absent_students"],
        "total_students": len(data["present_students"]) + len(data["absent_students"]),
        "recorded_by": recorded_by,
        "created_at": datetime.utcnow(),
    }
    await db.attendance.insert_one(attendance)
    return serialize_mongo(attendance)


async def find_by_batch_and_date(db: AsyncIOMotorDatabase, batch_id: str, day: date) -> Optional[dict]:
    return serialize_mongo(await db.attendance.find_one({"batch_id": batch_id, "date": day_start(day)}))


async def list_batch_attendance(db: AsyncIOMotorDatabase, batch_id: str) -> List[dict]:
    cursor = db.attendance.find({"batch_id": batch_id}).sort("date", -1)
    return serialize_many(await cursor.to_list(length=None))


async def marked_batches_on(db: AsyncIOMotorDatabase, batch_ids: List[str], day: date) -> set:
    """Subset of batch_ids that already have attendance for the day"""
    if not batch_ids:
        return set()
    cursor = db.attendance.find(
        {"batch_id": {"$in": list(batch_ids)}, "date": day_start(day)},
        {"batch_id": 1}
    )
    return {doc["batch_id"] async for doc in cursor}

