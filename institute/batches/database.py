from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from institute.core.database import generate_id, serialize_many, serialize_mongo

# ==================== BATCH CRUD ====================

async def create_batch(db: AsyncIOMotorDatabase, batch_data: dict, creator_id: str) -> dict:
    now = datetime.utcnow()
    batch = {
        "batch_id": generate_id("BAT"),
        "name": batch_data["name"],
        "course_id": batch_data["course_id"],
        "start_date": batch_data["start_date"],
        "end_date": batch_data["end_date"],
        "teacher_id": batch_data["teacher_id"],
        "students": [],
        "max_students": batch_data.get("max_students", 30),
        "is_active": True,
        "created_by": creator_id,
        "created_at": now,
        "updated_at": now,
    }
    await db.batches.insert_one(batch)
    return serialize_mongo(batch)


async def get_batch(db: AsyncIOMotorDatabase, batch_id: str) -> Optional[dict]:
    return serialize_mongo(await db.batches.find_one({"batch_id": batch_id}))


async def get_active_batch(db: AsyncIOMotorDatabase, batch_id: str) -> Optional[dict]:
    """Deactivated batches are treated as missing by every batch operation"""
    return serialize_mongo(await db.batches.find_one({"batch_id": batch_id, "is_active": True}))


async def list_course_batches(db: AsyncIOMotorDatabase, course_id: str) -> List[dict]:
    cursor = db.batches.find({"course_id": course_id, "is_active": True}).sort("start_date", 1)
    return serialize_many(await cursor.to_list(length=None))


async def list_teacher_batches(db: AsyncIOMotorDatabase, teacher_id: str) -> List[dict]:
    cursor = db.batches.find({"teacher_id": teacher_id, "is_active": True}).sort("start_date", 1)
    return serialize_many(await cursor.to_list(length=None))


async def list_student_batches(db: AsyncIOMotorDatabase, student_id: str) -> List[dict]:
    cursor = db.batches.find({"students": student_id, "is_active": True})
    return serialize_many(await cursor.to_list(length=None))


async def add_student(db: AsyncIOMotorDatabase, batch_id: str, student_id: str) -> Optional[dict]:
    """
    Add a student to the roster unless the batch is already full
    Returns None when the batch is missing, inactive or full
    """
    result = await db.batches.update_one(
        {
            "batch_id": batch_id,
            "is_active": True,
            "$expr": {"$lt": [{"$size": "$students"}, "$max_students"]},
        },
        {
            "$addToSet": {"students": student_id},
            "$set": {"updated_at": datetime.utcnow()},
        }
    )
    if result.matched_count == 0:
        return None
    return await get_batch(db, batch_id)


async def update_batch(db: AsyncIOMotorDatabase, batch_id: str, updates: dict) -> Optional[dict]:
    updates["updated_at"] = datetime.utcnow()
    result = await db.batches.update_one({"batch_id": batch_id}, {"$set": updates})
    if result.matched_count == 0:
        return None
    return await get_batch(db, batch_id)


async def deactivate_batch(db: AsyncIOMotorDatabase, batch_id: str) -> bool:
    """Soft delete"""
    result = await db.batches.update_one(
        {"batch_id": batch_id, "is_active": True},
        {"$set": {"is_active": False, "updated_at": datetime.utcnow()}}
    )
    return result.matched_count > 0


async def count_course_batches(db: AsyncIOMotorDatabase, course_id: str) -> int:
    return await db.batches.count_documents({"course_id": course_id, "is_active": True})
