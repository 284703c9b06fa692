from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from institute.core.database import generate_id, serialize_many, serialize_mongo

# ==================== COURSE CRUD ====================

async def create_course(db: AsyncIOMotorDatabase, course_data: dict, creator_id: str) -> dict:
    now = datetime.utcnow()
    course = {
        "course_id": generate_id("CRS"),
        "name": course_data["name"],
        "description": course_data["description"],
        "duration": course_data["duration"],
        "fees": course_data["fees"],
        "is_active": True,
        "created_by": creator_id,
        "created_at": now,
        "updated_at": now,
    }
    await db.courses.insert_one(course)
    return serialize_mongo(course)


async def get_course(db: AsyncIOMotorDatabase, course_id: str) -> Optional[dict]:
    """Get course by ID"""
    return serialize_mongo(await db.courses.find_one({"course_id": course_id}))


async def get_active_course(db: AsyncIOMotorDatabase, course_id: str) -> Optional[dict]:
    return serialize_mongo(await db.courses.find_one({"course_id": course_id, "is_active": True}))


async def list_active_courses(db: AsyncIOMotorDatabase) -> List[dict]:
    cursor = db.courses.find({"is_active": True}).sort("created_at", -1)
    return serialize_many(await cursor.to_list(length=None))


async def get_courses_by_ids(db: AsyncIOMotorDatabase, course_ids: List[str]) -> dict:
    if not course_ids:
        return {}
    courses = await db.courses.find({"course_id": {"$in": list(course_ids)}}).to_list(length=None)
    return {course["course_id"]: course for course in serialize_many(courses)}


async def update_course(db: AsyncIOMotorDatabase, course_id: str, updates: dict) -> Optional[dict]:
    updates["updated_at"] = datetime.utcnow()
    result = await db.courses.update_one({"course_id": course_id}, {"$set": updates})
    if result.matched_count == 0:
        return None
    return await get_course(db, course_id)


async def deactivate_course(db: AsyncIOMotorDatabase, course_id: str) -> bool:
    """Soft delete"""
    result = await db.courses.update_one(
        {"course_id": course_id, "is_active": True},
        {"$set": {"is_active": False, "updated_at": datetime.utcnow()}}
    )
    return result.matched_count > 0
