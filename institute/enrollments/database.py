from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from institute.core.database import generate_id, serialize_many, serialize_mongo
from institute.enrollments.models import EnrollmentStatus

# ==================== ENROLLMENT CRUD ====================

async def create_enrollment(db: AsyncIOMotorDatabase, student_id: str, course_id: str) -> dict:
    """
    Raises pymongo DuplicateKeyError when the student is already enrolled
    """
    now = datetime.utcnow()
    enrollment = {
        "enrollment_id": generate_id("ENR"),
        "student_id": student_id,
        "course_id": course_id,
        "batch_id": None,
        "enrollment_date": now,
        "status": EnrollmentStatus.ACTIVE.value,
        "created_at": now,
        "updated_at": now,
    }
    await db.enrollments.insert_one(enrollment)
    return serialize_mongo(enrollment)


async def get_enrollment(db: AsyncIOMotorDatabase, enrollment_id: str) -> Optional[dict]:
    return serialize_mongo(await db.enrollments.find_one({"enrollment_id": enrollment_id}))


async def find_enrollment(db: AsyncIOMotorDatabase, student_id: str, course_id: str) -> Optional[dict]:
    return serialize_mongo(await db.enrollments.find_one({"student_id": student_id, "course_id": course_id}))


async def list_student_enrollments(db: AsyncIOMotorDatabase, student_id: str) -> List[dict]:
    cursor = db.enrollments.find({"student_id": student_id}).sort("enrollment_date", -1)
    return serialize_many(await cursor.to_list(length=None))


async def list_course_enrollments(db: AsyncIOMotorDatabase, course_id: str) -> List[dict]:
    cursor = db.enrollments.find({"course_id": course_id}).sort("enrollment_date", -1)
    return serialize_many(await cursor.to_list(length=None))


async def assign_batch(db: AsyncIOMotorDatabase, enrollment_id: str, batch_id: str) -> Optional[dict]:
    """Link the enrollment to a batch and activate it"""
    await db.enrollments.update_one(
        {"enrollment_id": enrollment_id},
        {"$set": {
            "batch_id": batch_id,
            "status": EnrollmentStatus.ACTIVE.value,
            "updated_at": datetime.utcnow(),
        }}
    )
    return await get_enrollment(db, enrollment_id)


async def update_status(db: AsyncIOMotorDatabase, enrollment_id: str, status: str) -> Optional[dict]:
    result = await db.enrollments.update_one(
        {"enrollment_id": enrollment_id},
        {"$set": {"status": status, "updated_at": datetime.utcnow()}}
    )
    if result.matched_count == 0:
        return None
    return await get_enrollment(db, enrollment_id)


async def count_by_status(db: AsyncIOMotorDatabase, course_id: Optional[str] = None) -> dict:
    """{status: count} for one course or for the whole institute"""
    pipeline = []
    if course_id:
        pipeline.append({"$match": {"course_id": course_id}})
    pipeline.append({"$group": {"_id": "$status", "count": {"$sum": 1}}})

    counts = {status.value: 0 for status in EnrollmentStatus}
    async for row in db.enrollments.aggregate(pipeline):
        counts[row["_id"]] = row["count"]
    return counts


async def popular_courses(db: AsyncIOMotorDatabase, limit: int = 5) -> List[dict]:
    """[{course_id, enrollments}] ordered by enrollment count"""
    pipeline = [
        {"$group": {"_id": "$course_id", "enrollments": {"$sum": 1}}},
        {"$sort": {"enrollments": -1, "_id": 1}},
        {"$limit": limit},
    ]
    rows = await db.enrollments.aggregate(pipeline).to_list(length=None)
    return [{"course_id": row["_id"], "enrollments": row["enrollments"]} for row in rows]
