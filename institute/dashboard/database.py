from datetime import datetime, timedelta
from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase

from institute.core.database import serialize_many
from institute.core.permissions import Role
from institute.enrollments.models import EnrollmentStatus

# ==================== ADMIN COUNTS ====================

async def count_users(db: AsyncIOMotorDatabase, role: Role) -> int:
    return await db.users.count_documents({"role": role.value})


async def count_active_courses(db: AsyncIOMotorDatabase) -> int:
    return await db.courses.count_documents({"is_active": True})


async def count_active_batches(db: AsyncIOMotorDatabase) -> int:
    return await db.batches.count_documents({"is_active": True})


async def count_active_enrollments(db: AsyncIOMotorDatabase) -> int:
    return await db.enrollments.count_documents({"status": EnrollmentStatus.ACTIVE.value})


async def count_unverified_users(db: AsyncIOMotorDatabase) -> int:
    return await db.users.count_documents({"is_email_verified": False})


async def recent_users(db: AsyncIOMotorDatabase, days: int = 7, limit: int = 5) -> List[dict]:
    since = datetime.utcnow() - timedelta(days=days)
    cursor = db.users.find(
        {"created_at": {"$gte": since}},
        {"password_hash": 0, "email_verification_token": 0}
    ).sort("created_at", -1).limit(limit)
    return serialize_many(await cursor.to_list(length=None))


async def revenue_since(db: AsyncIOMotorDatabase, since: datetime) -> float:
    """Fees of active enrollments made since the given time"""
    pipeline = [
        {"$match": {"status": EnrollmentStatus.ACTIVE.value, "enrollment_date": {"$gte": since}}},
        {"$lookup": {
            "from": "courses",
            "localField": "course_id",
            "foreignField": "course_id",
            "as": "course",
        }},
        {"$group": {"_id": None, "total": {"$sum": {"$arrayElemAt": ["$course.fees", 0]}}}},
    ]
    rows = await db.enrollments.aggregate(pipeline).to_list(length=None)
    return rows[0]["total"] if rows else 0


async def database_ping(db: AsyncIOMotorDatabase) -> bool:
    await db.command("ping")
    return True
