import logging
import secrets
from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from institute.core import config

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages MongoDB connection lifecycle"""

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    def connect(self):
        """Initialize MongoDB connection"""
        self.client = AsyncIOMotorClient(config.MONGO_URL)
        self.db = self.client[config.MONGO_DB_NAME]
        logger.info("MongoDB client created for database %s", config.MONGO_DB_NAME)

    def disconnect(self):
        """Close MongoDB connection"""
        if self.client:
            self.client.close()
            self.client = None
            self.db = None
            logger.info("MongoDB disconnected")

    def get_database(self) -> AsyncIOMotorDatabase:
        if self.db is None:
            raise RuntimeError("Database not initialized. Call connect() first.")
        return self.db


db_manager = DatabaseManager()


async def get_db() -> AsyncIOMotorDatabase:
    """Database dependency"""
    return db_manager.get_database()


def generate_id(prefix: str) -> str:
    """Generate unique ID with prefix"""
    return f"{prefix}_{secrets.token_hex(8).upper()}"


def serialize_mongo(doc: Optional[dict]) -> Optional[dict]:
    """Strip the Mongo ObjectId so documents are JSON safe"""
    if doc is None:
        return None
    doc.pop("_id", None)
    return doc


def serialize_many(docs: list) -> list:
    return [serialize_mongo(doc) for doc in docs]


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Mongo hands back naive UTC datetimes; store them the same way"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# ==================== DATABASE INDEXES ====================

async def create_indexes(db: AsyncIOMotorDatabase):
    """
    Create MongoDB indexes
    Called during application startup
    """
    # Users
    await db.users.create_index("user_id", unique=True)
    await db.users.create_index("email", unique=True)
    await db.users.create_index([("role", ASCENDING), ("created_at", DESCENDING)])

    # Courses
    await db.courses.create_index("course_id", unique=True)
    await db.courses.create_index([("is_active", ASCENDING), ("created_at", DESCENDING)])

    # Batches
    await db.batches.create_index("batch_id", unique=True)
    await db.batches.create_index([("course_id", ASCENDING), ("is_active", ASCENDING)])
    await db.batches.create_index("teacher_id")
    await db.batches.create_index("students")

    # Enrollments (one per student and course)
    await db.enrollments.create_index("enrollment_id", unique=True)
    await db.enrollments.create_index([("student_id", ASCENDING), ("course_id", ASCENDING)], unique=True)
    await db.enrollments.create_index([("course_id", ASCENDING), ("status", ASCENDING)])

    # Attendance (one record per batch and date)
    await db.attendance.create_index("attendance_id", unique=True)
    await db.attendance.create_index([("batch_id", ASCENDING), ("date", ASCENDING)], unique=True)
    await db.attendance.create_index("present_students")
    await db.attendance.create_index("absent_students")

    # Exams
    await db.exams.create_index("exam_id", unique=True)
    await db.exams.create_index([("batch_id", ASCENDING), ("date", DESCENDING)])

    # Exam results (one per exam and student)
    await db.exam_results.create_index("result_id", unique=True)
    await db.exam_results.create_index([("exam_id", ASCENDING), ("student_id", ASCENDING)], unique=True)
    await db.exam_results.create_index([("student_id", ASCENDING), ("created_at", DESCENDING)])

    logger.info("Institute indexes created")
