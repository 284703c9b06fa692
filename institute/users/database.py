from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from institute.core import config
from institute.core.database import generate_id, serialize_many, serialize_mongo
from institute.core.permissions import Role

# ==================== USER CRUD ====================

async def create_user(
    db: AsyncIOMotorDatabase,
    data: dict,
    password_hash: str,
    created_by: Optional[str] = None,
    verified: bool = False,
) -> dict:
    """
    Insert a user document
    Raises pymongo DuplicateKeyError when the email is taken
    """
    now = datetime.utcnow()
    user = {
        "user_id": generate_id("USR"),
        "name": data["name"],
        "email": data["email"],
        "password_hash": password_hash,
        "role": data.get("role", Role.STUDENT.value),
        "contact_info": data["contact_info"],
        "profile_picture": data.get("profile_picture") or config.DEFAULT_AVATAR,
        "is_email_verified": verified,
        "email_verification_token": None,
        "email_verification_expires": None,
        "created_by": created_by,
        "created_at": now,
        "updated_at": now,
    }
    await db.users.insert_one(user)
    return serialize_mongo(user)


async def get_user(db: AsyncIOMotorDatabase, user_id: str) -> Optional[dict]:
    return serialize_mongo(await db.users.find_one({"user_id": user_id}))


async def get_user_by_email(db: AsyncIOMotorDatabase, email: str) -> Optional[dict]:
    return serialize_mongo(await db.users.find_one({"email": email}))


async def get_users_by_ids(db: AsyncIOMotorDatabase, user_ids: List[str]) -> dict:
    """Map of user_id -> user document"""
    if not user_ids:
        return {}
    users = await db.users.find({"user_id": {"$in": list(user_ids)}}).to_list(length=None)
    return {user["user_id"]: user for user in serialize_many(users)}


async def update_user(db: AsyncIOMotorDatabase, user_id: str, updates: dict) -> Optional[dict]:
    updates["updated_at"] = datetime.utcnow()
    await db.users.update_one({"user_id": user_id}, {"$set": updates})
    return await get_user(db, user_id)


async def set_password(db: AsyncIOMotorDatabase, user_id: str, password_hash: str):
    await db.users.update_one(
        {"user_id": user_id},
        {"$set": {"password_hash": password_hash, "updated_at": datetime.utcnow()}}
    )


# ==================== EMAIL VERIFICATION ====================

async def set_verification_token(db: AsyncIOMotorDatabase, user_id: str, token: str, expires_at: datetime):
    await db.users.update_one(
        {"user_id": user_id},
        {"$set": {
            "email_verification_token": token,
            "email_verification_expires": expires_at,
            "updated_at": datetime.utcnow(),
        }}
    )


async def mark_email_verified(db: AsyncIOMotorDatabase, user_id: str) -> Optional[dict]:
    await db.users.update_one(
        {"user_id": user_id},
        {"$set": {
            "is_email_verified": True,
            "email_verification_token": None,
            "email_verification_expires": None,
            "updated_at": datetime.utcnow(),
        }}
    )
    return await get_user(db, user_id)


# ==================== TEACHERS ====================

async def list_teachers(db: AsyncIOMotorDatabase) -> List[dict]:
    cursor = db.users.find({"role": Role.TEACHER.value}).sort("created_at", -1)
    return serialize_many(await cursor.to_list(length=None))


async def get_teacher(db: AsyncIOMotorDatabase, teacher_id: str) -> Optional[dict]:
    return serialize_mongo(await db.users.find_one({"user_id": teacher_id, "role": Role.TEACHER.value}))
