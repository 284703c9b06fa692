import logging

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from institute.core.database import get_db
from institute.core.permissions import UserContext, get_current_user
from institute.core.security import hash_password, verify_password
from institute.users import database as users_db
from institute.users.models import ChangePasswordRequest, ProfileUpdate, public_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/profile")
async def get_profile(
    user: UserContext = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        profile = await users_db.get_user(db, user.user_id)
        if not profile:
            raise HTTPException(status_code=404, detail="User not found")

        return {
            "success": True,
            "message": "User profile fetched successfully",
            "user": public_user(profile)
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("Fetch profile for %s failed", user.user_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.put("/profile")
async def update_profile(
    data: ProfileUpdate,
    user: UserContext = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        updates = data.model_dump(exclude_none=True)
        if not updates:
            raise HTTPException(status_code=400, detail="No fields to update")

        if not await users_db.get_user(db, user.user_id):
            raise HTTPException(status_code=404, detail="User not found")

        updated = await users_db.update_user(db, user.user_id, updates)

        return {
            "success": True,
            "message": "Profile updated successfully",
            "user": public_user(updated)
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("Update profile for %s failed", user.user_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.post("/change-password")
async def change_password(
    data: ChangePasswordRequest,
    user: UserContext = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        profile = await users_db.get_user(db, user.user_id)
        if not profile:
            raise HTTPException(status_code=404, detail="User not found")

        if not verify_password(data.current_password, profile.get("password_hash")):
            raise HTTPException(status_code=400, detail="Current password is incorrect")

        await users_db.set_password(db, user.user_id, hash_password(data.new_password))
        logger.info("Password changed for %s", user.user_id)

        return {"success": True, "message": "Password changed successfully"}

    except HTTPException:
        raise
    except Exception:
        logger.exception("Change password for %s failed", user.user_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")
