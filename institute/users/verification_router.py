import logging
from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from institute.core.database import get_db
from institute.core.mailer import new_verification_token, send_verification_email
from institute.users import database as users_db
from institute.users.models import ResendVerificationRequest, normalize_email

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Email Verification"])


@router.get("/verify-email")
async def verify_email(
    token: str = Query(None),
    email: str = Query(None),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        if not token or not email:
            raise HTTPException(status_code=400, detail="Token and email are required")

        user = await users_db.get_user_by_email(db, normalize_email(email))
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        if user.get("is_email_verified"):
            raise HTTPException(status_code=400, detail="Email is already verified")

        if user.get("email_verification_token") != token:
            raise HTTPException(status_code=400, detail="Invalid verification token")

        expires_at = user.get("email_verification_expires")
        if expires_at and datetime.utcnow() > expires_at:
            raise HTTPException(status_code=400, detail="Verification token has expired")

        verified = await users_db.mark_email_verified(db, user["user_id"])
        logger.info("Email verified: %s", verified["email"])

        return {
            "success": True,
            "message": "Email verified successfully! You can now login.",
            "user": {
                "user_id": verified["user_id"],
                "name": verified["name"],
                "email": verified["email"],
                "is_email_verified": verified["is_email_verified"],
            }
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("Email verification failed")
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.post("/resend-verification")
async def resend_verification(
    data: ResendVerificationRequest,
    background_tasks: BackgroundTasks,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        user = await users_db.get_user_by_email(db, data.email)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        if user.get("is_email_verified"):
            raise HTTPException(status_code=400, detail="Email is already verified")

        token, expires_at = new_verification_token()
        await users_db.set_verification_token(db, user["user_id"], token, expires_at)
        background_tasks.add_task(send_verification_email, user["email"], user["name"], token)

        return {
            "success": True,
            "message": "Verification email sent successfully! Please check your inbox.",
            "email_sent": True
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("Resend verification failed")
        raise HTTPException(status_code=500, detail="Internal Server Error")
