import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from institute.core.database import get_db
from institute.core.mailer import new_verification_token, send_verification_email
from institute.core.security import create_access_token, hash_password, verify_password
from institute.users import database as users_db
from institute.users.models import LoginRequest, SignupRequest, user_summary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/signup", status_code=201)
async def signup(
    data: SignupRequest,
    background_tasks: BackgroundTasks,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Register a new account and send the verification email in the background
    """
    try:
        if await users_db.get_user_by_email(db, data.email):
            raise HTTPException(status_code=400, detail="Email already registered")

        try:
            user = await users_db.create_user(
                db,
                data.model_dump(mode="json"),
                hash_password(data.password)
            )
        except DuplicateKeyError:
            raise HTTPException(status_code=400, detail="Email already registered")

        token, expires_at = new_verification_token()
        await users_db.set_verification_token(db, user["user_id"], token, expires_at)
        background_tasks.add_task(send_verification_email, user["email"], user["name"], token)

        logger.info("User signed up: %s (%s)", user["email"], user["role"])

        return {
            "success": True,
            "message": "Signup successful. Please verify your email.",
            "user": user_summary(user)
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("Signup failed")
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.post("/login")
async def login(data: LoginRequest, db: AsyncIOMotorDatabase = Depends(get_db)):
    """
    Exchange credentials for a bearer token
    """
    try:
        user = await users_db.get_user_by_email(db, data.email)
        if not user or not verify_password(data.password, user.get("password_hash")):
            raise HTTPException(status_code=400, detail="Invalid email or password")

        token = create_access_token(user["user_id"], user["email"], user["role"])

        return {
            "success": True,
            "message": "Login successful",
            "token": token,
            "user": user_summary(user)
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("Login failed")
        raise HTTPException(status_code=500, detail="Internal Server Error")
