import logging

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from institute.core.database import get_db
from institute.core.permissions import Role, UserContext, require_roles
from institute.core.security import hash_password
from institute.users import database as users_db
from institute.users.models import TeacherCreate, public_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/teachers", tags=["Teachers"])

admin_only = require_roles(Role.ADMIN)


@router.post("/create", status_code=201)
async def create_teacher(
    data: TeacherCreate,
    admin: UserContext = Depends(admin_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Admin creates a teacher account (pre-verified, no email round trip)
    """
    try:
        if await users_db.get_user_by_email(db, data.email):
            raise HTTPException(status_code=400, detail="Email already registered")

        payload = data.model_dump()
        payload["role"] = Role.TEACHER.value

        try:
            teacher = await users_db.create_user(
                db,
                payload,
                hash_password(data.password),
                created_by=admin.user_id,
                verified=True
            )
        except DuplicateKeyError:
            raise HTTPException(status_code=400, detail="Email already registered")

        logger.info("Teacher %s created by admin %s", teacher["email"], admin.email)

        return {
            "success": True,
            "message": "Teacher created successfully",
            "teacher": public_user(teacher)
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("Create teacher failed")
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/all")
async def get_all_teachers(
    admin: UserContext = Depends(admin_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        teachers = await users_db.list_teachers(db)
        return {
            "success": True,
            "message": "Teachers fetched successfully",
            "count": len(teachers),
            "teachers": [public_user(t) for t in teachers]
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("List teachers failed")
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/{teacher_id}")
async def get_teacher(
    teacher_id: str,
    admin: UserContext = Depends(admin_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        teacher = await users_db.get_teacher(db, teacher_id)
        if not teacher:
            raise HTTPException(status_code=404, detail="Teacher not found")

        return {
            "success": True,
            "message": "Teacher fetched successfully",
            "teacher": public_user(teacher)
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("Fetch teacher %s failed", teacher_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")
