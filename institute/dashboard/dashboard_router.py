import logging

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from institute.analytics.errors import InvalidExamConfiguration
from institute.core.database import get_db
from institute.core.permissions import Role, UserContext, get_current_user, require_roles
from institute.dashboard import service
from institute.users import database as users_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

BUILDERS = {
    Role.STUDENT: service.student_dashboard,
    Role.TEACHER: service.teacher_dashboard,
    Role.ADMIN: service.admin_dashboard,
}


async def _build(db: AsyncIOMotorDatabase, user: UserContext) -> dict:
    try:
        profile = await users_db.get_user(db, user.user_id)
        if not profile:
            raise HTTPException(status_code=404, detail="User not found")

        dashboard = await BUILDERS[user.role](db, profile)
    except (HTTPException, InvalidExamConfiguration):
        raise
    except Exception:
        logger.exception("Dashboard build failed for %s", user.user_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")

    return {
        "success": True,
        "message": f"{user.role.value.capitalize()} dashboard data fetched successfully",
        "role": user.role.value,
        "dashboard": dashboard
    }


@router.get("")
async def get_dashboard(
    user: UserContext = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Dashboard of the caller's own role
    """
    return await _build(db, user)


@router.get("/student")
async def get_student_dashboard(
    user: UserContext = Depends(require_roles(Role.STUDENT)),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await _build(db, user)


@router.get("/teacher")
async def get_teacher_dashboard(
    user: UserContext = Depends(require_roles(Role.TEACHER)),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await _build(db, user)


@router.get("/admin")
async def get_admin_dashboard(
    user: UserContext = Depends(require_roles(Role.ADMIN)),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await _build(db, user)
