import logging

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from institute.core.database import get_db
from institute.core.permissions import Role, UserContext, require_roles
from institute.courses import database as courses_db
from institute.courses.models import CourseCreate, CourseUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/courses", tags=["Courses"])

admin_only = require_roles(Role.ADMIN)


@router.post("/create", status_code=201)
async def create_course(
    data: CourseCreate,
    admin: UserContext = Depends(admin_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        course = await courses_db.create_course(db, data.model_dump(), admin.user_id)
        logger.info("Course %s created by %s", course["course_id"], admin.user_id)
        return {"success": True, "message": "Course created successfully", "course": course}

    except HTTPException:
        raise
    except Exception:
        logger.exception("Create course failed")
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/public")
async def get_public_courses(db: AsyncIOMotorDatabase = Depends(get_db)):
    """
    Active courses, no auth required
    """
    try:
        courses = await courses_db.list_active_courses(db)
        return {
            "success": True,
            "message": "Courses fetched successfully",
            "count": len(courses),
            "courses": courses
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("List courses failed")
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.put("/{course_id}")
async def update_course(
    course_id: str,
    data: CourseUpdate,
    admin: UserContext = Depends(admin_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        updates = data.model_dump(exclude_none=True)
        if not updates:
            raise HTTPException(status_code=400, detail="No fields to update")

        course = await courses_db.update_course(db, course_id, updates)
        if not course:
            raise HTTPException(status_code=404, detail="Course not found")

        return {"success": True, "message": "Course updated successfully", "course": course}

    except HTTPException:
        raise
    except Exception:
        logger.exception("Update course %s failed", course_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.delete("/{course_id}")
async def delete_course(
    course_id: str,
    admin: UserContext = Depends(admin_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        if not await courses_db.deactivate_course(db, course_id):
            raise HTTPException(status_code=404, detail="Course not found")

        logger.info("Course %s deactivated by %s", course_id, admin.user_id)
        return {"success": True, "message": "Course deleted successfully"}

    except HTTPException:
        raise
    except Exception:
        logger.exception("Delete course %s failed", course_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")
