import logging

from fastapi import APIRouter, Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from institute.batches import database as batches_db
from institute.batches.batch_permissions import verify_batch_access
from institute.core.database import get_db
from institute.core.permissions import (
    Role,
    UserContext,
    ensure_self_or_staff,
    get_current_user,
    require_roles,
)
from institute.courses import database as courses_db
from institute.enrollments import database as enrollments_db
from institute.enrollments.models import AssignBatchRequest, EnrollRequest, StatusUpdate
from institute.users import database as users_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/enrollments", tags=["Enrollments"])

staff_only = require_roles(Role.ADMIN, Role.TEACHER)
student_only = require_roles(Role.STUDENT)


async def with_course_names(db: AsyncIOMotorDatabase, enrollments: list) -> list:
    courses = await courses_db.get_courses_by_ids(db, {e["course_id"] for e in enrollments})
    for enrollment in enrollments:
        course = courses.get(enrollment["course_id"])
        enrollment["course_name"] = course.get("name") if course else None
    return enrollments


@router.post("/enroll", status_code=201)
async def enroll(
    data: EnrollRequest,
    user: UserContext = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Students enroll themselves; admins and teachers enroll a given student
    """
    try:
        if user.is_student:
            student_id = user.user_id
        else:
            if not data.student_id:
                raise HTTPException(
                    status_code=400,
                    detail="student_id is required when enrolling as admin/teacher"
                )
            student_id = data.student_id

        student = await users_db.get_user(db, student_id)
        if not student or student.get("role") != Role.STUDENT.value:
            raise HTTPException(status_code=400, detail="Student not found or invalid student")

        if not await courses_db.get_active_course(db, data.course_id):
            raise HTTPException(status_code=404, detail="Course not found")

        if await enrollments_db.find_enrollment(db, student_id, data.course_id):
            raise HTTPException(status_code=400, detail="Student is already enrolled in this course")

        try:
            enrollment = await enrollments_db.create_enrollment(db, student_id, data.course_id)
        except DuplicateKeyError:
            raise HTTPException(status_code=400, detail="Student is already enrolled in this course")

        logger.info("Student %s enrolled in %s", student_id, data.course_id)
        return {"success": True, "message": "Enrolled in course successfully", "enrollment": enrollment}

    except HTTPException:
        raise
    except Exception:
        logger.exception("Enrollment failed")
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/my-enrollments")
async def my_enrollments(
    user: UserContext = Depends(student_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        enrollments = await enrollments_db.list_student_enrollments(db, user.user_id)
        return {
            "success": True,
            "message": "Your enrollments fetched successfully",
            "enrollments": await with_course_names(db, enrollments)
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("Fetch enrollments for %s failed", user.user_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/student/{student_id}")
async def student_enrollments(
    student_id: str,
    user: UserContext = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        ensure_self_or_staff(user, student_id)

        enrollments = await enrollments_db.list_student_enrollments(db, student_id)
        return {
            "success": True,
            "message": "Enrollments fetched successfully",
            "enrollments": await with_course_names(db, enrollments)
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("Fetch enrollments for %s failed", student_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/course/{course_id}")
async def course_enrollments(
    course_id: str,
    user: UserContext = Depends(staff_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        enrollments = await enrollments_db.list_course_enrollments(db, course_id)
        students = await users_db.get_users_by_ids(db, {e["student_id"] for e in enrollments})
        for enrollment in enrollments:
            student = students.get(enrollment["student_id"])
            enrollment["student_name"] = student.get("name") if student else None
            enrollment["student_email"] = student.get("email") if student else None

        return {
            "success": True,
            "message": "Course enrollments fetched successfully",
            "count": len(enrollments),
            "enrollments": enrollments
        }

    except HTTPException:
        raise
    except Exception:
        logger.exception("Fetch enrollments for course %s failed", course_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.post("/assign-batch")
async def assign_batch(
    data: AssignBatchRequest,
    user: UserContext = Depends(staff_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Link an enrollment to a batch of the same course and add the student to its roster
    """
    try:
        enrollment = await enrollments_db.get_enrollment(db, data.enrollment_id)
        if not enrollment:
            raise HTTPException(status_code=404, detail="Enrollment not found")

        batch = await verify_batch_access(db, data.batch_id, user)

        if batch.get("course_id") != enrollment["course_id"]:
            raise HTTPException(status_code=400, detail="Batch does not belong to the enrolled course")

        if enrollment["student_id"] not in batch.get("students", []):
            if not await batches_db.add_student(db, data.batch_id, enrollment["student_id"]):
                raise HTTPException(status_code=400, detail="Batch is full")

        updated = await enrollments_db.assign_batch(db, data.enrollment_id, data.batch_id)
        logger.info("Enrollment %s assigned to batch %s", data.enrollment_id, data.batch_id)

        return {"success": True, "message": "Student assigned to batch successfully", "enrollment": updated}

    except HTTPException:
        raise
    except Exception:
        logger.exception("Assign batch for enrollment %s failed", data.enrollment_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.put("/{enrollment_id}/status")
async def update_status(
    enrollment_id: str,
    data: StatusUpdate,
    user: UserContext = Depends(staff_only),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    try:
        enrollment = await enrollments_db.update_status(db, enrollment_id, data.status.value)
        if not enrollment:
            raise HTTPException(status_code=404, detail="Enrollment not found")

        return {"success": True, "message": "Enrollment status updated successfully", "enrollment": enrollment}

    except HTTPException:
        raise
    except Exception:
        logger.exception("Update status of enrollment %s failed", enrollment_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")
