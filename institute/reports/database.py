from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase

from institute.batches import database as batches_db
from institute.courses import database as courses_db
from institute.enrollments import database as enrollments_db
from institute.enrollments.models import EnrollmentStatus
from institute.users import database as users_db

# ==================== ENROLLMENT REPORTS ====================

async def course_enrollment_report(db: AsyncIOMotorDatabase, course: dict) -> dict:
    """
    Enrollment counts, batches and fee revenue for one course
    Revenue: potential = all enrollments x fees, collected = active x fees
    """
    counts = await enrollments_db.count_by_status(db, course["course_id"])
    total = sum(counts.values())

    batches = await batches_db.list_course_batches(db, course["course_id"])
    teachers = await users_db.get_users_by_ids(db, {b["teacher_id"] for b in batches})

    fees = course.get("fees", 0)

    return {
        "course": {
            "course_id": course["course_id"],
            "name": course.get("name"),
            "fees": fees,
            "duration": course.get("duration"),
        },
        "enrollment_stats": {
            "total": total,
            "active": counts[EnrollmentStatus.ACTIVE.value],
            "completed": counts[EnrollmentStatus.COMPLETED.value],
            "pending": counts[EnrollmentStatus.PENDING.value],
            "cancelled": counts[EnrollmentStatus.CANCELLED.value],
        },
        "batches": [
            {
                "batch_id": batch["batch_id"],
                "batch_name": batch.get("name"),
                "student_count": len(batch.get("students", [])),
                "max_students": batch.get("max_students"),
                "teacher_name": teachers.get(batch["teacher_id"], {}).get("name"),
            }
            for batch in batches
        ],
        "revenue": {
            "potential": total * fees,
            "collected": counts[EnrollmentStatus.ACTIVE.value] * fees,
        },
    }


async def all_courses_enrollment_report(db: AsyncIOMotorDatabase) -> List[dict]:
    report = []
    for course in await courses_db.list_active_courses(db):
        counts = await enrollments_db.count_by_status(db, course["course_id"])
        total = sum(counts.values())
        report.append({
            "course_id": course["course_id"],
            "course_name": course.get("name"),
            "fees": course.get("fees", 0),
            "total_enrollments": total,
            "active_enrollments": counts[EnrollmentStatus.ACTIVE.value],
            "total_batches": await batches_db.count_course_batches(db, course["course_id"]),
            "potential_revenue": total * course.get("fees", 0),
        })
    return report
