from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from institute.analytics.exam_stats import percentage_of
from institute.analytics.grading import grade_of
from institute.core.database import generate_id, serialize_many, serialize_mongo

# ==================== EXAM CRUD ====================

async def create_exam(db: AsyncIOMotorDatabase, exam_data: dict, creator_id: str) -> dict:
    now = datetime.utcnow()
    exam = {
        "exam_id": generate_id("EXM"),
        "name": exam_data["name"],
        "batch_id": exam_data["batch_id"],
        "date": exam_data["date"],
        "duration": exam_data["duration"],
        "total_marks": exam_data["total_marks"],
        "subject": exam_data.get("subject"),
        "description": exam_data.get("description"),
        "created_by": creator_id,
        "created_at": now,
        "updated_at": now,
    }
    await db.exams.insert_one(exam)
    return serialize_mongo(exam)


async def get_exam(db: AsyncIOMotorDatabase, exam_id: str) -> Optional[dict]:
    return serialize_mongo(await db.exams.find_one({"exam_id": exam_id}))


async def list_batch_exams(db: AsyncIOMotorDatabase, batch_id: str) -> List[dict]:
    cursor = db.exams.find({"batch_id": batch_id}).sort("date", -1)
    return serialize_many(await cursor.to_list(length=None))


async def list_upcoming_exams(db: AsyncIOMotorDatabase, batch_ids: List[str], limit: int = 5) -> List[dict]:
    if not batch_ids:
        return []
    cursor = db.exams.find(
        {"batch_id": {"$in": list(batch_ids)}, "date": {"$gte": datetime.utcnow()}}
    ).sort("date", 1).limit(limit)
    return serialize_many(await cursor.to_list(length=None))


async def update_exam(db: AsyncIOMotorDatabase, exam_id: str, updates: dict) -> Optional[dict]:
    updates["updated_at"] = datetime.utcnow()
    result = await db.exams.update_one({"exam_id": exam_id}, {"$set": updates})
    if result.matched_count == 0:
        return None
    return await get_exam(db, exam_id)


async def delete_exam(db: AsyncIOMotorDatabase, exam_id: str) -> int:
    """Delete the exam and its results; returns the number of results removed"""
    results = await db.exam_results.delete_many({"exam_id": exam_id})
    await db.exams.delete_one({"exam_id": exam_id})
    return results.deleted_count


# ==================== EXAM RESULTS ====================

async def upsert_result(
    db: AsyncIOMotorDatabase,
    exam: dict,
    student_id: str,
    marks_obtained: float,
    remarks: Optional[str],
    submitted_by: str,
) -> dict:
    """
    One result per (exam, student): re-assigning marks overwrites them
    created_at keeps the first submission time
    """
    now = datetime.utcnow()
    grade = grade_of(percentage_of(marks_obtained, exam["total_marks"]))

    result = await db.exam_results.find_one_and_update(
        {"exam_id": exam["exam_id"], "student_id": student_id},
        {
            "$set": {
                "marks_obtained": marks_obtained,
                "grade": grade,
                "remarks": remarks,
                "submitted_by": submitted_by,
                "updated_at": now,
            },
            "$setOnInsert": {
                "result_id": generate_id("RES"),
                "created_at": now,
            },
        },
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return serialize_mongo(result)


async def get_result(db: AsyncIOMotorDatabase, result_id: str) -> Optional[dict]:
    return serialize_mongo(await db.exam_results.find_one({"result_id": result_id}))


async def list_exam_results(db: AsyncIOMotorDatabase, exam_id: str) -> List[dict]:
    cursor = db.exam_results.find({"exam_id": exam_id})
    return serialize_many(await cursor.to_list(length=None))


async def regrade_exam(db: AsyncIOMotorDatabase, exam: dict) -> int:
    """Recompute stored grades after an exam's total_marks changes"""
    regraded = 0
    for result in await list_exam_results(db, exam["exam_id"]):
        grade = grade_of(percentage_of(result["marks_obtained"], exam["total_marks"]))
        if grade != result.get("grade"):
            await db.exam_results.update_one(
                {"result_id": result["result_id"]},
                {"$set": {"grade": grade, "updated_at": datetime.utcnow()}}
            )
            regraded += 1
    return regraded


async def delete_result(db: AsyncIOMotorDatabase, result_id: str) -> bool:
    result = await db.exam_results.delete_one({"result_id": result_id})
    return result.deleted_count > 0
