"""
MongoDB record sources for the report composer

Created per request from the get_db dependency and handed to the report
services; the composer itself never touches the database.
"""

import logging
from typing import Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from institute.core.database import serialize_many

logger = logging.getLogger(__name__)


class MongoAttendanceSource:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def fetch_by_batch(self, batch_id: str) -> List[dict]:
        cursor = self.db.attendance.find({"batch_id": batch_id}).sort("date", 1)
        return serialize_many(await cursor.to_list(length=None))

    async def fetch_by_student(self, student_id: str, batch_id: Optional[str] = None) -> List[dict]:
        """Records where the student was marked, optionally within one batch"""
        query = {
            "$or": [
                {"present_students": student_id},
                {"absent_students": student_id},
            ]
        }
        if batch_id:
            query["batch_id"] = batch_id

        cursor = self.db.attendance.find(query).sort("date", -1)
        return serialize_many(await cursor.to_list(length=None))


class MongoExamResultSource:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def fetch_by_student(self, student_id: str) -> List[Tuple[dict, dict]]:
        """(result, exam) pairs for every result the student has"""
        results = await self.db.exam_results.find({"student_id": student_id}).to_list(length=None)
        if not results:
            return []

        exam_ids = list({result["exam_id"] for result in results})
        exams = await self.db.exams.find({"exam_id": {"$in": exam_ids}}).to_list(length=None)
        exams_by_id = {exam["exam_id"]: exam for exam in serialize_many(exams)}

        pairs = []
        for result in serialize_many(results):
            exam = exams_by_id.get(result["exam_id"])
            if exam is None:
                logger.warning("Result %s points at missing exam %s", result.get("result_id"), result["exam_id"])
                continue
            pairs.append((result, exam))
        return pairs

    async def fetch_by_exam(self, exam_id: str) -> List[dict]:
        cursor = self.db.exam_results.find({"exam_id": exam_id})
        return serialize_many(await cursor.to_list(length=None))

    async def fetch_by_exams(self, exam_ids: List[str]) -> Dict[str, List[dict]]:
        grouped = {exam_id: [] for exam_id in exam_ids}
        if not exam_ids:
            return grouped

        cursor = self.db.exam_results.find({"exam_id": {"$in": exam_ids}})
        for result in serialize_many(await cursor.to_list(length=None)):
            grouped.setdefault(result["exam_id"], []).append(result)
        return grouped
