from fastapi import HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from institute.batches import database as batches_db
from institute.core.permissions import UserContext


async def verify_batch_access(
    db: AsyncIOMotorDatabase,
    batch_id: str,
    user: UserContext
) -> dict:
    """
    Admins reach every batch; teachers only the batches assigned to them

    Returns:
        dict: Batch document

    Raises:
        404: Batch not found
        403: Teacher not assigned to this batch
    """
    batch = await batches_db.get_active_batch(db, batch_id)

    if not batch:
        raise HTTPException(status_code=404, detail="Batch not found")

    if user.is_teacher and batch.get("teacher_id") != user.user_id:
        raise HTTPException(status_code=403, detail="You are not assigned to this batch")

    return batch


def verify_batch_membership(batch: dict, student_id: str):
    if student_id not in batch.get("students", []):
        raise HTTPException(status_code=400, detail=f"Student {student_id} is not in this batch")
