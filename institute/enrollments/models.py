from enum import Enum
from typing import Optional

from pydantic import BaseModel


class EnrollmentStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EnrollRequest(BaseModel):
    course_id: str
    student_id: Optional[str] = None  # required when staff enroll someone


class AssignBatchRequest(BaseModel):
    enrollment_id: str
    batch_id: str


class StatusUpdate(BaseModel):
    status: EnrollmentStatus
