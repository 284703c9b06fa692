from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from institute.core.database import as_naive_utc


class ExamCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    batch_id: str
    date: datetime
    duration: int = Field(..., ge=1)  # minutes
    total_marks: int = Field(..., ge=1)
    subject: Optional[str] = None
    description: Optional[str] = None

    @field_validator("date")
    @classmethod
    def date_in_future(cls, v):
        v = as_naive_utc(v)
        if v <= datetime.utcnow():
            raise ValueError("date must be in the future")
        return v


class ExamUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    date: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=1)
    total_marks: Optional[int] = Field(None, ge=1)
    subject: Optional[str] = None
    description: Optional[str] = None

    @field_validator("date")
    @classmethod
    def date_in_future(cls, v):
        if v is None:
            return v
        v = as_naive_utc(v)
        if v <= datetime.utcnow():
            raise ValueError("date must be in the future")
        return v


class MarksAssign(BaseModel):
    exam_id: str
    student_id: str
    marks_obtained: float = Field(..., ge=0)
    remarks: Optional[str] = None


class ResultRow(BaseModel):
    student_id: str
    marks_obtained: float = Field(..., ge=0)
    remarks: Optional[str] = None


class BulkMarksAssign(BaseModel):
    exam_id: str
    results: List[ResultRow] = Field(..., min_length=1)
