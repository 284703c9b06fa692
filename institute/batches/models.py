from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from institute.core.database import as_naive_utc


class BatchCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    course_id: str
    start_date: datetime
    end_date: datetime
    teacher_id: str
    max_students: int = Field(30, ge=1, le=100)

    @field_validator("start_date", "end_date")
    @classmethod
    def to_utc(cls, v):
        return as_naive_utc(v)

    @field_validator("start_date")
    @classmethod
    def start_in_future(cls, v):
        if v <= datetime.utcnow():
            raise ValueError("start_date must be in the future")
        return v

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class BatchUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    teacher_id: Optional[str] = None
    max_students: Optional[int] = Field(None, ge=1, le=100)

    @field_validator("start_date", "end_date")
    @classmethod
    def to_utc(cls, v):
        return as_naive_utc(v)

    @field_validator("start_date")
    @classmethod
    def start_in_future(cls, v):
        if v is not None and v <= datetime.utcnow():
            raise ValueError("start_date must be in the future")
        return v


class AssignStudentRequest(BaseModel):
    student_id: str
