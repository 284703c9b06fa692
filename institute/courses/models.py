from typing import Optional

from pydantic import BaseModel, Field


class CourseCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: str = Field(..., min_length=10)
    duration: int = Field(..., ge=1, le=36)  # months
    fees: float = Field(..., ge=0)


class CourseUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, min_length=10)
    duration: Optional[int] = Field(None, ge=1, le=36)
    fees: Optional[float] = Field(None, ge=0)
