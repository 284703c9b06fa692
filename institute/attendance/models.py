from datetime import date
from typing import List

from pydantic import BaseModel, field_validator, model_validator


class AttendanceMark(BaseModel):
    batch_id: str
    date: date
    present_students: List[str]
    absent_students: List[str]

    @field_validator("present_students", "absent_students")
    @classmethod
    def unique_ids(cls, v):
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def disjoint(self):
        overlap = set(self.present_students) & set(self.absent_students)
        if overlap:
            raise ValueError(f"Students cannot be both present and absent: {', '.join(sorted(overlap))}")
        return self
