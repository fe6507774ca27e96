from pydantic import BaseModel, Field, field_validator
from typing import Optional
from enum import Enum
from datetime import datetime

from student_service.utils.timestamps import to_datetime

class EnrollmentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class Enrollment(BaseModel):
    id: str
    student_id: str
    course_id: str
    status: EnrollmentStatus = EnrollmentStatus.PENDING
    course_name: Optional[str] = None
    student_name: Optional[str] = None
    teacher_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def normalize_timestamp(cls, v):
        return to_datetime(v)

class EnrollmentCreate(BaseModel):
    course_id: str = Field(..., min_length=1)

class EnrollmentReview(BaseModel):
    status: EnrollmentStatus

    @field_validator("status")
    @classmethod
    def decided(cls, v):
        if v == EnrollmentStatus.PENDING:
            raise ValueError("Status must be approved or rejected")
        return v
