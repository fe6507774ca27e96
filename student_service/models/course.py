from pydantic import BaseModel, Field, field_validator
from typing import Optional, List

class Course(BaseModel):
    id: str
    name: str = "Unknown Course"
    teacher_id: Optional[str] = None
    enrolled_students: List[str] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def default_name(cls, v):
        return v or "Unknown Course"

    @field_validator("enrolled_students", mode="before")
    @classmethod
    def default_students(cls, v):
        return v or []
