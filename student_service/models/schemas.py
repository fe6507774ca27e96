from pydantic import BaseModel
from typing import Optional
from enum import Enum

class UserRole(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"

class Identity(BaseModel):
    """Caller identity as issued by the identity provider."""
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: UserRole = UserRole.STUDENT

    @property
    def display_name(self) -> Optional[str]:
        return self.name or self.email
