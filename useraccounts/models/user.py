"""User model definitions."""

import uuid
from enum import Enum

from sqlalchemy import Column, String
from useraccounts.database import Base


class UserRole(str, Enum):
    STUDENT = "Student"
    INSTRUCTOR = "Instructor"

    @classmethod
    def values(cls) -> list[str]:
        return [role.value for role in cls]


def generate_user_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """Represents an application user account."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_user_id)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.STUDENT.value)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
