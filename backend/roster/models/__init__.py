"""Database models."""

from roster.models.session import UserSession
from roster.models.student import Student
from roster.models.user import User

__all__ = [
    "User",
    "UserSession",
    "Student",
]
