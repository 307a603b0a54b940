"""Service layer for business logic."""

from roster.services.identity_service import IdentityService, LoginResult
from roster.services.session_store import SessionStore
from roster.services.student_service import StudentService

__all__ = [
    "IdentityService",
    "LoginResult",
    "SessionStore",
    "StudentService",
]
