"""Typed exceptions for roster failures.

Each maps to one client-facing HTTP status in ``roster.main``. Storage
failures are not wrapped: any ``SQLAlchemyError`` that escapes a handler is
reported as a generic server error.
"""

from typing import Any


class RosterError(Exception):
    """Base class for expected, client-correctable failures."""


class InvalidAssertionError(RosterError):
    """Login assertion is missing its provider subject id or cannot be parsed."""


class StudentValidationError(RosterError):
    """
    Student fields failed presence/format checks.

    ``errors`` holds one ``{"field": ..., "message": ...}`` entry per problem.
    """

    def __init__(self, errors: list[dict[str, Any]]):
        self.errors = errors
        super().__init__("Validation error")


class StudentNotFoundError(RosterError):
    def __init__(self, student_id: int):
        self.student_id = student_id
        super().__init__(f"Student {student_id} not found")
