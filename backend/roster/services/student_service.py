import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from roster.errors import StudentNotFoundError
from roster.models.student import Student
from roster.schemas.student import StudentFields

logger = logging.getLogger(__name__)

# Upper bound of the integer primary key column
MAX_STUDENT_ID = 2**31 - 1


def _coerce(fields: StudentFields | Mapping[str, Any]) -> StudentFields:
    if isinstance(fields, StudentFields):
        return fields
    return StudentFields.from_mapping(fields)


class StudentService:
    """
    Persisted student rows.

    Rows are not scoped to the calling user. Concurrent updates of the same
    row are last-write-wins.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, student_id: int) -> Student | None:
        if not 0 < student_id <= MAX_STUDENT_ID:
            return None
        result = await self.db.execute(select(Student).where(Student.id == student_id))
        return result.scalar_one_or_none()

    async def list_all(self) -> list[Student]:
        # Insertion order; ids are monotonic
        result = await self.db.execute(select(Student).order_by(Student.id.asc()))
        return list(result.scalars().all())

    async def create(self, fields: StudentFields | Mapping[str, Any]) -> Student:
        data = _coerce(fields)
        student = Student(name=data.name, email=data.email, major=data.major)
        self.db.add(student)
        await self.db.flush()
        await self.db.refresh(student)
        logger.info("Created student %s", student.id)
        return student

    async def update(self, student_id: int, fields: StudentFields | Mapping[str, Any]) -> Student:
        """Replace name, email and major together. Fields are checked before the row is read."""
        data = _coerce(fields)

        student = await self.get_by_id(student_id)
        if student is None:
            raise StudentNotFoundError(student_id)

        student.name = data.name
        student.email = data.email
        student.major = data.major
        await self.db.flush()
        await self.db.refresh(student)
        logger.info("Updated student %s", student.id)
        return student

    async def delete(self, student_id: int) -> bool:
        """Delete by id. An unknown id is a no-op; returns whether a row was removed."""
        if not 0 < student_id <= MAX_STUDENT_ID:
            return False
        result = await self.db.execute(delete(Student).where(Student.id == student_id))
        await self.db.flush()
        deleted = bool(result.rowcount)
        if deleted:
            logger.info("Deleted student %s", student_id)
        return deleted
