from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from roster.database import get_db
from roster.schemas.student import DeleteResponse, StudentFields, StudentResponse
from roster.services.student_service import StudentService
from roster.utils.auth import get_current_user

# Every route requires a valid session before the handler body runs
router = APIRouter(
    prefix="/students",
    tags=["Students"],
    dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=list[StudentResponse])
async def list_students(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[StudentResponse]:
    students = await StudentService(db).list_all()
    return [StudentResponse.model_validate(s) for s in students]


@router.post("", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
async def create_student(
    fields: StudentFields,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> StudentResponse:
    student = await StudentService(db).create(fields)
    await db.commit()
    return StudentResponse.model_validate(student)


@router.put("/{student_id}", response_model=StudentResponse)
async def update_student(
    student_id: int,
    fields: StudentFields,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> StudentResponse:
    student = await StudentService(db).update(student_id, fields)
    await db.commit()
    return StudentResponse.model_validate(student)


@router.delete("/{student_id}", response_model=DeleteResponse)
async def delete_student(
    student_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DeleteResponse:
    await StudentService(db).delete(student_id)
    await db.commit()
    return DeleteResponse()
