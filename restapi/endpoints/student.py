"""Student lookup endpoint for the API."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.init_db import get_db
from components.core.schemas import ErrorResponse
from components.student.repository import StudentRepository
from components.student import schemas
from components.user.models import User
from restapi.endpoints.auth import get_current_user

router = APIRouter(
    prefix="/api/student",
    tags=["students"],
    responses={404: {"model": ErrorResponse, "description": "Student not found"}},
)


@router.get("/{mssv}", response_model=schemas.StudentResponse)
async def get_student(
    mssv: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Get student info and pending tuitions.

    Tuition ids are positions in the list and are only meaningful for the
    next start call. For students billed in one combined payment the
    individual items are read-only and an extra item with id 0 is returned.
    """
    repo = StudentRepository(db)
    return schemas.StudentResponse(student=await repo.lookup(mssv))
