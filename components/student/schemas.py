"""Pydantic schemas for student lookup."""

from typing import List, Optional
from pydantic import BaseModel


class PayableItem(BaseModel):
    """
    One entry of a student's payable list.

    ``id`` is positional: the rank of the tuition among the student's pending
    tuitions, recomputed on every lookup. ``0`` is the combined payment.
    """
    id: int
    academic_year: Optional[str] = None
    semester: Optional[int] = None
    amount_cents: int
    description: Optional[str] = None
    read_only: bool = False
    is_combined: bool = False
    mandatory: bool = False
    tuition_count: Optional[int] = None


class StudentInfo(BaseModel):
    """Schema for student lookup response."""
    student_id: str
    full_name: str
    pending_tuitions: List[PayableItem]


class StudentResponse(BaseModel):
    student: StudentInfo
