"""Repository for student and tuition lookup."""

from typing import List, Optional, Sequence
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.errors import (
    IndividualPaymentNotAllowed,
    InvalidTuitionId,
    StudentNotFound,
    TuitionNotFoundForStudent,
)
from components.student.models import Student
from components.student import schemas
from components.tuition.models import Tuition, TuitionStatus

COMBINED_PUBLIC_ID = 0


def requires_combined_payment(student: Student, pending: Sequence[Tuition]) -> bool:
    """Whether the student's pending tuitions may only be paid all at once."""
    return bool(student.combined_billing) and len(pending) > 1


class StudentRepository:
    """Repository for student and tuition lookup."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def get_by_mssv(self, mssv: str) -> Optional[Student]:
        """Get student by registration number."""
        result = await self.session.execute(
            select(Student).where(Student.mssv == mssv)
        )
        return result.scalar_one_or_none()

    async def pending_tuitions(self, student_id: int) -> List[Tuition]:
        """
        Pending tuitions of a student in public-id order.

        Position ``i`` in the returned list has public id ``i + 1``. Lookup and
        start both go through here so they agree on what an id names.
        """
        result = await self.session.execute(
            select(Tuition)
            .where(
                Tuition.student_id == student_id,
                Tuition.status == TuitionStatus.PENDING.value,
            )
            .order_by(
                Tuition.academic_year.desc(),
                Tuition.semester.desc(),
                Tuition.created_at.desc(),
                Tuition.id.desc(),
            )
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def lookup(self, mssv: str) -> schemas.StudentInfo:
        """
        Get a student and the items that can be paid for them.

        When the combined-payment rule applies every individual item is
        read-only and a synthetic item with id 0 covering all of them is
        appended.
        """
        student = await self.get_by_mssv(mssv)
        if student is None:
            raise StudentNotFound(f"Student {mssv} not found")

        pending = await self.pending_tuitions(student.id)
        combined = requires_combined_payment(student, pending)

        items = [
            schemas.PayableItem(
                id=position,
                academic_year=tuition.academic_year,
                semester=tuition.semester,
                amount_cents=tuition.amount_cents,
                description=tuition.description,
                read_only=combined,
            )
            for position, tuition in enumerate(pending, start=1)
        ]
        if combined:
            items.append(schemas.PayableItem(
                id=COMBINED_PUBLIC_ID,
                amount_cents=sum(tuition.amount_cents for tuition in pending),
                description=f"Combined payment of {len(pending)} tuitions",
                is_combined=True,
                mandatory=True,
                tuition_count=len(pending),
            ))

        return schemas.StudentInfo(
            student_id=student.mssv,
            full_name=student.full_name,
            pending_tuitions=items,
        )

    async def resolve_public_id(self, mssv: str, public_id: int) -> List[Tuition]:
        """
        Map a public tuition id back to concrete pending tuitions of one student.

        Returns a single tuition for a positive id and every pending tuition
        for the combined id.
        """
        student = await self.get_by_mssv(mssv)
        if student is None:
            raise TuitionNotFoundForStudent(
                f"Student {mssv} does not have pending tuition with id {public_id}"
            )

        pending = await self.pending_tuitions(student.id)
        combined = requires_combined_payment(student, pending)

        if public_id == COMBINED_PUBLIC_ID:
            if not combined:
                raise InvalidTuitionId()
            return pending

        if combined:
            raise IndividualPaymentNotAllowed()
        if public_id > len(pending):
            raise TuitionNotFoundForStudent(
                f"Student {mssv} does not have pending tuition with id {public_id}"
            )
        return [pending[public_id - 1]]
