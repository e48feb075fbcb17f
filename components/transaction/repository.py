"""Repository for transaction rows."""

from typing import Iterable, List, Optional, Sequence, Tuple
from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.utils import utcnow
from components.student.models import Student
from components.transaction.models import Transaction, TransactionStatus
from components.transaction import schemas
from components.tuition.models import Tuition, TuitionStatus


class TransactionRepository:
    """Repository for transaction rows."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def create_pending(self, payer_id: int, tuitions: Sequence[Tuition]) -> List[Transaction]:
        """
        Insert one pending transaction per tuition.

        With more than one tuition the rows form a group: every member's
        ``group_id`` is the id of the first one.
        """
        created = []
        for tuition in tuitions:
            transaction = Transaction(
                payer_user_id=payer_id,
                tuition_id=tuition.id,
                amount_cents=tuition.amount_cents,
                status=TransactionStatus.PENDING.value,
            )
            self.session.add(transaction)
            await self.session.flush()
            created.append(transaction)

        if len(created) > 1:
            head_id = created[0].id
            for transaction in created:
                transaction.group_id = head_id
            await self.session.flush()
        return created

    async def lock_group_of(self, transaction_id: int) -> Tuple[Optional[Transaction], List[Transaction]]:
        """
        Lock every member of the group that contains ``transaction_id``.

        The head id is read without a lock, then all members are locked by one
        statement in id order. Every caller therefore takes the locks of a
        group in the same order, whichever member it was handed. A
        transaction without a group is its own single-member group.

        Returns the requested transaction (None if it does not exist) and the
        locked members.
        """
        result = await self.session.execute(
            select(Transaction.id, Transaction.group_id)
            .where(Transaction.id == transaction_id)
        )
        row = result.one_or_none()
        if row is None:
            return None, []

        head_id = row.group_id or row.id
        result = await self.session.execute(
            select(Transaction)
            .where(or_(Transaction.id == head_id, Transaction.group_id == head_id))
            .order_by(Transaction.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        members = list(result.scalars().all())
        transaction = next((member for member in members if member.id == transaction_id), None)
        return transaction, members

    async def set_status_if_pending(
        self,
        transaction_ids: Iterable[int],
        status: TransactionStatus,
        confirmed: bool = False,
    ) -> int:
        """
        Move pending transactions to ``status``.

        Only rows still pending are touched; returns the number of rows changed.
        """
        values = {"status": status.value}
        if confirmed:
            values["confirmed_at"] = utcnow()
        result = await self.session.execute(
            update(Transaction)
            .where(
                Transaction.id.in_(list(transaction_ids)),
                Transaction.status == TransactionStatus.PENDING.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def mark_tuition_paid(self, tuition_id: int, expected_amount_cents: int) -> bool:
        """
        Mark a tuition paid if it is still pending and its amount is unchanged.

        Returns False when the guard did not match.
        """
        result = await self.session.execute(
            update(Tuition)
            .where(
                Tuition.id == tuition_id,
                Tuition.status == TuitionStatus.PENDING.value,
                Tuition.amount_cents == expected_amount_cents,
            )
            .values(status=TuitionStatus.PAID.value, paid_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def delete_group(self, members: Sequence[Transaction]) -> None:
        """Delete transactions, unlinking the group first so no row references a deleted one."""
        ids = [transaction.id for transaction in members]
        await self.session.execute(
            update(Transaction)
            .where(Transaction.id.in_(ids))
            .values(group_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(
            delete(Transaction)
            .where(Transaction.id.in_(ids))
            .execution_options(synchronize_session=False)
        )

    async def history(self, payer_id: int, limit: int) -> List[schemas.HistoryItem]:
        """Most recent transactions of a payer with the student they paid for."""
        result = await self.session.execute(
            select(Transaction, Student.mssv, Student.full_name)
            .join(Tuition, Tuition.id == Transaction.tuition_id)
            .join(Student, Student.id == Tuition.student_id)
            .where(Transaction.payer_user_id == payer_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .limit(limit)
        )
        return [
            schemas.HistoryItem(
                id=transaction.id,
                amount_cents=transaction.amount_cents,
                status=transaction.status,
                group_id=transaction.group_id,
                created_at=transaction.created_at,
                confirmed_at=transaction.confirmed_at,
                mssv=mssv,
                student_name=student_name,
            )
            for transaction, mssv, student_name in result.all()
        ]
