"""
Payment transaction lifecycle.

A payment goes through:
1. start    - create pending transaction(s) for the selected tuition(s) and
              mail a one-time code
2. verify   - check the code under row locks; on a match debit the payer,
              mark the tuition(s) paid and confirm, all in one unit
3. resend / cancel / delete - housekeeping on pending or finished payments

Balance and tuition status are only ever changed inside ``_finalize``.
"""
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional, Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.config import Settings, get_settings
from components.core.errors import (
    Forbidden,
    InsufficientBalance,
    InsufficientBalanceAtFinalize,
    InvalidOtp,
    InvalidTuitionId,
    MissingField,
    MissingTransactionId,
    OtpAlreadyUsed,
    OtpAttemptsExceeded,
    OtpExpired,
    ServiceError,
    TransactionConfirmedCannotDelete,
    TransactionNotFound,
    TransactionNotPending,
    TransactionPendingCannotDelete,
    TuitionAlreadyPaidOrModified,
)
from components.core.utils import utcnow
from components.notification.mailer import Mailer, NotificationError
from components.otp.repository import OtpRepository
from components.student.repository import StudentRepository
from components.transaction import schemas
from components.transaction.models import Transaction, TransactionStatus
from components.transaction.repository import TransactionRepository
from components.user.repository import UserRepository

logger = structlog.get_logger(__name__)

PENDING = TransactionStatus.PENDING.value


def parse_public_tuition_id(value: Any) -> int:
    """Parse a public tuition id; 0 is allowed here and checked later."""
    if isinstance(value, bool):
        raise InvalidTuitionId()
    try:
        public_id = int(str(value).strip())
    except ValueError:
        raise InvalidTuitionId()
    if public_id < 0:
        raise InvalidTuitionId()
    return public_id


def parse_transaction_id(value: Any, missing: ServiceError) -> int:
    """
    Parse a transaction id taken from a request body.

    A blank or zero id raises ``missing``. Anything else that is not a
    positive integer names no transaction.
    """
    text = "" if value is None else str(value).strip()
    if text in ("", "0"):
        raise missing
    if isinstance(value, bool):
        raise TransactionNotFound()
    try:
        transaction_id = int(text)
    except ValueError:
        raise TransactionNotFound()
    if transaction_id <= 0:
        raise TransactionNotFound()
    return transaction_id


class TransactionService:
    """Start, verify, resend, cancel and delete tuition payments."""

    def __init__(
        self,
        session: AsyncSession,
        mailer: Mailer,
        settings: Optional[Settings] = None,
    ):
        self.session = session
        self.mailer = mailer
        self.settings = settings or get_settings()
        self.transactions = TransactionRepository(session)
        self.otps = OtpRepository(session, self.settings.otp_secret)
        self.students = StudentRepository(session)
        self.users = UserRepository(session)

    @asynccontextmanager
    async def _unit(self) -> AsyncIterator[None]:
        """Commit on success, roll back on any error (releasing row locks)."""
        try:
            yield
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    async def _payer_email(self, payer_id: int) -> str:
        user = await self.users.get_by_id(payer_id)
        if user is None:
            raise TransactionNotFound("Payer not found")
        return user.email

    async def start(self, payer_id: int, mssv: Any, public_tuition_id: Any) -> schemas.StartResult:
        """
        Start a payment of the tuition named by ``public_tuition_id``.

        The code is mailed after the transaction rows are committed; a mail
        failure is reported to the caller, who can then resend.
        """
        if isinstance(mssv, int) and not isinstance(mssv, bool):
            mssv = str(mssv)
        mssv = mssv.strip() if isinstance(mssv, str) else mssv
        if not mssv:
            raise MissingField("studentId is required", field="studentId")
        if not isinstance(mssv, str):
            raise MissingField("studentId must be a string", field="studentId")
        if public_tuition_id is None or public_tuition_id == "":
            raise MissingField("tuitionId is required", field="tuitionId")
        public_id = parse_public_tuition_id(public_tuition_id)

        async with self._unit():
            tuitions = await self.students.resolve_public_id(mssv, public_id)
            total = sum(tuition.amount_cents for tuition in tuitions)

            # Early rejection only; _finalize holds the real guard
            balance = await self.users.get_balance(payer_id)
            if balance is None or balance < total:
                raise InsufficientBalance(
                    f"Insufficient balance. Required: {total}, available: {balance or 0}",
                    required=total,
                    available=balance or 0,
                )

            created = await self.transactions.create_pending(payer_id, tuitions)
            head = created[0]
            head_id = head.id
            code, expires_at = await self.otps.issue(
                head_id,
                ttl_minutes=self.settings.OTP_TTL_MINUTES,
                max_retries=self.settings.OTP_UNIQUE_RETRIES,
            )

        logger.info(
            "transaction_started",
            transaction_id=head_id,
            payer_id=payer_id,
            mssv=mssv,
            tuition_count=len(created),
            amount_cents=total,
        )

        email = await self._payer_email(payer_id)
        await self.mailer.send_otp(email, code, self.settings.OTP_TTL_MINUTES)
        return schemas.StartResult(transaction_id=head_id, otp_expires_at=expires_at)

    async def verify(self, payer_id: int, transaction_id: Any, code: Any) -> schemas.VerifyResult:
        """
        Check a code and, on a match, finalize the payment.

        The transaction, its group and its code stay locked for the whole
        check-and-finalize sequence. Wrong codes are counted and committed
        before the error is raised.
        """
        missing = MissingField("transactionId and otpCode are required")
        if code is None or str(code).strip() == "":
            raise missing
        transaction_id = parse_transaction_id(transaction_id, missing)

        failure: Optional[ServiceError] = None
        member_ids: List[int] = []
        head_id = transaction_id
        total = 0
        new_balance = None

        try:
            async with self._unit():
                transaction, members = await self.transactions.lock_group_of(transaction_id)
                if transaction is None or transaction.payer_user_id != payer_id:
                    raise TransactionNotFound()
                if transaction.status != PENDING:
                    raise TransactionNotPending()

                member_ids = [member.id for member in members]
                head_id = transaction.head_id

                otp = await self.otps.get_for_update(head_id)
                if otp is None:
                    raise InvalidOtp()
                if otp.used:
                    raise OtpAlreadyUsed()
                if otp.expires_at < utcnow():
                    raise OtpExpired()

                if not self.otps.matches(otp, str(code)):
                    attempts = await self.otps.record_failed_attempt(otp)
                    max_attempts = self.settings.OTP_MAX_ATTEMPTS
                    logger.info(
                        "otp_attempt_failed",
                        transaction_id=transaction_id,
                        attempts=attempts,
                        max_attempts=max_attempts,
                    )
                    if attempts >= max_attempts:
                        await self.transactions.set_status_if_pending(
                            member_ids, TransactionStatus.CANCELLED
                        )
                        failure = OtpAttemptsExceeded()
                    else:
                        failure = InvalidOtp(attempts_left=max_attempts - attempts)
                else:
                    total, new_balance = await self._finalize(payer_id, head_id, members)
        except TuitionAlreadyPaidOrModified:
            await self._mark_failed(head_id, member_ids)
            raise

        if failure is not None:
            if isinstance(failure, OtpAttemptsExceeded):
                logger.warning("transaction_cancelled_attempts_exceeded", transaction_ids=member_ids)
            raise failure

        logger.info(
            "transaction_confirmed",
            transaction_ids=member_ids,
            payer_id=payer_id,
            amount_cents=total,
        )
        await self._send_confirmation(payer_id, transaction_id, total)
        return schemas.VerifyResult(success=True, new_balance_cents=new_balance)

    async def _finalize(self, payer_id: int, head_id: int, members: Sequence[Transaction]):
        """
        Move the money for every pending member of a group.

        Runs inside the caller's unit; any error rolls the whole unit back,
        so either every guard passes and every write survives, or nothing does.
        Returns (total debited, new balance).
        """
        pending = [member for member in members if member.status == PENDING]
        pending_ids = [member.id for member in pending]
        total = sum(member.amount_cents for member in pending)

        # Serializes finalizations against the same account
        await self.users.lock(payer_id)

        if not await self.users.debit_if_sufficient(payer_id, total):
            raise InsufficientBalanceAtFinalize(required=total)

        for member in pending:
            if not await self.transactions.mark_tuition_paid(member.tuition_id, member.amount_cents):
                raise TuitionAlreadyPaidOrModified()

        changed = await self.transactions.set_status_if_pending(
            pending_ids, TransactionStatus.CONFIRMED, confirmed=True
        )
        if changed != len(pending_ids):
            raise TransactionNotPending()

        await self.otps.mark_used(head_id)
        new_balance = await self.users.get_balance(payer_id)
        return total, new_balance

    async def _mark_failed(self, head_id: int, member_ids: Sequence[int]) -> None:
        """Fail a group whose tuition can no longer be paid by it."""
        async with self._unit():
            await self.transactions.set_status_if_pending(member_ids, TransactionStatus.FAILED)
            await self.otps.mark_used(head_id)
        logger.warning("transaction_failed_tuition_changed", transaction_ids=list(member_ids))

    async def _send_confirmation(self, payer_id: int, transaction_id: int, total: int) -> None:
        """Best effort: the payment is already committed."""
        try:
            email = await self._payer_email(payer_id)
            await self.mailer.send_confirmation(
                email, f"Transaction {transaction_id} amount {total}"
            )
        except NotificationError as e:
            logger.error(
                "confirmation_mail_failed",
                transaction_id=transaction_id,
                error=str(e),
            )

    async def resend(self, payer_id: int, transaction_id: Any) -> schemas.StartResult:
        """Replace the code of a pending transaction and mail the new one."""
        transaction_id = parse_transaction_id(transaction_id, MissingTransactionId())

        async with self._unit():
            transaction, _ = await self.transactions.lock_group_of(transaction_id)
            if transaction is None or transaction.payer_user_id != payer_id:
                raise TransactionNotFound()
            if transaction.status != PENDING:
                raise TransactionNotPending()
            code, expires_at = await self.otps.issue(
                transaction.head_id,
                ttl_minutes=self.settings.OTP_TTL_MINUTES,
                max_retries=self.settings.OTP_UNIQUE_RETRIES,
            )

        logger.info("otp_resent", transaction_id=transaction_id, payer_id=payer_id)
        email = await self._payer_email(payer_id)
        await self.mailer.send_otp(email, code, self.settings.OTP_TTL_MINUTES)
        return schemas.StartResult(transaction_id=transaction_id, otp_expires_at=expires_at)

    async def cancel(self, payer_id: int, transaction_id: Any) -> None:
        """Cancel a pending transaction together with its group."""
        transaction_id = parse_transaction_id(transaction_id, MissingTransactionId())

        async with self._unit():
            transaction, members = await self.transactions.lock_group_of(transaction_id)
            if transaction is None:
                raise TransactionNotFound()
            if transaction.payer_user_id != payer_id:
                raise Forbidden()
            if transaction.status != PENDING:
                raise TransactionNotPending()

            member_ids = [member.id for member in members]
            await self.transactions.set_status_if_pending(member_ids, TransactionStatus.CANCELLED)
            await self.otps.mark_used(transaction.head_id)

        logger.info("transaction_cancelled", transaction_ids=member_ids, payer_id=payer_id)

    async def delete(self, payer_id: int, transaction_id: Any) -> None:
        """
        Remove a cancelled or failed transaction from history.

        Members of a combined payment are removed together.
        """
        transaction_id = parse_transaction_id(transaction_id, MissingTransactionId())

        async with self._unit():
            transaction, members = await self.transactions.lock_group_of(transaction_id)
            if transaction is None:
                raise TransactionNotFound()
            if transaction.payer_user_id != payer_id:
                raise Forbidden()

            statuses = {member.status for member in members}
            if PENDING in statuses:
                raise TransactionPendingCannotDelete()
            if TransactionStatus.CONFIRMED.value in statuses:
                raise TransactionConfirmedCannotDelete()

            member_ids = [member.id for member in members]
            await self.otps.delete_for(member_ids)
            await self.transactions.delete_group(members)

        logger.info("transaction_deleted", transaction_ids=member_ids, payer_id=payer_id)

    async def history(self, payer_id: int) -> List[schemas.HistoryItem]:
        return await self.transactions.history(payer_id, self.settings.HISTORY_LIMIT)
