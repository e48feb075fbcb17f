"""Test doubles, demo rows and helpers that read state back through fresh sessions."""

import re
from contextlib import asynccontextmanager
from dataclasses import dataclass
from types import SimpleNamespace
from typing import List

from sqlalchemy import select, update

from components.core.security import get_password_hash
from components.notification.mailer import Mailer, NotificationError
from components.otp.models import OneTimeCode
from components.student.models import Student
from components.transaction.models import Transaction
from components.transaction.service import TransactionService
from components.tuition.models import Tuition
from components.user.models import User

CODE_PATTERN = re.compile(r"Your OTP code is (\S+) \(valid")


@dataclass
class SentMessage:
    to: str
    subject: str
    text: str


class RecordingMailer(Mailer):
    """Keeps every message so tests can read the codes back."""

    def __init__(self) -> None:
        self.outbox: List[SentMessage] = []

    async def send(self, to: str, subject: str, text: str) -> None:
        self.outbox.append(SentMessage(to=to, subject=subject, text=text))


class FailingMailer(RecordingMailer):
    """Records messages but refuses the selected kinds."""

    def __init__(self, fail_otp=False, fail_confirmation=False):
        super().__init__()
        self.fail_otp = fail_otp
        self.fail_confirmation = fail_confirmation

    async def send_otp(self, to, code, ttl_minutes):
        if self.fail_otp:
            raise NotificationError("mail provider down")
        await super().send_otp(to, code, ttl_minutes)

    async def send_confirmation(self, to, details):
        if self.fail_confirmation:
            raise NotificationError("mail provider down")
        await super().send_confirmation(to, details)


def last_code(mailer: RecordingMailer) -> str:
    """Plaintext code of the most recent OTP message."""
    for message in reversed(mailer.outbox):
        match = CODE_PATTERN.search(message.text)
        if match:
            return match.group(1)
    raise AssertionError("no OTP message was sent")


def wrong_code(code: str) -> str:
    return "000000" if code != "000000" else "111111"


async def fetch(db_manager, model, row_id):
    """Load a row through a new session."""
    async with db_manager.get_db() as session:
        result = await session.execute(select(model).where(model.id == row_id))
        return result.scalar_one_or_none()


async def balance_of(db_manager, user_id) -> int:
    return (await fetch(db_manager, User, user_id)).balance_cents


async def tuition_status(db_manager, tuition_id) -> str:
    return (await fetch(db_manager, Tuition, tuition_id)).status


async def group_of(db_manager, head_id):
    async with db_manager.get_db() as session:
        result = await session.execute(
            select(Transaction)
            .where((Transaction.id == head_id) | (Transaction.group_id == head_id))
            .order_by(Transaction.id)
        )
        return list(result.scalars().all())


async def otp_of(db_manager, transaction_id):
    async with db_manager.get_db() as session:
        result = await session.execute(
            select(OneTimeCode).where(OneTimeCode.transaction_id == transaction_id)
        )
        return result.scalar_one_or_none()


async def execute(db_manager, statement):
    """Run one write statement and commit it."""
    async with db_manager.get_db() as session:
        await session.execute(statement)
        await session.commit()


async def set_balance(db_manager, user_id, balance_cents):
    await execute(
        db_manager,
        update(User).where(User.id == user_id).values(balance_cents=balance_cents),
    )


async def seed_world(db_manager):
    """
    Two payers and three students.

    - 20200001: one pending tuition of 50000
    - 20200002: one pending tuition of 70000
    - 20190001: billed as one combined payment of 10000 + 20000 + 30000
    """
    async with db_manager.get_db() as session:
        payer = User(
            username="payer",
            password=get_password_hash("secret"),
            full_name="Payer One",
            phone="0900000001",
            email="payer@example.com",
            balance_cents=100000,
        )
        other = User(
            username="other",
            password=get_password_hash("secret"),
            full_name="Other Payer",
            phone="0900000002",
            email="other@example.com",
            balance_cents=100000,
        )
        single = Student(mssv="20200001", full_name="Single Student")
        second = Student(mssv="20200002", full_name="Second Student")
        combined = Student(mssv="20190001", full_name="Combined Student", combined_billing=True)
        session.add_all([payer, other, single, second, combined])
        await session.flush()

        single_tuition = Tuition(student_id=single.id, academic_year="2024-2025", semester=1,
                                 amount_cents=50000, description="Semester 1")
        second_tuition = Tuition(student_id=second.id, academic_year="2024-2025", semester=2,
                                 amount_cents=70000, description="Semester 2")
        combined_tuitions = [
            Tuition(student_id=combined.id, academic_year="2024-2025", semester=1,
                    amount_cents=30000, description="Newest"),
            Tuition(student_id=combined.id, academic_year="2023-2024", semester=1,
                    amount_cents=20000, description="Middle"),
            Tuition(student_id=combined.id, academic_year="2022-2023", semester=1,
                    amount_cents=10000, description="Oldest"),
        ]
        session.add_all([single_tuition, second_tuition, *combined_tuitions])
        await session.commit()

        return SimpleNamespace(
            payer_id=payer.id,
            other_id=other.id,
            single_mssv=single.mssv,
            second_mssv=second.mssv,
            combined_mssv=combined.mssv,
            single_tuition_id=single_tuition.id,
            second_tuition_id=second_tuition.id,
            combined_tuition_ids=[tuition.id for tuition in combined_tuitions],
        )


def service_factory(db_manager, mailer, settings):
    """Service bound to a fresh session, like one HTTP request."""

    @asynccontextmanager
    async def factory(mailer_override=None):
        async with db_manager.get_db() as session:
            yield TransactionService(session, mailer_override or mailer, settings)

    return factory
