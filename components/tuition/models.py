"""Tuition model for the database."""

import enum

from sqlalchemy import BigInteger, CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from components.core.database import Base
from components.core.utils import utcnow


class TuitionStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


class Tuition(Base):
    """Tuition fee owed by a student for one semester."""
    __tablename__ = "tuitions"
    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_tuitions_amount_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    academic_year = Column(String(9), nullable=False)  # e.g. 2024-2025
    semester = Column(Integer, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    description = Column(String(255), nullable=True)
    status = Column(String(16), nullable=False, default=TuitionStatus.PENDING.value, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    paid_at = Column(DateTime, nullable=True)

    # Relationships
    student = relationship("Student", back_populates="tuitions")
    transactions = relationship("Transaction", back_populates="tuition")
