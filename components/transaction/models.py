"""Transaction model for the database."""

import enum

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from components.core.database import Base
from components.core.utils import utcnow


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    FAILED = "failed"


# Statuses a transaction can never leave
TERMINAL_STATUSES = frozenset({
    TransactionStatus.CONFIRMED.value,
    TransactionStatus.CANCELLED.value,
    TransactionStatus.FAILED.value,
})


class Transaction(Base):
    """One attempt of a user to pay one tuition."""
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    payer_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    tuition_id = Column(Integer, ForeignKey("tuitions.id"), nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)  # Snapshot of the tuition amount
    status = Column(String(16), nullable=False, default=TransactionStatus.PENDING.value, index=True)
    # Combined payments: id of the first transaction created together with this one
    group_id = Column(Integer, ForeignKey("transactions.id"), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    confirmed_at = Column(DateTime, nullable=True)

    # Relationships
    payer = relationship("User", back_populates="transactions")
    tuition = relationship("Tuition", back_populates="transactions")
    otp = relationship("OneTimeCode", back_populates="transaction", uselist=False)

    @property
    def head_id(self) -> int:
        """Id of the transaction that owns the group's OTP."""
        return self.group_id or self.id
