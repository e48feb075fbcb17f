"""One-time code model for the database."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from components.core.database import Base
from components.core.utils import utcnow


class OneTimeCode(Base):
    """
    Digest of the code that authorizes a pending transaction.

    Exactly one row per transaction; a resend overwrites it in place.
    The plaintext code is never stored.
    """
    __tablename__ = "otps"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), unique=True, nullable=False)
    code_digest = Column(String(64), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    used = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    transaction = relationship("Transaction", back_populates="otp")
