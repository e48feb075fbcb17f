"""User model for the database."""

from sqlalchemy import BigInteger, CheckConstraint, Column, Integer, String
from sqlalchemy.orm import relationship

from components.core.database import Base


class User(Base):
    """User model representing a paying bank customer."""
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("balance_cents >= 0", name="ck_users_balance_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False)
    password = Column(String(255), nullable=False)  # Hashed password
    full_name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=True)
    email = Column(String(255), nullable=False)
    balance_cents = Column(BigInteger, nullable=False, default=0)

    # Relationship with Transactions
    transactions = relationship("Transaction", back_populates="payer")
