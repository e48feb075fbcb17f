"""Student model for the database."""

from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship

from components.core.database import Base


class Student(Base):
    """Student whose tuition can be paid by any user."""
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    mssv = Column(String(32), unique=True, nullable=False)  # Registration number
    full_name = Column(String(255), nullable=False)
    # Pending tuitions must be paid together in one combined payment
    combined_billing = Column(Boolean, nullable=False, default=False)

    # Relationship with Tuitions
    tuitions = relationship("Tuition", back_populates="student")
