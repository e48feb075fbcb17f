"""
Pydantic schemas for transaction requests and responses.

Request fields are loosely typed: TransactionService checks them and reports
bad values with its own error codes.
"""

from datetime import datetime
from typing import Any, List, Optional, Union
from pydantic import BaseModel, Field


class StartRequest(BaseModel):
    """Schema for starting a payment."""
    student_id: Optional[Union[str, int]] = Field(None, alias="studentId")
    tuition_id: Optional[Any] = Field(None, alias="tuitionId")

    class Config:
        populate_by_name = True


class VerifyRequest(BaseModel):
    """Schema for confirming a payment with its code."""
    transaction_id: Optional[Any] = Field(None, alias="transactionId")
    otp_code: Optional[Any] = Field(None, alias="otpCode")

    class Config:
        populate_by_name = True


class TransactionIdRequest(BaseModel):
    """Schema for resend, cancel and delete."""
    transaction_id: Optional[Any] = Field(None, alias="transactionId")

    class Config:
        populate_by_name = True


class StartResult(BaseModel):
    """Schema for start and resend responses."""
    transaction_id: int = Field(..., serialization_alias="transactionId")
    otp_expires_at: datetime = Field(..., serialization_alias="otpExpiresAt")


class VerifyResult(BaseModel):
    success: bool = True
    new_balance_cents: int


class SuccessResponse(BaseModel):
    success: bool = True


class HistoryItem(BaseModel):
    """Schema for one history row."""
    id: int
    amount_cents: int
    status: str
    group_id: Optional[int] = None
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    mssv: str
    student_name: str


class HistoryResponse(BaseModel):
    transactions: List[HistoryItem]
