"""Transaction endpoints for the API."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.init_db import get_db, get_mailer
from components.core.schemas import ErrorResponse
from components.notification.mailer import Mailer
from components.transaction import schemas
from components.transaction.service import TransactionService
from components.user.models import User
from restapi.endpoints.auth import get_current_user

router = APIRouter(
    prefix="/api/transactions",
    tags=["transactions"],
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)


def get_service(
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> TransactionService:
    return TransactionService(db, mailer)


@router.post("/start", response_model=schemas.StartResult)
async def start_transaction(
    body: schemas.StartRequest,
    service: TransactionService = Depends(get_service),
    current_user: User = Depends(get_current_user)
):
    """
    Start paying a tuition.

    `tuitionId` is the position returned by the student lookup (0 for a
    combined payment). A one-time code is mailed to the caller.
    """
    return await service.start(current_user.id, body.student_id, body.tuition_id)


@router.post("/verify", response_model=schemas.VerifyResult)
async def verify_transaction(
    body: schemas.VerifyRequest,
    service: TransactionService = Depends(get_service),
    current_user: User = Depends(get_current_user)
):
    """Confirm a pending payment with its one-time code."""
    return await service.verify(current_user.id, body.transaction_id, body.otp_code)


@router.post("/resend", response_model=schemas.StartResult)
async def resend_otp(
    body: schemas.TransactionIdRequest,
    service: TransactionService = Depends(get_service),
    current_user: User = Depends(get_current_user)
):
    """Invalidate the current code and mail a new one."""
    return await service.resend(current_user.id, body.transaction_id)


@router.post("/cancel", response_model=schemas.SuccessResponse)
async def cancel_transaction(
    body: schemas.TransactionIdRequest,
    service: TransactionService = Depends(get_service),
    current_user: User = Depends(get_current_user)
):
    """Cancel a pending payment."""
    await service.cancel(current_user.id, body.transaction_id)
    return schemas.SuccessResponse()


@router.post("/delete", response_model=schemas.SuccessResponse)
async def delete_transaction(
    body: schemas.TransactionIdRequest,
    service: TransactionService = Depends(get_service),
    current_user: User = Depends(get_current_user)
):
    """Remove a cancelled or failed payment from history."""
    await service.delete(current_user.id, body.transaction_id)
    return schemas.SuccessResponse()


@router.get("/history", response_model=schemas.HistoryResponse)
async def history(
    service: TransactionService = Depends(get_service),
    current_user: User = Depends(get_current_user)
):
    """Get the caller's most recent transactions."""
    return schemas.HistoryResponse(transactions=await service.history(current_user.id))
