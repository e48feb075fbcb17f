"""Error kinds reported by the payment core.

Every error carries a stable string ``code`` that is returned to callers
verbatim, plus the HTTP status the REST layer should use for it. Storage and
notification failures are not modelled here; they surface as a generic
``server_error``.
"""

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base class for caller-visible errors."""

    code = "server_error"
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, **extra: Any) -> None:
        self.message = message or self.message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message, **self.extra}


# Input validation

class MissingField(ServiceError):
    code = "missing_fields"
    status_code = 400
    message = "Required field is missing"


class MissingTransactionId(MissingField):
    code = "missing_transactionId"
    message = "transactionId is required"


class InvalidTuitionId(ServiceError):
    code = "invalid_tuitionId"
    status_code = 400
    message = "tuitionId must be a positive integer"


# Not found / ownership

class StudentNotFound(ServiceError):
    code = "student_not_found"
    status_code = 404
    message = "Student not found"


class TuitionNotFoundForStudent(ServiceError):
    code = "tuition_not_found_for_student"
    status_code = 404
    message = "Student does not have a pending tuition with this id"


class TransactionNotFound(ServiceError):
    code = "transaction_not_found"
    status_code = 404
    message = "Transaction not found"


class Forbidden(ServiceError):
    code = "forbidden"
    status_code = 403
    message = "Transaction belongs to another user"


# Business rule conflicts

class InsufficientBalance(ServiceError):
    code = "insufficient_balance"
    status_code = 400
    message = "Insufficient balance"


class IndividualPaymentNotAllowed(ServiceError):
    code = "individual_payment_not_allowed"
    status_code = 400
    message = "This student's tuitions must be paid together (tuitionId 0)"


class TransactionNotPending(ServiceError):
    code = "transaction_not_pending"
    status_code = 400
    message = "Transaction is not pending"


class InvalidOtp(ServiceError):
    code = "invalid_otp"
    status_code = 400
    message = "Invalid OTP code"


class OtpAlreadyUsed(ServiceError):
    code = "otp_already_used"
    status_code = 400
    message = "OTP code was already used"


class OtpExpired(ServiceError):
    code = "otp_expired"
    status_code = 400
    message = "OTP code has expired"


class OtpAttemptsExceeded(ServiceError):
    code = "otp_attempts_exceeded"
    status_code = 400
    message = "Too many wrong OTP attempts, transaction cancelled"


class InsufficientBalanceAtFinalize(ServiceError):
    code = "insufficient_balance_at_finalize"
    status_code = 400
    message = "Insufficient balance to complete the payment"


class TuitionAlreadyPaidOrModified(ServiceError):
    code = "tuition_already_paid_or_modified"
    status_code = 409
    message = "Tuition was already paid or changed since the transaction started"


class TransactionPendingCannotDelete(ServiceError):
    code = "transaction_pending_cannot_delete"
    status_code = 400
    message = "Cancel the transaction before deleting it"


class TransactionConfirmedCannotDelete(ServiceError):
    code = "transaction_confirmed_cannot_delete"
    status_code = 400
    message = "Confirmed transactions cannot be deleted"
