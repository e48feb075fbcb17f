"""Repository for one-time code operations."""

from datetime import datetime, timedelta
from typing import Optional, Tuple

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.utils import utcnow
from components.otp import codes
from components.otp.models import OneTimeCode

logger = structlog.get_logger(__name__)


class OtpRepository:
    """Repository for one-time code operations."""

    def __init__(self, session: AsyncSession, secret: str):
        """Initialize repository with database session and digest key."""
        self.session = session
        self.secret = secret

    async def digest_is_active(self, code_digest: str) -> bool:
        """Check whether an unused, unexpired code already has this digest."""
        result = await self.session.execute(
            select(OneTimeCode.id)
            .where(
                OneTimeCode.code_digest == code_digest,
                OneTimeCode.used.is_(False),
                OneTimeCode.expires_at > utcnow(),
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def generate_unique_code(self, max_retries: int) -> Tuple[str, str]:
        """
        Pick a code whose digest does not clash with any live code.

        Returns (code, digest). Falls back to a longer token after
        ``max_retries`` collisions.
        """
        for _ in range(max_retries):
            code = codes.generate_code()
            code_digest = codes.digest_code(code, self.secret)
            if not await self.digest_is_active(code_digest):
                return code, code_digest

        logger.warning("otp_collision_fallback", retries=max_retries)
        code = codes.generate_fallback_token()
        return code, codes.digest_code(code, self.secret)

    async def issue(
        self,
        transaction_id: int,
        ttl_minutes: int,
        max_retries: int,
    ) -> Tuple[str, datetime]:
        """
        Create or replace the code of a transaction.

        The previous code (if any) is overwritten, so at most one code per
        transaction is ever valid. Returns the plaintext code and its expiry.
        """
        code, code_digest = await self.generate_unique_code(max_retries)
        expires_at = utcnow() + timedelta(minutes=ttl_minutes)

        otp = await self.get_for_update(transaction_id)
        if otp is None:
            otp = OneTimeCode(
                transaction_id=transaction_id,
                code_digest=code_digest,
                expires_at=expires_at,
                attempts=0,
                used=False,
            )
            self.session.add(otp)
        else:
            otp.code_digest = code_digest
            otp.expires_at = expires_at
            otp.attempts = 0
            otp.used = False
        await self.session.flush()
        return code, expires_at

    async def get_for_update(self, transaction_id: int) -> Optional[OneTimeCode]:
        """Load and lock the code row of a transaction."""
        result = await self.session.execute(
            select(OneTimeCode)
            .where(OneTimeCode.transaction_id == transaction_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    def matches(self, otp: OneTimeCode, code: str) -> bool:
        return codes.codes_match(code, otp.code_digest, self.secret)

    async def record_failed_attempt(self, otp: OneTimeCode) -> int:
        """Increment the attempt counter and return its new value."""
        otp.attempts = (otp.attempts or 0) + 1
        await self.session.flush()
        return otp.attempts

    async def mark_used(self, transaction_id: int) -> None:
        await self.session.execute(
            update(OneTimeCode)
            .where(OneTimeCode.transaction_id == transaction_id)
            .values(used=True)
            .execution_options(synchronize_session=False)
        )

    async def delete_for(self, transaction_ids) -> None:
        await self.session.execute(
            delete(OneTimeCode)
            .where(OneTimeCode.transaction_id.in_(list(transaction_ids)))
            .execution_options(synchronize_session=False)
        )
