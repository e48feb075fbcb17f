"""Repository for user operations."""

from typing import Optional
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from components.user.models import User
from components.core.security import verify_password


class UserRepository:
    """Repository for user operations."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        result = await self.session.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> Optional[User]:
        """Get user by username."""
        result = await self.session.execute(
            select(User).where(User.username == username)
        )
        return result.scalar_one_or_none()

    async def authenticate(self, username: str, password: str) -> Optional[User]:
        """Return the user if the credentials are valid."""
        user = await self.get_by_username(username)
        if user is None or not verify_password(password, user.password):
            return None
        return user

    async def get_balance(self, user_id: int) -> Optional[int]:
        """Read the balance straight from the database, bypassing the identity map."""
        result = await self.session.execute(
            select(User.balance_cents).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def lock(self, user_id: int) -> None:
        """Lock the account row until the current transaction ends."""
        await self.session.execute(
            select(User.id).where(User.id == user_id).with_for_update()
        )

    async def debit_if_sufficient(self, user_id: int, amount_cents: int) -> bool:
        """
        Decrement the balance only if it covers the amount.

        The WHERE clause is the guard: returns False when no row was updated.
        """
        result = await self.session.execute(
            update(User)
            .where(User.id == user_id, User.balance_cents >= amount_cents)
            .values(balance_cents=User.balance_cents - amount_cents)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
