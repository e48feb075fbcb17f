"""Database initialization and dependency injection."""

from typing import AsyncGenerator

import fastapi
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from components.core.database import DatabaseManager
from components.notification.mailer import Mailer
# Import all models to ensure they're registered
import components.user.models
import components.student.models
import components.tuition.models
import components.transaction.models
import components.otp.models

# Create a single instance of DatabaseManager
db_manager = DatabaseManager()

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for getting database sessions."""
    async with db_manager.get_db() as session:
        yield session

def get_mailer(request: Request) -> Mailer:
    """FastAPI dependency for the process-wide mailer."""
    return request.app.state.mailer

def init_db(app: fastapi.FastAPI) -> None:
    """Initialize database connection."""
    app.state.db_manager = db_manager
