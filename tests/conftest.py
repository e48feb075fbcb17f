"""Shared fixtures: databases, recording mailer and demo rows."""

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from components.core.config import Settings
from components.core.database import DatabaseManager
from helpers import RecordingMailer, seed_world, service_factory


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        JWT_SECRET="test-jwt-secret",
        OTP_SECRET="test-otp-secret",
        MAIL_TRANSPORT="log",
    )


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest_asyncio.fixture
async def db_manager():
    """In-memory database; every session shares the one connection."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    manager = DatabaseManager(engine)
    await manager.create_all()
    yield manager
    await manager.dispose()


@pytest_asyncio.fixture
async def concurrent_db_manager(tmp_path):
    """
    File-backed database where every session opens its own connection.

    SQLite has no row locks, so each transaction starts with BEGIN IMMEDIATE:
    concurrent units then run one at a time, as the FOR UPDATE locks make
    them on MySQL.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'payments.db'}",
        poolclass=NullPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    manager = DatabaseManager(engine)
    await manager.create_all()
    yield manager
    await manager.dispose()


@pytest_asyncio.fixture
async def world(db_manager):
    return await seed_world(db_manager)


@pytest.fixture
def make_service(db_manager, mailer, settings):
    return service_factory(db_manager, mailer, settings)
