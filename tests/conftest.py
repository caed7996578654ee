"""Pytest configuration and shared fixtures.

Organization:
    - Settings Fixtures: cache isolation for pydantic settings
    - Database Fixtures: SQLAlchemy engine, session and a seeded users table
    - Model Fixtures: the seeded User model

When adding new features:
    1. Add fixtures to the appropriate section below
    2. Use @pytest.fixture with clear docstrings
    3. Make fixtures composable (fixtures can depend on other fixtures)
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Generator
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import DateTime, Integer, String
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from metakit.core.pagination.paginator import reset_paginator
from metakit.core.settings import clear_all_caches

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


# ============================================================================
# Test Models
# ============================================================================


class Base(DeclarativeBase):
    """Declarative base for test tables."""


class User(Base):
    """Users table used by the pagination tests."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(255))
    age: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime)


BASE_TIME = datetime(2025, 1, 15, 10, 0, 0)

# (name, email, age); created_at increases by one hour per row
USERS = [
    ("John Doe", "john@example.com", 30),
    ("Jane Smith", "jane@example.com", 25),
    ("Bob Johnson", "bob@example.com", 35),
    ("Alice Brown", "alice@example.com", 28),
    ("Charlie Wilson", "charlie@example.com", 32),
]


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Clear settings caches and METAKIT_ env vars around every test."""
    for key in list(os.environ):
        if key.startswith("METAKIT_"):
            monkeypatch.delenv(key, raising=False)
    clear_all_caches()
    reset_paginator()
    yield
    clear_all_caches()
    reset_paginator()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """Create async SQLAlchemy engine with in-memory SQLite.

    Yields:
        Async SQLAlchemy engine connected to in-memory SQLite.
    """
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create the users table, seed it and provide a session.

    Seeded rows (id order): John Doe 30, Jane Smith 25, Bob Johnson 35,
    Alice Brown 28, Charlie Wilson 32.

    Yields:
        Async database session for testing.
    """
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        session.add_all(
            [
                User(
                    id=index + 1,
                    name=name,
                    email=email,
                    age=age,
                    created_at=BASE_TIME + timedelta(hours=index),
                )
                for index, (name, email, age) in enumerate(USERS)
            ]
        )
        await session.commit()
        try:
            yield session
        finally:
            await session.rollback()

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


# ============================================================================
# Model Fixtures
# ============================================================================


@pytest.fixture
def user_model() -> type[User]:
    """The User test model."""
    return User
