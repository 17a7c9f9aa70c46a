"""Shared test fixtures.

Each test gets its own SQLite database file, created from the ORM metadata.
Redis is never initialized, so rate limiting fails open and /ready reports
"degraded".
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from questline.database import close_db, get_engine, get_session_factory, init_db
from questline.db import models  # noqa: F401  (registers tables on Base.metadata)
from questline.db.base import Base
from questline.db.models import ReferralClaim, ReferralEvent
from questline.main import create_app


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Initialize a fresh database and yield its session factory."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'questline.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield get_session_factory()

    await close_db()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Get a direct database session for setup and assertions."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to an app using the per-test database."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def seed_referrals(db_session: AsyncSession):
    """Insert referral events for a referrer, each with a distinct referred user."""

    async def _seed(referrer_user_id: str, count: int) -> None:
        for i in range(count):
            db_session.add(ReferralEvent(
                referrer_user_id=referrer_user_id,
                referred_user_id=f"{referrer_user_id}-friend-{i}",
            ))
        await db_session.commit()

    return _seed


@pytest_asyncio.fixture
async def seed_claim(db_session: AsyncSession):
    """Insert a prior ledger entry. `amount` is tTRUST x 100."""

    async def _seed(user_id: str, amount: int, referral_count: int) -> None:
        db_session.add(ReferralClaim(user_id=user_id, amount=amount, referral_count=referral_count))
        await db_session.commit()

    return _seed
