"""
Shared fixtures: in-memory SQLite database and seeded users.
"""

from __future__ import annotations

import pytest
from sqlalchemy.pool import StaticPool

from app.database import Database, User


@pytest.fixture
async def database():
    db = Database("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def alice(database):
    user = User(id="user-alice", name="Alice", email="alice@example.com")
    async with database.session() as session:
        session.add(user)
        await session.commit()
    return user
