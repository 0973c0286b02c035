"""Pytest configuration and shared fixtures."""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("MOBY_API_KEY", "test-key")

from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from top1000.db.session import Base
from top1000.models import Game, User
from top1000.services.user_service import hash_password


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest_asyncio.fixture
async def test_db():
    """Create an in-memory SQLite database for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    SessionLocal = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with SessionLocal() as session:
        yield session

    await engine.dispose()


async def create_user(
    db: AsyncSession,
    email: str,
    age: int = 0,
    gender: Optional[str] = None,
    **groups: bool,
) -> User:
    """Insert a user with the given demographic profile."""
    user = User(
        email=email,
        hashed_password=hash_password("password123"),
        age=age,
        gender=gender,
        **groups,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def create_game(db: AsyncSession, title: str, moby_id: int, **fields) -> Game:
    """Insert a catalog game."""
    game = Game(title=title, moby_id=moby_id, **fields)
    db.add(game)
    await db.commit()
    await db.refresh(game)
    return game


@pytest_asyncio.fixture
async def sample_user(test_db: AsyncSession) -> User:
    """A 30-something female gamer."""
    return await create_user(test_db, "alice@example.com", age=3, gender="female", gamer=True)


@pytest_asyncio.fixture
async def other_user(test_db: AsyncSession) -> User:
    """A male journalist without age bracket."""
    return await create_user(test_db, "bob@example.com", gender="male", journalist=True)


@pytest_asyncio.fixture
async def sample_games(test_db: AsyncSession) -> dict:
    """Two catalog games with distinct tags.

    Keys are "A" and "B"; only A is tagged "Action".
    """
    game_a = await create_game(
        test_db,
        "Doom",
        1,
        year=1993,
        icon="https://cdn.example.com/doom-thumb.jpg",
        platforms=[{"name": "DOS", "year": 1993}, {"name": "Windows", "year": 1995}],
        genres=["Action"],
        perspectives=["1st-person"],
        gameplay=["Shooter"],
        settings=["Sci-fi / futuristic"],
        topics=["Demons"],
    )
    game_b = await create_game(
        test_db,
        "Myst",
        2,
        year=1993,
        platforms=[{"name": "Macintosh", "year": 1993}],
        genres=["Adventure"],
        perspectives=["1st-person"],
        gameplay=["Puzzle elements"],
    )
    return {"A": game_a, "B": game_b}