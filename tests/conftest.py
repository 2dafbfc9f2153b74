import os
import sys
import uuid
from pathlib import Path
from typing import AsyncIterator, Callable, Dict, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from asgi_lifespan import LifespanManager

# Config is read at import time, so the env must be set before any app import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret"
os.environ.setdefault("APP_DEBUG", "false")
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

CARD_COUNT = 40
FIRST_YEAR = 1000


@pytest.fixture()
def db_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture()
def room_code_generator() -> Optional[Callable[[], str]]:
    """Override in a test module to pin room codes."""
    return None


@pytest.fixture()
def app(db_url: str, room_code_generator):
    from history_time.main import create_app
    return create_app(
        database_url=db_url,
        create_all=True,
        room_code_generator=room_code_generator,
    )


@pytest_asyncio.fixture()
async def client(app) -> AsyncIterator[AsyncClient]:
    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac


@pytest_asyncio.fixture()
async def db_session(client, db_url: str):
    """A session on the app's database, usable once the app has created its tables."""
    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    engine = create_async_engine(db_url)
    async_session = async_sessionmaker(engine, expire_on_commit=False)
    async with async_session() as session:
        yield session
    await engine.dispose()


@pytest_asyncio.fixture()
async def card_years(db_session) -> Dict[str, int]:
    """Seed a catalogue with distinct years; maps card id (str) to year."""
    from history_time.models import Card, Difficulty

    years = {}
    for i in range(CARD_COUNT):
        card = Card(
            id=uuid.uuid4(),
            title=f"Event {i}",
            description="",
            year=FIRST_YEAR + i * 10,
            category="science" if i % 2 else "war",
            difficulty=Difficulty.MEDIUM,
        )
        db_session.add(card)
        years[str(card.id)] = card.year
    await db_session.commit()
    return years


@pytest.fixture()
def guest() -> Callable[..., Dict[str, str]]:
    def headers(username: str, guest_id: Optional[str] = None) -> Dict[str, str]:
        result = {"X-Guest-Username": username}
        if guest_id:
            result["X-Guest-User-Id"] = guest_id
        return result
    return headers


@pytest.fixture()
def user() -> Callable[..., Dict[str, str]]:
    from history_time.auth.tokens import create_access_token

    def headers(user_id: str, name: Optional[str] = None) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id, name=name)}"}
    return headers
