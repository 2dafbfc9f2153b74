#!/usr/bin/env python3
"""Cleanup script: cancel waiting games nobody has touched for STALE_GAME_HOURS.

Cancelling frees the room code for new games. Active games are left alone;
their players can still leave or the host can end them.
"""

import asyncio
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from history_time.config import DATABASE_URL, STALE_GAME_HOURS
from history_time.models import EventType, Game, GameEvent, GameStatus


async def cancel_stale_games(
    session: AsyncSession,
    max_idle_hours: int = STALE_GAME_HOURS,
    now: Optional[datetime] = None,
) -> List[str]:
    """Cancel idle waiting games and return their room codes."""
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(hours=max_idle_hours)

    stmt = select(Game).where(
        Game.status == GameStatus.WAITING,
        or_(
            Game.last_activity_at < cutoff,
            Game.last_activity_at.is_(None) & (Game.created_at < cutoff),
        ),
    )
    result = await session.execute(stmt)
    stale = list(result.scalars().all())

    for game in stale:
        game.status = GameStatus.CANCELLED
        game.time_ended = now
        game.last_activity_at = now
        session.add(GameEvent.create(
            game=game,
            event_type=EventType.GAME_CANCELLED,
            description=f"Game cancelled after {max_idle_hours}h without activity",
            details={"reason": "stale"},
        ))

    await session.commit()
    return [game.room_code for game in stale]


async def cleanup(database_url: str = DATABASE_URL):
    # If DATABASE_URL uses 'db' as hostname (Docker service), replace with localhost
    # This allows running the script from the host machine when Docker exposes port 5432
    if "@db:" in database_url:
        print("Note: DATABASE_URL uses 'db' hostname (Docker service name), using 'localhost'")
        database_url = database_url.replace("@db:", "@localhost:")

    engine = create_async_engine(database_url, echo=False)
    async_session = async_sessionmaker(engine, expire_on_commit=False)

    try:
        async with async_session() as session:
            codes = await cancel_stale_games(session)
        if not codes:
            print(f"No waiting games idle for more than {STALE_GAME_HOURS} hours.")
            return
        print(f"✓ Cancelled {len(codes)} stale game(s): {', '.join(codes)}")
    except Exception as e:
        print(f"✗ Cleanup failed: {e}")
        raise
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(cleanup())
