#!/usr/bin/env python3
"""
Initialize database schema for production.
Run this once after setting up PostgreSQL, then load cards with seed_cards.py.
"""
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.ext.asyncio import create_async_engine

from history_time.config import DATABASE_URL
from history_time.models import Base


async def init_db(database_url: str = DATABASE_URL):
    """Create all tables."""
    engine = create_async_engine(database_url, echo=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    print("Database schema initialized successfully!")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(init_db())
