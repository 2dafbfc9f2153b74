#!/usr/bin/env python3
"""
Load historical event cards from a JSON catalogue.

Usage: python deploy/seed_cards.py [path/to/cards.json]

The catalogue is a list of objects with ``title``, ``year`` and
``category`` (required) plus optional ``description``, ``difficulty`` and
``image_url``. Cards already present (same title and year) are skipped, so
the script can be re-run after the catalogue grows.
"""
import asyncio
import json
import sys
from pathlib import Path
from typing import List

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from history_time.config import DATABASE_URL
from history_time.models import Card, Difficulty

DEFAULT_CATALOGUE = Path(__file__).parent / "cards.json"
REQUIRED_FIELDS = ("title", "year", "category")


def load_catalogue(path: Path) -> List[dict]:
    """Read and validate the catalogue file."""
    with open(path, "r", encoding="utf-8") as f:
        entries = json.load(f)
    if not isinstance(entries, list):
        raise ValueError(f"{path}: expected a list of cards")

    for i, entry in enumerate(entries):
        missing = [field for field in REQUIRED_FIELDS if field not in entry]
        if missing:
            raise ValueError(f"{path}: card #{i} is missing {', '.join(missing)}")
        if not isinstance(entry["year"], int):
            raise ValueError(f"{path}: card #{i} has a non-integer year")
        Difficulty(entry.get("difficulty", Difficulty.MEDIUM.value))
    return entries


async def seed(session: AsyncSession, entries: List[dict]) -> int:
    """Insert cards not yet in the table; returns how many were added."""
    result = await session.execute(select(Card.title, Card.year))
    existing = {(title, year) for title, year in result.all()}

    added = 0
    for entry in entries:
        key = (entry["title"], entry["year"])
        if key in existing:
            continue
        session.add(Card(
            title=entry["title"],
            year=entry["year"],
            category=entry["category"],
            description=entry.get("description", ""),
            difficulty=Difficulty(entry.get("difficulty", Difficulty.MEDIUM.value)),
            image_url=entry.get("image_url"),
        ))
        existing.add(key)
        added += 1

    await session.commit()
    return added


async def main(path: Path = DEFAULT_CATALOGUE, database_url: str = DATABASE_URL):
    entries = load_catalogue(path)
    engine = create_async_engine(database_url, echo=False)
    async_session = async_sessionmaker(engine, expire_on_commit=False)

    try:
        async with async_session() as session:
            added = await seed(session, entries)
        print(f"✓ Added {added} card(s), {len(entries) - added} already present")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    catalogue = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_CATALOGUE
    asyncio.run(main(catalogue))
