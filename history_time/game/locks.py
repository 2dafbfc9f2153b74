"""Per-game single-writer locks."""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, Hashable

logger = logging.getLogger("HistoryTime.locks")


@dataclass
class _Entry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class GameLockRegistry:
    """
    Hands out one asyncio.Lock per game id.

    Every read-modify-write of a game aggregate runs inside ``hold(game_id)``
    so two requests for the same game never validate against the same
    snapshot. Locks for different games are independent. An entry is
    dropped as soon as nobody holds or waits for it.
    """

    def __init__(self) -> None:
        self._entries: Dict[Hashable, _Entry] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _Entry()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                self._entries.pop(key, None)

    def is_locked(self, key: Hashable) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.lock.locked()

    def __len__(self) -> int:
        return len(self._entries)


# Process-wide registry shared by all request handlers
game_locks = GameLockRegistry()

# Serializes room code allocation so two creations never pick the same free code
room_allocation_lock = GameLockRegistry()
