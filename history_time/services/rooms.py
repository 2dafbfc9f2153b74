"""Room registry: room code allocation and lookup."""

import logging
from typing import Callable, Optional, Sequence

from sqlalchemy.exc import IntegrityError

from history_time.config import ROOM_CODE_ATTEMPTS, ROOM_CODE_LENGTH
from history_time.game import rules
from history_time.game.errors import RoomAllocationError
from history_time.game.identity import Actor
from history_time.game.locks import room_allocation_lock
from history_time.models import Difficulty, EventType, Game, generate_room_code
from history_time.services.events import log_event
from history_time.services.repository import GameRepository

logger = logging.getLogger("HistoryTime.rooms")


def default_code_generator() -> str:
    return generate_room_code(ROOM_CODE_LENGTH)


class RoomRegistry:
    """
    Binds room codes to live games.

    A code is free when no waiting or active game holds it, so codes of
    completed and cancelled games can be handed out again.
    """

    def __init__(
        self,
        repository: GameRepository,
        code_generator: Callable[[], str] = default_code_generator,
        max_attempts: int = ROOM_CODE_ATTEMPTS,
    ):
        self.repository = repository
        self.code_generator = code_generator
        self.max_attempts = max_attempts

    async def create_room(
        self,
        actor: Actor,
        username: Optional[str] = None,
        difficulty: Difficulty = Difficulty.MEDIUM,
        categories: Sequence[str] = (),
        max_players: int = 4,
    ) -> Game:
        """Allocate a free code and persist a new waiting game hosted by ``actor``."""
        async with room_allocation_lock.hold("rooms"):
            for attempt in range(1, self.max_attempts + 1):
                code = self.code_generator().upper()
                if await self.repository.code_in_use(code):
                    logger.debug(f"Room code {code} in use (attempt {attempt}/{self.max_attempts})")
                    continue

                game = rules.new_game(
                    code,
                    actor,
                    username=username,
                    difficulty=difficulty,
                    categories=categories,
                    max_players=max_players,
                )
                host = game.players[0]
                self.repository.add(game)
                log_event(
                    self.repository, game,
                    EventType.GAME_CREATED,
                    f"Game {code} created by {host.username}",
                    player=host,
                    details={"difficulty": game.difficulty.value, "max_players": max_players},
                )
                try:
                    return await self.repository.save(game)
                except IntegrityError:
                    # Another process claimed the code between the check and the insert
                    logger.warning(f"Room code {code} collided on insert (attempt {attempt}/{self.max_attempts})")
                    continue

        raise RoomAllocationError(f"Could not allocate a room code after {self.max_attempts} attempts")

    async def resolve_by_code(self, code: str) -> Game:
        return await self.repository.get_by_code(code)
