"""Load and save game aggregates."""

import logging
import uuid
from typing import List

from sqlalchemy import select, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from history_time.game.errors import ConcurrentUpdateError, NotFoundError
from history_time.models import (
    Game,
    GameEvent,
    GameStatus,
    HandCard,
    Placement,
    Player,
)

logger = logging.getLogger("HistoryTime.repository")

LIVE_STATUSES = (GameStatus.WAITING, GameStatus.ACTIVE)


def _aggregate_options():
    return (
        selectinload(Game.players).selectinload(Player.cards).selectinload(HandCard.card),
        selectinload(Game.timeline).selectinload(Placement.card),
    )


class GameRepository:
    """
    Persistence adapter for the Game aggregate.

    Every load pulls the whole aggregate (players, hands, timeline) so the
    state machine never triggers a lazy load. ``save`` is the single commit
    point of an operation.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, game_id: uuid.UUID, refresh: bool = False) -> Game:
        stmt = select(Game).where(Game.id == game_id).options(*_aggregate_options())
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        game = result.scalar_one_or_none()
        if not game:
            raise NotFoundError(f"Game '{game_id}' not found")
        return game

    async def get_by_code(self, code: str) -> Game:
        """Fetch the live (waiting or active) game holding ``code``."""
        stmt = (
            select(Game)
            .where(Game.room_code == code.strip().upper())
            .where(Game.status.in_(LIVE_STATUSES))
            .order_by(Game.created_at.desc())
            .options(*_aggregate_options())
        )
        result = await self.session.execute(stmt)
        game = result.scalars().first()
        if not game:
            raise NotFoundError(f"Game with code '{code}' not found")
        return game

    async def code_in_use(self, code: str) -> bool:
        stmt = select(
            exists().where(Game.room_code == code).where(Game.status.in_(LIVE_STATUSES))
        )
        return bool(await self.session.scalar(stmt))

    def add(self, game: Game) -> None:
        self.session.add(game)

    def add_event(self, event: GameEvent) -> None:
        self.session.add(event)

    async def save(self, game: Game) -> Game:
        """Commit pending changes and return the freshly reloaded aggregate."""
        game_id = game.id
        try:
            await self.session.commit()
        except StaleDataError as e:
            await self.session.rollback()
            logger.warning(f"Stale write rejected for game {game_id}: {e}")
            raise ConcurrentUpdateError() from e
        except IntegrityError:
            await self.session.rollback()
            raise
        return await self.get_by_id(game_id, refresh=True)

    async def rollback(self) -> None:
        await self.session.rollback()

    async def list_for_user(self, user_id: str) -> List[Game]:
        """Games the user has a seat in, most recently active first."""
        seated = select(Player.game_id).where(Player.user_id == user_id)
        stmt = (
            select(Game)
            .where(Game.id.in_(seated))
            .order_by(Game.updated_at.desc())
            .options(*_aggregate_options())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_events(self, game_id: uuid.UUID, limit: int = 50, offset: int = 0) -> List[GameEvent]:
        stmt = (
            select(GameEvent)
            .where(GameEvent.game_id == game_id)
            .order_by(GameEvent.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
