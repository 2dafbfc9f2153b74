"""Card draw service: random historical-event cards for a new game."""

import logging
from typing import List, Protocol, Sequence

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from history_time.models import Card, Difficulty

logger = logging.getLogger("HistoryTime.cards")


class CardSource(Protocol):
    async def draw(self, difficulty: Difficulty, categories: Sequence[str], count: int) -> List[Card]:
        ...


class CardDrawService:
    """
    Draws distinct cards at random from the card catalogue.

    ``categories`` narrows the pool when non-empty. Difficulty only decides
    how many cards each player is dealt, so it is accepted here for the
    interface but does not filter the pool. Returns fewer than ``count``
    cards when the pool is too small; the caller decides whether that is
    fatal.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def draw(self, difficulty: Difficulty, categories: Sequence[str], count: int) -> List[Card]:
        stmt = select(Card)
        if categories:
            stmt = stmt.where(Card.category.in_(list(categories)))
        stmt = stmt.order_by(func.random()).limit(count)

        result = await self.session.execute(stmt)
        cards = list(result.scalars().all())
        logger.debug(
            f"Drew {len(cards)}/{count} cards (difficulty={Difficulty(difficulty).value}, "
            f"categories={list(categories) or 'any'})"
        )
        return cards

