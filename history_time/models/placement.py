"""Timeline placement model."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Integer, Boolean, ForeignKey, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from history_time.models.base import Base, utcnow

if TYPE_CHECKING:
    from history_time.models.game import Game
    from history_time.models.player import Player
    from history_time.models.card import Card


class Placement(Base):
    """
    A card placed on a game's timeline.

    Placements are append-only: once written they are never edited or
    removed, and ``sequence`` records the order they were accepted in.
    """

    __tablename__ = "placements"

    game_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("games.id", ondelete="CASCADE"),
        index=True,
    )
    card_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("cards.id", ondelete="CASCADE"),
    )
    placed_by_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"),
    )

    # Timeline slot chosen by the player
    position: Mapped[int] = mapped_column(Integer)
    sequence: Mapped[int] = mapped_column(Integer)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=True)
    placement_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )

    game: Mapped["Game"] = relationship("Game", back_populates="timeline")
    placed_by: Mapped["Player"] = relationship("Player")
    card: Mapped["Card"] = relationship("Card")

    @property
    def year(self) -> int:
        return self.card.year

    @property
    def title(self) -> str:
        return self.card.title

    def __repr__(self) -> str:
        return f"<Placement #{self.sequence} {self.card_id} @ {self.position}>"
