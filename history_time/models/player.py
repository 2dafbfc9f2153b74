"""Player and hand models."""

import uuid
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String, Integer, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from history_time.models.base import Base

if TYPE_CHECKING:
    from history_time.models.game import Game
    from history_time.models.card import Card


class Player(Base):
    """A seat in a game, held by an authenticated user or a guest."""

    __tablename__ = "players"

    # Which game this player belongs to
    game_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("games.id", ondelete="CASCADE"),
        index=True,
    )

    # Position in the roster; fixes turn order and never changes
    seat: Mapped[int] = mapped_column(Integer)

    # Player identity: user_id for account holders, guest_id/username for guests
    user_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    guest_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    username: Mapped[str] = mapped_column(String(50))

    # Cleared on leave; the seat stays so indices and attribution remain valid
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Scoring
    score: Mapped[int] = mapped_column(Integer, default=0)
    correct_placements: Mapped[int] = mapped_column(Integer, default=0)
    incorrect_placements: Mapped[int] = mapped_column(Integer, default=0)

    # Relationships
    game: Mapped["Game"] = relationship(
        "Game",
        back_populates="players",
    )
    cards: Mapped[List["HandCard"]] = relationship(
        "HandCard",
        back_populates="player",
        cascade="all, delete-orphan",
        order_by="HandCard.draw_order",
    )

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    @property
    def has_cards(self) -> bool:
        return len(self.cards) > 0

    def find_card(self, card_id: uuid.UUID) -> Optional["HandCard"]:
        """Return the hand entry for ``card_id``, if held."""
        return next((c for c in self.cards if c.card_id == card_id), None)

    def __repr__(self) -> str:
        return f"<Player {self.username} seat {self.seat} in game {self.game_id}>"


class HandCard(Base):
    """A card dealt to a player and not yet placed."""

    __tablename__ = "hand_cards"

    player_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"),
        index=True,
    )
    card_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("cards.id", ondelete="CASCADE"),
    )

    # Position in the dealt deck; orders the hand deterministically
    draw_order: Mapped[int] = mapped_column(Integer)

    player: Mapped["Player"] = relationship("Player", back_populates="cards")
    card: Mapped["Card"] = relationship("Card")

    # The year stays hidden until the card is placed
    @property
    def title(self) -> str:
        return self.card.title

    @property
    def category(self) -> str:
        return self.card.category

    @property
    def image_url(self) -> Optional[str]:
        return self.card.image_url

    def __repr__(self) -> str:
        return f"<HandCard {self.card_id} #{self.draw_order}>"
