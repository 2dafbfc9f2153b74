"""Game event model for the activity log."""

import enum
import uuid
from typing import TYPE_CHECKING, Optional, Any, Dict

from sqlalchemy import ForeignKey, Enum, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from history_time.models.base import Base, utcnow

if TYPE_CHECKING:
    from history_time.models.game import Game
    from history_time.models.player import Player


class EventType(str, enum.Enum):
    """Types of game events that get logged."""

    # Game flow events
    GAME_CREATED = "game_created"
    GAME_STARTED = "game_started"
    GAME_ENDED = "game_ended"
    GAME_CANCELLED = "game_cancelled"

    # Card events
    CARD_PLACED = "card_placed"

    # Player events
    PLAYER_JOINED = "player_joined"
    PLAYER_REJOINED = "player_rejoined"
    PLAYER_LEFT = "player_left"
    HOST_CHANGED = "host_changed"


class GameEvent(Base):
    """
    A logged game event.

    Every accepted state change records an event with:
    - Human-readable description
    - Machine-readable details (JSON)
    - The acting player, when there is one
    """

    __tablename__ = "game_events"

    game_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("games.id", ondelete="CASCADE"),
        index=True,
    )

    # Who triggered the event (null for system events)
    player_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("players.id", ondelete="SET NULL"),
        nullable=True,
    )

    event_type: Mapped[EventType] = mapped_column(
        Enum(EventType, values_callable=lambda e: [m.value for m in e])
    )

    # e.g., "Ada placed 'Moon landing' at position 3 (correct)"
    description: Mapped[str] = mapped_column(Text)

    # CARD_PLACED: {"card_id": "...", "position": 3, "is_correct": true, "year": 1969}
    # HOST_CHANGED: {"previous_host": 0, "new_host": 1}
    details: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    game: Mapped["Game"] = relationship("Game", back_populates="events")
    player: Mapped[Optional["Player"]] = relationship("Player")

    @classmethod
    def create(
        cls,
        game: "Game",
        event_type: EventType,
        description: str,
        player: Optional["Player"] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> "GameEvent":
        """Factory method to create a new event."""
        return cls(
            created_at=utcnow(),
            game=game,
            player=player,
            event_type=event_type,
            description=description,
            details=details,
        )

    def __repr__(self) -> str:
        return f"<GameEvent {self.event_type.value}: {self.description[:50]}>"
