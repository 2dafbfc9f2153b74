"""Multiplayer timeline game model."""

import enum
import secrets
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String, Integer, Enum, DateTime, JSON, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from history_time.models.base import Base
from history_time.models.card import Difficulty

if TYPE_CHECKING:
    from history_time.models.player import Player
    from history_time.models.placement import Placement
    from history_time.models.event import GameEvent


# Excludes I, O, 0 and 1, which are easy to misread when shared aloud
ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


class GameStatus(str, enum.Enum):
    """Game lifecycle status."""
    WAITING = "waiting"       # Lobby, players can join
    ACTIVE = "active"         # Cards dealt, turns in progress
    COMPLETED = "completed"   # Finished normally or by the last player leaving
    CANCELLED = "cancelled"   # Abandoned before it started


TERMINAL_STATUSES = (GameStatus.COMPLETED, GameStatus.CANCELLED)


def generate_room_code(length: int = 6) -> str:
    """Generate a random alphanumeric room code."""
    return "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(length))


class Game(Base):
    """A timeline game between two to eight players."""

    __tablename__ = "games"

    # Room code for players to join (e.g., "ABC234"); unique only among live games
    room_code: Mapped[str] = mapped_column(String(10), index=True)

    status: Mapped[GameStatus] = mapped_column(
        Enum(GameStatus, values_callable=lambda e: [m.value for m in e]),
        default=GameStatus.WAITING,
    )

    # Configuration, fixed at creation
    difficulty: Mapped[Difficulty] = mapped_column(
        Enum(Difficulty, values_callable=lambda e: [m.value for m in e]),
        default=Difficulty.MEDIUM,
    )
    categories: Mapped[List[str]] = mapped_column(JSON, default=list)
    max_players: Mapped[int] = mapped_column(Integer, default=4)

    # Turn tracking: seat index of the player to move, only set while active
    current_player_index: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Number of timeline slots, equal to the total cards dealt at start
    timeline_capacity: Mapped[int] = mapped_column(Integer, default=0)

    # Timing
    time_started: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    time_ended: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    total_time_taken: Mapped[int] = mapped_column(Integer, default=0)  # seconds
    last_activity_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )

    # Seat of the winner, set on completion
    winner_index: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Optimistic concurrency counter, bumped on every flush of this row
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    players: Mapped[List["Player"]] = relationship(
        "Player",
        back_populates="game",
        cascade="all, delete-orphan",
        order_by="Player.seat",
    )
    timeline: Mapped[List["Placement"]] = relationship(
        "Placement",
        back_populates="game",
        cascade="all, delete-orphan",
        order_by="Placement.sequence",
    )
    events: Mapped[List["GameEvent"]] = relationship(
        "GameEvent",
        back_populates="game",
        cascade="all, delete-orphan",
        order_by="GameEvent.created_at",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index(
            "uq_games_live_room_code",
            "room_code",
            unique=True,
            postgresql_where=text("status IN ('waiting', 'active')"),
            sqlite_where=text("status IN ('waiting', 'active')"),
        ),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def active_players(self) -> List["Player"]:
        return [p for p in self.players if p.is_active]

    @property
    def host_index(self) -> Optional[int]:
        """Seat of the host: the first active player in seat order."""
        for player in self.players:
            if player.is_active:
                return player.seat
        return None

    @property
    def host(self) -> Optional["Player"]:
        index = self.host_index
        return None if index is None else self.players[index]

    @property
    def current_player(self) -> Optional["Player"]:
        if self.current_player_index is None:
            return None
        return self.players[self.current_player_index]

    @property
    def occupied_positions(self) -> set:
        return {placement.position for placement in self.timeline}

    def __repr__(self) -> str:
        return f"<Game {self.room_code} ({self.difficulty.value}) - {self.status.value}>"
