"""History Time database models."""

from history_time.models.base import Base
from history_time.models.card import Card, Difficulty
from history_time.models.game import (
    Game,
    GameStatus,
    TERMINAL_STATUSES,
    generate_room_code,
)
from history_time.models.player import Player, HandCard
from history_time.models.placement import Placement
from history_time.models.event import GameEvent, EventType

__all__ = [
    "Base",
    "Card",
    "Difficulty",
    "Game",
    "GameStatus",
    "TERMINAL_STATUSES",
    "generate_room_code",
    "Player",
    "HandCard",
    "Placement",
    "GameEvent",
    "EventType",
]
