"""Activity log helpers."""

from typing import Optional, Any, Dict

from history_time.models import Game, GameEvent, EventType, Player
from history_time.services.repository import GameRepository


def log_event(
    repository: GameRepository,
    game: Game,
    event_type: EventType,
    description: str,
    player: Optional[Player] = None,
    details: Optional[Dict[str, Any]] = None,
) -> GameEvent:
    """Create an event and stage it in the same commit as the game change."""
    event = GameEvent.create(
        game=game,
        event_type=event_type,
        description=description,
        player=player,
        details=details,
    )
    repository.add_event(event)
    return event
