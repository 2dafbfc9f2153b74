"""
Timeline game state machine.

Every transition takes a loaded ``Game`` aggregate and the acting
``Actor``. Preconditions are checked before anything is touched, so a
transition either applies completely or raises a ``GameError`` and
leaves the aggregate as it was. Callers are responsible for holding the
game's lock and committing the result.

Lifecycle::

    waiting --start--> active --last card / end / everyone left--> completed
       |
       +--everyone left / end--> cancelled
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from history_time.game.errors import (
    CardNotInHandError,
    DuplicatePlayerError,
    GameError,
    GameFullError,
    IdentityError,
    InsufficientPlayersError,
    InvalidPositionError,
    InvalidStateError,
    NotEnoughCardsError,
    NotHostError,
    NotYourTurnError,
    PlayerNotFoundError,
    PositionOccupiedError,
)
from history_time.game.identity import (
    USERNAME_MAX_LENGTH,
    Actor,
    AuthenticatedActor,
    GuestActor,
    matches,
)
from history_time.game.scoring import award, is_chronological, pick_winner
from history_time.models import (
    Card,
    Difficulty,
    Game,
    GameStatus,
    HandCard,
    Placement,
    Player,
)
from history_time.models.base import utcnow

MIN_PLAYERS = 2
MAX_PLAYERS = 8

HAND_SIZES = {
    Difficulty.EASY: 3,
    Difficulty.MEDIUM: 5,
    Difficulty.HARD: 7,
    Difficulty.EXPERT: 10,
}


@dataclass(frozen=True)
class PlacementResult:
    is_correct: bool
    card_id: uuid.UUID
    position: int
    year: int
    player_index: int
    game_over: bool


def hand_size(difficulty: Difficulty) -> int:
    return HAND_SIZES[Difficulty(difficulty)]


def cards_needed(game: Game) -> int:
    """Cards to draw so that every active player gets a full hand."""
    return hand_size(game.difficulty) * len(game.active_players)


def find_player(game: Game, actor: Actor, active_only: bool = True) -> Optional[Player]:
    for player in game.players:
        if matches(player, actor) and (player.is_active or not active_only):
            return player
    return None


def _touch(game: Game, now: datetime) -> None:
    # Dirtying the game row also bumps its version on flush
    game.last_activity_at = now


def _new_player(seat: int, actor: Actor, username: str) -> Player:
    return Player(
        id=uuid.uuid4(),
        seat=seat,
        user_id=actor.user_id if isinstance(actor, AuthenticatedActor) else None,
        guest_id=actor.guest_id if isinstance(actor, GuestActor) else None,
        username=username,
        is_active=True,
        score=0,
        correct_placements=0,
        incorrect_placements=0,
    )


def _display_name(actor: Actor, username: Optional[str], message: str) -> str:
    """Seat name for ``actor``.

    A guest's seat is always named after the username that identifies
    them, so a differing body name is ignored. Account holders may pick any
    name since they are matched by user id.
    """
    if isinstance(actor, GuestActor):
        return actor.username
    name = (username or "").strip() or actor.name
    if not name:
        raise IdentityError(message)
    return name[:USERNAME_MAX_LENGTH]


def new_game(
    room_code: str,
    actor: Actor,
    username: Optional[str] = None,
    difficulty: Difficulty = Difficulty.MEDIUM,
    categories: Sequence[str] = (),
    max_players: int = 4,
    now: Optional[datetime] = None,
) -> Game:
    """Build a waiting game with ``actor`` seated as host."""
    if not MIN_PLAYERS <= max_players <= MAX_PLAYERS:
        raise GameError(f"max_players must be between {MIN_PLAYERS} and {MAX_PLAYERS}")
    host_name = _display_name(actor, username, "Host nickname is required")
    now = now or utcnow()

    game = Game(
        id=uuid.uuid4(),
        room_code=room_code,
        status=GameStatus.WAITING,
        difficulty=Difficulty(difficulty),
        categories=list(categories),
        max_players=max_players,
        current_player_index=None,
        timeline_capacity=0,
        total_time_taken=0,
        winner_index=None,
        last_activity_at=now,
    )
    game.players.append(_new_player(0, actor, host_name))
    return game


def join(
    game: Game,
    actor: Actor,
    username: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Player:
    """Seat ``actor`` in a waiting game; a returning player gets their old seat back."""
    if game.status != GameStatus.WAITING:
        raise InvalidStateError("Game already started or completed")

    existing = find_player(game, actor, active_only=False)
    if existing is not None and existing.is_active:
        raise DuplicatePlayerError()
    if len(game.active_players) >= game.max_players:
        raise GameFullError()

    if existing is not None:
        existing.is_active = True
        player = existing
    else:
        name = _display_name(actor, username, "Username is required for guest users")
        player = _new_player(len(game.players), actor, name)
        game.players.append(player)

    _touch(game, now or utcnow())
    return player


def ensure_can_start(game: Game, actor: Actor) -> List[Player]:
    """Check every start precondition that does not depend on the deck."""
    if game.status != GameStatus.WAITING:
        raise InvalidStateError("Game is not in waiting status")

    player = find_player(game, actor)
    if player is None:
        raise PlayerNotFoundError("You must be in the game to start it")
    if player.seat != game.host_index:
        raise NotHostError("Only the host can start the game")

    active = game.active_players
    if len(active) < MIN_PLAYERS:
        raise InsufficientPlayersError()
    return active


def start(
    game: Game,
    actor: Actor,
    deck: Sequence[Card],
    now: Optional[datetime] = None,
) -> Game:
    """Deal hands from ``deck`` and hand the first turn to the host."""
    active = ensure_can_start(game, actor)
    per_player = hand_size(game.difficulty)
    needed = per_player * len(active)
    if len(deck) < needed:
        raise NotEnoughCardsError(f"Not enough cards available. Have {len(deck)}, need {needed}.")

    now = now or utcnow()
    for i, seated in enumerate(active):
        for j in range(per_player):
            draw_order = i * per_player + j
            card = deck[draw_order]
            seated.cards.append(HandCard(
                id=uuid.uuid4(),
                card=card,
                card_id=card.id,
                draw_order=draw_order,
            ))

    game.timeline_capacity = needed
    game.status = GameStatus.ACTIVE
    game.current_player_index = active[0].seat
    game.time_started = now
    _touch(game, now)
    return game


def place_card(
    game: Game,
    actor: Actor,
    card_id: uuid.UUID,
    position: int,
    now: Optional[datetime] = None,
    accept_equal_years: bool = True,
) -> PlacementResult:
    """Place a card from the current player's hand on the timeline and pass the turn."""
    if game.status != GameStatus.ACTIVE:
        raise InvalidStateError("Game is not in progress")

    player = find_player(game, actor)
    if player is None:
        raise PlayerNotFoundError("You are not an active player in this game")
    if player.seat != game.current_player_index:
        raise NotYourTurnError()

    hand_card = player.find_card(card_id)
    if hand_card is None:
        raise CardNotInHandError()
    if not 0 <= position < game.timeline_capacity:
        raise InvalidPositionError(
            f"Position must be between 0 and {game.timeline_capacity - 1}"
        )
    if position in game.occupied_positions:
        raise PositionOccupiedError()

    now = now or utcnow()
    card = hand_card.card
    is_correct = is_chronological(game.timeline, position, card.year, accept_equal_years)

    game.timeline.append(Placement(
        id=uuid.uuid4(),
        card=card,
        card_id=card.id,
        placed_by=player,
        placed_by_id=player.id,
        position=position,
        sequence=len(game.timeline),
        is_correct=is_correct,
        placement_time=now,
    ))
    player.cards.remove(hand_card)
    award(player, is_correct)

    if any(p.has_cards for p in game.active_players):
        game.current_player_index = next_turn(game, player.seat)
    else:
        _complete(game, now)
    _touch(game, now)

    return PlacementResult(
        is_correct=is_correct,
        card_id=card.id,
        position=position,
        year=card.year,
        player_index=player.seat,
        game_over=game.status == GameStatus.COMPLETED,
    )


def leave(game: Game, actor: Actor, now: Optional[datetime] = None) -> Player:
    """Deactivate the actor's seat; host and turn pass on to the next active players."""
    player = find_player(game, actor)
    if player is None:
        raise PlayerNotFoundError()

    now = now or utcnow()
    player.is_active = False
    remaining = game.active_players

    if game.status == GameStatus.WAITING and not remaining:
        game.status = GameStatus.CANCELLED
        game.time_ended = now
    elif game.status == GameStatus.ACTIVE:
        if not any(p.has_cards for p in remaining):
            _complete(game, now)
        elif game.current_player_index == player.seat:
            game.current_player_index = next_turn(game, player.seat)

    _touch(game, now)
    return player


def end(game: Game, actor: Actor, now: Optional[datetime] = None) -> Game:
    """Host ends the game: a running game completes, a waiting one is cancelled."""
    if game.is_terminal:
        raise InvalidStateError("Game has already ended")

    player = find_player(game, actor)
    if player is None:
        raise PlayerNotFoundError()
    if player.seat != game.host_index:
        raise NotHostError("Only the host can end the game")

    now = now or utcnow()
    if game.status == GameStatus.WAITING:
        game.status = GameStatus.CANCELLED
        game.time_ended = now
    else:
        _complete(game, now)
    _touch(game, now)
    return game


def get_state(game: Game) -> Game:
    return game


def next_turn(game: Game, from_seat: int) -> int:
    """Next active seat after ``from_seat`` that still holds cards, wrapping around.

    Falls back to ``from_seat`` itself when it is the only one left with cards.
    """
    seats = len(game.players)
    for offset in range(1, seats + 1):
        candidate = game.players[(from_seat + offset) % seats]
        if candidate.is_active and candidate.has_cards:
            return candidate.seat
    raise InvalidStateError("No active player holds any cards")


def _elapsed_seconds(started: Optional[datetime], now: datetime) -> int:
    if started is None:
        return 0
    # SQLite hands datetimes back without tzinfo
    if started.tzinfo is None:
        started = started.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return max(0, round((now - started).total_seconds()))


def _complete(game: Game, now: datetime) -> None:
    game.status = GameStatus.COMPLETED
    game.time_ended = now
    game.total_time_taken = _elapsed_seconds(game.time_started, now)
    game.current_player_index = None
    contenders: List[Player] = game.active_players or list(game.players)
    game.winner_index = pick_winner(contenders)
