"""Game service: runs state machine transitions under the per-game lock."""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from history_time.config import ACCEPT_EQUAL_YEARS
from history_time.game import rules
from history_time.game.errors import GameError, IdentityError
from history_time.game.identity import Actor, AuthenticatedActor
from history_time.game.locks import GameLockRegistry, game_locks
from history_time.game.rules import PlacementResult
from history_time.models import Difficulty, EventType, Game, GameEvent, GameStatus
from history_time.services.cards import CardDrawService, CardSource
from history_time.services.events import log_event
from history_time.services.repository import GameRepository
from history_time.services.rooms import RoomRegistry, default_code_generator
from history_time.utils.logging import error_log

logger = logging.getLogger("HistoryTime.games")


def describe_actor(actor: Actor) -> str:
    if isinstance(actor, AuthenticatedActor):
        return f"user:{actor.user_id}"
    return f"guest:{actor.username}"


class GameService:
    """
    Entry point for every game operation.

    Mutations follow one pattern: take the game's lock, reload the
    aggregate, apply a state machine transition, stage the activity event,
    commit. Any failure rolls the session back so nothing half-applied is
    ever written.
    """

    def __init__(
        self,
        session: AsyncSession,
        cards: Optional[CardSource] = None,
        code_generator: Callable[[], str] = default_code_generator,
        locks: GameLockRegistry = game_locks,
        accept_equal_years: bool = ACCEPT_EQUAL_YEARS,
    ):
        self.repository = GameRepository(session)
        self.cards = cards or CardDrawService(session)
        self.rooms = RoomRegistry(self.repository, code_generator=code_generator)
        self.locks = locks
        self.accept_equal_years = accept_equal_years

    @asynccontextmanager
    async def _locked(self, game_id: uuid.UUID, operation: str, actor: Actor) -> AsyncIterator[Game]:
        async with self.locks.hold(game_id):
            try:
                yield await self.repository.get_by_id(game_id, refresh=True)
            except GameError as e:
                await self.repository.rollback()
                logger.info(f"{operation} rejected for game {game_id} ({describe_actor(actor)}): {e.message}")
                raise
            except Exception as e:
                await self.repository.rollback()
                error_log(
                    f"{operation} failed",
                    exc=e,
                    context={"game_id": game_id, "actor": describe_actor(actor)},
                )
                raise

    # --- Queries ---

    async def get_game(self, game_id: uuid.UUID) -> Game:
        return rules.get_state(await self.repository.get_by_id(game_id))

    async def get_game_by_code(self, code: str) -> Game:
        return rules.get_state(await self.rooms.resolve_by_code(code))

    async def list_user_games(self, actor: Optional[Actor]) -> List[Game]:
        if not isinstance(actor, AuthenticatedActor):
            raise IdentityError("Authentication required to view games")
        return await self.repository.list_for_user(actor.user_id)

    async def list_events(self, game_id: uuid.UUID, limit: int = 50, offset: int = 0) -> List[GameEvent]:
        await self.repository.get_by_id(game_id)
        return await self.repository.list_events(game_id, limit=limit, offset=offset)

    # --- Transitions ---

    async def create_game(
        self,
        actor: Actor,
        username: Optional[str] = None,
        difficulty: Difficulty = Difficulty.MEDIUM,
        categories: Sequence[str] = (),
        max_players: int = 4,
    ) -> Game:
        logger.info(f"Creating game ({describe_actor(actor)}, difficulty={Difficulty(difficulty).value})")
        try:
            game = await self.rooms.create_room(
                actor,
                username=username,
                difficulty=difficulty,
                categories=categories,
                max_players=max_players,
            )
        except GameError:
            await self.repository.rollback()
            raise
        logger.info(f"Game created: {game.room_code} (host: {game.players[0].username})")
        return game

    async def join_game(self, code: str, actor: Actor, username: Optional[str] = None) -> Game:
        found = await self.rooms.resolve_by_code(code)
        async with self._locked(found.id, "join", actor) as game:
            seats_before = len(game.players)
            previous_host = game.host_index
            player = rules.join(game, actor, username=username)
            rejoined = len(game.players) == seats_before
            log_event(
                self.repository, game,
                EventType.PLAYER_REJOINED if rejoined else EventType.PLAYER_JOINED,
                f"{player.username} {'rejoined' if rejoined else 'joined'} the game",
                player=player,
                details={"seat": player.seat},
            )
            # A returning player in a lower seat takes the host role back
            self._log_host_change(game, previous_host)
            saved = await self.repository.save(game)
        logger.info(f"Player {player.username} joined game {saved.room_code} at seat {player.seat}")
        return saved

    async def start_game(self, game_id: uuid.UUID, actor: Actor) -> Game:
        async with self._locked(game_id, "start", actor) as game:
            rules.ensure_can_start(game, actor)
            deck = await self.cards.draw(game.difficulty, game.categories, rules.cards_needed(game))
            rules.start(game, actor, deck)
            log_event(
                self.repository, game,
                EventType.GAME_STARTED,
                f"Game started with {len(game.active_players)} players",
                player=game.host,
                details={"hand_size": rules.hand_size(game.difficulty)},
            )
            saved = await self.repository.save(game)
        logger.info(f"Game {saved.room_code} started")
        return saved

    async def place_card(
        self,
        game_id: uuid.UUID,
        actor: Actor,
        card_id: uuid.UUID,
        position: int,
    ) -> Tuple[PlacementResult, Game]:
        async with self._locked(game_id, "place-card", actor) as game:
            player = game.current_player
            result = rules.place_card(
                game, actor, card_id, position,
                accept_equal_years=self.accept_equal_years,
            )
            placed = game.timeline[-1]
            log_event(
                self.repository, game,
                EventType.CARD_PLACED,
                f"{player.username} placed '{placed.card.title}' at position {position} "
                f"({'correct' if result.is_correct else 'incorrect'})",
                player=player,
                details={
                    "card_id": str(result.card_id),
                    "position": position,
                    "is_correct": result.is_correct,
                    "year": result.year,
                },
            )
            if result.game_over:
                self._log_game_over(game)
            saved = await self.repository.save(game)
        logger.info(
            f"Game {saved.room_code}: seat {result.player_index} placed a card at {position} "
            f"(correct={result.is_correct}, game_over={result.game_over})"
        )
        return result, saved

    async def leave_game(self, game_id: uuid.UUID, actor: Actor) -> Game:
        async with self._locked(game_id, "leave", actor) as game:
            previous_host = game.host_index
            previous_status = game.status
            player = rules.leave(game, actor)
            log_event(
                self.repository, game,
                EventType.PLAYER_LEFT,
                f"{player.username} left the game",
                player=player,
                details={"seat": player.seat},
            )
            self._log_host_change(game, previous_host)
            if game.status != previous_status:
                self._log_game_over(game)
            saved = await self.repository.save(game)
        logger.info(f"Player {player.username} left game {saved.room_code} (status={saved.status.value})")
        return saved

    async def end_game(self, game_id: uuid.UUID, actor: Actor) -> Game:
        async with self._locked(game_id, "end", actor) as game:
            rules.end(game, actor)
            self._log_game_over(game)
            saved = await self.repository.save(game)
        logger.info(f"Game {saved.room_code} ended by host (status={saved.status.value})")
        return saved

    def _log_host_change(self, game: Game, previous_host: Optional[int]) -> None:
        if game.host_index is None or game.host_index == previous_host:
            return
        log_event(
            self.repository, game,
            EventType.HOST_CHANGED,
            f"{game.host.username} is now the host",
            player=game.host,
            details={"previous_host": previous_host, "new_host": game.host_index},
        )

    def _log_game_over(self, game: Game) -> None:
        if game.status == GameStatus.CANCELLED:
            log_event(self.repository, game, EventType.GAME_CANCELLED, "Game cancelled")
            return
        winner = None if game.winner_index is None else game.players[game.winner_index]
        log_event(
            self.repository, game,
            EventType.GAME_ENDED,
            f"Game over, {winner.username} wins" if winner else "Game over",
            player=winner,
            details={
                "winner_index": game.winner_index,
                "total_time_taken": game.total_time_taken,
                "scores": {p.username: p.score for p in game.players},
            },
        )
