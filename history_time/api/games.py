"""Game session API endpoints."""

import uuid
from datetime import datetime
from typing import Optional, List

from litestar import Controller, Request, get, post, patch
from litestar.datastructures import State
from litestar.di import Provide
from litestar.params import Parameter
from litestar.status_codes import HTTP_200_OK
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from history_time.auth.tokens import bearer_token
from history_time.game.identity import Actor, resolve_actor
from history_time.game.rules import MAX_PLAYERS, MIN_PLAYERS
from history_time.models import Difficulty, EventType, GameStatus
from history_time.services.games import GameService
from history_time.services.rooms import default_code_generator
from history_time.utils.logging import debug_log


# --- Request Schemas ---

class CreateGameRequest(BaseModel):
    """Request to create a new game room."""
    difficulty: Difficulty = Difficulty.MEDIUM
    categories: List[str] = Field(default_factory=list)
    max_players: int = Field(default=4, ge=MIN_PLAYERS, le=MAX_PLAYERS)
    host_nickname: Optional[str] = Field(default=None, max_length=50)


class JoinGameRequest(BaseModel):
    """Request to join a room by code."""
    username: Optional[str] = Field(default=None, max_length=50)


class PlaceCardRequest(BaseModel):
    """Request to place a card from the caller's hand."""
    card_id: uuid.UUID
    position: int


# --- Response Schemas ---

class HandCardResponse(BaseModel):
    """A card in a player's hand. The year is withheld until it is placed."""
    card_id: uuid.UUID
    title: str
    category: str
    image_url: Optional[str]
    draw_order: int

    class Config:
        from_attributes = True


class PlayerResponse(BaseModel):
    """Player data response."""
    id: uuid.UUID
    seat: int
    username: str
    user_id: Optional[str]
    is_guest: bool
    is_active: bool
    score: int
    correct_placements: int
    incorrect_placements: int
    cards: List[HandCardResponse]

    class Config:
        from_attributes = True


class PlacementResponse(BaseModel):
    """A card on the timeline."""
    id: uuid.UUID
    card_id: uuid.UUID
    title: str
    year: int
    position: int
    sequence: int
    is_correct: bool
    placed_by_id: uuid.UUID
    placement_time: datetime

    class Config:
        from_attributes = True


class GameResponse(BaseModel):
    """Full game state response."""
    id: uuid.UUID
    room_code: str
    status: GameStatus
    difficulty: Difficulty
    categories: List[str]
    max_players: int
    host_index: Optional[int]
    current_player_index: Optional[int]
    timeline_capacity: int
    players: List[PlayerResponse]
    timeline: List[PlacementResponse]
    winner_index: Optional[int]
    time_started: Optional[datetime]
    time_ended: Optional[datetime]
    total_time_taken: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PlacementResultResponse(BaseModel):
    """Outcome of a single placement."""
    is_correct: bool
    card_id: uuid.UUID
    position: int
    year: int
    player_index: int
    game_over: bool

    class Config:
        from_attributes = True


class PlaceCardResponse(BaseModel):
    result: PlacementResultResponse
    game: GameResponse


class GameEventResponse(BaseModel):
    """Game event response."""
    id: uuid.UUID
    event_type: EventType
    description: str
    player_id: Optional[uuid.UUID]
    details: Optional[dict]
    created_at: datetime

    class Config:
        from_attributes = True


# --- Helper Functions ---

def actor_from_request(
    request: Request,
    username: Optional[str] = None,
    required: bool = True,
) -> Optional[Actor]:
    """
    Resolve the caller from the Authorization header or the guest headers.

    ``username`` from the request body stands in for ``X-Guest-Username``
    when the header is missing.
    """
    actor = resolve_actor(
        token=bearer_token(request.headers.get("Authorization")),
        guest_username=request.headers.get("X-Guest-Username") or username,
        guest_user_id=request.headers.get("X-Guest-User-Id"),
        required=required,
    )
    debug_log("Resolved actor %s for %s %s", actor, request.method, request.url.path)
    return actor


async def provide_game_service(state: State, session: AsyncSession) -> GameService:
    return GameService(
        session,
        code_generator=state.get("room_code_generator") or default_code_generator,
    )


# --- Controller ---

class GamesController(Controller):
    """API endpoints for timeline games."""

    path = "/api/games"
    tags = ["games"]
    dependencies = {"games": Provide(provide_game_service)}

    @post("/")
    async def create_game(
        self,
        request: Request,
        data: CreateGameRequest,
        games: GameService,
    ) -> GameResponse:
        """Create a room with the caller as host and return it with its code."""
        actor = actor_from_request(request, username=data.host_nickname)
        game = await games.create_game(
            actor,
            username=data.host_nickname,
            difficulty=data.difficulty,
            categories=data.categories,
            max_players=data.max_players,
        )
        return GameResponse.model_validate(game)

    @get("/")
    async def list_games(self, request: Request, games: GameService) -> List[GameResponse]:
        """Games the authenticated caller has a seat in."""
        actor = actor_from_request(request, required=False)
        return [GameResponse.model_validate(g) for g in await games.list_user_games(actor)]

    @post("/join/{room_code:str}", status_code=HTTP_200_OK)
    async def join_game(
        self,
        request: Request,
        room_code: str,
        games: GameService,
        data: Optional[JoinGameRequest] = None,
    ) -> GameResponse:
        """Join a waiting room, or take back a seat previously left."""
        username = data.username if data else None
        actor = actor_from_request(request, username=username)
        game = await games.join_game(room_code, actor, username=username)
        return GameResponse.model_validate(game)

    @get("/code/{room_code:str}")
    async def get_game_by_code(self, room_code: str, games: GameService) -> GameResponse:
        """Get a live game by its room code."""
        return GameResponse.model_validate(await games.get_game_by_code(room_code))

    @get("/{game_id:uuid}")
    async def get_game(self, game_id: uuid.UUID, games: GameService) -> GameResponse:
        """Get game state by id."""
        return GameResponse.model_validate(await games.get_game(game_id))

    @post("/{game_id:uuid}/start", status_code=HTTP_200_OK)
    async def start_game(
        self,
        request: Request,
        game_id: uuid.UUID,
        games: GameService,
    ) -> GameResponse:
        """Deal the hands and give the host the first turn."""
        game = await games.start_game(game_id, actor_from_request(request))
        return GameResponse.model_validate(game)

    @post("/{game_id:uuid}/place-card", status_code=HTTP_200_OK)
    async def place_card(
        self,
        request: Request,
        game_id: uuid.UUID,
        data: PlaceCardRequest,
        games: GameService,
    ) -> PlaceCardResponse:
        """Place a card from the caller's hand at a timeline position."""
        result, game = await games.place_card(
            game_id,
            actor_from_request(request),
            card_id=data.card_id,
            position=data.position,
        )
        return PlaceCardResponse(
            result=PlacementResultResponse.model_validate(result),
            game=GameResponse.model_validate(game),
        )

    @patch("/{game_id:uuid}/leave")
    async def leave_game(
        self,
        request: Request,
        game_id: uuid.UUID,
        games: GameService,
    ) -> GameResponse:
        """Give up the caller's seat."""
        game = await games.leave_game(game_id, actor_from_request(request))
        return GameResponse.model_validate(game)

    @post("/{game_id:uuid}/end", status_code=HTTP_200_OK)
    async def end_game(
        self,
        request: Request,
        game_id: uuid.UUID,
        games: GameService,
    ) -> GameResponse:
        """Host ends the game early."""
        game = await games.end_game(game_id, actor_from_request(request))
        return GameResponse.model_validate(game)

    @get("/{game_id:uuid}/events")
    async def list_events(
        self,
        game_id: uuid.UUID,
        games: GameService,
        limit: int = Parameter(default=50, ge=1, le=200),
        offset: int = Parameter(default=0, ge=0),
    ) -> List[GameEventResponse]:
        """Activity log for a game, newest first."""
        events = await games.list_events(game_id, limit=limit, offset=offset)
        return [GameEventResponse.model_validate(e) for e in events]
