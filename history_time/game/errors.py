"""Typed failures raised by the timeline game engine."""

from litestar.status_codes import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_503_SERVICE_UNAVAILABLE,
)


class GameError(Exception):
    """Base class for every client-visible game failure."""

    status_code = HTTP_400_BAD_REQUEST
    default_message = "Invalid game request"

    def __init__(self, message: str = "") -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class IdentityError(GameError):
    status_code = HTTP_401_UNAUTHORIZED
    default_message = "You must be logged in or provide guest credentials"


class NotFoundError(GameError):
    status_code = HTTP_404_NOT_FOUND
    default_message = "Game not found"


class InvalidStateError(GameError):
    default_message = "Operation not allowed in the current game state"


class GameFullError(GameError):
    default_message = "Game room is full"


class DuplicatePlayerError(GameError):
    default_message = "You are already in this game"


class InsufficientPlayersError(GameError):
    default_message = "Need at least 2 active players to start the game"


class NotHostError(GameError):
    status_code = HTTP_403_FORBIDDEN
    default_message = "Only the host can do that"


class NotYourTurnError(GameError):
    status_code = HTTP_403_FORBIDDEN
    default_message = "It is not your turn"


class CardNotInHandError(GameError):
    default_message = "Card not found in your hand"


class PositionOccupiedError(GameError):
    default_message = "That timeline position is already taken"


class InvalidPositionError(GameError):
    default_message = "Position is outside the timeline"


class NotEnoughCardsError(GameError):
    default_message = "Not enough cards available for a game"


class PlayerNotFoundError(GameError):
    status_code = HTTP_404_NOT_FOUND
    default_message = "Player not found in game"


class ConcurrentUpdateError(GameError):
    status_code = HTTP_409_CONFLICT
    default_message = "Game was changed by another request, please retry"


class RoomAllocationError(GameError):
    """Not user-recoverable; the whole creation has to be retried."""

    status_code = HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Could not allocate a room code"
