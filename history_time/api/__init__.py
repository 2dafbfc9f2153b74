"""History Time API routes."""

from history_time.api.games import GamesController

__all__ = ["GamesController"]
