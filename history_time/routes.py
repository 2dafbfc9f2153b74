from history_time.api import GamesController

ROUTES = [
    GamesController,
]
