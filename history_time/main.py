import logging
from typing import Callable, Optional

from advanced_alchemy.extensions.litestar import (
    AsyncSessionConfig,
    SQLAlchemyAsyncConfig,
    SQLAlchemyInitPlugin,
)
from litestar import Litestar, Request
from litestar.exceptions import HTTPException
from litestar.response import Response
from litestar.status_codes import HTTP_500_INTERNAL_SERVER_ERROR

from history_time.config import DEBUG, DATABASE_URL
from history_time.game.errors import GameError
from history_time.routes import ROUTES
from history_time.models import Base  # Import models Base for table creation
from history_time.utils.logging import log_request_error

logging.basicConfig(
    level=logging.DEBUG if DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
logger = logging.getLogger("HistoryTime")


# --- Exception handlers
def handle_game_error(request: Request, exc: GameError) -> Response:
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code} {type(exc).__name__}: {exc.message}")
    return Response(
        content={"detail": exc.message, "error": type(exc).__name__},
        status_code=exc.status_code,
        media_type="application/json"
    )


def handle_http_exception(request: Request, exc: HTTPException) -> Response:
    """Render Litestar's own errors (validation, routing) unchanged."""
    content = {"status_code": exc.status_code, "detail": exc.detail}
    if exc.extra:
        content["extra"] = exc.extra
    return Response(
        content=content,
        status_code=exc.status_code,
        headers=exc.headers,
        media_type="application/json"
    )


def log_exceptions(request: Request, exc: Exception) -> Response:
    log_request_error(request, exc, "Unhandled exception occurred")
    return Response(
        content={"detail": "Internal Server Error"},
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        media_type="application/json"
    )


def create_app(
    database_url: str = DATABASE_URL,
    create_all: bool = DEBUG,
    room_code_generator: Optional[Callable[[], str]] = None,
) -> Litestar:
    """
    Build the Litestar application.

    Args:
        database_url: SQLAlchemy async connection string
        create_all: Create missing tables on startup (dev and tests)
        room_code_generator: Replaces random room codes, e.g. for tests
    """
    logger.info(f"Starting app in {'DEBUG' if DEBUG else 'PRODUCTION'} mode")
    logger.debug(f"Database URL: {database_url}")

    # --- SQLAlchemy config
    config = SQLAlchemyAsyncConfig(
        connection_string=database_url,
        session_dependency_key="session",
        metadata=Base.metadata,
        create_all=create_all,
        # Responses are built from the aggregate after commit
        session_config=AsyncSessionConfig(expire_on_commit=False),
    )

    app = Litestar(
        route_handlers=ROUTES,
        debug=DEBUG,
        plugins=[SQLAlchemyInitPlugin(config)],
        exception_handlers={
            GameError: handle_game_error,
            HTTPException: handle_http_exception,
            Exception: log_exceptions,
        },
    )
    if room_code_generator is not None:
        app.state.room_code_generator = room_code_generator
    return app


app = create_app()
