"""Application configuration loaded from the environment."""

import os
from os import getenv
from pathlib import Path

# Checked in order; the first existing file wins
ENV_FILE_PATHS = [
    Path("/opt/history-time/.env"),
    Path(__file__).parent.parent / ".env",
]


def load_env_file_fallback() -> bool:
    """Load a .env file without overriding variables already in the environment."""
    for env_file in ENV_FILE_PATHS:
        if env_file.exists() and env_file.is_file():
            try:
                loaded_count = 0
                with open(env_file, "r") as f:
                    for line in f:
                        line = line.strip()
                        if not line or line.startswith("#"):
                            continue
                        if "=" in line:
                            key, value = line.split("=", 1)
                            key = key.strip()
                            value = value.strip()
                            if value.startswith('"') and value.endswith('"'):
                                value = value[1:-1]
                            elif value.startswith("'") and value.endswith("'"):
                                value = value[1:-1]
                            if key and value and key not in os.environ:
                                os.environ[key] = value
                                loaded_count += 1
                if loaded_count > 0:
                    print(f"[HistoryTime] Loaded {loaded_count} environment variables from {env_file}")
                return True
            except OSError as e:
                print(f"[HistoryTime] Warning: Could not load .env file from {env_file}: {e}")
    return False


def _flag(name: str, default: str) -> bool:
    return getenv(name, default).lower() in ("1", "true", "yes")


if not getenv("DATABASE_URL") or not getenv("JWT_SECRET"):
    load_env_file_fallback()

DEBUG = _flag("APP_DEBUG", "false")

# Default DATABASE_URL is for local dev only (Docker Compose)
DATABASE_URL = getenv(
    "DATABASE_URL",
    "postgresql+asyncpg://postgres:postgres@db:5432/history_time",
)

# Bearer tokens are issued by the account service; we only verify them
JWT_SECRET = getenv("JWT_SECRET", "change-me-in-production")
JWT_ALGORITHM = getenv("JWT_ALGORITHM", "HS256")

ROOM_CODE_LENGTH = int(getenv("ROOM_CODE_LENGTH", "6"))
ROOM_CODE_ATTEMPTS = int(getenv("ROOM_CODE_ATTEMPTS", "10"))

# Equal years on either side of a neighbour count as a correct placement
ACCEPT_EQUAL_YEARS = _flag("ACCEPT_EQUAL_YEARS", "true")

# Waiting rooms idle for longer than this are cancelled by deploy/cleanup_stale_games.py
STALE_GAME_HOURS = int(getenv("STALE_GAME_HOURS", "24"))
