"""Enhanced logging utilities with conditional debug logging."""

import logging
import traceback
from typing import Optional, Any

from history_time.config import DEBUG

# Get the main logger
logger = logging.getLogger("HistoryTime")


def debug_log(message: str, *args, **kwargs) -> None:
    """
    Log a debug message only if APP_DEBUG is enabled.

    Args:
        message: Log message (supports % formatting)
        *args: Positional arguments for message formatting
        **kwargs: Keyword arguments (level, exc_info, etc.)
    """
    if DEBUG:
        level = kwargs.pop("level", logging.DEBUG)
        logger.log(level, message, *args, **kwargs)


def format_context(context: Optional[dict]) -> str:
    """Render a context dict as ``key=value`` pairs."""
    if not context:
        return ""
    return ", ".join(f"{k}={v}" for k, v in context.items())


def error_log(
    message: str,
    exc: Optional[Exception] = None,
    context: Optional[dict] = None,
    *args,
    **kwargs
) -> None:
    """
    Enhanced error logging with context and traceback.

    Args:
        message: Error message
        exc: Optional exception object
        context: Optional dictionary with additional context (game, actor, etc.)
        *args: Additional positional arguments
        **kwargs: Additional keyword arguments for logger
    """
    parts = [message]

    if context:
        parts.append(f"Context: {format_context(context)}")

    if exc:
        exc_type = type(exc).__name__
        exc_msg = str(exc)
        parts.append(f"Exception: {exc_type}: {exc_msg}")

        # Include full traceback in debug mode
        if DEBUG:
            parts.append(f"Traceback:\n{''.join(traceback.format_exception(type(exc), exc, exc.__traceback__))}")

    full_message = " | ".join(parts)

    if exc:
        logger.error(full_message, exc_info=exc, *args, **kwargs)
    else:
        logger.error(full_message, *args, **kwargs)


def log_request_error(
    request: Any,
    exc: Exception,
    message: Optional[str] = None
) -> None:
    """
    Log an error with request context.

    Args:
        request: Request object (should have url, method, etc.)
        exc: The exception
        message: Optional custom message
    """
    context = {}

    try:
        if hasattr(request, "url"):
            context["path"] = str(request.url.path) if hasattr(request.url, "path") else str(request.url)
        if hasattr(request, "method"):
            context["method"] = request.method
    except (AttributeError, TypeError):
        pass  # Don't fail if we can't extract context

    error_log(message or f"Unhandled exception: {type(exc).__name__}", exc=exc, context=context)
