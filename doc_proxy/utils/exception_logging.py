"""
Helpers for logging upstream failures without letting the logging itself fail.
"""

import logging

import httpx


def _safe_str(obj) -> str:
    """
    Safely convert an object to string, handling cases where __str__ or __repr__ might fail.

    Args:
        obj: The object to convert to string

    Returns:
        A string representation of the object, falling back to safe alternatives
    """
    try:
        return str(obj)
    except Exception:
        try:
            return repr(obj)
        except Exception:
            return f"<{type(obj).__name__} object (string conversion failed)>"


def is_timeout(exception: BaseException) -> bool:
    """Whether the failure was an upstream call running out of time."""
    return isinstance(exception, httpx.TimeoutException)


def format_exception_message(exception: BaseException) -> str:
    """
    Format an exception as ``Type: message``. Empty messages (common for
    httpx transport errors) fall back to the type name alone.
    """
    if exception is None:
        return "None"
    message = _safe_str(exception)
    name = type(exception).__name__
    return f"{name}: {message}" if message else name


def log_exception_with_details(
    logger: logging.Logger,
    prefix: str,
    exception: BaseException,
    level: int = logging.ERROR,
) -> None:
    """
    Log an exception with its type and message. The traceback is attached at
    DEBUG so error logs stay one line per failure.

    Args:
        logger: The logger instance to use
        prefix: Prefix for the log message (e.g., "[API-Proxy]", "[PDF]")
        exception: The exception to log
        level: The logging level to use (default: ERROR)
    """
    safe_prefix = _safe_str(prefix) if prefix is not None else ""
    try:
        logger.log(
            level,
            f"{safe_prefix} {format_exception_message(exception)}",
            exc_info=exception if logger.isEnabledFor(logging.DEBUG) else None,
        )
    except Exception:
        logger.log(level, f"{safe_prefix} Exception (logging failed)")
