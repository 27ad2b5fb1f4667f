"""
Graceful failure utilities.

Context manager for steps that should degrade rather than fail the caller's
request. It centralizes the "attempt, log with context, continue" pattern:

    rows = []
    with graceful_failure("query question bank", logger, context={"subject": s}):
        rows = await source.fetch(s, 10)

Only ``Exception`` is absorbed. ``asyncio.CancelledError`` derives from
``BaseException`` and always propagates, so cancelling an assembly still
aborts the step.
"""

import logging
from contextlib import contextmanager
from typing import Any, Generator, Optional


@contextmanager
def graceful_failure(
    operation_name: str,
    logger: logging.Logger,
    *,
    log_level: int = logging.WARNING,
    exc_info: bool = False,
    context: Optional[dict[str, Any]] = None,
) -> Generator[None, None, None]:
    """Context manager for non-critical operations that should not block execution.

    Args:
        operation_name: Human-readable name of the operation for logging
            (e.g., "query question bank").
        logger: The logger instance to use for logging errors.
        log_level: Logging level for error messages. Defaults to WARNING.
        exc_info: Whether to include exception traceback in log.
        context: Optional dictionary of additional context to include in log message
            (e.g., {"subject": "Physics"}).

    Yields:
        None - the context manager is used for its side effects only.
    """
    try:
        yield
    except Exception as e:
        if context:
            context_str = ", ".join(f"{k}={v}" for k, v in context.items())
            message = f"Failed to {operation_name} ({context_str}): {e}"
        else:
            message = f"Failed to {operation_name}: {e}"

        logger.log(log_level, message, exc_info=exc_info)
