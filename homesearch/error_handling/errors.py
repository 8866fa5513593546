"""
Error taxonomy and best-effort execution for Home Search.

Primary-path failures (provider, store) are raised and surfaced to the caller.
Cache-pointer operations run through ``run_best_effort`` which logs failures
with their context identifiers and returns a degraded result instead of raising.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional


logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Listings provider returned a non-success response or an unusable payload."""

    def __init__(self, status: int, body: str = ""):
        self.status = status
        self.body = body
        super().__init__(f"Repliers request failed ({status}): {body}")


class StoreError(Exception):
    """Persistent store failed during a primary-path operation."""

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Store operation '{operation}' failed: {type(cause).__name__}: {cause}")


class MalformedCachePointer(ValueError):
    """Cache pointer payload could not be interpreted."""


@dataclass
class BestEffort:
    """
    Outcome of an operation whose failure must not block the request.

    Attributes:
        ok: True when the operation completed
        value: Operation result when ok
        error: The swallowed exception when degraded
    """
    ok: bool
    value: Any = None
    error: Optional[Exception] = None

    @property
    def degraded(self) -> bool:
        return not self.ok

    @classmethod
    def success(cls, value: Any = None) -> 'BestEffort':
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: Exception) -> 'BestEffort':
        return cls(ok=False, error=error)


@dataclass
class ErrorContext:
    """Identifiers attached to a logged failure."""
    operation: str
    identifiers: Dict[str, Any] = field(default_factory=dict)

    def describe(self) -> str:
        ids = ", ".join(f"{k}={v}" for k, v in self.identifiers.items())
        return f"{self.operation} [{ids}]" if ids else self.operation


async def run_best_effort(
    operation: Callable[[], Awaitable[Any]],
    context: ErrorContext
) -> BestEffort:
    """
    Await ``operation`` and capture any failure as a degraded result.

    Args:
        operation: Zero-argument coroutine factory
        context: Operation name and identifiers for the log line

    Returns:
        BestEffort.success with the operation's value, or BestEffort.failure
    """
    try:
        return BestEffort.success(await operation())
    except Exception as e:
        log_error(context, e, level=logging.WARNING)
        return BestEffort.failure(e)


def log_error(context: ErrorContext, error: Exception, level: int = logging.ERROR) -> None:
    """Log an error with timestamp, context, and diagnostic data."""
    details = {
        'timestamp': datetime.now().isoformat(),
        'operation': context.operation,
        'error_type': type(error).__name__,
        'error_message': str(error),
        **{k: str(v) for k, v in context.identifiers.items()},
    }
    logger.log(
        level,
        f"Operation failed: {context.describe()} | Error: {type(error).__name__}: {error}"
    )
    logger.debug(f"Full error context: {details}")
