"""
Operation Boundary
==================
Decorator that keeps unexpected failures from crossing the public API.
"""

from functools import wraps
from typing import Awaitable, Callable, TypeVar

import structlog

from .exceptions import IntegrityFault, InternalError, VeriflyError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def operation_boundary(operation: str):
    """
    Wrap an async operation so only typed failures reach the caller.

    - Business failures (VeriflyError) propagate unchanged.
    - IntegrityFault propagates too, but is logged at error level first.
    - Anything else is logged with its traceback and re-raised as a
      generic InternalError; the original stays on ``__cause__``.

    Example:
        @operation_boundary("verification.verify")
        async def verify(self, application_id, items):
            ...
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except IntegrityFault as exc:
                logger.error(
                    "Stored value failed integrity check",
                    operation=operation,
                    code=exc.code,
                )
                raise
            except VeriflyError:
                raise
            except Exception as exc:
                logger.exception(
                    "Unexpected failure in operation",
                    operation=operation,
                    error_type=type(exc).__name__,
                )
                raise InternalError() from exc

        return wrapper

    return decorator
