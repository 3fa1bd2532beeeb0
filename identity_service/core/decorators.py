"""
Decorators for cross-cutting concerns in the identity service.
Bounds storage calls with a timeout and keeps backend errors out of the
messages returned to callers.
"""
import asyncio
import functools
from typing import Callable

import structlog

from .exceptions import GenericError, IdentityError

logger = structlog.get_logger()


def storage_operation(operation: str):
    """
    Wrap an async storage method with a timeout and error translation.

    The wrapped method's instance must expose ``timeout`` (seconds). On
    timeout, or on any backend exception, the detail is logged and a
    ``GenericError`` with a generic message is raised instead. Errors from
    the service's own taxonomy pass through untouched.

    Args:
        operation: Name used in log events, e.g. ``"account.find_by_email"``
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            try:
                return await asyncio.wait_for(
                    func(self, *args, **kwargs),
                    timeout=self.timeout,
                )
            except IdentityError:
                raise
            except asyncio.TimeoutError as e:
                logger.error("Storage operation timed out", operation=operation, timeout=self.timeout)
                raise GenericError("Storage operation timed out") from e
            except Exception as e:
                logger.error("Storage operation failed", operation=operation, error=str(e))
                raise GenericError("Storage operation failed") from e

        return wrapper
    return decorator
