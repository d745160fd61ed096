"""
Base service class.

Provides common functionality for all service classes including session
management, logging, and an operation-timing decorator.
"""

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession


# Type variable for generic decorator return types
T = TypeVar("T")


class BaseService:
    """
    Base service class.

    Provides common functionality for all service classes:
    - Session management
    - Logging with bound service context
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
        """
        self.session = session
        self.logger = logger.bind(service=self.__class__.__name__)


def log_operation(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to log method entry/exit with timing.

    Logs:
    - Method entry with arguments
    - Method exit with duration
    - Exceptions if any

    Usage:
        @log_operation
        async def pay_user_commissions(self, user_id: int, ...):
            ...

    Args:
        func: Async method to wrap

    Returns:
        Wrapped async method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        start_time = time.time()

        self.logger.debug(
            f"Starting {func.__name__}",
            extra={
                "function": func.__name__,
                "args_count": len(args),
                "kwargs_keys": list(kwargs.keys()),
            },
        )

        try:
            result = await func(self, *args, **kwargs)
        except Exception as e:
            duration = time.time() - start_time
            self.logger.error(
                f"Failed {func.__name__}",
                extra={
                    "function": func.__name__,
                    "duration_seconds": round(duration, 3),
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "success": False,
                },
            )
            raise

        duration = time.time() - start_time
        self.logger.debug(
            f"Completed {func.__name__}",
            extra={
                "function": func.__name__,
                "duration_seconds": round(duration, 3),
                "success": True,
            },
        )
        return result

    return wrapper
