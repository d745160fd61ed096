"""
Database decorators for automatic error handling and rollback.

Provides decorators that give async service methods all-or-nothing
transaction semantics: on any exception the session is rolled back, and
driver connectivity failures are re-raised as TransientStorageError so
callers can tell a retryable failure from a business error.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.utils.exceptions import (
    TransientStorageError,
    is_storage_connectivity_error,
)


T = TypeVar("T")


def _find_session(args: tuple, kwargs: dict) -> AsyncSession | None:
    """
    Locate the session for a decorated call.

    Looks at the 'session' keyword, then the first positional argument,
    then a 'session' attribute on the first positional argument (service
    and repository methods keep their session on self).
    """
    session = kwargs.get("session")
    if session is None and args:
        first = args[0]
        if isinstance(first, AsyncSession):
            session = first
        else:
            session = getattr(first, "session", None)
    return session


async def _rollback_and_reraise(
    session: AsyncSession, func_name: str, error: Exception
) -> None:
    try:
        await session.rollback()
        logger.info(
            f"Rollback performed in {func_name} due to error: {type(error).__name__}"
        )
    except Exception as rollback_error:
        logger.error(
            f"Failed to rollback in {func_name}: {rollback_error}",
            exc_info=True
        )

    if is_storage_connectivity_error(error):
        raise TransientStorageError(
            f"Storage unavailable during {func_name}: {error}"
        ) from error
    raise error


def with_rollback_on_error(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that automatically rolls back the session on any exception.

    Usage:
        class CommissionGenerationService(BaseService):
            @with_rollback_on_error
            async def generate_for_order(self, order_id: int):
                ...
                await self.session.commit()

    The decorator will:
    1. Execute the wrapped function
    2. If an exception occurs, call session.rollback()
    3. Re-raise connectivity errors as TransientStorageError and
       everything else unchanged

    Args:
        func: Async function to wrap

    Returns:
        Wrapped function with automatic rollback on error
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        session = _find_session(args, kwargs)

        if session is None:
            logger.warning(
                f"Function {func.__name__} decorated with @with_rollback_on_error "
                f"but no session argument found. Rollback will not be performed."
            )
            return await func(*args, **kwargs)

        try:
            return await func(*args, **kwargs)
        except Exception as e:
            await _rollback_and_reraise(session, func.__name__, e)

    return wrapper


def with_auto_commit(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that commits the session on success and rolls back on error.

    Usage:
        @with_auto_commit
        async def update_rate(self, level: int, percentage: Decimal):
            # No need to call session.commit() - it's automatic
            ...

    Args:
        func: Async function to wrap

    Returns:
        Wrapped function with automatic commit/rollback
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        session = _find_session(args, kwargs)

        if session is None:
            logger.warning(
                f"Function {func.__name__} decorated with @with_auto_commit "
                f"but no session argument found. Commit/rollback will not be performed."
            )
            return await func(*args, **kwargs)

        try:
            result = await func(*args, **kwargs)
            await session.commit()
            logger.debug(f"Auto-commit performed in {func.__name__}")
            return result
        except Exception as e:
            await _rollback_and_reraise(session, func.__name__, e)

    return wrapper
