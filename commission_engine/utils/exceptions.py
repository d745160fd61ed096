"""
Exception handling utilities.

Defines the commission engine error taxonomy and categorizes exceptions
by handling strategy.
"""

from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError


class CommissionEngineError(Exception):
    """Base class for all commission engine errors."""

    retryable: bool = False


class RateConfigurationError(CommissionEngineError, ValueError):
    """Raised when a commission rate is written with an invalid value."""

    def __init__(self, level: int, percentage: object, reason: str) -> None:
        self.level = level
        self.percentage = percentage
        super().__init__(
            f"Invalid commission rate for level {level} "
            f"({percentage!r}): {reason}"
        )


class SponsorGraphCorruptionError(CommissionEngineError):
    """
    Raised when the sponsor walk revisits a user (cycle in the graph).

    Requires manual intervention: retrying against a corrupt graph
    produces the same result.
    """

    def __init__(self, user_id: int, chain: list[int]) -> None:
        self.user_id = user_id
        self.chain = chain
        super().__init__(
            f"Sponsor cycle detected at user {user_id} "
            f"(walk: {' -> '.join(str(i) for i in chain)})"
        )


class TransientStorageError(CommissionEngineError):
    """Raised when the database is unreachable; the operation may be retried."""

    retryable = True


class EntityNotFoundError(CommissionEngineError, LookupError):
    """Raised when a referenced user, order or commission does not exist."""

    def __init__(self, entity: str, entity_id: object) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id!r} not found")


class OrderNotEligibleError(CommissionEngineError):
    """Raised when commissions are requested for an unpaid or cancelled order."""


class InvalidStatusTransitionError(CommissionEngineError):
    """Raised for a forbidden order or commission status change."""

    def __init__(self, entity: str, current: str, requested: str) -> None:
        self.entity = entity
        self.current = current
        self.requested = requested
        super().__init__(
            f"{entity} cannot move from '{current}' to '{requested}'"
        )


class SponsorAssignmentError(CommissionEngineError):
    """Raised when a sponsor cannot be assigned to a user."""


class UserRegistrationError(CommissionEngineError):
    """Raised when a new user cannot be registered."""


# Exception categories based on handling strategy

# Connectivity failures raised by the database driver
STORAGE_CONNECTIVITY_ERRORS = (
    OperationalError,
    InterfaceError,
    DisconnectionError,
)


def is_storage_connectivity_error(exc: Exception) -> bool:
    """
    Check if exception is a database connectivity failure.

    Args:
        exc: Exception to check

    Returns:
        True if exception should be surfaced as TransientStorageError
    """
    return isinstance(exc, STORAGE_CONNECTIVITY_ERRORS)


def is_retryable(exc: Exception) -> bool:
    """
    Check if the failed operation can be safely retried by the caller.

    Args:
        exc: Exception to check

    Returns:
        True if exception is retryable
    """
    if isinstance(exc, CommissionEngineError):
        return exc.retryable
    return is_storage_connectivity_error(exc)
