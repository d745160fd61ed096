"""
User registration module.

Creates distributors with unique public identifiers and places them under
the sponsor named by their referral code.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.business_constants import (
    IBO_NUMBER_PREFIX,
    IBO_NUMBER_RANDOM_LENGTH,
    IDENTIFIER_MAX_ATTEMPTS,
    SPONSOR_NUMBER_PREFIX,
    SPONSOR_NUMBER_RANDOM_LENGTH,
)
from commission_engine.models.enums import UserRole, UserStatus
from commission_engine.models.user import User
from commission_engine.repositories.user_repository import UserRepository
from commission_engine.services.base_service import BaseService
from commission_engine.utils.db_decorators import with_auto_commit
from commission_engine.utils.exceptions import (
    SponsorAssignmentError,
    UserRegistrationError,
)
from commission_engine.utils.identifiers import (
    make_fallback_identifier,
    make_identifier,
    normalize_referral_code,
)
from commission_engine.validators.commission import validate_email


def parse_referral_code(code: str) -> tuple[str | None, str | None]:
    """
    Extract an IBO number or sponsor number from a referral code.

    Accepts bare identifiers ("IBO-4K2J9QXA", "sp-7zk3pq") and referral
    link slugs ("jane-doe-IBO-4K2J9QXA"). A code without a known prefix
    is tried as both.

    Args:
        code: Raw referral code

    Returns:
        Tuple of (ibo_number, sponsor_number); at least one is set
        for a non-empty code
    """
    normalized = normalize_referral_code(code)
    if not normalized:
        return None, None

    matches = []
    for prefix in (IBO_NUMBER_PREFIX, SPONSOR_NUMBER_PREFIX):
        position = normalized.rfind(f"{prefix}-")
        # prefix must start the code or follow a slug separator
        if position == 0 or (position > 0 and normalized[position - 1] == "-"):
            matches.append((position, prefix))

    if not matches:
        return normalized, normalized

    # the identifier is the last segment of a slug
    position, prefix = max(matches)
    identifier = normalized[position:]
    if prefix == IBO_NUMBER_PREFIX:
        return identifier, None
    return None, identifier


class UserRegistrationService(BaseService):
    """Registers users and resolves sponsors from referral codes."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize registration service."""
        super().__init__(session)
        self.user_repo = UserRepository(session)

    async def resolve_referral_code(self, code: str) -> User | None:
        """
        Find the sponsor a referral code points to.

        IBO numbers take precedence over sponsor numbers.

        Args:
            code: Referral code or referral link slug

        Returns:
            Sponsor user or None if no user matches
        """
        ibo_number, sponsor_number = parse_referral_code(code)

        if ibo_number:
            user = await self.user_repo.get_by_ibo_number(ibo_number)
            if user:
                return user
        if sponsor_number:
            return await self.user_repo.get_by_sponsor_number(sponsor_number)
        return None

    async def generate_ibo_number(self) -> str:
        """Generate an IBO number not yet assigned to any user."""
        return await self._generate_unique(
            IBO_NUMBER_PREFIX,
            IBO_NUMBER_RANDOM_LENGTH,
            self.user_repo.ibo_number_exists,
        )

    async def generate_sponsor_number(self) -> str:
        """Generate a sponsor number not yet assigned to any user."""
        return await self._generate_unique(
            SPONSOR_NUMBER_PREFIX,
            SPONSOR_NUMBER_RANDOM_LENGTH,
            self.user_repo.sponsor_number_exists,
        )

    async def _generate_unique(
        self,
        prefix: str,
        length: int,
        is_taken: Callable[[str], Awaitable[bool]],
    ) -> str:
        for _ in range(IDENTIFIER_MAX_ATTEMPTS):
            candidate = make_identifier(prefix, length)
            if not await is_taken(candidate):
                return candidate

        fallback = make_fallback_identifier(prefix)
        self.logger.warning(
            "Random identifier attempts exhausted, using timestamp",
            extra={"prefix": prefix, "identifier": fallback},
        )
        return fallback

    @with_auto_commit
    async def register_user(
        self,
        name: str,
        email: str,
        referral_code: str | None = None,
        role: UserRole = UserRole.DISTRIBUTOR,
        **profile: Any,
    ) -> User:
        """
        Register a new user under the sponsor named by a referral code.

        Args:
            name: Display name
            email: Email address (unique)
            referral_code: Optional sponsor IBO number, sponsor number
                or referral link slug
            role: User role
            **profile: Optional phone, banking and address fields

        Returns:
            Created user

        Raises:
            UserRegistrationError: If name or email is invalid or taken
            SponsorAssignmentError: If the referral code matches no user
        """
        if not name or not name.strip():
            raise UserRegistrationError("Name cannot be empty")

        is_valid, normalized_email, error = validate_email(email)
        if not is_valid:
            raise UserRegistrationError(error)

        if await self.user_repo.get_by_email(normalized_email):
            raise UserRegistrationError("Email is already registered")

        sponsor: User | None = None
        if referral_code and referral_code.strip():
            sponsor = await self.resolve_referral_code(referral_code)
            if not sponsor:
                raise SponsorAssignmentError(
                    f"Sponsor not found for referral code '{referral_code}'"
                )

        user = await self.user_repo.create(
            name=name.strip(),
            email=normalized_email,
            ibo_number=await self.generate_ibo_number(),
            sponsor_number=await self.generate_sponsor_number(),
            role=role,
            status=UserStatus.ACTIVE,
            sponsor_id=sponsor.id if sponsor else None,
            **profile,
        )

        logger.info(
            "User registered",
            extra={
                "user_id": user.id,
                "ibo_number": user.ibo_number,
                "sponsor_id": user.sponsor_id,
            },
        )
        return user
