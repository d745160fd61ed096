"""
Integration tests for registration and the sponsor forest.
"""

import re
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select

from commission_engine.config.business_constants import IDENTIFIER_MAX_ATTEMPTS
from commission_engine.models import User, UserStatus
from commission_engine.services.sponsorship import (
    SponsorChainManager,
    SponsorLink,
    UserRegistrationService,
)
from commission_engine.utils.exceptions import (
    EntityNotFoundError,
    SponsorAssignmentError,
    UserRegistrationError,
)


class TestRegistration:
    """Test user registration with referral codes."""

    @pytest.mark.asyncio
    async def test_root_user(self, session):
        """Users without a referral code are roots."""
        user = await UserRegistrationService(session).register_user(
            "Jane Doe", " Jane@Example.com "
        )

        assert user.sponsor_id is None
        assert user.email == "jane@example.com"
        assert user.status == UserStatus.ACTIVE
        assert re.fullmatch(r"IBO-[0-9A-Z]{8}", user.ibo_number)
        assert re.fullmatch(r"SP-[0-9A-Z]{6}", user.sponsor_number)

    @pytest.mark.asyncio
    async def test_referral_by_ibo_number(self, session, factory):
        """An IBO number places the user under its owner."""
        sponsor = await factory.user("Sponsor")

        user = await UserRegistrationService(session).register_user(
            "Recruit", "recruit@example.com", referral_code=sponsor.ibo_number
        )

        assert user.sponsor_id == sponsor.id

    @pytest.mark.asyncio
    async def test_referral_by_link_slug(self, session, factory):
        """Referral link slugs resolve through their trailing identifier."""
        sponsor = await factory.user("Sponsor")

        user = await UserRegistrationService(session).register_user(
            "Recruit",
            "recruit@example.com",
            referral_code=f"sponsor-name-{sponsor.ibo_number.lower()}",
        )

        assert user.sponsor_id == sponsor.id

    @pytest.mark.asyncio
    async def test_referral_by_sponsor_number(self, session, factory):
        """Sponsor numbers are accepted as referral codes."""
        sponsor = await factory.user("Sponsor")

        user = await UserRegistrationService(session).register_user(
            "Recruit", "recruit@example.com", referral_code=sponsor.sponsor_number
        )

        assert user.sponsor_id == sponsor.id

    @pytest.mark.asyncio
    async def test_unknown_referral_code(self, session, session_maker):
        """Unknown codes are rejected and nothing is stored."""
        with pytest.raises(SponsorAssignmentError):
            await UserRegistrationService(session).register_user(
                "Recruit", "recruit@example.com", referral_code="IBO-NOPE0000"
            )

        async with session_maker() as fresh:
            assert await fresh.scalar(select(func.count(User.id))) == 0

    @pytest.mark.asyncio
    async def test_resolve_referral_code(self, session, factory):
        """Codes resolve case-insensitively; unknown codes give None."""
        sponsor = await factory.user("Sponsor")
        service = UserRegistrationService(session)

        by_ibo = await service.resolve_referral_code(
            f"  {sponsor.ibo_number.lower()} "
        )
        by_sponsor_number = await service.resolve_referral_code(
            f"sponsor-{sponsor.sponsor_number.lower()}"
        )

        assert by_ibo.id == sponsor.id
        assert by_sponsor_number.id == sponsor.id
        assert await service.resolve_referral_code("IBO-NOPE0000") is None
        assert await service.resolve_referral_code("   ") is None

    @pytest.mark.asyncio
    async def test_profile_fields(self, session):
        """Optional banking and address fields are stored."""
        user = await UserRegistrationService(session).register_user(
            "Jane",
            "jane@example.com",
            phone="+27 82 000 0000",
            bank_name="First Bank",
            bank_account_number="62000000001",
            bank_account_holder="Jane",
            city="Durban",
        )

        assert user.city == "Durban"
        assert user.has_banking_details is True

    @pytest.mark.asyncio
    async def test_duplicate_email(self, session, factory):
        """Emails are unique regardless of case."""
        existing = await factory.user("Jane")

        with pytest.raises(UserRegistrationError):
            await UserRegistrationService(session).register_user(
                "Other Jane", existing.email.upper()
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "name,email", [("", "a@example.com"), ("Jane", "not-an-email")]
    )
    async def test_invalid_input(self, session, name, email):
        """Empty names and malformed emails are rejected."""
        with pytest.raises(UserRegistrationError):
            await UserRegistrationService(session).register_user(name, email)

    @pytest.mark.asyncio
    async def test_identifier_fallback(self, session):
        """After repeated collisions a timestamp identifier is used."""
        service = UserRegistrationService(session)
        service.user_repo.ibo_number_exists = AsyncMock(return_value=True)

        identifier = await service.generate_ibo_number()

        assert identifier.startswith("IBO-")
        assert (
            service.user_repo.ibo_number_exists.await_count
            == IDENTIFIER_MAX_ATTEMPTS
        )


class TestSponsorChain:
    """Test ancestor resolution against stored users."""

    @pytest.mark.asyncio
    async def test_ancestor_chain(self, session, factory):
        """Chain is ordered closest first and capped at three."""
        users = await factory.chain("U1", "U2", "U3", "U4", "U5")

        chain = await SponsorChainManager(session).get_ancestor_chain(
            users[-1].id
        )

        assert chain == [
            SponsorLink(users[3].id, 1),
            SponsorLink(users[2].id, 2),
            SponsorLink(users[1].id, 3),
        ]

    @pytest.mark.asyncio
    async def test_inactive_sponsor_flag(self, session, factory):
        """Sponsor status is read with the chain."""
        sponsor = await factory.user("Sponsor", status=UserStatus.INACTIVE)
        buyer = await factory.user("Buyer", sponsor=sponsor)

        chain = await SponsorChainManager(session).get_ancestor_chain(buyer.id)

        assert chain == [SponsorLink(sponsor.id, 1, is_active=False)]

    @pytest.mark.asyncio
    async def test_unknown_user(self, session):
        """Unknown purchasers raise EntityNotFoundError."""
        with pytest.raises(EntityNotFoundError):
            await SponsorChainManager(session).get_ancestor_chain(404)

    @pytest.mark.asyncio
    async def test_downline(self, session, factory):
        """Recruits are grouped by level."""
        root = await factory.user("Root")
        left = await factory.user("Left", sponsor=root)
        right = await factory.user("Right", sponsor=root)
        grandchild = await factory.user("Grandchild", sponsor=left)

        downline = await SponsorChainManager(session).get_downline(root.id)

        assert downline == {1: [left.id, right.id], 2: [grandchild.id], 3: []}


class TestSponsorAssignment:
    """Test sponsor changes keep the forest acyclic."""

    @pytest.mark.asyncio
    async def test_reassign(self, session, session_maker, factory):
        """A valid assignment moves the user."""
        old_sponsor = await factory.user("Old")
        new_sponsor = await factory.user("New")
        user = await factory.user("User", sponsor=old_sponsor)

        await SponsorChainManager(session).assign_sponsor(user.id, new_sponsor.id)
        await session.commit()

        async with session_maker() as fresh:
            assert (await fresh.get(User, user.id)).sponsor_id == new_sponsor.id

    @pytest.mark.asyncio
    async def test_self_sponsorship(self, session, factory):
        """Users cannot sponsor themselves."""
        user = await factory.user("User")

        with pytest.raises(SponsorAssignmentError):
            await SponsorChainManager(session).assign_sponsor(user.id, user.id)

    @pytest.mark.asyncio
    async def test_loop_is_rejected(self, session, factory):
        """A user cannot be placed under its own downline."""
        a, b, c = await factory.chain("A", "B", "C")

        with pytest.raises(SponsorAssignmentError):
            await SponsorChainManager(session).assign_sponsor(a.id, c.id)

    @pytest.mark.asyncio
    async def test_unknown_sponsor(self, session, factory):
        """Sponsors must exist."""
        user = await factory.user("User")

        with pytest.raises(SponsorAssignmentError):
            await SponsorChainManager(session).assign_sponsor(user.id, 404)

    @pytest.mark.asyncio
    async def test_unknown_user(self, session, factory):
        """Users must exist."""
        sponsor = await factory.user("Sponsor")

        with pytest.raises(EntityNotFoundError):
            await SponsorChainManager(session).assign_sponsor(404, sponsor.id)
