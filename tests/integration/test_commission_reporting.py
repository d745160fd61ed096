"""
Integration tests for commission reporting views.
"""

from decimal import Decimal

import pytest
import pytest_asyncio

from commission_engine.models import CommissionStatus
from commission_engine.services.commission import (
    CommissionGenerationService,
    CommissionReportingService,
    PayoutSettlementService,
)


@pytest_asyncio.fixture
async def network(session, factory, default_rates):
    """
    Alice sponsors Bob, Bob sponsors Carol.

    Carol orders 1000.00 (Bob 100.00 L1, Alice 50.00 L2), then Bob orders
    200.00 (Alice 20.00 L1).
    """
    alice = await factory.user(
        "Alice",
        bank_name="First Bank",
        bank_account_number="62000000001",
        bank_account_holder="Alice",
    )
    bob = await factory.user("Bob", sponsor=alice)
    carol = await factory.user("Carol", sponsor=bob)

    generation = CommissionGenerationService(session)
    carol_order = await factory.order(carol, "1000.00")
    await generation.generate_for_order(carol_order.id)
    bob_order = await factory.order(bob, "200.00")
    bob_result = await generation.generate_for_order(bob_order.id)

    return {
        "alice": alice,
        "bob": bob,
        "carol": carol,
        "carol_order": carol_order,
        "bob_order": bob_order,
        "alice_l1": bob_result.commissions[0],
    }


class TestUserPayables:
    """Test the pay-all view."""

    @pytest.mark.asyncio
    async def test_grouped_by_user_largest_first(self, session, network):
        """Pending totals are grouped per earner and sorted descending."""
        payables = await CommissionReportingService(session).get_user_payables()

        assert [(p.user_id, p.pending_count, p.pending_total) for p in payables] == [
            (network["bob"].id, 1, Decimal("100.00")),
            (network["alice"].id, 2, Decimal("70.00")),
        ]

    @pytest.mark.asyncio
    async def test_includes_banking_details(self, session, network):
        """Banking details are included for payout."""
        payables = await CommissionReportingService(session).get_user_payables()
        alice = next(p for p in payables if p.user_id == network["alice"].id)

        assert alice.bank_name == "First Bank"
        assert alice.bank_account_number == "62000000001"
        assert alice.ibo_number == network["alice"].ibo_number
        assert alice.first_pending_at <= alice.last_pending_at
        assert alice.first_pending_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_paid_users_drop_out(self, session, network):
        """Once settled, a user no longer appears."""
        await PayoutSettlementService(session).pay_user_commissions(
            network["bob"].id
        )

        payables = await CommissionReportingService(session).get_user_payables()

        assert [p.user_id for p in payables] == [network["alice"].id]


class TestCommissionHistory:
    """Test per-user history."""

    @pytest.mark.asyncio
    async def test_newest_first_with_order_and_purchaser(self, session, network):
        """History joins the order and the purchasing user."""
        history = await CommissionReportingService(
            session
        ).get_user_commission_history(network["alice"].id)

        assert [(h.level, h.commission_amount, h.customer_name) for h in history] == [
            (1, Decimal("20.00"), "Bob"),
            (2, Decimal("50.00"), "Carol"),
        ]
        assert history[1].order_number == network["carol_order"].order_number
        assert history[1].order_total == Decimal("1000.00")

    @pytest.mark.asyncio
    async def test_filters(self, session, network):
        """Status and level filters narrow the history."""
        service = CommissionReportingService(session)
        await PayoutSettlementService(session).mark_commission_paid(
            network["alice_l1"].id
        )

        by_level = await service.get_user_commission_history(
            network["alice"].id, level=2
        )
        paid = await service.get_user_commission_history(
            network["alice"].id, status=CommissionStatus.PAID
        )

        assert [h.customer_name for h in by_level] == ["Carol"]
        assert [h.id for h in paid] == [network["alice_l1"].id]
        assert paid[0].paid_at is not None

    @pytest.mark.asyncio
    async def test_user_without_entries(self, session, network):
        """Purchasers at the bottom have no history."""
        history = await CommissionReportingService(
            session
        ).get_user_commission_history(network["carol"].id)

        assert history == []


class TestEarningsAndStats:
    """Test summaries."""

    @pytest.mark.asyncio
    async def test_earnings_summary(self, session, network):
        """Totals split by status and level."""
        await PayoutSettlementService(session).mark_commission_paid(
            network["alice_l1"].id
        )

        summary = await CommissionReportingService(session).get_earnings_summary(
            network["alice"].id
        )

        assert summary.entry_count == 2
        assert summary.total_earnings == Decimal("70.00")
        assert summary.pending_earnings == Decimal("50.00")
        assert summary.paid_earnings == Decimal("20.00")
        assert summary.by_level == {
            1: Decimal("20.00"),
            2: Decimal("50.00"),
            3: Decimal("0.00"),
        }

    @pytest.mark.asyncio
    async def test_empty_summary(self, session, network):
        """Users without entries get zeros for every level."""
        summary = await CommissionReportingService(session).get_earnings_summary(
            network["carol"].id
        )

        assert summary.total_earnings == Decimal("0.00")
        assert summary.by_level == {1: 0, 2: 0, 3: 0}

    @pytest.mark.asyncio
    async def test_platform_stats(self, session, network):
        """Platform-wide counts and amounts."""
        await PayoutSettlementService(session).pay_user_commissions(
            network["bob"].id
        )

        stats = await CommissionReportingService(session).get_commission_stats()

        assert stats.total_count == 3
        assert stats.pending_count == 2
        assert stats.paid_count == 1
        assert stats.total_pending_amount == Decimal("70.00")
        assert stats.total_paid_amount == Decimal("100.00")
        assert stats.count_by_level == {1: 2, 2: 1, 3: 0}


class TestListCommissions:
    """Test the admin listing."""

    @pytest.mark.asyncio
    async def test_search_by_earner_name(self, session, network):
        """Search matches the earner's name, case-insensitively."""
        entries, total = await CommissionReportingService(
            session
        ).list_commissions(search="BOB")

        assert total == 1
        assert entries[0].user_id == network["bob"].id
        assert entries[0].user_name == "Bob"

    @pytest.mark.asyncio
    async def test_search_by_order_number(self, session, network):
        """Search matches the order number."""
        order_number = network["carol_order"].order_number

        entries, total = await CommissionReportingService(
            session
        ).list_commissions(search=order_number.lower())

        assert total == 2
        assert {e.order_number for e in entries} == {order_number}

    @pytest.mark.asyncio
    async def test_filters_and_paging(self, session, network):
        """Level filter and pagination report the full match count."""
        service = CommissionReportingService(session)

        level_one, level_one_total = await service.list_commissions(level=1)
        page, total = await service.list_commissions(limit=1, offset=1)

        assert level_one_total == 2
        assert {e.level for e in level_one} == {1}
        assert total == 3
        assert len(page) == 1
