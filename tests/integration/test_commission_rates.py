"""
Integration tests for commission rate configuration.
"""

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from sqlalchemy import select

from commission_engine.models import Commission, CommissionRate
from commission_engine.services.commission import (
    CommissionGenerationService,
    CommissionRateService,
)
from commission_engine.utils.exceptions import RateConfigurationError


class TestRateConfiguration:
    """Test admin rate edits."""

    @pytest.mark.asyncio
    async def test_list_rates(self, session, default_rates):
        """All levels are listed in order."""
        rates = await CommissionRateService(session).list_rates()

        assert [(r.level, r.percentage) for r in rates] == [
            (1, Decimal("0.10")),
            (2, Decimal("0.05")),
            (3, Decimal("0.02")),
        ]

    @pytest.mark.asyncio
    async def test_update_percentage(self, session, default_rates):
        """Updated percentages appear in the next snapshot."""
        service = CommissionRateService(session)

        await service.update_rate(1, percentage="0.12")
        table = await service.get_rate_table()

        assert table.rate_for(1) == Decimal("0.12")

    @pytest.mark.asyncio
    async def test_deactivate_level(self, session, default_rates):
        """Inactive levels are missing from the snapshot."""
        service = CommissionRateService(session)

        await service.update_rate(2, is_active=False)
        table = await service.get_rate_table()

        assert table.active_levels == [1, 3]

    @pytest.mark.asyncio
    async def test_missing_level_is_created(self, session):
        """Editing an unconfigured level creates it."""
        rate = await CommissionRateService(session).update_rate(
            1, percentage="0.08"
        )

        assert rate.id is not None
        assert rate.percentage == Decimal("0.08")
        assert rate.is_active is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "level,percentage", [(1, "1.5"), (1, "-0.1"), (4, "0.01"), (0, "0.01")]
    )
    async def test_invalid_rate_is_rejected(
        self, session, default_rates, level, percentage
    ):
        """Invalid rates fail at write time and change nothing."""
        service = CommissionRateService(session)

        with pytest.raises(RateConfigurationError):
            await service.update_rate(level, percentage=percentage)

        table = await service.get_rate_table()
        assert table.rate_for(1) == Decimal("0.10")

    @pytest.mark.asyncio
    async def test_reset_to_defaults_keeps_ids(self, session, default_rates):
        """Reset restores values in place."""
        service = CommissionRateService(session)
        ids = [r.id for r in default_rates]
        await service.update_rate(1, percentage="0.50")
        await service.update_rate(3, is_active=False)

        rates = await service.reset_to_defaults()

        assert [r.id for r in rates] == ids
        assert [(r.percentage, r.is_active) for r in rates] == [
            (Decimal("0.10"), True),
            (Decimal("0.05"), True),
            (Decimal("0.02"), True),
        ]

    @pytest.mark.asyncio
    async def test_rate_change_does_not_touch_ledger(
        self, session, session_maker, factory, default_rates
    ):
        """Existing entries keep the rate they were generated with."""
        sponsor, buyer = await factory.chain("Sponsor", "Buyer")
        order = await factory.order(buyer, "1000.00")
        await CommissionGenerationService(session).generate_for_order(order.id)

        await CommissionRateService(session).update_rate(1, percentage="0.20")

        async with session_maker() as fresh:
            entry = await fresh.scalar(
                select(Commission).where(Commission.order_id == order.id)
            )
        assert entry.rate == Decimal("0.10")
        assert entry.commission_amount == Decimal("100.00")


class TestSeveralRowsPerLevel:
    """Test edits on levels that carry more than one rate row."""

    @staticmethod
    async def add_rows(session, level, *rows):
        """Add (percentage, is_active, updated_at) rows for one level."""
        records = [
            CommissionRate(
                level=level,
                percentage=Decimal(percentage),
                is_active=is_active,
                created_at=updated_at,
                updated_at=updated_at,
            )
            for percentage, is_active, updated_at in rows
        ]
        session.add_all(records)
        await session.commit()
        return records

    @pytest.mark.asyncio
    async def test_edit_targets_active_row(self, session):
        """A newer inactive row does not capture the edit."""
        active, inactive = await self.add_rows(
            session,
            1,
            ("0.10", True, datetime(2024, 1, 1, tzinfo=UTC)),
            ("0.20", False, datetime(2024, 6, 1, tzinfo=UTC)),
        )
        service = CommissionRateService(session)

        rate = await service.update_rate(1, percentage="0.12")
        table = await service.get_rate_table()

        assert rate.id == active.id
        assert table.rate_for(1) == Decimal("0.12")
        assert inactive.percentage == Decimal("0.20")

    @pytest.mark.asyncio
    async def test_deactivate_disables_every_active_row(
        self, session, session_maker
    ):
        """Deactivating a level leaves no active row behind."""
        await self.add_rows(
            session,
            2,
            ("0.05", True, datetime(2024, 1, 1, tzinfo=UTC)),
            ("0.06", True, datetime(2024, 6, 1, tzinfo=UTC)),
        )

        await CommissionRateService(session).update_rate(2, is_active=False)

        async with session_maker() as fresh:
            table = await CommissionRateService(fresh).get_rate_table()
        assert table.rate_for(2) is None

    @pytest.mark.asyncio
    async def test_activate_uses_newest_row(self, session):
        """Without an active row, the newest row is reactivated."""
        _, newest = await self.add_rows(
            session,
            3,
            ("0.02", False, datetime(2024, 1, 1, tzinfo=UTC)),
            ("0.03", False, datetime(2024, 6, 1, tzinfo=UTC)),
        )
        service = CommissionRateService(session)

        rate = await service.update_rate(3, is_active=True)
        table = await service.get_rate_table()

        assert rate.id == newest.id
        assert table.rate_for(3) == Decimal("0.03")
