"""
Commission rate table.

RateTable is an immutable snapshot of the active rate per level. Generation
receives a snapshot instead of reading configuration through global state,
so a generation run is a pure function of (order, sponsor chain, rates).
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType

from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.business_constants import (
    COMMISSION_LEVELS,
    DEFAULT_COMMISSION_RATES,
)
from commission_engine.models.commission_rate import CommissionRate
from commission_engine.repositories.commission_rate_repository import (
    CommissionRateRepository,
)
from commission_engine.services.base_service import BaseService
from commission_engine.utils.datetime_utils import ensure_utc
from commission_engine.utils.db_decorators import with_auto_commit
from commission_engine.validators.commission import (
    validate_level,
    validate_percentage,
)


def _recency(row: CommissionRate) -> tuple:
    return (ensure_utc(row.updated_at), row.id or 0)


def _authoritative_row(rows: list[CommissionRate]) -> CommissionRate:
    """Newest active row of a level, else its newest row."""
    return next((row for row in rows if row.is_active), rows[0])


@dataclass(frozen=True)
class RateTable:
    """Active commission rate per level at one point in time."""

    rates: Mapping[int, Decimal] = field(default_factory=dict)

    def __post_init__(self) -> None:
        validated = {
            validate_level(level): validate_percentage(level, percentage)
            for level, percentage in self.rates.items()
        }
        object.__setattr__(self, "rates", MappingProxyType(validated))

    @classmethod
    def default(cls) -> "RateTable":
        """Snapshot of the default seed rates."""
        return cls(dict(DEFAULT_COMMISSION_RATES))

    @classmethod
    def from_rows(cls, rows: Iterable[CommissionRate]) -> "RateTable":
        """
        Build a snapshot from rate rows.

        Inactive rows are ignored. If a level has several active rows,
        the most recently updated one wins.

        Args:
            rows: Rate rows in any order

        Returns:
            RateTable snapshot
        """
        latest: dict[int, CommissionRate] = {}
        for row in rows:
            if not row.is_active:
                continue
            current = latest.get(row.level)
            if current is None or _recency(row) > _recency(current):
                latest[row.level] = row

        return cls({level: row.percentage for level, row in latest.items()})

    def rate_for(self, level: int) -> Decimal | None:
        """
        Get the active rate for a level.

        Args:
            level: Sponsor level

        Returns:
            Rate as a fraction, or None if the level pays no commission
        """
        return self.rates.get(level)

    @property
    def active_levels(self) -> list[int]:
        """Levels that currently pay commission."""
        return sorted(self.rates)


class CommissionRateService(BaseService):
    """Reads and edits the commission rate configuration."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize rate service."""
        super().__init__(session)
        self.rate_repo = CommissionRateRepository(session)

    async def get_rate_table(self) -> RateTable:
        """
        Take a snapshot of the currently active rates.

        Returns:
            RateTable snapshot
        """
        rows = await self.rate_repo.get_active_rates()
        return RateTable.from_rows(rows)

    async def list_rates(self) -> list[CommissionRate]:
        """
        Get all rate rows for the settings screen.

        Returns:
            Rate rows ordered by level
        """
        return await self.rate_repo.get_all_ordered()

    @with_auto_commit
    async def update_rate(
        self,
        level: int,
        percentage: Decimal | float | str | None = None,
        is_active: bool | None = None,
    ) -> CommissionRate:
        """
        Update the authoritative rate row of a level.

        Creates the row if the level has none yet.

        Args:
            level: Sponsor level (1-3)
            percentage: New rate as a fraction, unchanged if None
            is_active: New active flag, unchanged if None

        Returns:
            Updated rate row

        Raises:
            RateConfigurationError: If level or percentage is invalid
        """
        validate_level(level)
        new_percentage = (
            validate_percentage(level, percentage)
            if percentage is not None
            else None
        )

        rows = await self.rate_repo.get_by_level(level)
        if not rows:
            rate = await self.rate_repo.create(
                level=level,
                percentage=(
                    new_percentage
                    if new_percentage is not None
                    else DEFAULT_COMMISSION_RATES[level]
                ),
                is_active=True if is_active is None else is_active,
            )
        else:
            rate = _authoritative_row(rows)
            if new_percentage is not None:
                rate.percentage = new_percentage
            if is_active is False:
                # any remaining active row would keep the level paying
                for row in rows:
                    row.is_active = False
            elif is_active:
                rate.is_active = True
            await self.session.flush()

        self.logger.info(
            "Commission rate updated",
            extra={
                "level": level,
                "percentage": str(rate.percentage),
                "is_active": rate.is_active,
            },
        )
        return rate

    @with_auto_commit
    async def reset_to_defaults(self) -> list[CommissionRate]:
        """
        Restore default percentage and active flag for levels 1-3.

        Existing rows are updated in place (identifiers are preserved);
        missing levels are created.

        Returns:
            Authoritative rate row per level
        """
        result = []
        for level in COMMISSION_LEVELS:
            default = DEFAULT_COMMISSION_RATES[level]
            rows = await self.rate_repo.get_by_level(level)

            if rows:
                rate = _authoritative_row(rows)
                rate.percentage = default
                rate.is_active = True
            else:
                rate = await self.rate_repo.create(
                    level=level, percentage=default, is_active=True
                )
            result.append(rate)

        await self.session.flush()

        self.logger.info(
            "Commission rates reset to defaults",
            extra={"levels": list(COMMISSION_LEVELS)},
        )
        return result
