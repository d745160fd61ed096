"""
Sponsor chain management module.

Handles ancestor resolution over the sponsor forest, sponsor assignment,
and downline queries.
"""

from collections.abc import Mapping
from dataclasses import dataclass

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.business_constants import COMMISSION_DEPTH
from commission_engine.models.enums import UserStatus
from commission_engine.models.user import User
from commission_engine.repositories.user_repository import UserRepository
from commission_engine.utils.exceptions import (
    EntityNotFoundError,
    SponsorAssignmentError,
    SponsorGraphCorruptionError,
)


@dataclass(frozen=True)
class SponsorLink:
    """One ancestor of a purchasing user."""

    user_id: int
    level: int
    is_active: bool = True


@dataclass(frozen=True)
class SponsorNode:
    """Flat sponsor-table entry: a user's parent pointer and status."""

    sponsor_id: int | None
    is_active: bool = True


def resolve_ancestors(
    user_id: int,
    nodes: Mapping[int, SponsorNode],
    depth: int = COMMISSION_DEPTH,
) -> list[SponsorLink]:
    """
    Walk up to `depth` sponsors from a user.

    Level 1 is the direct sponsor. The walk stops early at a root
    (no sponsor, or a sponsor missing from `nodes`).

    Args:
        user_id: Purchasing user ID
        nodes: Flat table of user_id -> SponsorNode
        depth: Maximum number of levels

    Returns:
        Ancestors ordered closest first

    Raises:
        SponsorGraphCorruptionError: If the walk revisits a user
    """
    chain: list[SponsorLink] = []
    visited = [user_id]
    node = nodes.get(user_id)

    while node is not None and node.sponsor_id is not None and len(chain) < depth:
        sponsor_id = node.sponsor_id
        if sponsor_id in visited:
            raise SponsorGraphCorruptionError(sponsor_id, visited + [sponsor_id])

        sponsor_node = nodes.get(sponsor_id)
        chain.append(
            SponsorLink(
                user_id=sponsor_id,
                level=len(chain) + 1,
                is_active=sponsor_node.is_active if sponsor_node else True,
            )
        )
        visited.append(sponsor_id)
        node = sponsor_node

    return chain


class SponsorChainManager:
    """Manages sponsor chain operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize chain manager."""
        self.session = session
        self.user_repo = UserRepository(session)

    async def get_ancestor_chain(
        self, user_id: int, depth: int = COMMISSION_DEPTH
    ) -> list[SponsorLink]:
        """
        Get the ordered chain of up to `depth` sponsors of a user.

        Reads one parent pointer per level (bounded, iterative) and
        delegates the walk semantics to resolve_ancestors.

        Args:
            user_id: Purchasing user ID
            depth: Chain depth to retrieve

        Returns:
            Ancestors ordered closest first (level 1 = direct sponsor)

        Raises:
            EntityNotFoundError: If the user does not exist
            SponsorGraphCorruptionError: If a cycle is detected
        """
        nodes: dict[int, SponsorNode] = {}
        current: int | None = user_id

        # depth + 1 reads: the purchaser plus one per ancestor level
        for _ in range(depth + 1):
            if current is None or current in nodes:
                break

            link = await self.user_repo.get_sponsor_link(current)
            if link is None:
                if current == user_id:
                    raise EntityNotFoundError("User", user_id)
                break

            nodes[current] = SponsorNode(
                sponsor_id=link.sponsor_id,
                is_active=link.status == UserStatus.ACTIVE,
            )
            current = link.sponsor_id

        try:
            chain = resolve_ancestors(user_id, nodes, depth)
        except SponsorGraphCorruptionError as e:
            logger.error(
                "Sponsor graph corruption detected",
                extra={"user_id": user_id, "walk": e.chain},
            )
            raise

        logger.debug(
            "Sponsor chain retrieved",
            extra={
                "user_id": user_id,
                "depth": depth,
                "chain_length": len(chain),
            },
        )

        return chain

    async def assign_sponsor(self, user_id: int, sponsor_id: int) -> User:
        """
        Set or change a user's direct sponsor.

        Rejects self-sponsorship, unknown sponsors, and any assignment that
        would make the user its own ancestor. Does not commit.

        Args:
            user_id: User being placed
            sponsor_id: New direct sponsor

        Returns:
            Updated user

        Raises:
            EntityNotFoundError: If user does not exist
            SponsorAssignmentError: If the assignment is not allowed
        """
        if user_id == sponsor_id:
            raise SponsorAssignmentError("A user cannot sponsor themselves")

        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise EntityNotFoundError("User", user_id)

        sponsor = await self.user_repo.get_by_id(sponsor_id)
        if not sponsor:
            raise SponsorAssignmentError(f"Sponsor {sponsor_id} not found")

        # Walk the sponsor's full ancestry; the user must not appear in it
        seen = {sponsor_id}
        current = sponsor.sponsor_id
        while current is not None:
            if current == user_id:
                logger.warning(
                    "Sponsor loop rejected",
                    extra={"user_id": user_id, "sponsor_id": sponsor_id},
                )
                raise SponsorAssignmentError(
                    "Assignment would create a circular sponsor chain"
                )
            if current in seen:
                raise SponsorGraphCorruptionError(current, sorted(seen))
            seen.add(current)

            link = await self.user_repo.get_sponsor_link(current)
            current = link.sponsor_id if link else None

        user.sponsor_id = sponsor_id
        await self.session.flush()

        logger.info(
            "Sponsor assigned",
            extra={"user_id": user_id, "sponsor_id": sponsor_id},
        )
        return user

    async def get_downline(
        self, user_id: int, depth: int = COMMISSION_DEPTH
    ) -> dict[int, list[int]]:
        """
        Get a user's recruits by level, breadth first.

        Args:
            user_id: Sponsor user ID
            depth: Number of levels to return

        Returns:
            Dict mapping level to recruit user IDs {1: [...], 2: [...], ...}
        """
        downline: dict[int, list[int]] = {}
        seen = {user_id}
        frontier = [user_id]

        for level in range(1, depth + 1):
            rows = await self.user_repo.get_recruit_ids(frontier)
            frontier = [row.id for row in rows if row.id not in seen]
            seen.update(frontier)
            downline[level] = frontier

        return downline
