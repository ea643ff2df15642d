"""
Identity, connection and display-name lookups.

Provides:
- Caller: verified identity of the account acting on a request
- Connection queries backing the provider-individual gate
- Display-name resolution with a generic fallback
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from case_scheduler.models.accounts import Account, ProviderConnection
from case_scheduler.models.enums import ConnectionStatus, ProviderKind, Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Caller:
    """Account performing an action, resolved once at the request boundary."""

    user_id: UUID
    role: Role

    @property
    def is_provider(self) -> bool:
        return self.role.is_provider

    @property
    def provider_kind(self) -> ProviderKind:
        return self.role.provider_kind


# =============================================================================
# Connection Queries
# =============================================================================


async def is_connected(
    session: AsyncSession,
    provider_kind: ProviderKind,
    provider_id: UUID,
    individual_id: UUID,
) -> bool:
    """
    Check that a provider has an accepted connection to an individual.

    Args:
        session: Database session
        provider_kind: Law firm or medical provider
        provider_id: Provider account ID
        individual_id: Client or patient account ID

    Returns:
        True if an accepted connection exists
    """
    stmt = (
        select(ProviderConnection.id)
        .where(
            ProviderConnection.provider_kind == provider_kind,
            ProviderConnection.provider_id == provider_id,
            ProviderConnection.individual_id == individual_id,
            ProviderConnection.status == ConnectionStatus.ACCEPTED,
        )
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none() is not None


async def get_connected_providers(
    session: AsyncSession,
    individual_id: UUID,
    provider_kind: ProviderKind,
    exclude: Optional[UUID] = None,
) -> Sequence[UUID]:
    """
    List providers of one kind that an individual is connected to.

    Args:
        session: Database session
        individual_id: Client or patient account ID
        provider_kind: Kind of provider to enumerate
        exclude: Provider ID to leave out (usually the confirming provider)

    Returns:
        Provider account IDs with an accepted connection
    """
    stmt = select(ProviderConnection.provider_id).where(
        ProviderConnection.individual_id == individual_id,
        ProviderConnection.provider_kind == provider_kind,
        ProviderConnection.status == ConnectionStatus.ACCEPTED,
    )
    if exclude is not None:
        stmt = stmt.where(ProviderConnection.provider_id != exclude)

    result = await session.execute(stmt.order_by(ProviderConnection.created_at))
    return result.scalars().all()


# =============================================================================
# Display Names
# =============================================================================


async def get_display_names(
    session: AsyncSession,
    account_ids: Sequence[UUID],
) -> dict[UUID, str]:
    """Map account IDs to their display names (accounts without a name are omitted)."""
    if not account_ids:
        return {}

    stmt = select(Account.id, Account.display_name).where(Account.id.in_(set(account_ids)))
    result = await session.execute(stmt)
    return {account_id: name for account_id, name in result.all() if name}


class DisplayNameResolver:
    """
    Resolves provider names for notifications and calendar titles.

    Falls back to a generic label when the account is unknown or unnamed.
    """

    def __init__(self, fallback: str):
        self.fallback = fallback

    async def resolve(self, session: AsyncSession, account_id: UUID) -> str:
        names = await get_display_names(session, [account_id])
        name = names.get(account_id)
        if not name:
            logger.debug(f"No display name for account {account_id}, using fallback")
            return self.fallback
        return name
