"""
Proposed-date ledger operations.

The ledger holds the candidate windows of one event request. It is
written at request creation (provider-offered windows), replaced wholesale
when the individual submits candidates, and touched once more at
confirmation to mark the chosen window. Functions here never commit;
the caller owns the transaction.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from case_scheduler.models.base import to_utc
from case_scheduler.models.event_requests import ProposedDate


@dataclass(frozen=True)
class TimeWindow:
    """
    A caller-supplied start/end pair, normalized to UTC.

    Naive values are taken as UTC; offset values are converted, so two
    windows always compare by instant.
    """

    start_time: datetime
    end_time: datetime

    def __post_init__(self):
        object.__setattr__(self, "start_time", to_utc(self.start_time))
        object.__setattr__(self, "end_time", to_utc(self.end_time))


async def insert_dates(
    session: AsyncSession,
    event_request_id: UUID,
    windows: Sequence[TimeWindow],
    proposed_by: Optional[str] = None,
) -> list[ProposedDate]:
    """
    Append candidate windows to a request's ledger.

    Args:
        session: Database session
        event_request_id: Parent event request
        windows: Windows to insert, in caller order
        proposed_by: 'provider' for provider-offered windows, None otherwise

    Returns:
        The inserted rows (flushed, IDs assigned)
    """
    rows = [
        ProposedDate(
            event_request_id=event_request_id,
            start_time=window.start_time,
            end_time=window.end_time,
            proposed_by=proposed_by,
            is_selected=False,
        )
        for window in windows
    ]
    session.add_all(rows)
    await session.flush()
    return rows


async def replace_dates(
    session: AsyncSession,
    event_request_id: UUID,
    windows: Sequence[TimeWindow],
    proposed_by: Optional[str] = None,
) -> list[ProposedDate]:
    """Delete every window on the request's ledger, then insert the new set."""
    await session.execute(
        delete(ProposedDate).where(ProposedDate.event_request_id == event_request_id)
    )
    return await insert_dates(session, event_request_id, windows, proposed_by)


async def get_date(
    session: AsyncSession,
    event_request_id: UUID,
    proposed_date_id: UUID,
) -> Optional[ProposedDate]:
    """Get one window, only if it belongs to the given request."""
    stmt = select(ProposedDate).where(
        ProposedDate.id == proposed_date_id,
        ProposedDate.event_request_id == event_request_id,
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def mark_selected(
    session: AsyncSession,
    event_request_id: UUID,
    proposed_date_id: UUID,
) -> int:
    """
    Flag the chosen window as selected and clear the flag on its siblings.

    Returns:
        Number of rows selected (0 if the window is not on this request's
        ledger, in which case nothing is changed)
    """
    result = await session.execute(
        update(ProposedDate)
        .where(
            ProposedDate.id == proposed_date_id,
            ProposedDate.event_request_id == event_request_id,
        )
        .values(is_selected=True)
    )
    if result.rowcount == 0:
        return 0

    await session.execute(
        update(ProposedDate)
        .where(
            ProposedDate.event_request_id == event_request_id,
            ProposedDate.id != proposed_date_id,
            ProposedDate.is_selected.is_(True),
        )
        .values(is_selected=False)
    )
    return result.rowcount


async def list_dates(
    session: AsyncSession,
    event_request_id: UUID,
) -> Sequence[ProposedDate]:
    """List a request's windows, earliest start first."""
    stmt = (
        select(ProposedDate)
        .where(ProposedDate.event_request_id == event_request_id)
        .order_by(ProposedDate.start_time, ProposedDate.created_at)
    )
    result = await session.execute(stmt)
    return result.scalars().all()
