"""
Calendar fan-out for confirmed negotiations.

Materializes one agreed appointment into independent calendar entries
for the provider and the individual, and grants read-only visibility
to the other parties involved.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from case_scheduler.models.calendar import CalendarEvent, SharedCalendarEvent
from case_scheduler.models.enums import Role
from case_scheduler.models.event_requests import EventRequest, ProposedDate
from case_scheduler.services.identity import get_connected_providers

logger = logging.getLogger(__name__)

# Owner / grantee column per role
_OWNER_COLUMNS = {
    Role.LAW_FIRM: "law_firm_id",
    Role.MEDICAL_PROVIDER: "medical_provider_id",
    Role.INDIVIDUAL: "user_id",
}

_GRANTEE_COLUMNS = {
    Role.LAW_FIRM: "shared_with_law_firm_id",
    Role.MEDICAL_PROVIDER: "shared_with_medical_provider_id",
    Role.INDIVIDUAL: "shared_with_user_id",
}


@dataclass(frozen=True)
class FanoutResult:
    """Calendar entries created for one confirmation."""

    provider_event_id: UUID
    individual_event_id: UUID


def _insert_for(session: AsyncSession):
    """Dialect-specific insert construct supporting ON CONFLICT DO NOTHING."""
    dialect_name = session.get_bind().dialect.name
    if dialect_name == "postgresql":
        return postgresql.insert
    if dialect_name == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"Share grants are not supported on {dialect_name}")


async def grant_share(
    session: AsyncSession,
    calendar_event_id: UUID,
    grantee_role: Role,
    grantee_id: UUID,
    shared_by: Optional[UUID] = None,
) -> bool:
    """
    Grant read-only visibility of a calendar event.

    Idempotent: a grant that already exists for the same event and
    grantee is left untouched.

    Returns:
        True if a new grant was written, False if it already existed
    """
    insert = _insert_for(session)
    stmt = (
        insert(SharedCalendarEvent)
        .values(
            calendar_event_id=calendar_event_id,
            can_edit=False,
            shared_by=shared_by,
            **{_GRANTEE_COLUMNS[grantee_role]: grantee_id},
        )
        .on_conflict_do_nothing()
    )
    result = await session.execute(stmt)
    return result.rowcount > 0


class CalendarFanout:
    """
    Creates the calendar entries and share grants for a confirmation.

    materialize() is part of the confirmation transaction;
    grant_third_party_shares() is best-effort and runs separately.
    """

    def __init__(self, reminder_minutes_before: int = 60):
        self.reminder_minutes_before = reminder_minutes_before

    async def create_calendar_event(
        self,
        session: AsyncSession,
        owner_role: Role,
        owner_id: UUID,
        event_request: EventRequest,
        proposed_date: ProposedDate,
        title: str,
        created_by: UUID,
    ) -> CalendarEvent:
        """Create one party's copy of the agreed appointment."""
        calendar_event = CalendarEvent(
            event_type=event_request.event_type,
            title=title,
            description=event_request.description,
            location=event_request.location,
            start_time=proposed_date.start_time,
            end_time=proposed_date.end_time,
            all_day=False,
            reminder_enabled=True,
            reminder_minutes_before=self.reminder_minutes_before,
            case_related=True,
            created_by=created_by,
            event_request_id=event_request.id,
            **{_OWNER_COLUMNS[owner_role]: owner_id},
        )
        session.add(calendar_event)
        await session.flush()
        return calendar_event

    async def materialize(
        self,
        session: AsyncSession,
        event_request: EventRequest,
        proposed_date: ProposedDate,
        provider_name: str,
        created_by: UUID,
    ) -> FanoutResult:
        """
        Write both sides' calendar entries and the direct share grant.

        The individual's copy is titled with the provider's name so
        appointments from different providers can be told apart.

        Args:
            session: Session inside the confirmation transaction
            event_request: Negotiation being confirmed
            proposed_date: Chosen window
            provider_name: Resolved provider display name
            created_by: Account whose action confirmed the negotiation

        Returns:
            IDs of the provider-owned and individual-owned entries
        """
        provider_role = Role(event_request.provider_kind.value)

        provider_event = await self.create_calendar_event(
            session,
            owner_role=provider_role,
            owner_id=event_request.provider_id,
            event_request=event_request,
            proposed_date=proposed_date,
            title=event_request.title,
            created_by=created_by,
        )

        individual_event = await self.create_calendar_event(
            session,
            owner_role=Role.INDIVIDUAL,
            owner_id=event_request.individual_id,
            event_request=event_request,
            proposed_date=proposed_date,
            title=f"{event_request.title} - {provider_name}",
            created_by=created_by,
        )

        await grant_share(
            session,
            calendar_event_id=provider_event.id,
            grantee_role=Role.INDIVIDUAL,
            grantee_id=event_request.individual_id,
            shared_by=created_by,
        )

        logger.info(
            f"Fan-out for event request {event_request.id}: provider event {provider_event.id}, "
            f"individual event {individual_event.id}"
        )

        return FanoutResult(
            provider_event_id=provider_event.id,
            individual_event_id=individual_event.id,
        )

    async def grant_third_party_shares(
        self,
        session: AsyncSession,
        event_request: EventRequest,
        calendar_event_id: UUID,
        shared_by: UUID,
    ) -> int:
        """
        Share the individual's entry with their other connected providers.

        A law-firm negotiation is shared with the individual's medical
        providers, and a medical-provider negotiation with their law firms.

        Returns:
            Number of new grants written
        """
        third_party_kind = event_request.provider_kind.counterpart
        provider_ids = await get_connected_providers(
            session,
            individual_id=event_request.individual_id,
            provider_kind=third_party_kind,
            exclude=event_request.provider_id,
        )

        granted = 0
        for provider_id in provider_ids:
            if await grant_share(
                session,
                calendar_event_id=calendar_event_id,
                grantee_role=Role(third_party_kind.value),
                grantee_id=provider_id,
                shared_by=shared_by,
            ):
                granted += 1

        logger.info(
            f"Shared event {calendar_event_id} with {granted} connected "
            f"{third_party_kind.label}(s) of individual {event_request.individual_id}"
        )
        return granted
