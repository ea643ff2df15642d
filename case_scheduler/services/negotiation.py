"""
Event-request negotiation engine.

Implements the negotiation lifecycle between a provider (law firm or
medical provider) and an individual (client or patient):

    create ─┬─> pending ── submit dates ──> dates_submitted ── confirm ──┐
            └─> dates_offered ── select offered date ────────────────────┴─> confirmed
    any open status ── cancel ──> cancelled

Every status change is a conditional update on the expected status, so
two concurrent actions on one request cannot both succeed. Confirmation
writes both calendar entries, the direct share grant, the selected flag
and the status in one transaction. Notifications and third-party share
grants are queued and dispatched only after that transaction commits.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional, Sequence
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from case_scheduler.config import Settings, get_settings
from case_scheduler.exceptions import (
    AccessDeniedError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    SchedulingError,
    ValidationError,
)
from case_scheduler.models.enums import EventRequestStatus, ProviderKind, Role
from case_scheduler.models.event_requests import (
    EventRequest,
    ProposedDate,
    PROPOSED_BY_PROVIDER,
)
from case_scheduler.services import ledger
from case_scheduler.services.fanout import CalendarFanout
from case_scheduler.services.identity import (
    Caller,
    DisplayNameResolver,
    get_display_names,
    is_connected,
)
from case_scheduler.services.ledger import TimeWindow
from case_scheduler.services.notifications import (
    EVENT_CANCELLED,
    EVENT_CONFIRMED,
    EVENT_REQUEST,
    EVENT_RESPONSE,
    Notification,
    Notifier,
    SideEffectQueue,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreateEventRequestData:
    """Provider input for opening a negotiation."""

    recipient_id: Optional[UUID]
    event_type: Optional[str]
    title: Optional[str]
    description: Optional[str] = None
    location: Optional[str] = None
    duration_minutes: Optional[int] = None
    notes: Optional[str] = None
    proposed_dates: Sequence[TimeWindow] = field(default_factory=tuple)


@dataclass(frozen=True)
class EventRequestView:
    """An event request with both parties' display names."""

    event_request: EventRequest
    provider_name: Optional[str] = None
    individual_name: Optional[str] = None


@dataclass(frozen=True)
class ConfirmationResult:
    """Outcome of confirming a negotiation."""

    event_request: EventRequest
    proposed_date: ProposedDate
    calendar_event_id: UUID
    individual_calendar_event_id: UUID


def validate_windows(windows: Sequence[TimeWindow]) -> None:
    """
    Reject windows whose end is not after their start.

    Raises:
        ValidationError: Naming the first offending window (1-based)
    """
    for index, window in enumerate(windows, start=1):
        if window.start_time is None or window.end_time is None:
            raise ValidationError(f"Proposed date {index} must have a start time and an end time")
        if window.end_time <= window.start_time:
            raise ValidationError(f"Proposed date {index}: end time must be after start time")


def _format_when(value: datetime) -> str:
    return value.strftime("%b %d, %Y at %I:%M %p")


class NegotiationService:
    """
    Runs negotiation actions, one transaction per action.

    Args:
        session_factory: Factory for the sessions each action runs in
        notifier: Notification side-channel
        settings: Application settings (defaults to get_settings())
        fanout: Calendar fan-out (defaults to one configured from settings)
        names: Display-name resolver (defaults to the configured fallback)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: Notifier,
        settings: Optional[Settings] = None,
        fanout: Optional[CalendarFanout] = None,
        names: Optional[DisplayNameResolver] = None,
    ):
        self._session_factory = session_factory
        self._notifier = notifier
        self.settings = settings or get_settings()
        self.fanout = fanout or CalendarFanout(self.settings.reminder_minutes_before)
        self.names = names or DisplayNameResolver(self.settings.provider_fallback_name)

    # =========================================================================
    # Transaction and precondition helpers
    # =========================================================================

    @asynccontextmanager
    async def _transaction(self, action: str) -> AsyncGenerator[AsyncSession, None]:
        """
        Run a block in one transaction.

        Engine errors propagate unchanged; anything else rolls back and is
        reported as a generic PersistenceError with the cause logged.
        """
        async with self._session_factory() as session:
            try:
                async with session.begin():
                    yield session
            except SchedulingError:
                raise
            except Exception as e:
                logger.error(f"Failed to {action}: {e}", exc_info=True)
                raise PersistenceError(f"Failed to {action}", original_error=e) from e

    async def _load_request(self, session: AsyncSession, request_id: UUID) -> EventRequest:
        event_request = await session.get(EventRequest, request_id)
        if event_request is None:
            raise NotFoundError("Event request not found")
        return event_request

    @staticmethod
    def _check_participant(caller: Caller, event_request: EventRequest) -> None:
        """Only the requesting provider and the recipient may act on a request."""
        if not event_request.has_participant(caller.user_id, caller.role):
            logger.info(
                f"Denied {caller.role.value} {caller.user_id} access to event request {event_request.id}"
            )
            raise AccessDeniedError()

    @staticmethod
    def _require_role(caller: Caller, *roles: Role) -> None:
        if caller.role not in roles:
            logger.info(f"Denied {caller.role.value} {caller.user_id}: action requires {[r.value for r in roles]}")
            raise AccessDeniedError()

    async def _transition(
        self,
        session: AsyncSession,
        event_request: EventRequest,
        expected: Sequence[EventRequestStatus],
        target: EventRequestStatus,
        action: str,
        **values,
    ) -> None:
        """
        Move a request to a new status if it is still in an expected status.

        Compare-and-swap on the status column; zero affected rows means
        another action got there first.

        Raises:
            InvalidTransitionError: If the request is no longer in an expected status
        """
        previous = event_request.status
        result = await session.execute(
            update(EventRequest)
            .where(
                EventRequest.id == event_request.id,
                EventRequest.status.in_(list(expected)),
            )
            .values(status=target, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise InvalidTransitionError(
                f"Cannot {action}: the event request was changed by another action"
            )
        await session.refresh(event_request)
        logger.info(f"Event request {event_request.id}: {previous.value} -> {target.value}")

    async def _individual_name(self, session: AsyncSession, event_request: EventRequest) -> str:
        names = await get_display_names(session, [event_request.individual_id])
        return names.get(
            event_request.individual_id,
            f"Your {event_request.provider_kind.individual_label}",
        )

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_requests(
        self,
        caller: Caller,
        status: Optional[EventRequestStatus] = None,
    ) -> list[EventRequestView]:
        """
        List the caller's negotiations, newest first.

        Providers see requests they opened; individuals see requests
        addressed to them.
        """
        if caller.is_provider:
            if caller.provider_kind is ProviderKind.LAW_FIRM:
                provider_column = EventRequest.law_firm_id
            else:
                provider_column = EventRequest.medical_provider_id
            stmt = select(EventRequest).where(provider_column == caller.user_id)
        else:
            stmt = select(EventRequest).where(
                or_(
                    EventRequest.client_id == caller.user_id,
                    EventRequest.patient_id == caller.user_id,
                )
            )

        if status is not None:
            stmt = stmt.where(EventRequest.status == status)

        stmt = stmt.order_by(EventRequest.created_at.desc())

        async with self._transaction("fetch event requests") as session:
            requests = (await session.execute(stmt)).scalars().all()
            account_ids = {r.provider_id for r in requests} | {r.individual_id for r in requests}
            names = await get_display_names(session, list(account_ids))

        return [
            EventRequestView(
                event_request=r,
                provider_name=names.get(r.provider_id),
                individual_name=names.get(r.individual_id),
            )
            for r in requests
        ]

    async def get_request(
        self,
        caller: Caller,
        request_id: UUID,
    ) -> tuple[EventRequestView, Sequence[ProposedDate]]:
        """Get one negotiation with its candidate windows (earliest first)."""
        async with self._transaction("fetch event request") as session:
            event_request = await self._load_request(session, request_id)
            self._check_participant(caller, event_request)

            proposed_dates = await ledger.list_dates(session, request_id)
            names = await get_display_names(
                session, [event_request.provider_id, event_request.individual_id]
            )

        view = EventRequestView(
            event_request=event_request,
            provider_name=names.get(event_request.provider_id),
            individual_name=names.get(event_request.individual_id),
        )
        return view, proposed_dates

    # =========================================================================
    # Transitions
    # =========================================================================

    async def create_request(
        self,
        caller: Caller,
        data: CreateEventRequestData,
    ) -> EventRequest:
        """
        Open a negotiation with a connected individual.

        Without candidate windows the request stays 'pending' and the
        individual is asked for dates. With windows, the request and all
        windows are written together and the request moves straight to
        'dates_offered'.

        Raises:
            AccessDeniedError: Caller is not a provider, or not connected to the recipient
            ValidationError: Missing fields or an invalid window
        """
        self._require_role(caller, Role.LAW_FIRM, Role.MEDICAL_PROVIDER)

        event_type = (data.event_type or "").strip()
        title = (data.title or "").strip()
        if data.recipient_id is None or not event_type or not title:
            raise ValidationError("Recipient ID, event type, and title are required")
        validate_windows(data.proposed_dates)

        provider_kind = caller.provider_kind
        queue = SideEffectQueue(self._notifier)

        async with self._transaction("create event request") as session:
            if not await is_connected(session, provider_kind, caller.user_id, data.recipient_id):
                logger.info(
                    f"{provider_kind.label} {caller.user_id} is not connected to "
                    f"individual {data.recipient_id}"
                )
                raise AccessDeniedError()

            event_request = EventRequest(
                event_type=event_type,
                title=title,
                description=data.description,
                location=data.location,
                duration_minutes=data.duration_minutes or self.settings.default_duration_minutes,
                notes=data.notes,
                status=EventRequestStatus.PENDING,
            )
            if provider_kind is ProviderKind.LAW_FIRM:
                event_request.law_firm_id = caller.user_id
                event_request.client_id = data.recipient_id
            else:
                event_request.medical_provider_id = caller.user_id
                event_request.patient_id = data.recipient_id

            session.add(event_request)
            await session.flush()

            if data.proposed_dates:
                await ledger.insert_dates(
                    session,
                    event_request.id,
                    data.proposed_dates,
                    proposed_by=PROPOSED_BY_PROVIDER,
                )
                await self._transition(
                    session,
                    event_request,
                    expected=[EventRequestStatus.PENDING],
                    target=EventRequestStatus.DATES_OFFERED,
                    action="offer dates",
                )
            else:
                await session.refresh(event_request)

            provider_name = await self.names.resolve(session, caller.user_id)

            if event_request.status is EventRequestStatus.DATES_OFFERED:
                body = (
                    f"{provider_name} has offered {len(data.proposed_dates)} date(s) for "
                    f"{title}. Please choose one."
                )
            else:
                body = (
                    f"{provider_name} is requesting to schedule a {event_type}. "
                    f"Please select {self.settings.required_proposed_dates} available dates."
                )

            queue.notify(
                Notification(
                    recipient_id=data.recipient_id,
                    recipient_type=Role.INDIVIDUAL,
                    sender_id=caller.user_id,
                    sender_type=caller.role,
                    sender_name=provider_name,
                    type=EVENT_REQUEST,
                    title=f"Event Request from Your {provider_kind.label.title()}",
                    body=body,
                    action_payload={"screen": "event-requests", "requestId": str(event_request.id)},
                )
            )

        logger.info(
            f"Created event request {event_request.id} ({event_request.status.value}) "
            f"from {provider_kind.label} {caller.user_id}"
        )
        await queue.dispatch()
        return event_request

    async def submit_proposed_dates(
        self,
        caller: Caller,
        request_id: UUID,
        windows: Sequence[TimeWindow],
    ) -> EventRequest:
        """
        Individual submits their candidate windows for a pending request.

        Replaces the whole ledger for the request and moves it to
        'dates_submitted'.

        Raises:
            AccessDeniedError: Caller is not the request's individual
            ValidationError: Wrong number of windows or an invalid window
            InvalidTransitionError: Request is not pending
        """
        self._require_role(caller, Role.INDIVIDUAL)

        required = self.settings.required_proposed_dates
        if windows is None or len(windows) != required:
            raise ValidationError(f"Exactly {required} proposed dates are required")
        validate_windows(windows)

        queue = SideEffectQueue(self._notifier)

        async with self._transaction("submit proposed dates") as session:
            event_request = await self._load_request(session, request_id)
            self._check_participant(caller, event_request)

            if event_request.status is not EventRequestStatus.PENDING:
                raise InvalidTransitionError(
                    f"Cannot submit proposed dates: the event request is "
                    f"{event_request.status.value}, not pending"
                )

            await ledger.replace_dates(session, request_id, windows)
            await self._transition(
                session,
                event_request,
                expected=[EventRequestStatus.PENDING],
                target=EventRequestStatus.DATES_SUBMITTED,
                action="submit proposed dates",
                responded_at=datetime.now(timezone.utc),
            )

            individual_label = event_request.provider_kind.individual_label
            individual_name = await self._individual_name(session, event_request)
            queue.notify(
                Notification(
                    recipient_id=event_request.provider_id,
                    recipient_type=Role(event_request.provider_kind.value),
                    sender_id=caller.user_id,
                    sender_type=caller.role,
                    sender_name=individual_name,
                    type=EVENT_RESPONSE,
                    title=f"{individual_label.title()} Responded to Event Request",
                    body=(
                        f"{individual_name} has submitted {required} available dates "
                        f"for {event_request.title}."
                    ),
                    action_payload={"screen": "event-request-detail", "requestId": str(request_id)},
                )
            )

        await queue.dispatch()
        return event_request

    async def confirm_date(
        self,
        caller: Caller,
        request_id: UUID,
        proposed_date_id: UUID,
    ) -> ConfirmationResult:
        """
        Provider confirms one of the individual's submitted windows.

        Raises:
            AccessDeniedError: Caller is not the request's provider
            NotFoundError: Request or window not found
            InvalidTransitionError: Request is not 'dates_submitted'
        """
        self._require_role(caller, Role.LAW_FIRM, Role.MEDICAL_PROVIDER)
        return await self._confirm(
            caller,
            request_id,
            proposed_date_id,
            expected=EventRequestStatus.DATES_SUBMITTED,
            action="confirm a submitted date",
        )

    async def select_offered_date(
        self,
        caller: Caller,
        request_id: UUID,
        proposed_date_id: UUID,
    ) -> ConfirmationResult:
        """
        Individual picks one of the provider's offered windows.

        Raises:
            AccessDeniedError: Caller is not the request's individual
            NotFoundError: Request or window not found
            InvalidTransitionError: Request is not 'dates_offered'
        """
        self._require_role(caller, Role.INDIVIDUAL)
        return await self._confirm(
            caller,
            request_id,
            proposed_date_id,
            expected=EventRequestStatus.DATES_OFFERED,
            action="select an offered date",
        )

    async def _confirm(
        self,
        caller: Caller,
        request_id: UUID,
        proposed_date_id: Optional[UUID],
        expected: EventRequestStatus,
        action: str,
    ) -> ConfirmationResult:
        """Confirmation shared by both initiators; fan-out runs in the same transaction."""
        if proposed_date_id is None:
            raise ValidationError("Proposed date ID is required")

        queue = SideEffectQueue(self._notifier)

        async with self._transaction(action) as session:
            event_request = await self._load_request(session, request_id)
            self._check_participant(caller, event_request)

            if event_request.status is not expected:
                raise InvalidTransitionError(
                    f"Cannot {action}: the event request is {event_request.status.value}, "
                    f"not {expected.value}"
                )

            proposed_date = await ledger.get_date(session, request_id, proposed_date_id)
            if proposed_date is None:
                raise NotFoundError("Proposed date not found")

            provider_name = await self.names.resolve(session, event_request.provider_id)
            fanout = await self.fanout.materialize(
                session,
                event_request,
                proposed_date,
                provider_name=provider_name,
                created_by=caller.user_id,
            )

            await ledger.mark_selected(session, request_id, proposed_date_id)
            await self._transition(
                session,
                event_request,
                expected=[expected],
                target=EventRequestStatus.CONFIRMED,
                action=action,
                confirmed_event_id=fanout.provider_event_id,
            )
            await session.refresh(proposed_date)

            if caller.role is Role.INDIVIDUAL:
                sender_name = await self._individual_name(session, event_request)
                recipient_id = event_request.provider_id
                recipient_type = Role(event_request.provider_kind.value)
                calendar_event_id = fanout.provider_event_id
                body = (
                    f"{sender_name} has selected {_format_when(proposed_date.start_time)} "
                    f"for {event_request.title}."
                )
            else:
                sender_name = provider_name
                recipient_id = event_request.individual_id
                recipient_type = Role.INDIVIDUAL
                calendar_event_id = fanout.individual_event_id
                body = (
                    f"{provider_name} has confirmed {event_request.title} for "
                    f"{_format_when(proposed_date.start_time)}."
                )

            queue.enqueue(
                f"third-party shares for event request {request_id}",
                lambda: self._share_with_third_parties(
                    event_request, fanout.individual_event_id, caller.user_id
                ),
            )
            queue.notify(
                Notification(
                    recipient_id=recipient_id,
                    recipient_type=recipient_type,
                    sender_id=caller.user_id,
                    sender_type=caller.role,
                    sender_name=sender_name,
                    type=EVENT_CONFIRMED,
                    title="Event Confirmed",
                    body=body,
                    action_payload={"screen": "calendar", "calendarEventId": str(calendar_event_id)},
                )
            )

        await queue.dispatch()
        return ConfirmationResult(
            event_request=event_request,
            proposed_date=proposed_date,
            calendar_event_id=fanout.provider_event_id,
            individual_calendar_event_id=fanout.individual_event_id,
        )

    async def _share_with_third_parties(
        self,
        event_request: EventRequest,
        calendar_event_id: UUID,
        shared_by: UUID,
    ) -> int:
        """Best-effort grants to the individual's other providers, in their own transaction."""
        async with self._session_factory() as session:
            async with session.begin():
                return await self.fanout.grant_third_party_shares(
                    session, event_request, calendar_event_id, shared_by
                )

    async def cancel_request(
        self,
        caller: Caller,
        request_id: UUID,
    ) -> EventRequest:
        """
        Either participant cancels an open negotiation.

        Calendars are not touched; the other party is notified.

        Raises:
            AccessDeniedError: Caller is not a participant
            InvalidTransitionError: Request is already confirmed or cancelled
        """
        queue = SideEffectQueue(self._notifier)

        async with self._transaction("cancel event request") as session:
            event_request = await self._load_request(session, request_id)
            self._check_participant(caller, event_request)

            if event_request.status.is_terminal:
                raise InvalidTransitionError(
                    f"Cannot cancel: the event request is already {event_request.status.value}"
                )

            await self._transition(
                session,
                event_request,
                expected=EventRequestStatus.open_statuses(),
                target=EventRequestStatus.CANCELLED,
                action="cancel the event request",
            )

            if caller.role is Role.INDIVIDUAL:
                canceller_name = await self._individual_name(session, event_request)
                recipient_id = event_request.provider_id
                recipient_type = Role(event_request.provider_kind.value)
            else:
                canceller_name = await self.names.resolve(session, caller.user_id)
                recipient_id = event_request.individual_id
                recipient_type = Role.INDIVIDUAL

            queue.notify(
                Notification(
                    recipient_id=recipient_id,
                    recipient_type=recipient_type,
                    sender_id=caller.user_id,
                    sender_type=caller.role,
                    sender_name=canceller_name,
                    type=EVENT_CANCELLED,
                    title="Event Request Cancelled",
                    body=f"{canceller_name} cancelled the event request for {event_request.title}.",
                    action_payload={"screen": "event-requests", "requestId": str(request_id)},
                )
            )

        await queue.dispatch()
        return event_request
