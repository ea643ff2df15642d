"""
Event-request API routes.

Negotiation workflow:
1. POST /event-requests - Provider opens a negotiation (optionally offering dates)
2. POST /event-requests/{id}/propose-dates - Individual submits candidate dates
3. POST /event-requests/{id}/confirm - Provider confirms a submitted date
   or POST /event-requests/{id}/select-date - Individual picks an offered date
4. POST /event-requests/{id}/cancel - Either party cancels an open negotiation
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from case_scheduler.api.dependencies import get_caller, get_negotiation_service
from case_scheduler.api.models import (
    ChooseDateBody,
    ConfirmationResponse,
    CreateEventRequestBody,
    ErrorResponse,
    EventRequestDetailResponse,
    EventRequestListResponse,
    EventRequestResponse,
    ProposedDateResponse,
    SubmitProposedDatesBody,
)
from case_scheduler.models.enums import EventRequestStatus
from case_scheduler.services.identity import Caller
from case_scheduler.services.negotiation import EventRequestView, NegotiationService

router = APIRouter(prefix="/event-requests", tags=["Event Requests"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request data"},
    403: {"model": ErrorResponse, "description": "Access denied"},
    404: {"model": ErrorResponse, "description": "Event request not found"},
    409: {"model": ErrorResponse, "description": "Action not allowed in the current status"},
    500: {"model": ErrorResponse, "description": "Server error"},
}


@router.post(
    "",
    response_model=EventRequestResponse,
    status_code=201,
    summary="Create event request",
    responses=_ERROR_RESPONSES,
)
async def create_event_request(
    body: CreateEventRequestBody,
    caller: Caller = Depends(get_caller),
    service: NegotiationService = Depends(get_negotiation_service),
):
    """
    Open a negotiation with a connected client or patient.

    Without `proposedDates` the request is `pending` and the individual is
    asked for candidate dates. With them, it is `dates_offered` and the
    individual picks one.
    """
    event_request = await service.create_request(caller, body.to_data())
    return EventRequestResponse.from_view(EventRequestView(event_request))


@router.get(
    "",
    response_model=EventRequestListResponse,
    summary="List event requests",
    responses=_ERROR_RESPONSES,
)
async def list_event_requests(
    status: Optional[EventRequestStatus] = Query(None, description="Filter by status"),
    caller: Caller = Depends(get_caller),
    service: NegotiationService = Depends(get_negotiation_service),
):
    """List the caller's negotiations, newest first."""
    views = await service.list_requests(caller, status=status)
    return EventRequestListResponse(
        event_requests=[EventRequestResponse.from_view(v) for v in views],
        total=len(views),
    )


@router.get(
    "/{request_id}",
    response_model=EventRequestDetailResponse,
    summary="Get event request",
    responses=_ERROR_RESPONSES,
)
async def get_event_request(
    request_id: UUID,
    caller: Caller = Depends(get_caller),
    service: NegotiationService = Depends(get_negotiation_service),
):
    """Get one negotiation with its candidate dates, earliest first."""
    view, proposed_dates = await service.get_request(caller, request_id)
    summary = EventRequestResponse.from_view(view)
    return EventRequestDetailResponse(
        **summary.model_dump(),
        proposed_dates=[ProposedDateResponse.model_validate(d) for d in proposed_dates],
    )


@router.post(
    "/{request_id}/propose-dates",
    response_model=EventRequestResponse,
    summary="Submit candidate dates",
    responses=_ERROR_RESPONSES,
)
async def propose_dates(
    request_id: UUID,
    body: SubmitProposedDatesBody,
    caller: Caller = Depends(get_caller),
    service: NegotiationService = Depends(get_negotiation_service),
):
    """Individual submits exactly three candidate dates for a pending request."""
    event_request = await service.submit_proposed_dates(caller, request_id, body.to_windows())
    return EventRequestResponse.from_view(EventRequestView(event_request))


@router.post(
    "/{request_id}/confirm",
    response_model=ConfirmationResponse,
    summary="Confirm a submitted date",
    responses=_ERROR_RESPONSES,
)
async def confirm_date(
    request_id: UUID,
    body: ChooseDateBody,
    caller: Caller = Depends(get_caller),
    service: NegotiationService = Depends(get_negotiation_service),
):
    """Provider confirms one of the individual's submitted dates."""
    result = await service.confirm_date(caller, request_id, body.proposed_date_id)
    return ConfirmationResponse.from_result(result)


@router.post(
    "/{request_id}/select-date",
    response_model=ConfirmationResponse,
    summary="Select an offered date",
    responses=_ERROR_RESPONSES,
)
async def select_date(
    request_id: UUID,
    body: ChooseDateBody,
    caller: Caller = Depends(get_caller),
    service: NegotiationService = Depends(get_negotiation_service),
):
    """Individual picks one of the provider's offered dates."""
    result = await service.select_offered_date(caller, request_id, body.proposed_date_id)
    return ConfirmationResponse.from_result(result)


@router.post(
    "/{request_id}/cancel",
    response_model=EventRequestResponse,
    summary="Cancel event request",
    responses=_ERROR_RESPONSES,
)
async def cancel_event_request(
    request_id: UUID,
    caller: Caller = Depends(get_caller),
    service: NegotiationService = Depends(get_negotiation_service),
):
    """Either participant cancels an open negotiation."""
    event_request = await service.cancel_request(caller, request_id)
    return EventRequestResponse.from_view(EventRequestView(event_request))
