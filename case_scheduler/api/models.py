"""
Pydantic request and response models for the Case Scheduler API.

Request models accept both the camelCase names sent by the mobile and
web clients and the snake_case names used internally.
"""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from case_scheduler.models.enums import EventRequestStatus, ProviderKind
from case_scheduler.services.ledger import TimeWindow
from case_scheduler.services.negotiation import (
    ConfirmationResult,
    CreateEventRequestData,
    EventRequestView,
)


# =============================================================================
# Request Models
# =============================================================================


class TimeWindowIn(BaseModel):
    """One candidate time window."""

    model_config = ConfigDict(populate_by_name=True)

    start_time: datetime = Field(
        ...,
        validation_alias=AliasChoices("start_time", "startTime", "proposed_start_time", "proposedStartTime"),
        description="Window start (ISO 8601)",
    )
    end_time: datetime = Field(
        ...,
        validation_alias=AliasChoices("end_time", "endTime", "proposed_end_time", "proposedEndTime"),
        description="Window end (ISO 8601)",
    )

    def to_window(self) -> TimeWindow:
        return TimeWindow(start_time=self.start_time, end_time=self.end_time)


class CreateEventRequestBody(BaseModel):
    """Provider request to open a negotiation."""

    model_config = ConfigDict(populate_by_name=True)

    recipient_id: Optional[UUID] = Field(
        None,
        validation_alias=AliasChoices(
            "recipient_id", "recipientId", "client_id", "clientId", "patient_id", "patientId"
        ),
        description="Client or patient the request is addressed to",
    )
    event_type: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("event_type", "eventType"),
        max_length=100,
        examples=["deposition", "consultation"],
    )
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    duration_minutes: Optional[int] = Field(
        None,
        validation_alias=AliasChoices("duration_minutes", "durationMinutes", "duration"),
        ge=1,
        description="Expected duration (defaults to 60)",
    )
    notes: Optional[str] = None
    proposed_dates: list[TimeWindowIn] = Field(
        default_factory=list,
        validation_alias=AliasChoices("proposed_dates", "proposedDates"),
        description="Provider-offered windows; when present the individual picks one",
    )

    def to_data(self) -> CreateEventRequestData:
        return CreateEventRequestData(
            recipient_id=self.recipient_id,
            event_type=self.event_type,
            title=self.title,
            description=self.description,
            location=self.location,
            duration_minutes=self.duration_minutes,
            notes=self.notes,
            proposed_dates=[window.to_window() for window in self.proposed_dates],
        )


class SubmitProposedDatesBody(BaseModel):
    """Individual's candidate windows for a pending request."""

    model_config = ConfigDict(populate_by_name=True)

    proposed_dates: list[TimeWindowIn] = Field(
        default_factory=list,
        validation_alias=AliasChoices("proposed_dates", "proposedDates", "dates"),
    )

    def to_windows(self) -> list[TimeWindow]:
        return [window.to_window() for window in self.proposed_dates]


class ChooseDateBody(BaseModel):
    """Chosen window for confirm / select-date."""

    model_config = ConfigDict(populate_by_name=True)

    proposed_date_id: Optional[UUID] = Field(
        None,
        validation_alias=AliasChoices("proposed_date_id", "proposedDateId"),
    )


# =============================================================================
# Response Models
# =============================================================================


class ProposedDateResponse(BaseModel):
    """One candidate window on a negotiation."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    start_time: datetime
    end_time: datetime
    proposed_by: Optional[str] = Field(None, description="'provider' for provider-offered windows")
    is_selected: bool = False


class EventRequestResponse(BaseModel):
    """A negotiation as seen by either participant."""

    id: UUID
    law_firm_id: Optional[UUID] = None
    medical_provider_id: Optional[UUID] = None
    client_id: Optional[UUID] = None
    patient_id: Optional[UUID] = None
    provider_kind: ProviderKind
    event_type: str
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    duration_minutes: int
    notes: Optional[str] = None
    status: EventRequestStatus
    responded_at: Optional[datetime] = None
    confirmed_event_id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    provider_name: Optional[str] = Field(None, description="Requesting provider's display name")
    individual_name: Optional[str] = Field(None, description="Recipient's display name")

    @classmethod
    def from_view(cls, view: EventRequestView) -> "EventRequestResponse":
        r = view.event_request
        return cls(
            id=r.id,
            law_firm_id=r.law_firm_id,
            medical_provider_id=r.medical_provider_id,
            client_id=r.client_id,
            patient_id=r.patient_id,
            provider_kind=r.provider_kind,
            event_type=r.event_type,
            title=r.title,
            description=r.description,
            location=r.location,
            duration_minutes=r.duration_minutes,
            notes=r.notes,
            status=r.status,
            responded_at=r.responded_at,
            confirmed_event_id=r.confirmed_event_id,
            created_at=r.created_at,
            updated_at=r.updated_at,
            provider_name=view.provider_name,
            individual_name=view.individual_name,
        )


class EventRequestDetailResponse(EventRequestResponse):
    """A negotiation with its candidate windows, earliest first."""

    proposed_dates: list[ProposedDateResponse] = Field(default_factory=list)


class EventRequestListResponse(BaseModel):
    """Response for listing negotiations."""

    event_requests: list[EventRequestResponse] = Field(..., description="Newest first")
    total: int = Field(..., description="Number of returned negotiations")


class ConfirmationResponse(BaseModel):
    """Outcome of confirm / select-date."""

    event_request: EventRequestResponse
    proposed_date: ProposedDateResponse
    calendar_event_id: UUID = Field(..., description="Provider-owned calendar event")
    individual_calendar_event_id: UUID = Field(..., description="Individual-owned calendar event")

    @classmethod
    def from_result(cls, result: ConfirmationResult) -> "ConfirmationResponse":
        return cls(
            event_request=EventRequestResponse.from_view(EventRequestView(result.event_request)),
            proposed_date=ProposedDateResponse.model_validate(result.proposed_date),
            calendar_event_id=result.calendar_event_id,
            individual_calendar_event_id=result.individual_calendar_event_id,
        )


class ErrorResponse(BaseModel):
    """Error information for failed requests."""

    error_type: str = Field(..., description="Error classification")
    message: str = Field(..., description="Human-readable error message")
    retryable: bool = Field(default=False, description="Whether request can be retried")


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["healthy", "unhealthy"] = Field(..., description="Health status")
    version: str = Field(..., description="API version")
    database_connected: bool = Field(..., description="Database connection status")
