"""
EventRequest and ProposedDate models.

Entities:
- EventRequest: One scheduling negotiation between a provider and an individual
- ProposedDate: One candidate time window on a negotiation's ledger
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from case_scheduler.models.base import BaseModel, UTCDateTime, enum_type
from case_scheduler.models.enums import EventRequestStatus, ProviderKind, Role

PROPOSED_BY_PROVIDER = "provider"


class EventRequest(BaseModel):
    """
    A negotiation thread for agreeing on the date of one event.

    Exactly one requester column (law_firm_id, medical_provider_id) and
    exactly one recipient column (client_id, patient_id) is populated;
    both are fixed at creation. Status only changes through the
    negotiation service, and rows are never deleted.
    """

    __tablename__ = "event_requests"

    # Requester (provider side)
    law_firm_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        nullable=True,
        doc="Requesting law firm account ID"
    )

    medical_provider_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        nullable=True,
        doc="Requesting medical provider account ID"
    )

    # Recipient (individual side)
    client_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        nullable=True,
        doc="Recipient client account ID (law firm context)"
    )

    patient_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        nullable=True,
        doc="Recipient patient account ID (medical provider context)"
    )

    # Event details
    event_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Free-form category, e.g. 'deposition', 'consultation'"
    )

    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        doc="Event title"
    )

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    duration_minutes: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=60,
        doc="Expected duration in minutes"
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Workflow
    status: Mapped[EventRequestStatus] = mapped_column(
        enum_type(EventRequestStatus),
        nullable=False,
        default=EventRequestStatus.PENDING,
        doc="Status: 'pending', 'dates_offered', 'dates_submitted', 'confirmed', 'cancelled'"
    )

    responded_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime,
        nullable=True,
        doc="When the individual submitted candidate dates"
    )

    confirmed_event_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("calendar_events.id", use_alter=True, name="fk_event_request_confirmed_event"),
        nullable=True,
        doc="Provider-owned calendar event created on confirmation"
    )

    __table_args__ = (
        CheckConstraint(
            "(law_firm_id IS NULL) <> (medical_provider_id IS NULL)",
            name="ck_event_request_one_requester",
        ),
        CheckConstraint(
            "(client_id IS NULL) <> (patient_id IS NULL)",
            name="ck_event_request_one_recipient",
        ),
        Index("idx_event_request_law_firm", "law_firm_id", "status"),
        Index("idx_event_request_medical_provider", "medical_provider_id", "status"),
        Index("idx_event_request_client", "client_id", "status"),
        Index("idx_event_request_patient", "patient_id", "status"),
    )

    @property
    def provider_kind(self) -> ProviderKind:
        """Kind of provider that opened this negotiation."""
        if self.law_firm_id is not None:
            return ProviderKind.LAW_FIRM
        return ProviderKind.MEDICAL_PROVIDER

    @property
    def provider_id(self) -> uuid.UUID:
        """Account ID of the requesting provider."""
        return self.law_firm_id if self.law_firm_id is not None else self.medical_provider_id

    @property
    def individual_id(self) -> uuid.UUID:
        """Account ID of the recipient client or patient."""
        return self.client_id if self.client_id is not None else self.patient_id

    def has_participant(self, user_id: uuid.UUID, role: Role) -> bool:
        """Check whether an account acting in a role is either side of this negotiation."""
        if role is Role.INDIVIDUAL:
            return user_id == self.individual_id
        return role.provider_kind is self.provider_kind and user_id == self.provider_id

    def __repr__(self) -> str:
        return f"<EventRequest(title='{self.title}', status='{self.status.value}')>"


class ProposedDate(BaseModel):
    """
    One candidate time window for an event request.

    Provider-offered windows carry proposed_by='provider'; windows
    submitted by the individual leave it unset. is_selected flips to
    true for exactly one window when the request is confirmed.
    """

    __tablename__ = "event_request_proposed_dates"

    event_request_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("event_requests.id", ondelete="CASCADE"),
        nullable=False,
        doc="Parent event request"
    )

    start_time: Mapped[datetime] = mapped_column(
        "proposed_start_time",
        UTCDateTime,
        nullable=False,
        doc="Window start"
    )

    end_time: Mapped[datetime] = mapped_column(
        "proposed_end_time",
        UTCDateTime,
        nullable=False,
        doc="Window end"
    )

    proposed_by: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        doc="'provider' for provider-offered windows, NULL for individual submissions"
    )

    is_selected: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        doc="Whether this window was chosen"
    )

    __table_args__ = (
        Index("idx_proposed_date_request", "event_request_id", "proposed_start_time"),
    )

    @property
    def offered_by_provider(self) -> bool:
        return self.proposed_by == PROPOSED_BY_PROVIDER

    def __repr__(self) -> str:
        return (
            f"<ProposedDate(request_id={self.event_request_id}, start='{self.start_time}', "
            f"selected={self.is_selected})>"
        )
