"""
CalendarEvent and SharedCalendarEvent models.

Entities:
- CalendarEvent: An appointment owned by exactly one party
- SharedCalendarEvent: Read-only visibility grant on a calendar event
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
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from case_scheduler.models.base import BaseModel, UTCDateTime


class CalendarEvent(BaseModel):
    """
    An appointment on one party's calendar.

    Owned by exactly one of: a law firm, a medical provider, or an
    individual (user_id). Confirmed negotiations create one independent
    copy per side rather than a shared row.
    """

    __tablename__ = "calendar_events"

    # Owner (exactly one)
    law_firm_id: Mapped[Optional[uuid.UUID]] = mapped_column(nullable=True)
    medical_provider_id: Mapped[Optional[uuid.UUID]] = mapped_column(nullable=True)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        nullable=True,
        doc="Owning individual account ID"
    )

    # Event details
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Timing
    start_time: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        doc="Event start time (UTC)"
    )

    end_time: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        doc="Event end time (UTC)"
    )

    all_day: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Reminders and classification
    reminder_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    reminder_minutes_before: Mapped[int] = mapped_column(Integer, nullable=False, default=60)

    case_related: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        doc="Whether the appointment belongs to an active case"
    )

    # Provenance
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        nullable=True,
        doc="Account whose action created this entry"
    )

    event_request_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("event_requests.id"),
        nullable=True,
        doc="Negotiation this entry was materialized from"
    )

    __table_args__ = (
        CheckConstraint(
            "(CASE WHEN law_firm_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN medical_provider_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN user_id IS NULL THEN 0 ELSE 1 END) = 1",
            name="ck_calendar_event_one_owner",
        ),
        Index("idx_calendar_event_law_firm", "law_firm_id", "start_time"),
        Index("idx_calendar_event_medical_provider", "medical_provider_id", "start_time"),
        Index("idx_calendar_event_user", "user_id", "start_time"),
        Index("idx_calendar_event_request", "event_request_id"),
    )

    @property
    def owner_id(self) -> uuid.UUID:
        return self.law_firm_id or self.medical_provider_id or self.user_id

    def __repr__(self) -> str:
        return f"<CalendarEvent(title='{self.title}', start='{self.start_time}')>"


class SharedCalendarEvent(BaseModel):
    """
    Read-only visibility grant on a calendar event.

    The grantee is exactly one of a user, a medical provider or a law
    firm. Grants are unique per (event, grantee); inserting a duplicate
    is a no-op.
    """

    __tablename__ = "shared_calendar_events"

    calendar_event_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("calendar_events.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Grantee (exactly one)
    shared_with_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(nullable=True)
    shared_with_medical_provider_id: Mapped[Optional[uuid.UUID]] = mapped_column(nullable=True)
    shared_with_law_firm_id: Mapped[Optional[uuid.UUID]] = mapped_column(nullable=True)

    can_edit: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    shared_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        nullable=True,
        doc="Account whose action created the grant"
    )

    __table_args__ = (
        CheckConstraint(
            "(CASE WHEN shared_with_user_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN shared_with_medical_provider_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN shared_with_law_firm_id IS NULL THEN 0 ELSE 1 END) = 1",
            name="ck_shared_calendar_event_one_grantee",
        ),
        UniqueConstraint("calendar_event_id", "shared_with_user_id", name="uq_shared_event_user"),
        UniqueConstraint(
            "calendar_event_id", "shared_with_medical_provider_id", name="uq_shared_event_medical_provider"
        ),
        UniqueConstraint("calendar_event_id", "shared_with_law_firm_id", name="uq_shared_event_law_firm"),
        Index("idx_shared_event_event", "calendar_event_id"),
    )

    @property
    def grantee_id(self) -> uuid.UUID:
        return self.shared_with_user_id or self.shared_with_medical_provider_id or self.shared_with_law_firm_id

    def __repr__(self) -> str:
        return f"<SharedCalendarEvent(event_id={self.calendar_event_id}, grantee={self.grantee_id})>"
