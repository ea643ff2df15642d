"""
SQLAlchemy models for Case Scheduler.

This module exports all database models for easy importing and
ensures Alembic can discover them for migrations.
"""

# Import base classes
from case_scheduler.models.base import Base, BaseModel, GUID, UTCDateTime, enum_type, to_utc
from case_scheduler.models.enums import (
    ConnectionStatus,
    EventRequestStatus,
    ProviderKind,
    Role,
)

# Import all models (must be imported for Alembic autogenerate)
from case_scheduler.models.accounts import Account, ProviderConnection
from case_scheduler.models.event_requests import (
    EventRequest,
    ProposedDate,
    PROPOSED_BY_PROVIDER,
)
from case_scheduler.models.calendar import CalendarEvent, SharedCalendarEvent

__all__ = [
    # Base classes
    "Base",
    "BaseModel",
    "GUID",
    "UTCDateTime",
    "to_utc",
    "enum_type",
    # Enums
    "ConnectionStatus",
    "EventRequestStatus",
    "ProviderKind",
    "Role",
    # Directory models
    "Account",
    "ProviderConnection",
    # Negotiation models
    "EventRequest",
    "ProposedDate",
    "PROPOSED_BY_PROVIDER",
    # Calendar models
    "CalendarEvent",
    "SharedCalendarEvent",
]
