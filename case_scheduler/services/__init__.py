"""
Service layer for the Case Scheduler.

Provides:
- Identity, connection and display-name lookups
- Proposed-date ledger operations
- Calendar fan-out and share grants
- Notification side-channel and post-commit dispatch
- NegotiationService, the event-request state machine
"""

from case_scheduler.services.identity import (
    Caller,
    DisplayNameResolver,
    get_connected_providers,
    get_display_names,
    is_connected,
)

from case_scheduler.services.ledger import TimeWindow

from case_scheduler.services.fanout import CalendarFanout, FanoutResult, grant_share

from case_scheduler.services.notifications import (
    LoggingNotifier,
    Notification,
    Notifier,
    SideEffectQueue,
    WebhookNotifier,
    build_notifier,
)

from case_scheduler.services.negotiation import (
    ConfirmationResult,
    CreateEventRequestData,
    EventRequestView,
    NegotiationService,
)

__all__ = [
    # Identity
    "Caller",
    "DisplayNameResolver",
    "get_connected_providers",
    "get_display_names",
    "is_connected",
    # Ledger
    "TimeWindow",
    # Fan-out
    "CalendarFanout",
    "FanoutResult",
    "grant_share",
    # Notifications
    "LoggingNotifier",
    "Notification",
    "Notifier",
    "SideEffectQueue",
    "WebhookNotifier",
    "build_notifier",
    # Negotiation
    "ConfirmationResult",
    "CreateEventRequestData",
    "EventRequestView",
    "NegotiationService",
]
