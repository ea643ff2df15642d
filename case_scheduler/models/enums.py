"""
Enumerations shared by models, services and the API layer.

Roles are normalized once at the request boundary via Role.parse();
everything downstream works with the enum members only.
"""

from enum import Enum
from typing import Optional


class Role(str, Enum):
    """Kind of account acting on a negotiation."""

    LAW_FIRM = "law_firm"
    MEDICAL_PROVIDER = "medical_provider"
    INDIVIDUAL = "individual"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Role":
        """
        Normalize a raw role string to a Role.

        Accepts the spellings issued by the various login flows
        (e.g. 'lawfirm', 'Medical-Provider', 'client', 'patient').

        Raises:
            ValueError: If the value is empty or not a known role
        """
        if not value:
            raise ValueError("Role is required")

        key = value.strip().lower().replace("-", "_").replace(" ", "_")
        role = _ROLE_ALIASES.get(key)
        if role is None:
            raise ValueError(f"Unknown role: {value}")
        return role

    @property
    def is_provider(self) -> bool:
        return self is not Role.INDIVIDUAL

    @property
    def provider_kind(self) -> "ProviderKind":
        """Provider kind for a provider role."""
        if self is Role.LAW_FIRM:
            return ProviderKind.LAW_FIRM
        if self is Role.MEDICAL_PROVIDER:
            return ProviderKind.MEDICAL_PROVIDER
        raise ValueError("Individuals have no provider kind")


_ROLE_ALIASES = {
    "law_firm": Role.LAW_FIRM,
    "lawfirm": Role.LAW_FIRM,
    "medical_provider": Role.MEDICAL_PROVIDER,
    "medicalprovider": Role.MEDICAL_PROVIDER,
    "individual": Role.INDIVIDUAL,
    "client": Role.INDIVIDUAL,
    "patient": Role.INDIVIDUAL,
}


class ProviderKind(str, Enum):
    """Which kind of provider owns a negotiation."""

    LAW_FIRM = "law_firm"
    MEDICAL_PROVIDER = "medical_provider"

    @property
    def counterpart(self) -> "ProviderKind":
        """The other provider kind (third parties of an individual)."""
        if self is ProviderKind.LAW_FIRM:
            return ProviderKind.MEDICAL_PROVIDER
        return ProviderKind.LAW_FIRM

    @property
    def individual_label(self) -> str:
        """How the individual is called in this provider's context."""
        return "client" if self is ProviderKind.LAW_FIRM else "patient"

    @property
    def label(self) -> str:
        return "law firm" if self is ProviderKind.LAW_FIRM else "medical provider"


class EventRequestStatus(str, Enum):
    """Lifecycle states of an event request."""

    PENDING = "pending"
    DATES_OFFERED = "dates_offered"
    DATES_SUBMITTED = "dates_submitted"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (EventRequestStatus.CONFIRMED, EventRequestStatus.CANCELLED)

    @classmethod
    def open_statuses(cls) -> tuple["EventRequestStatus", ...]:
        """Statuses from which a request may still be cancelled."""
        return tuple(status for status in cls if not status.is_terminal)


class ConnectionStatus(str, Enum):
    """Status of a provider-individual relationship."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REMOVED = "removed"
