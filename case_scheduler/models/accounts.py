"""
Account and ProviderConnection models.

Entities:
- Account: A law firm, medical provider or individual known to the platform
- ProviderConnection: Relationship between a provider and an individual
"""

import uuid
from typing import Optional

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from case_scheduler.models.base import BaseModel, enum_type
from case_scheduler.models.enums import ConnectionStatus, ProviderKind, Role


class Account(BaseModel):
    """
    Directory entry for a party taking part in negotiations.

    Only the fields needed to address and name a party are kept here;
    credentials and profiles live in the identity service.
    """

    __tablename__ = "accounts"

    role: Mapped[Role] = mapped_column(
        enum_type(Role),
        nullable=False,
        doc="Account role: 'law_firm', 'medical_provider', 'individual'"
    )

    display_name: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
        doc="Human-readable name shown in notifications and calendar titles"
    )

    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Contact email"
    )

    __table_args__ = (
        Index("idx_account_role", "role"),
    )

    def __repr__(self) -> str:
        return f"<Account(name='{self.display_name}', role='{self.role.value}')>"


class ProviderConnection(BaseModel):
    """
    Connection between a provider (law firm or medical provider) and an individual.

    A provider may only open negotiations with individuals it has an
    accepted connection to. The individual's other accepted connections
    are the third parties that receive share grants on confirmation.
    """

    __tablename__ = "provider_connections"

    provider_kind: Mapped[ProviderKind] = mapped_column(
        enum_type(ProviderKind),
        nullable=False,
        doc="Kind of provider: 'law_firm' or 'medical_provider'"
    )

    provider_id: Mapped[uuid.UUID] = mapped_column(
        nullable=False,
        doc="Law firm or medical provider account ID"
    )

    individual_id: Mapped[uuid.UUID] = mapped_column(
        nullable=False,
        doc="Client or patient account ID"
    )

    status: Mapped[ConnectionStatus] = mapped_column(
        enum_type(ConnectionStatus),
        nullable=False,
        default=ConnectionStatus.ACCEPTED,
        doc="Connection status: 'pending', 'accepted', 'removed'"
    )

    __table_args__ = (
        UniqueConstraint("provider_kind", "provider_id", "individual_id", name="uq_provider_connection"),
        Index("idx_connection_individual", "individual_id", "status"),
        Index("idx_connection_provider", "provider_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<ProviderConnection(kind='{self.provider_kind.value}', provider_id={self.provider_id}, "
            f"individual_id={self.individual_id}, status='{self.status.value}')>"
        )
