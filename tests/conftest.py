"""
Pytest configuration and fixtures for Case Scheduler tests.

Provides an in-memory database per test, a negotiation service wired to
a mock notifier, and a small directory of connected accounts.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator
from unittest.mock import AsyncMock
from uuid import UUID

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from case_scheduler.config import Settings
from case_scheduler.database import build_async_engine, build_session_factory, init_db
from case_scheduler.models.accounts import Account, ProviderConnection
from case_scheduler.models.enums import ConnectionStatus, ProviderKind, Role
from case_scheduler.services.identity import Caller
from case_scheduler.services.ledger import TimeWindow
from case_scheduler.services.negotiation import NegotiationService
from case_scheduler.services.notifications import Notifier


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Create a clean in-memory SQLite database for each test.

    StaticPool keeps one connection, so every session of the test sees
    the same database.
    """
    engine = build_async_engine("sqlite:///:memory:")
    await init_db(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging and inspecting rows directly."""
    async with session_factory() as session:
        yield session


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, python_env="development", log_level="DEBUG")


@pytest.fixture
def notifier() -> AsyncMock:
    """Notifier that records every notification."""
    return AsyncMock(spec=Notifier)


@pytest.fixture
def service(session_factory, notifier, settings) -> NegotiationService:
    return NegotiationService(session_factory=session_factory, notifier=notifier, settings=settings)


# =============================================================================
# Accounts
# =============================================================================


@dataclass
class Directory:
    """Accounts and callers used across tests."""

    law_firm: Caller
    medical_provider: Caller
    other_medical_provider: Caller
    unconnected_law_firm: Caller
    client: Caller
    stranger: Caller

    @property
    def client_id(self) -> UUID:
        return self.client.user_id


async def _add_account(session: AsyncSession, role: Role, name: str | None) -> Account:
    account = Account(role=role, display_name=name, email=None)
    session.add(account)
    await session.flush()
    return account


@pytest.fixture
async def directory(session_factory) -> Directory:
    """
    Seed accounts and connections.

    - "Smith & Associates" (law firm) and "Downtown Clinic" (medical
      provider) are both connected to "Jane Doe".
    - "Eastside Physical Therapy" is a second medical provider of Jane.
    - "Jones Legal" is a law firm with no connection to Jane.
    - "Sam Roe" is an individual with no connections.
    """
    async with session_factory() as session:
        async with session.begin():
            law_firm = await _add_account(session, Role.LAW_FIRM, "Smith & Associates")
            clinic = await _add_account(session, Role.MEDICAL_PROVIDER, "Downtown Clinic")
            therapy = await _add_account(session, Role.MEDICAL_PROVIDER, "Eastside Physical Therapy")
            jones = await _add_account(session, Role.LAW_FIRM, "Jones Legal")
            jane = await _add_account(session, Role.INDIVIDUAL, "Jane Doe")
            sam = await _add_account(session, Role.INDIVIDUAL, "Sam Roe")

            session.add_all([
                ProviderConnection(
                    provider_kind=ProviderKind.LAW_FIRM,
                    provider_id=law_firm.id,
                    individual_id=jane.id,
                    status=ConnectionStatus.ACCEPTED,
                ),
                ProviderConnection(
                    provider_kind=ProviderKind.MEDICAL_PROVIDER,
                    provider_id=clinic.id,
                    individual_id=jane.id,
                    status=ConnectionStatus.ACCEPTED,
                ),
                ProviderConnection(
                    provider_kind=ProviderKind.MEDICAL_PROVIDER,
                    provider_id=therapy.id,
                    individual_id=jane.id,
                    status=ConnectionStatus.ACCEPTED,
                ),
            ])

    return Directory(
        law_firm=Caller(law_firm.id, Role.LAW_FIRM),
        medical_provider=Caller(clinic.id, Role.MEDICAL_PROVIDER),
        other_medical_provider=Caller(therapy.id, Role.MEDICAL_PROVIDER),
        unconnected_law_firm=Caller(jones.id, Role.LAW_FIRM),
        client=Caller(jane.id, Role.INDIVIDUAL),
        stranger=Caller(sam.id, Role.INDIVIDUAL),
    )


# =============================================================================
# Time Windows
# =============================================================================


@pytest.fixture
def windows() -> list[TimeWindow]:
    """Three one-hour windows on consecutive days."""
    base = datetime(2026, 11, 2, 9, 0, tzinfo=timezone.utc)
    return [
        TimeWindow(base + timedelta(days=i), base + timedelta(days=i, hours=1))
        for i in range(3)
    ]
