"""
Integration test fixtures for Case Scheduler.

Drives the real FastAPI app in-process against the per-test in-memory
database, with only the notifier mocked.
"""

from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from case_scheduler.api.dependencies import get_negotiation_service
from case_scheduler.api.main import app
from case_scheduler.services.identity import Caller


# =============================================================================
# Pytest Markers Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )


# =============================================================================
# HTTP Client
# =============================================================================


@pytest.fixture
async def api_client(service) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app, sharing the test's negotiation service."""
    app.dependency_overrides[get_negotiation_service] = lambda: service
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def headers_for():
    """Build the identity headers the authentication gateway would set."""

    def build(caller: Caller) -> dict[str, str]:
        return {"X-User-ID": str(caller.user_id), "X-User-Role": caller.role.value}

    return build
