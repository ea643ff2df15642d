"""
FastAPI dependency injection providers.

Provides the negotiation service and the caller identity.
"""

from typing import Optional
from uuid import UUID
import logging

from fastapi import Header, HTTPException

from case_scheduler.config import get_settings
from case_scheduler.database import AsyncSessionLocal
from case_scheduler.exceptions import AccessDeniedError
from case_scheduler.models.enums import Role
from case_scheduler.services.identity import Caller
from case_scheduler.services.negotiation import NegotiationService
from case_scheduler.services.notifications import build_notifier

logger = logging.getLogger(__name__)

# Global service instance (initialized at startup)
_negotiation_service: Optional[NegotiationService] = None


def init_negotiation_service() -> NegotiationService:
    """Initialize the negotiation service at application startup."""
    global _negotiation_service
    settings = get_settings()
    notifier = build_notifier(settings)
    _negotiation_service = NegotiationService(
        session_factory=AsyncSessionLocal,
        notifier=notifier,
        settings=settings,
    )
    logger.info(f"Negotiation service initialized (notifier: {type(notifier).__name__})")
    return _negotiation_service


def get_negotiation_service() -> NegotiationService:
    """
    Dependency injection for the negotiation service.

    Raises:
        HTTPException: If the service is not initialized
    """
    if _negotiation_service is None:
        logger.error("Negotiation service not initialized")
        raise HTTPException(
            status_code=503,
            detail="Service temporarily unavailable - negotiation service not initialized",
        )
    return _negotiation_service


def get_caller(
    x_user_id: Optional[str] = Header(None, description="Authenticated account ID"),
    x_user_role: Optional[str] = Header(None, description="Authenticated account role"),
) -> Caller:
    """
    Resolve the caller from headers set by the authentication gateway.

    The role string is normalized here, once; everything downstream
    works with the Role enum.

    Raises:
        HTTPException: 401 if the account ID is missing or malformed
        AccessDeniedError: If the role is missing or unknown
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")

    try:
        user_id = UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid user ID")

    try:
        role = Role.parse(x_user_role)
    except ValueError as e:
        logger.info(f"Rejected caller {user_id}: {e}")
        raise AccessDeniedError(original_error=e)

    return Caller(user_id=user_id, role=role)
