"""
Notification side-channel and post-commit side-effect dispatch.

Notifications tell the non-acting party about every state change. They
are best-effort: queued during an operation, delivered once after the
primary transaction commits, and never allowed to fail the operation.
Retrying undelivered notifications is the notification service's job.
"""

import hashlib
import hmac
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable
from uuid import UUID

import httpx

from case_scheduler.config import Settings
from case_scheduler.models.enums import Role

logger = logging.getLogger(__name__)

# Notification types
EVENT_REQUEST = "event_request"
EVENT_RESPONSE = "event_response"
EVENT_CONFIRMED = "event_confirmed"
EVENT_CANCELLED = "event_cancelled"


@dataclass(frozen=True)
class Notification:
    """Message for one recipient about a negotiation state change."""

    recipient_id: UUID
    recipient_type: Role
    sender_id: UUID
    sender_type: Role
    sender_name: str
    type: str
    title: str
    body: str
    action_payload: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready representation."""
        payload = asdict(self)
        payload["recipient_id"] = str(self.recipient_id)
        payload["sender_id"] = str(self.sender_id)
        payload["recipient_type"] = self.recipient_type.value
        payload["sender_type"] = self.sender_type.value
        return payload


class Notifier(ABC):
    """Delivers notifications to the external notification service."""

    @abstractmethod
    async def notify(self, notification: Notification) -> None:
        """
        Deliver one notification.

        Implementations may raise; callers treat any error as a failed,
        non-fatal delivery.
        """


class LoggingNotifier(Notifier):
    """Notifier used when no notification service is configured."""

    async def notify(self, notification: Notification) -> None:
        logger.info(
            f"Notification '{notification.type}' for {notification.recipient_type.value} "
            f"{notification.recipient_id}: {notification.title}"
        )


def generate_signature(payload: str, secret: str) -> str:
    """
    Generate HMAC-SHA256 signature for a notification payload.

    Args:
        payload: JSON string payload
        secret: Shared secret

    Returns:
        Hex-encoded signature
    """
    return hmac.new(
        secret.encode("utf-8"),
        payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


class WebhookNotifier(Notifier):
    """
    Posts notifications to the notification service over HTTP.

    One attempt per notification; non-2xx responses raise.
    """

    def __init__(
        self,
        url: str,
        secret: str = "",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self.secret = secret
        self.timeout = timeout
        self._client = client

    async def notify(self, notification: Notification) -> None:
        timestamp = datetime.now(timezone.utc).isoformat()
        payload_json = json.dumps(
            {
                "event_type": f"notification.{notification.type}",
                "timestamp": timestamp,
                "data": notification.to_payload(),
            },
            default=str,
        )

        headers = {
            "Content-Type": "application/json",
            "X-Webhook-Event": notification.type,
            "X-Webhook-Timestamp": timestamp,
        }
        if self.secret:
            headers["X-Webhook-Signature"] = generate_signature(payload_json, self.secret)

        if self._client is not None:
            response = await self._client.post(self.url, content=payload_json, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, content=payload_json, headers=headers)

        response.raise_for_status()
        logger.debug(
            f"Notification '{notification.type}' delivered to {notification.recipient_id} "
            f"(status {response.status_code})"
        )


def build_notifier(settings: Settings) -> Notifier:
    """Create the notifier for the configured environment."""
    if settings.uses_notification_webhook:
        return WebhookNotifier(
            url=settings.notification_webhook_url,
            secret=settings.notification_webhook_secret,
            timeout=settings.notification_timeout_seconds,
        )
    return LoggingNotifier()


class SideEffectQueue:
    """
    Side effects collected during an operation and run after commit.

    Each effect runs at most once, in its own try-scope; a failure is
    logged and does not stop the remaining effects.
    """

    def __init__(self, notifier: Notifier):
        self._notifier = notifier
        self._effects: list[tuple[str, Callable[[], Awaitable[Any]]]] = []

    def __len__(self) -> int:
        return len(self._effects)

    def enqueue(self, description: str, effect: Callable[[], Awaitable[Any]]) -> None:
        """Queue an async callable to run after commit."""
        self._effects.append((description, effect))

    def notify(self, notification: Notification) -> None:
        """Queue a notification."""
        self.enqueue(
            f"notify {notification.type} to {notification.recipient_id}",
            lambda: self._notifier.notify(notification),
        )

    async def dispatch(self) -> int:
        """
        Run and clear all queued effects.

        Returns:
            Number of effects that completed without error
        """
        effects, self._effects = self._effects, []
        succeeded = 0
        for description, effect in effects:
            try:
                await effect()
                succeeded += 1
            except Exception as e:
                logger.warning(f"Side effect failed ({description}): {e}", exc_info=True)
        return succeeded
