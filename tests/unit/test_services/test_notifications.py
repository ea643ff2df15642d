"""
Unit tests for the notification side-channel.

Tests:
- Notification payload serialization
- WebhookNotifier request shape and HMAC signature
- SideEffectQueue post-commit dispatch semantics
"""

import hashlib
import hmac
import json
import uuid
from unittest.mock import AsyncMock

import httpx
import pytest

from case_scheduler.config import Settings
from case_scheduler.models.enums import Role
from case_scheduler.services.notifications import (
    EVENT_CONFIRMED,
    LoggingNotifier,
    Notification,
    SideEffectQueue,
    WebhookNotifier,
    build_notifier,
    generate_signature,
)


@pytest.fixture
def notification() -> Notification:
    return Notification(
        recipient_id=uuid.uuid4(),
        recipient_type=Role.INDIVIDUAL,
        sender_id=uuid.uuid4(),
        sender_type=Role.LAW_FIRM,
        sender_name="Smith & Associates",
        type=EVENT_CONFIRMED,
        title="Event Confirmed",
        body="Smith & Associates has confirmed Deposition.",
        action_payload={"screen": "calendar"},
    )


class TestNotification:
    """Test Notification.to_payload()."""

    def test_payload_is_json_ready(self, notification):
        payload = notification.to_payload()

        assert payload["recipient_id"] == str(notification.recipient_id)
        assert payload["recipient_type"] == "individual"
        assert payload["sender_type"] == "law_firm"
        assert payload["type"] == "event_confirmed"
        assert payload["action_payload"] == {"screen": "calendar"}
        json.dumps(payload)


class TestWebhookNotifier:
    """Test WebhookNotifier delivery."""

    async def test_posts_signed_payload(self, notification):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["request"] = request
            return httpx.Response(202)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            notifier = WebhookNotifier("https://notify.test/hook", secret="s3cret", client=client)
            await notifier.notify(notification)

        request = captured["request"]
        body = request.content.decode("utf-8")
        data = json.loads(body)

        assert request.method == "POST"
        assert str(request.url) == "https://notify.test/hook"
        assert request.headers["X-Webhook-Event"] == "event_confirmed"
        assert data["event_type"] == "notification.event_confirmed"
        assert data["data"]["title"] == "Event Confirmed"

        expected = hmac.new(b"s3cret", body.encode("utf-8"), hashlib.sha256).hexdigest()
        assert request.headers["X-Webhook-Signature"] == expected

    async def test_unsigned_without_secret(self, notification):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["request"] = request
            return httpx.Response(200)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await WebhookNotifier("https://notify.test/hook", client=client).notify(notification)

        assert "X-Webhook-Signature" not in captured["request"].headers

    async def test_error_status_raises(self, notification):
        async with httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(503))
        ) as client:
            notifier = WebhookNotifier("https://notify.test/hook", client=client)
            with pytest.raises(httpx.HTTPStatusError):
                await notifier.notify(notification)

    def test_generate_signature_is_deterministic(self):
        assert generate_signature("{}", "k") == generate_signature("{}", "k")
        assert generate_signature("{}", "k") != generate_signature("{}", "other")


class TestBuildNotifier:
    """Test build_notifier()."""

    def test_logging_notifier_without_url(self):
        assert isinstance(build_notifier(Settings(_env_file=None, notification_webhook_url="")), LoggingNotifier)

    def test_webhook_notifier_with_url(self):
        settings = Settings(
            _env_file=None,
            notification_webhook_url="https://notify.test/hook",
            notification_webhook_secret="s3cret",
            notification_timeout_seconds=2.5,
        )
        notifier = build_notifier(settings)

        assert isinstance(notifier, WebhookNotifier)
        assert notifier.secret == "s3cret"
        assert notifier.timeout == 2.5


class TestSideEffectQueue:
    """Test SideEffectQueue.dispatch()."""

    async def test_notifications_are_sent_on_dispatch(self, notification):
        notifier = AsyncMock(spec=LoggingNotifier)
        queue = SideEffectQueue(notifier)

        queue.notify(notification)
        notifier.notify.assert_not_awaited()

        assert await queue.dispatch() == 1
        notifier.notify.assert_awaited_once_with(notification)

    async def test_failure_does_not_stop_other_effects(self, notification):
        notifier = AsyncMock(spec=LoggingNotifier)
        notifier.notify.side_effect = ConnectionError("notification service down")
        later = AsyncMock()

        queue = SideEffectQueue(notifier)
        queue.notify(notification)
        queue.enqueue("later effect", later)

        assert await queue.dispatch() == 1
        later.assert_awaited_once()

    async def test_effects_run_at_most_once(self, notification):
        notifier = AsyncMock(spec=LoggingNotifier)
        queue = SideEffectQueue(notifier)
        queue.notify(notification)

        await queue.dispatch()
        assert len(queue) == 0
        assert await queue.dispatch() == 0
        notifier.notify.assert_awaited_once()

