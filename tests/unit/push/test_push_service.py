"""Tests for push subscriptions and notification fan-out."""

from types import SimpleNamespace

import pytest
from pywebpush import WebPushException

from agnys.core.modules.push import sender
from agnys.core.modules.push.models import DeliveryResult, NotificationPayload, PushSubscription
from agnys.core.modules.push.sender import WebPushTransport
from agnys.errors import ValidationError


@pytest.fixture
def subscriptions(database):
    return database.get_collection("push_subscriptions")


class TestSubscribe:
    """Tests for PushService.subscribe and unsubscribe."""

    async def test_resubscribe_updates_keys(self, core, alice, subscriptions):
        """Test that the same endpoint is stored once with the latest keys."""
        await core.services.push.subscribe(alice, "https://push.example.com/1", "key-a", "auth-a")
        await core.services.push.subscribe(alice, "https://push.example.com/1", "key-b", "auth-b")

        assert len(subscriptions.docs) == 1
        assert subscriptions.docs[0]["p256dh"] == "key-b"

    async def test_existing_subscription_refreshed_in_one_write(self, core, alice, subscriptions):
        """Test that re-subscribing is a single upsert keeping the record's id and creation time."""
        first = await core.services.push.subscribe(alice, "https://push.example.com/1", "key-a", "auth-a")
        subscriptions.calls.clear()

        second = await core.services.push.subscribe(alice, "https://push.example.com/1", "key-b", "auth-b")

        assert subscriptions.calls == ["find_one_and_update"]
        assert second.id == first.id
        assert second.created_at == first.created_at
        assert (second.p256dh, second.auth) == ("key-b", "auth-b")

    async def test_same_endpoint_for_two_users_is_two_records(self, core, alice, bob, subscriptions):
        """Test that the upsert is keyed by owner as well as endpoint."""
        await core.services.push.subscribe(alice, "https://push.example.com/shared", "k", "a")
        await core.services.push.subscribe(bob, "https://push.example.com/shared", "k", "a")

        assert sorted(doc["user_id"] for doc in subscriptions.docs) == sorted([alice.user_id, bob.user_id])

    async def test_missing_endpoint_rejected(self, core, alice):
        """Test that incomplete subscriptions are refused."""
        with pytest.raises(ValidationError, match="Invalid subscription"):
            await core.services.push.subscribe(alice, "", "key", "auth")

    async def test_unsubscribe_only_removes_own(self, core, alice, bob, subscriptions):
        """Test that unsubscribing is scoped to the caller."""
        await core.services.push.subscribe(alice, "https://push.example.com/shared", "k", "a")
        await core.services.push.unsubscribe(bob, "https://push.example.com/shared")
        assert len(subscriptions.docs) == 1


class TestSendToUser:
    """Tests for PushService.send_to_user."""

    async def test_gone_subscriptions_are_removed(self, core, alice, push_transport, subscriptions):
        """Test that expired endpoints are deleted and counted."""
        await core.services.push.subscribe(alice, "https://push.example.com/live", "k", "a")
        await core.services.push.subscribe(alice, "https://push.example.com/gone", "k", "a")
        await core.services.push.subscribe(alice, "https://push.example.com/flaky", "k", "a")
        push_transport.results["https://push.example.com/gone"] = DeliveryResult.GONE
        push_transport.results["https://push.example.com/flaky"] = DeliveryResult.ERROR

        report = await core.services.push.send_to_user(alice, NotificationPayload(title="Hi", body="There"))

        assert (report.sent, report.removed, report.failed) == (1, 1, 1)
        assert sorted(doc["endpoint"] for doc in subscriptions.docs) == [
            "https://push.example.com/flaky",
            "https://push.example.com/live",
        ]

    async def test_only_callers_devices_are_notified(self, core, alice, bob, push_transport):
        """Test that a send never reaches other users' subscriptions."""
        await core.services.push.subscribe(alice, "https://push.example.com/alice", "k", "a")
        await core.services.push.subscribe(bob, "https://push.example.com/bob", "k", "a")

        await core.services.push.send_to_user(alice, NotificationPayload(title="Hi", body="There"))

        assert [endpoint for endpoint, _ in push_transport.sent] == ["https://push.example.com/alice"]


class TestWebPushTransport:
    """Tests for mapping pywebpush outcomes to delivery results."""

    @pytest.fixture
    def transport(self):
        return WebPushTransport("public", "private", "mailto:test@example.com")

    @pytest.fixture
    def subscription(self, alice):
        return PushSubscription(user_id=alice.user_id, endpoint="https://push.example.com/1", p256dh="k", auth="a")

    @pytest.mark.parametrize(
        ("status_code", "expected"),
        [(404, DeliveryResult.GONE), (410, DeliveryResult.GONE), (500, DeliveryResult.ERROR)],
    )
    async def test_status_codes(self, monkeypatch, transport, subscription, status_code, expected):
        """Test that 404/410 mean gone and other failures are plain errors."""

        def fail(**kwargs):
            raise WebPushException("push failed", response=SimpleNamespace(status_code=status_code))

        monkeypatch.setattr(sender, "webpush", fail)
        assert await transport.send(subscription, NotificationPayload(title="t", body="b")) == expected

    async def test_success(self, monkeypatch, transport, subscription):
        """Test that the payload is sent as JSON with the VAPID claims."""
        calls = []
        monkeypatch.setattr(sender, "webpush", lambda **kwargs: calls.append(kwargs))

        result = await transport.send(subscription, NotificationPayload(title="t", body="b"))

        assert result == DeliveryResult.DELIVERED
        assert calls[0]["subscription_info"]["endpoint"] == "https://push.example.com/1"
        assert calls[0]["vapid_claims"] == {"sub": "mailto:test@example.com"}
