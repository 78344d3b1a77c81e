import asyncio

import pytest

from chat_functions.notifications import build_notification_payload, cleanup_tokens, send_notifications, truncate_body
from chat_functions.schemas import (
    INVALID_REGISTRATION_TOKEN,
    REGISTRATION_TOKEN_NOT_REGISTERED,
    DeliveryResult,
    Message,
)
from conftest import FakeDeliveryService, FakeTokenRegistry


def test_short_text_is_kept():
    assert truncate_body("hi") == "hi"
    assert truncate_body("x" * 100) == "x" * 100


def test_long_text_is_truncated():
    text = "abcdefghij" * 15
    body = truncate_body(text)
    assert len(body) == 100
    assert body == text[:97] + "..."


def test_missing_text_gives_empty_body():
    assert truncate_body(None) == ""
    assert truncate_body("") == ""


def test_payload_for_text_message(settings):
    payload = build_notification_payload(Message(name="Ann", text="hi", profilePicUrl="/me.png"), settings)
    assert payload.to_dict() == {
        "notification": {
            "title": "Ann posted a message",
            "body": "hi",
            "icon": "/me.png",
            "click_action": "https://demo-chat.firebaseapp.com",
        }
    }


def test_payload_for_image_message_uses_placeholder(settings):
    payload = build_notification_payload(Message(name="Bo", text=None, profilePicUrl=None), settings)
    assert payload.notification.title == "Bo posted an image"
    assert payload.notification.body == ""
    assert payload.notification.icon == "/images/profile_placeholder.png"


def test_no_tokens_means_no_delivery(settings):
    registry = FakeTokenRegistry()
    delivery = FakeDeliveryService()

    report = asyncio.run(send_notifications(Message(name="Ann", text="hi"), registry, delivery, settings))

    assert delivery.calls == []
    assert not report.dispatched
    assert report.removed_tokens == []


def test_successful_delivery_deletes_nothing(settings):
    registry = FakeTokenRegistry(["T1"])
    delivery = FakeDeliveryService()

    report = asyncio.run(send_notifications(Message(name="Ann", text="hi"), registry, delivery, settings))

    assert len(delivery.calls) == 1
    tokens, payload = delivery.calls[0]
    assert tokens == ["T1"]
    assert payload.notification.body == "hi"
    assert registry.deleted == []
    assert report.removed_tokens == []


def test_unregistered_token_is_deleted(settings):
    registry = FakeTokenRegistry(["T2"])
    delivery = FakeDeliveryService({"T2": REGISTRATION_TOKEN_NOT_REGISTERED})

    report = asyncio.run(send_notifications(
        Message(name="Bo", text=None, profilePicUrl=None), registry, delivery, settings
    ))

    assert registry.deleted == ["T2"]
    assert report.payload.notification.title == "Bo posted an image"
    assert report.payload.notification.icon == settings.notification_placeholder_icon


def test_only_the_invalid_token_in_a_large_batch_is_deleted(settings):
    tokens = [f"token-{i}" for i in range(100)]
    registry = FakeTokenRegistry(tokens)
    delivery = FakeDeliveryService({tokens[50]: INVALID_REGISTRATION_TOKEN})

    report = asyncio.run(send_notifications(Message(name="Ann", text="hello"), registry, delivery, settings))

    assert registry.deleted == ["token-50"]
    assert report.removed_tokens == ["token-50"]
    assert len(registry.tokens) == 99


@pytest.mark.parametrize("code, deleted", [
    (INVALID_REGISTRATION_TOKEN, True),
    (REGISTRATION_TOKEN_NOT_REGISTERED, True),
    ("unavailable", False),
    ("internal", False),
    ("mismatched-credential", False),
])
def test_only_permanent_errors_deregister(code, deleted):
    registry = FakeTokenRegistry(["A"])

    removed = asyncio.run(cleanup_tokens([DeliveryResult(token="A", error_code=code)], registry))

    assert (registry.deleted == ["A"]) is deleted
    assert (removed == ["A"]) is deleted


def test_failed_deletion_does_not_stop_the_others(caplog):
    registry = FakeTokenRegistry(["A", "B", "C"], failing_deletes={"B"})
    results = [DeliveryResult(token=token, error_code=INVALID_REGISTRATION_TOKEN) for token in ["A", "B", "C"]]

    removed = asyncio.run(cleanup_tokens(results, registry))

    assert removed == ["A", "B", "C"]
    assert sorted(registry.deleted) == ["A", "C"]
    assert "Error removing invalid token B" in caplog.text


def test_failures_are_logged(caplog):
    registry = FakeTokenRegistry(["A"])

    asyncio.run(cleanup_tokens([DeliveryResult(token="A", error_code="unavailable", error_message="try later")], registry))

    assert "Failure sending notification to A: unavailable try later" in caplog.text
    assert registry.deleted == []


def test_delivery_failure_propagates(settings):
    class BrokenDelivery:
        async def send_to_tokens(self, tokens, payload):
            raise ConnectionError("fcm down")

    registry = FakeTokenRegistry(["T1"])
    with pytest.raises(ConnectionError):
        asyncio.run(send_notifications(Message(name="Ann", text="hi"), registry, BrokenDelivery(), settings))
    assert registry.deleted == []
