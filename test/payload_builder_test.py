import pytest

from chat_notifier.config import settings
from chat_notifier.payload_builder import build_body, build_payload, truncate_body
from chat_notifier.schemas import MessageType


@pytest.mark.parametrize("message_type, content, expected", [
    (MessageType.TEXT, "hello", "hello"),
    (MessageType.TEXT, None, "New message"),
    (MessageType.TEXT, "", "New message"),
    (MessageType.IMAGE, "ignored", "Alice A sent an image."),
    (MessageType.AUDIO, None, "Alice A sent a voice message."),
    (MessageType.DOCUMENT, None, "Alice A sent a document."),
    (MessageType.OTHER, "hi", "New message"),
])
def test_body_by_message_type(message_type, content, expected):
    assert build_body(message_type, content, "Alice A") == expected


def test_long_body_is_truncated_with_ellipsis():
    content = "x" * 149 + "yz" + "tail"
    body = truncate_body(content)
    assert len(body) == 153
    assert body[:150] == content[:150]
    assert body.endswith("...")


def test_body_at_limit_is_unchanged():
    content = "a" * 150
    assert truncate_body(content) == content


def test_long_sender_names_are_bounded():
    payload = build_payload("a_b", "a", "N" * 5000, MessageType.IMAGE, None)
    bounded = "N" * 64 + "..."
    assert payload.data.senderName == bounded
    assert payload.title == f"New message from {bounded}"
    assert payload.body == f"{bounded} sent an image."


def test_truncates_media_bodies_with_long_names(monkeypatch):
    monkeypatch.setattr(settings, "max_sender_name_length", 500)
    payload = build_payload("a_b", "a", "N" * 200, MessageType.IMAGE, None)
    assert len(payload.body) == 153


def test_build_payload_matches_wire_schema():
    payload = build_payload("alice_bob", "alice", "Alice A", MessageType.TEXT, "hello")
    assert payload.to_wire() == {
        "notification": {"title": "New message from Alice A", "body": "hello"},
        "data": {
            "type": "chat_message",
            "chatId": "alice_bob",
            "senderId": "alice",
            "senderName": "Alice A",
        },
    }
