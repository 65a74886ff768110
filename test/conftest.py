from typing import Dict, List, Optional

import pytest

from chat_notifier.config import settings
from chat_notifier.event_processor import EventProcessor
from chat_notifier.schemas import (
    DeliveryErrorCode,
    DeliveryOptions,
    DeliveryOutcome,
    NotificationPayload,
    UserProfile,
)


class FakeProfileStore:
    """In-memory profile store with set-difference token removal."""

    def __init__(self, documents: Optional[Dict[str, dict]] = None):
        self.documents = documents or {}
        self.failing_reads = set()
        self.fail_removal = False
        self.reads: List[str] = []
        self.removals: List[tuple] = []

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        self.reads.append(user_id)
        if user_id in self.failing_reads:
            raise RuntimeError(f"Firestore unavailable for {user_id}")
        if user_id not in self.documents:
            return None
        return UserProfile.from_document(user_id, self.documents[user_id])

    def remove_tokens(self, user_id: str, tokens) -> List[str]:
        tokens = list(tokens)
        self.removals.append((user_id, tokens))
        if self.fail_removal:
            raise RuntimeError("update failed")
        stored = self.documents[user_id].get("fcmTokens", [])
        self.documents[user_id]["fcmTokens"] = [t for t in stored if t not in tokens]
        return tokens


class FakePushGateway:
    """Records batches and answers with configured per-token errors."""

    def __init__(self, errors: Optional[Dict[str, DeliveryErrorCode]] = None, fail_batch: bool = False):
        self.errors = errors or {}
        self.fail_batch = fail_batch
        self.batches: List[tuple] = []

    def send_batch(self, tokens: List[str], payload: NotificationPayload,
                   options: Optional[DeliveryOptions] = None) -> List[DeliveryOutcome]:
        self.batches.append((list(tokens), payload, options))
        if self.fail_batch:
            raise RuntimeError("FCM request failed")
        return [
            DeliveryOutcome(token=token, success=False, error_code=self.errors[token], error_message="failed")
            if token in self.errors else DeliveryOutcome(token=token, success=True)
            for token in tokens
        ]


@pytest.fixture
def users():
    return {
        "alice": {"fullName": "Alice A", "isAdmin": False, "fcmTokens": ["a1"]},
        "bob": {"fullName": "Bob B", "fcmTokens": ["t1", "t2"]},
    }


@pytest.fixture
def store(users):
    return FakeProfileStore(users)


@pytest.fixture
def gateway():
    return FakePushGateway()


@pytest.fixture
def processor(store, gateway):
    return EventProcessor(profile_store=store, push_gateway=gateway)


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    monkeypatch.setattr(settings, "privileged_display_name", "Dr. Ali Kamal")
    monkeypatch.setattr(settings, "default_sender_name", "Someone")
    monkeypatch.setattr(settings, "max_body_length", 150)
    monkeypatch.setattr(settings, "max_sender_name_length", 64)
    monkeypatch.setattr(settings, "fcm_batch_size", 500)
    monkeypatch.setattr(settings, "chat_key_separator", "_")
    monkeypatch.setattr(settings, "sqs_receive_attempts", 3)
