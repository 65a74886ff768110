import pytest

from chat_notifier.config import settings
from chat_notifier.dispatcher import dispatch, prune_invalid_tokens
from chat_notifier.errors import DispatchError
from chat_notifier.payload_builder import build_payload
from chat_notifier.schemas import DeliveryErrorCode, DeliveryOutcome, MessageType

from conftest import FakePushGateway


@pytest.fixture
def payload():
    return build_payload("alice_bob", "alice", "Alice A", MessageType.TEXT, "hello")


@pytest.mark.asyncio
async def test_dispatch_sends_one_batch_with_high_priority(gateway, payload):
    outcomes = await dispatch(gateway, payload, ["t1", "t2"])

    assert [o.token for o in outcomes] == ["t1", "t2"]
    assert len(gateway.batches) == 1
    tokens, sent_payload, options = gateway.batches[0]
    assert tokens == ["t1", "t2"]
    assert sent_payload == payload
    assert options.background_wake is True
    assert options.priority == "high"


@pytest.mark.asyncio
async def test_dispatch_splits_oversized_batches(gateway, payload, monkeypatch):
    monkeypatch.setattr(settings, "fcm_batch_size", 2)
    tokens = ["t1", "t2", "t3", "t4", "t5"]

    outcomes = await dispatch(gateway, payload, tokens)

    assert [batch[0] for batch in gateway.batches] == [["t1", "t2"], ["t3", "t4"], ["t5"]]
    assert [o.token for o in outcomes] == tokens


@pytest.mark.asyncio
async def test_dispatch_batch_failure_raises(payload):
    with pytest.raises(DispatchError):
        await dispatch(FakePushGateway(fail_batch=True), payload, ["t1"])


@pytest.mark.asyncio
async def test_per_token_failures_are_returned(payload, caplog):
    gateway = FakePushGateway(errors={"t1": DeliveryErrorCode.UNAVAILABLE})
    caplog.set_level("WARNING")

    outcomes = await dispatch(gateway, payload, ["t1", "t2"])

    assert [o.success for o in outcomes] == [False, True]
    assert "Failure sending to token t1" in caplog.text


@pytest.mark.asyncio
async def test_prune_removes_only_permanent_failures(store, users):
    users["bob"]["fcmTokens"] = ["t1", "t2", "t3", "t4"]
    outcomes = [
        DeliveryOutcome(token="t1", success=False, error_code=DeliveryErrorCode.TOKEN_NOT_REGISTERED),
        DeliveryOutcome(token="t2", success=False, error_code=DeliveryErrorCode.INVALID_TOKEN),
        DeliveryOutcome(token="t3", success=False, error_code=DeliveryErrorCode.QUOTA_EXCEEDED),
        DeliveryOutcome(token="t4", success=True),
    ]

    removed = await prune_invalid_tokens(store, "bob", outcomes)

    assert removed == ["t1", "t2"]
    assert store.removals == [("bob", ["t1", "t2"])]
    assert users["bob"]["fcmTokens"] == ["t3", "t4"]


@pytest.mark.asyncio
async def test_prune_skips_update_when_nothing_qualifies(store):
    outcomes = [
        DeliveryOutcome(token="t1", success=False, error_code=DeliveryErrorCode.INTERNAL),
        DeliveryOutcome(token="t2", success=True),
    ]
    assert await prune_invalid_tokens(store, "bob", outcomes) == []
    assert store.removals == []
