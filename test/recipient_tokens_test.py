import pytest

from chat_notifier.errors import NoDeliveryTokensError, RecipientLookupError
from chat_notifier.recipient_tokens import fetch_recipient_tokens


@pytest.mark.asyncio
async def test_returns_tokens(store):
    assert await fetch_recipient_tokens(store, "bob") == ["t1", "t2"]


@pytest.mark.asyncio
async def test_filters_malformed_tokens(store, users):
    users["bob"]["fcmTokens"] = ["", "t1", None, {"token": "x"}]
    assert await fetch_recipient_tokens(store, "bob") == ["t1"]


@pytest.mark.asyncio
async def test_fetch_failure_is_fatal(store):
    store.failing_reads.add("bob")
    with pytest.raises(RecipientLookupError):
        await fetch_recipient_tokens(store, "bob")


@pytest.mark.asyncio
async def test_missing_profile_has_no_tokens(store):
    with pytest.raises(NoDeliveryTokensError):
        await fetch_recipient_tokens(store, "nobody")


@pytest.mark.asyncio
async def test_empty_token_list(store, users):
    users["bob"]["fcmTokens"] = ["", None]
    with pytest.raises(NoDeliveryTokensError):
        await fetch_recipient_tokens(store, "bob")
