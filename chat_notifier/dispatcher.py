import asyncio
import logging
from typing import List, Optional

from .config import settings
from .errors import DispatchError
from .profile_store import ProfileStore
from .push_gateway import PushGateway
from .schemas import DeliveryOptions, DeliveryOutcome, NotificationPayload

logger = logging.getLogger(__name__)


async def dispatch(gateway: PushGateway,
                   payload: NotificationPayload,
                   tokens: List[str],
                   options: Optional[DeliveryOptions] = None) -> List[DeliveryOutcome]:
    """
    Send a payload to every token and collect per-token outcomes.

    Args:
        gateway: Push gateway to send through
        payload: Notification to deliver
        tokens: Recipient tokens, non-empty
        options: Delivery options, high priority with background wake by default

    Returns:
        One DeliveryOutcome per token, index-aligned with tokens

    Raises:
        DispatchError if a batch request fails as a whole
    """
    options = options or DeliveryOptions()
    outcomes: List[DeliveryOutcome] = []

    # Batch tokens (max 500 per request)
    for i in range(0, len(tokens), settings.fcm_batch_size):
        batch = tokens[i:i + settings.fcm_batch_size]
        try:
            outcomes.extend(await asyncio.to_thread(gateway.send_batch, batch, payload, options))
        except Exception as e:
            raise DispatchError(f"Error sending batch of {len(batch)} notifications: {str(e)}") from e

    for outcome in outcomes:
        if not outcome.success:
            code = outcome.error_code.value if outcome.error_code else "unknown"
            logger.warning(f"Failure sending to token {outcome.token}: {code} ({outcome.error_message})")

    return outcomes


async def prune_invalid_tokens(store: ProfileStore,
                               recipient_id: str,
                               outcomes: List[DeliveryOutcome]) -> List[str]:
    """
    Remove tokens that failed with a permanent-invalidity code.

    Other failures are left in place. The removal is a single update and
    its own failure propagates to the caller.

    Returns:
        Tokens removed, empty if nothing qualified
    """
    invalid_tokens = [outcome.token for outcome in outcomes if outcome.is_permanent_failure]
    if not invalid_tokens:
        return []

    logger.info(f"Removing {len(invalid_tokens)} invalid tokens for user {recipient_id}")
    return await asyncio.to_thread(store.remove_tokens, recipient_id, invalid_tokens)
