import asyncio
import logging
from typing import List

from .errors import NoDeliveryTokensError, RecipientLookupError
from .profile_store import ProfileStore

logger = logging.getLogger(__name__)


async def fetch_recipient_tokens(store: ProfileStore, recipient_id: str) -> List[str]:
    """
    Get the recipient's valid delivery tokens.

    Args:
        store: Profile store to read from
        recipient_id: The recipient's user ID

    Returns:
        Non-empty list of unique, non-empty token strings

    Raises:
        RecipientLookupError if the profile cannot be read
        NoDeliveryTokensError if the recipient has no usable tokens
    """
    try:
        profile = await asyncio.to_thread(store.get_profile, recipient_id)
    except Exception as e:
        raise RecipientLookupError(f"Error fetching recipient profile ({recipient_id}): {str(e)}") from e

    if profile is None:
        raise NoDeliveryTokensError(f"Recipient {recipient_id} has no profile")

    if not profile.tokens:
        raise NoDeliveryTokensError(f"Recipient {recipient_id} has no valid tokens")

    logger.debug(f"Found {len(profile.tokens)} tokens for recipient {recipient_id}")
    return profile.tokens
