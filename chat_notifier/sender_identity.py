import asyncio
import logging

from .config import settings
from .profile_store import ProfileStore

logger = logging.getLogger(__name__)


async def resolve_sender_name(store: ProfileStore, sender_id: str) -> str:
    """
    Get the name to show as the sender of a notification.

    Privileged accounts all appear under one shared persona. Lookup failures
    fall back to the default name and never abort the pipeline.
    """
    try:
        profile = await asyncio.to_thread(store.get_profile, sender_id)
    except Exception as e:
        logger.error(f"Error fetching sender profile ({sender_id}): {str(e)}")
        return settings.default_sender_name

    if profile is None:
        logger.info(f"Sender profile {sender_id} not found, using default name")
        return settings.default_sender_name

    if profile.privileged:
        logger.info(f"Sender {sender_id} is privileged, using {settings.privileged_display_name}")
        return settings.privileged_display_name

    return profile.full_name or settings.default_sender_name
