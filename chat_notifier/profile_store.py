import logging
from typing import Iterable, List, Optional

import google.cloud.firestore
from firebase_admin import firestore

from .config import settings
from .schemas import UserProfile

logger = logging.getLogger(__name__)


class ProfileStore:
    """Reads user profiles and prunes their delivery tokens in Firestore."""

    def __init__(self, firestore_db: Optional[google.cloud.firestore.Client] = None):
        if firestore_db is None:
            from .firebase import get_firestore_db
            firestore_db = get_firestore_db()
        self.firestore_db = firestore_db

    def _user_ref(self, user_id: str):
        return self.firestore_db.collection(settings.users_collection).document(user_id)

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """
        Get a user's profile from Firestore.

        Args:
            user_id: The user's ID

        Returns:
            UserProfile, or None if the user document does not exist

        Raises:
            Any error raised by the Firestore client on a failed read
        """
        user = self._user_ref(user_id).get()
        if not user.exists:
            return None

        return UserProfile.from_document(
            user_id,
            user.to_dict(),
            full_name_field=settings.full_name_field,
            privileged_field=settings.privileged_field,
            tokens_field=settings.tokens_field,
        )

    def remove_tokens(self, user_id: str, tokens: Iterable[str]) -> List[str]:
        """
        Remove the given tokens from a user's token array.

        Uses an ArrayRemove update so concurrent token registrations are kept.
        The update fails if the user document no longer exists.

        Args:
            user_id: The user's ID
            tokens: Tokens to remove

        Returns:
            The tokens that were submitted for removal
        """
        tokens = list(dict.fromkeys(tokens))
        if not tokens:
            return []

        self._user_ref(user_id).update({
            settings.tokens_field: firestore.ArrayRemove(tokens)
        })
        logger.info(f"Removed {len(tokens)} tokens for user {user_id}")
        return tokens
