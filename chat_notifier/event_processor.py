import asyncio
import logging
from typing import Any

from .config import settings
from .dispatcher import dispatch, prune_invalid_tokens
from .errors import (
    DispatchError,
    InvalidChatKeyError,
    MalformedEventError,
    NoDeliveryTokensError,
    RecipientLookupError,
)
from .ingress import parse_record_created
from .participants import resolve_participants
from .payload_builder import build_payload
from .profile_store import ProfileStore
from .push_gateway import PushGateway
from .recipient_tokens import fetch_recipient_tokens
from .schemas import ChatMessageEvent, DeliveryOptions, PipelineResult, PipelineStatus
from .sender_identity import resolve_sender_name

logger = logging.getLogger(__name__)


class EventProcessor:
    """Runs the notification pipeline for newly created chat messages."""

    def __init__(self, profile_store: ProfileStore, push_gateway: PushGateway):
        """
        Initialize the event processor.

        Args:
            profile_store: Store for user profiles and tokens
            push_gateway: Gateway used to deliver notifications
        """
        self.profiles = profile_store
        self.gateway = push_gateway
        logger.info("Event processor initialized")

    async def process_record(self,
                             record: Any,
                             params: Any = None,
                             document_path: Any = None) -> PipelineResult:
        """
        Process a record-created notification for a chat message.

        Malformed input is logged and dropped.
        """
        try:
            event = parse_record_created(record, params, document_path)
        except MalformedEventError as e:
            logger.error(str(e))
            return PipelineResult(status=PipelineStatus.MALFORMED_EVENT)

        return await self.process_event(event)

    async def process_event(self, event: ChatMessageEvent) -> PipelineResult:
        """
        Notify the other participant of a chat about a new message.

        Args:
            event: The new message

        Returns:
            PipelineResult describing how far the pipeline got
        """
        chat_id = event.chat_id
        logger.info(f"[{chat_id}] New message detected (ID: {event.message_id})")

        try:
            participants = resolve_participants(chat_id, event.sender_id, settings.chat_key_separator)
        except InvalidChatKeyError as e:
            logger.error(f"[{chat_id}] {str(e)}")
            return PipelineResult(status=PipelineStatus.INVALID_CHAT_KEY, chat_id=chat_id)

        recipient_id = participants.recipient_id
        logger.info(f"[{chat_id}] Sender: {event.sender_id}, Recipient: {recipient_id}")

        # Sender name and recipient tokens are independent lookups
        try:
            sender_name, tokens = await asyncio.gather(
                resolve_sender_name(self.profiles, event.sender_id),
                fetch_recipient_tokens(self.profiles, recipient_id),
            )
        except RecipientLookupError as e:
            logger.error(f"[{chat_id}] {str(e)}")
            return PipelineResult(status=PipelineStatus.RECIPIENT_LOOKUP_FAILED,
                                  chat_id=chat_id, recipient_id=recipient_id)
        except NoDeliveryTokensError as e:
            logger.info(f"[{chat_id}] {str(e)}")
            return PipelineResult(status=PipelineStatus.NO_TOKENS,
                                  chat_id=chat_id, recipient_id=recipient_id)

        logger.info(f"[{chat_id}] Sender name: {sender_name}")

        payload = build_payload(chat_id, event.sender_id, sender_name,
                                event.message_type, event.content)

        logger.info(f"[{chat_id}] Preparing to send notification to {len(tokens)} tokens.")
        try:
            outcomes = await dispatch(self.gateway, payload, tokens, DeliveryOptions())
        except DispatchError as e:
            logger.error(f"[{chat_id}] {str(e)}")
            return PipelineResult(status=PipelineStatus.DISPATCH_FAILED,
                                  chat_id=chat_id, recipient_id=recipient_id)

        success_count = sum(1 for outcome in outcomes if outcome.success)
        failure_count = len(outcomes) - success_count
        logger.info(f"[{chat_id}] Send finished: {success_count} successes, {failure_count} failures.")

        result = PipelineResult(
            status=PipelineStatus.DELIVERED,
            chat_id=chat_id,
            recipient_id=recipient_id,
            success_count=success_count,
            failure_count=failure_count,
        )

        if failure_count:
            try:
                result.pruned_tokens = await prune_invalid_tokens(self.profiles, recipient_id, outcomes)
            except Exception as e:
                logger.error(f"[{chat_id}] Error removing invalid tokens for user {recipient_id}: {str(e)}")
                result.prune_failed = True

        return result
