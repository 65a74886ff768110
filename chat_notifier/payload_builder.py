from typing import Optional

from .config import settings
from .schemas import MessageType, NotificationData, NotificationPayload

DEFAULT_BODY = "New message"
ELLIPSIS = "..."

_MEDIA_BODIES = {
    MessageType.IMAGE: "{sender} sent an image.",
    MessageType.AUDIO: "{sender} sent a voice message.",
    MessageType.DOCUMENT: "{sender} sent a document.",
}


def truncate_body(body: str, limit: Optional[int] = None) -> str:
    limit = settings.max_body_length if limit is None else limit
    if len(body) > limit:
        return body[:limit] + ELLIPSIS
    return body


def build_body(message_type: MessageType, content: Optional[str], sender_name: str) -> str:
    if message_type == MessageType.TEXT and content:
        return content
    template = _MEDIA_BODIES.get(message_type)
    if template:
        return template.format(sender=sender_name)
    return DEFAULT_BODY


def build_payload(chat_id: str,
                  sender_id: str,
                  sender_name: str,
                  message_type: MessageType,
                  content: Optional[str]) -> NotificationPayload:
    """Render the notification shown to the recipient of a chat message."""
    # Names come from the sender's own profile and count against FCM's payload limit
    sender_name = truncate_body(sender_name, settings.max_sender_name_length)
    return NotificationPayload(
        title=f"New message from {sender_name}",
        body=truncate_body(build_body(message_type, content, sender_name)),
        data=NotificationData(
            chatId=chat_id,
            senderId=sender_id,
            senderName=sender_name,
        ),
    )
