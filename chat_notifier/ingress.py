import re
from typing import Any, Dict, Mapping, Optional

from .config import settings
from .errors import MalformedEventError
from .schemas import ChatMessageEvent, MessageType


def path_params(document_path: str, template: Optional[str] = None) -> Dict[str, str]:
    """
    Extract path parameters from a document path.

    >>> path_params("chats/alice_bob/messages/m1")
    {'chatId': 'alice_bob', 'messageId': 'm1'}
    """
    template = template or settings.message_path_template
    pattern = re.sub(r"\\\{(\w+)\\\}", r"(?P<\1>[^/]+)", re.escape(template))
    match = re.fullmatch(pattern, document_path.strip("/"))
    if not match:
        return {}
    return match.groupdict()


def parse_record_created(record: Any,
                         params: Any = None,
                         document_path: Any = None) -> ChatMessageEvent:
    """
    Turn a record-created notification into a chat message event.

    Args:
        record: Fields of the new message record
        params: Path parameters (chatId, messageId)
        document_path: Full document path, fills in params not given explicitly

    Returns:
        ChatMessageEvent

    Raises:
        MalformedEventError if the record, chat key, message ID or sender ID is missing
    """
    if params is not None and not isinstance(params, Mapping):
        raise MalformedEventError("Event params are not an object")
    if document_path is not None and not isinstance(document_path, str):
        raise MalformedEventError("Event document path is not a string")

    merged = path_params(document_path) if document_path else {}
    merged.update(params or {})
    params = merged

    chat_id = params.get('chatId')
    message_id = params.get('messageId')
    if not isinstance(chat_id, str) or not chat_id:
        raise MalformedEventError("Chat ID is missing from the event")
    if not isinstance(message_id, str) or not message_id:
        raise MalformedEventError(f"[{chat_id}] Message ID is missing from the event")

    if not isinstance(record, Mapping):
        raise MalformedEventError(f"[{chat_id}] Message data is missing for message {message_id}")

    sender_id = record.get('senderId')
    if not isinstance(sender_id, str) or not sender_id:
        raise MalformedEventError(f"[{chat_id}] Sender ID is missing in message {message_id}")

    content = record.get('content')
    return ChatMessageEvent(
        chat_id=chat_id,
        message_id=message_id,
        sender_id=sender_id,
        content=content if isinstance(content, str) else None,
        message_type=MessageType.parse(record.get('type')),
    )
