from .errors import InvalidChatKeyError
from .schemas import Participants


def resolve_participants(chat_id: str, sender_id: str, separator: str = "_") -> Participants:
    """
    Work out who receives a message from a two-person chat key.

    Args:
        chat_id: Chat key of the form "<userA><separator><userB>"
        sender_id: The user who wrote the message
        separator: Separator between the two user IDs

    Returns:
        Participants with the sender and the other user

    Raises:
        InvalidChatKeyError if the key does not hold the sender and exactly one other user
    """
    segments = chat_id.split(separator)
    if len(segments) != 2 or not all(segments):
        raise InvalidChatKeyError(f"Invalid chat key format: {chat_id!r}")

    others = [segment for segment in segments if segment != sender_id]
    if len(others) != 1:
        raise InvalidChatKeyError(
            f"Cannot determine recipient for sender {sender_id!r} in chat {chat_id!r}"
        )

    return Participants(sender_id=sender_id, recipient_id=others[0])
