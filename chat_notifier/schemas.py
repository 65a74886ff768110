from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

CHAT_MESSAGE_NOTIFICATION_TYPE = "chat_message"


class MessageType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    DOCUMENT = "document"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> "MessageType":
        """Map a raw record value to a message type, unknown values become OTHER."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class ChatMessageEvent(BaseModel):
    """A newly created chat message record"""
    chat_id: str
    message_id: str
    sender_id: str
    content: Optional[str] = None
    message_type: MessageType = MessageType.OTHER


class Participants(BaseModel):
    sender_id: str
    recipient_id: str


class UserProfile(BaseModel):
    """The parts of a user document the notifier reads"""
    user_id: str
    full_name: Optional[str] = None
    privileged: bool = False
    tokens: List[str] = Field(default_factory=list)

    @classmethod
    def from_document(cls, user_id: str, data: Optional[Dict[str, Any]],
                      full_name_field: str = "fullName",
                      privileged_field: str = "isAdmin",
                      tokens_field: str = "fcmTokens") -> "UserProfile":
        """
        Build a profile from raw document data, dropping malformed fields.

        Args:
            user_id: The user's ID
            data: Document fields as returned by Firestore
            full_name_field: Field holding the display name
            privileged_field: Field holding the privileged flag
            tokens_field: Field holding the delivery token array

        Returns:
            UserProfile with only well-formed values kept
        """
        data = data or {}

        full_name = data.get(full_name_field)
        if not isinstance(full_name, str) or not full_name:
            full_name = None

        raw_tokens = data.get(tokens_field)
        tokens: List[str] = []
        if isinstance(raw_tokens, list):
            # Keep stored order, drop duplicates and non-string entries
            tokens = list(dict.fromkeys(
                token for token in raw_tokens if isinstance(token, str) and token
            ))

        return cls(
            user_id=user_id,
            full_name=full_name,
            privileged=data.get(privileged_field) is True,
            tokens=tokens,
        )


class NotificationData(BaseModel):
    """Data payload that lets the client route the notification"""
    type: str = CHAT_MESSAGE_NOTIFICATION_TYPE
    chatId: str
    senderId: str
    senderName: str


class NotificationPayload(BaseModel):
    title: str
    body: str
    data: NotificationData

    def to_wire(self) -> Dict[str, Dict[str, str]]:
        return {
            "notification": {"title": self.title, "body": self.body},
            "data": self.data.model_dump(),
        }


class DeliveryOptions(BaseModel):
    background_wake: bool = True
    priority: str = "high"

    def to_wire(self) -> Dict[str, Any]:
        return {"backgroundWake": self.background_wake, "priority": self.priority}


class DeliveryErrorCode(str, Enum):
    INVALID_TOKEN = "invalid-registration-token"
    TOKEN_NOT_REGISTERED = "registration-token-not-registered"
    SENDER_ID_MISMATCH = "sender-id-mismatch"
    QUOTA_EXCEEDED = "quota-exceeded"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal"
    THIRD_PARTY_AUTH_ERROR = "third-party-auth-error"
    INVALID_ARGUMENT = "invalid-argument"
    PAYLOAD_TOO_LARGE = "payload-size-limit-exceeded"
    UNKNOWN = "unknown"


# Codes meaning the token will never work again
PERMANENT_ERROR_CODES = frozenset({
    DeliveryErrorCode.INVALID_TOKEN,
    DeliveryErrorCode.TOKEN_NOT_REGISTERED,
})


class DeliveryOutcome(BaseModel):
    """Result of sending to a single token"""
    token: str
    success: bool
    error_code: Optional[DeliveryErrorCode] = None
    error_message: Optional[str] = None

    @property
    def is_permanent_failure(self) -> bool:
        return not self.success and self.error_code in PERMANENT_ERROR_CODES


class PipelineStatus(str, Enum):
    DELIVERED = "delivered"
    MALFORMED_EVENT = "malformed_event"
    INVALID_CHAT_KEY = "invalid_chat_key"
    RECIPIENT_LOOKUP_FAILED = "recipient_lookup_failed"
    NO_TOKENS = "no_tokens"
    DISPATCH_FAILED = "dispatch_failed"


class PipelineResult(BaseModel):
    """How one notification pipeline run ended"""
    status: PipelineStatus
    chat_id: Optional[str] = None
    recipient_id: Optional[str] = None
    success_count: int = 0
    failure_count: int = 0
    pruned_tokens: List[str] = Field(default_factory=list)
    prune_failed: bool = False
