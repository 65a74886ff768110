import logging
from typing import List, Optional

import firebase_admin
from firebase_admin import exceptions, messaging

from .schemas import (
    DeliveryErrorCode,
    DeliveryOptions,
    DeliveryOutcome,
    NotificationPayload,
)

logger = logging.getLogger(__name__)

# Exception types raised per token by FCM, most specific first
_ERROR_TYPES = [
    (messaging.UnregisteredError, DeliveryErrorCode.TOKEN_NOT_REGISTERED),
    (messaging.SenderIdMismatchError, DeliveryErrorCode.SENDER_ID_MISMATCH),
    (messaging.QuotaExceededError, DeliveryErrorCode.QUOTA_EXCEEDED),
    (messaging.ThirdPartyAuthError, DeliveryErrorCode.THIRD_PARTY_AUTH_ERROR),
    (exceptions.UnavailableError, DeliveryErrorCode.UNAVAILABLE),
    (exceptions.InternalError, DeliveryErrorCode.INTERNAL),
]

# Error code strings, including legacy FCM API codes
_ERROR_CODES = {
    "messaging/invalid-registration-token": DeliveryErrorCode.INVALID_TOKEN,
    "invalid-registration-token": DeliveryErrorCode.INVALID_TOKEN,
    "invalid-argument": DeliveryErrorCode.INVALID_ARGUMENT,
    "messaging/invalid-argument": DeliveryErrorCode.INVALID_ARGUMENT,
    "messaging/payload-size-limit-exceeded": DeliveryErrorCode.PAYLOAD_TOO_LARGE,
    "payload-size-limit-exceeded": DeliveryErrorCode.PAYLOAD_TOO_LARGE,
    "messaging/registration-token-not-registered": DeliveryErrorCode.TOKEN_NOT_REGISTERED,
    "registration-token-not-registered": DeliveryErrorCode.TOKEN_NOT_REGISTERED,
    "unregistered": DeliveryErrorCode.TOKEN_NOT_REGISTERED,
    "messaging/mismatched-credential": DeliveryErrorCode.SENDER_ID_MISMATCH,
    "sender-id-mismatch": DeliveryErrorCode.SENDER_ID_MISMATCH,
    "messaging/message-rate-exceeded": DeliveryErrorCode.QUOTA_EXCEEDED,
    "quota-exceeded": DeliveryErrorCode.QUOTA_EXCEEDED,
    "messaging/server-unavailable": DeliveryErrorCode.UNAVAILABLE,
    "unavailable": DeliveryErrorCode.UNAVAILABLE,
    "messaging/internal-error": DeliveryErrorCode.INTERNAL,
    "internal": DeliveryErrorCode.INTERNAL,
    "third-party-auth-error": DeliveryErrorCode.THIRD_PARTY_AUTH_ERROR,
}


def classify_error(error: Optional[Exception]) -> DeliveryErrorCode:
    """Map a per-token send exception to a delivery error code."""
    if error is None:
        return DeliveryErrorCode.UNKNOWN

    for error_type, code in _ERROR_TYPES:
        if isinstance(error, error_type):
            return code

    # INVALID_ARGUMENT also covers payload errors such as "Message is too big"
    if isinstance(error, exceptions.InvalidArgumentError):
        if 'registration token' in str(error).lower():
            return DeliveryErrorCode.INVALID_TOKEN
        return DeliveryErrorCode.INVALID_ARGUMENT

    raw_code = getattr(error, 'code', None)
    if isinstance(raw_code, str):
        return _ERROR_CODES.get(raw_code.lower().replace('_', '-'), DeliveryErrorCode.UNKNOWN)

    return DeliveryErrorCode.UNKNOWN


class PushGateway:
    """Sends notification payloads through Firebase Cloud Messaging."""

    def __init__(self, app: Optional[firebase_admin.App] = None):
        self.app = app

    def build_message(self,
                      tokens: List[str],
                      payload: NotificationPayload,
                      options: DeliveryOptions) -> messaging.MulticastMessage:
        wire = payload.to_wire()
        return messaging.MulticastMessage(
            tokens=tokens,
            notification=messaging.Notification(
                title=wire['notification']['title'],
                body=wire['notification']['body'],
            ),
            data=wire['data'],
            android=messaging.AndroidConfig(priority=options.priority),
            apns=messaging.APNSConfig(
                headers={'apns-priority': '10' if options.priority == 'high' else '5'},
                payload=messaging.APNSPayload(
                    aps=messaging.Aps(content_available=options.background_wake)
                ),
            ),
        )

    def send_batch(self,
                   tokens: List[str],
                   payload: NotificationPayload,
                   options: Optional[DeliveryOptions] = None) -> List[DeliveryOutcome]:
        """
        Send one multicast request to the given tokens.

        Args:
            tokens: Recipient device tokens (at most 500)
            payload: Notification to deliver
            options: Delivery options, high priority with background wake by default

        Returns:
            One DeliveryOutcome per token, in the same order as tokens

        Raises:
            FirebaseError if the batch request itself fails
        """
        options = options or DeliveryOptions()
        message = self.build_message(tokens, payload, options)

        batch_response = messaging.send_each_for_multicast(message, app=self.app)

        outcomes = []
        for token, resp in zip(tokens, batch_response.responses):
            if resp.success:
                outcomes.append(DeliveryOutcome(token=token, success=True))
                continue

            error = resp.exception
            outcomes.append(DeliveryOutcome(
                token=token,
                success=False,
                error_code=classify_error(error),
                error_message=str(error) if error else None,
            ))

        return outcomes
