class NotificationPipelineError(Exception):
    """Base class for conditions that end a notification pipeline early."""


class MalformedEventError(NotificationPipelineError):
    """The created record is missing data needed to build an event."""


class InvalidChatKeyError(NotificationPipelineError):
    """The chat key does not name exactly the sender and one other user."""


class RecipientLookupError(NotificationPipelineError):
    """The recipient's profile could not be read."""


class NoDeliveryTokensError(NotificationPipelineError):
    """The recipient has no usable delivery tokens."""


class DispatchError(NotificationPipelineError):
    """The batch send call itself failed."""
