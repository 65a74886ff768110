"""Push notifications for newly created chat messages."""

__version__ = "1.0.0"
