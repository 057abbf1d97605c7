"""Persisted chat transcript consumed by the command-line interface."""

from .models import ChatMessage, MessageType, Sender, initial_message, message_from_event, user_message
from .store import TranscriptStore

__all__ = [
    "ChatMessage",
    "MessageType",
    "Sender",
    "TranscriptStore",
    "initial_message",
    "message_from_event",
    "user_message",
]
