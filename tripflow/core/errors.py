"""Errors raised by the dialogue engine and its state stores."""
from __future__ import annotations


class TripflowError(Exception):
    """Base class for all engine errors."""


class StateStoreError(TripflowError):
    """The state store could not read or write a conversation document."""


class StaleStateError(StateStoreError):
    """Another turn saved the conversation after this one loaded it."""

    def __init__(self, conversation_id: str, expected: int, actual: int):
        self.conversation_id = conversation_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Stale state for conversation {conversation_id!r}: "
            f"expected stored version {expected}, found {actual}"
        )


class MissingConversationIdError(TripflowError):
    """A turn arrived without a conversation id."""


class InvalidConversationIdError(TripflowError):
    """The conversation id cannot be used as a storage key."""


class UnknownSlotError(TripflowError):
    """The turn names a slot the dialogue does not know."""
