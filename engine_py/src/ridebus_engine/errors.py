# engine_py/src/ridebus_engine/errors.py

from enum import Enum


class ErrorCode(str, Enum):
    """Rejection codes for match operations and inbound events."""
    UNKNOWN_PLAYER = "UNKNOWN_PLAYER"
    CARD_NOT_IN_HAND = "CARD_NOT_IN_HAND"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    NOT_HOST = "NOT_HOST"
    WRONG_PHASE = "WRONG_PHASE"
    ALREADY_PLAYED = "ALREADY_PLAYED"
    DECK_EXHAUSTED = "DECK_EXHAUSTED"
    PYRAMID_COMPLETE = "PYRAMID_COMPLETE"
    PYRAMID_INCOMPLETE = "PYRAMID_INCOMPLETE"
    NOT_IN_ROOM = "NOT_IN_ROOM"
    INVALID_TARGET = "INVALID_TARGET"
    INVALID_EVENT = "INVALID_EVENT"


class GameError(Exception):
    """Base exception for game-related errors."""
    def __init__(self, code: ErrorCode, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code.value}] {message}")


class InvalidEventError(GameError):
    """Inbound frame that is not valid JSON or matches no known event shape."""
    def __init__(self, message: str):
        super().__init__(ErrorCode.INVALID_EVENT, message)


class UnknownEventTypeError(InvalidEventError):
    """Well-formed frame whose ``type`` names no known event."""
    def __init__(self, event_type):
        self.event_type = event_type
        super().__init__(f"Unknown event type: {event_type!r}")
