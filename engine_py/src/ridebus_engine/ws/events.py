"""
WebSocket event models and validation.
"""

from enum import Enum
from typing import Any, Dict, Optional, Union

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..constants import parse_card
from ..errors import ErrorCode, InvalidEventError, UnknownEventTypeError
from ..models import MatchState
from ..serialization import serialize_match


class EventType(str, Enum):
    """Inbound event types."""
    JOIN_ROOM = "JOIN_ROOM"
    PLAY_CARD = "PLAY_CARD"
    DEAL_HANDS = "DEAL_HANDS"
    REVEAL_CARD = "REVEAL_CARD"
    ADVANCE_PHASE = "ADVANCE_PHASE"
    REQUEST_STATE = "REQUEST_STATE"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    MATCH_STATE = "MATCH_STATE"
    ERROR = "ERROR"


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    model_config = ConfigDict(populate_by_name=True)

    type: EventType


class JoinRoomEvent(BaseEvent):
    """Create or join a room."""
    type: EventType = EventType.JOIN_ROOM
    room_code: str = Field(..., alias="roomCode", min_length=1, max_length=32)
    player_id: str = Field(..., alias="playerId", min_length=1, max_length=64)
    player_name: str = Field(..., alias="playerName", min_length=1, max_length=40)


class PlayCardEvent(BaseEvent):
    """Play one card from the joined player's hand."""
    type: EventType = EventType.PLAY_CARD
    card_id: str = Field(..., alias="cardId", min_length=2, max_length=3)
    target_id: Optional[str] = Field(None, alias="targetId", min_length=1, max_length=64)

    @field_validator('card_id')
    @classmethod
    def validate_card_id(cls, v):
        """Card ids must name a real card, e.g. ``10H``."""
        parse_card(v)
        return v


class DealHandsEvent(BaseEvent):
    """Host deals private hands."""
    type: EventType = EventType.DEAL_HANDS


class RevealCardEvent(BaseEvent):
    """Host flips the next pyramid card."""
    type: EventType = EventType.REVEAL_CARD


class AdvancePhaseEvent(BaseEvent):
    """Host moves the match to its next phase."""
    type: EventType = EventType.ADVANCE_PHASE


class RequestStateEvent(BaseEvent):
    """Request a fresh snapshot."""
    type: EventType = EventType.REQUEST_STATE


# Union type for all inbound events
InboundEvent = Union[
    JoinRoomEvent,
    PlayCardEvent,
    DealHandsEvent,
    RevealCardEvent,
    AdvancePhaseEvent,
    RequestStateEvent,
]

EVENT_MAP = {
    EventType.JOIN_ROOM: JoinRoomEvent,
    EventType.PLAY_CARD: PlayCardEvent,
    EventType.DEAL_HANDS: DealHandsEvent,
    EventType.REVEAL_CARD: RevealCardEvent,
    EventType.ADVANCE_PHASE: AdvancePhaseEvent,
    EventType.REQUEST_STATE: RequestStateEvent,
}


# Outbound event models
class MatchStateEvent(BaseModel):
    """Full match snapshot."""
    model_config = ConfigDict(populate_by_name=True)

    type: OutboundEventType = OutboundEventType.MATCH_STATE
    match_state: Dict[str, Any] = Field(..., alias="matchState")


class ErrorEvent(BaseModel):
    """Rejection of the sender's last action."""
    type: OutboundEventType = OutboundEventType.ERROR
    code: ErrorCode
    message: str


def parse_inbound_event(data: Union[str, bytes, Dict[str, Any]]) -> InboundEvent:
    """
    Parse a raw frame into the matching event model.

    Args:
        data: Text/bytes frame from the WebSocket, or an already decoded object

    Returns:
        Parsed event model

    Raises:
        UnknownEventTypeError: If the frame names no known event type
        InvalidEventError: If the frame is not JSON or its fields don't validate
    """
    if isinstance(data, (str, bytes)):
        try:
            data = orjson.loads(data)
        except orjson.JSONDecodeError as e:
            raise InvalidEventError(f"Frame is not valid JSON: {e}")

    if not isinstance(data, dict):
        raise InvalidEventError("Frame must be a JSON object")

    event_type = data.get("type")
    if not event_type:
        raise InvalidEventError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise UnknownEventTypeError(event_type)

    event_class = EVENT_MAP[event_type]
    try:
        return event_class.model_validate(data)
    except ValidationError as e:
        raise InvalidEventError(f"Invalid {event_type.value} payload: {e.error_count()} error(s)")


def create_match_state_event(state: MatchState) -> MatchStateEvent:
    """Create a snapshot event for a match."""
    return MatchStateEvent(match_state=serialize_match(state))


def create_error_event(code: ErrorCode, message: str) -> ErrorEvent:
    """Create an error event."""
    return ErrorEvent(code=code, message=message)


def encode_event(event: BaseModel) -> str:
    """Encode an outbound event as a text frame."""
    return event.model_dump_json(by_alias=True)
