"""
Per-connection handling of inbound events.
"""

import logging
from typing import Optional, Union

from ..broadcast import Connection, broadcast_state, send_snapshot
from ..engine import EngineResult, advance_phase, deal_player_hands, play_card, reveal_next_card
from ..errors import ErrorCode, InvalidEventError, UnknownEventTypeError
from ..registry import Room, RoomRegistry
from .events import (
    AdvancePhaseEvent, DealHandsEvent, InboundEvent, JoinRoomEvent, PlayCardEvent,
    RequestStateEvent, RevealCardEvent, create_error_event, encode_event, parse_inbound_event
)

logger = logging.getLogger(__name__)

# Close code sent to a connection whose player id was claimed by a newer connection
CLOSE_REPLACED = 4001


class ConnectionHandler:
    """Translates one connection's frames into registry and match operations."""

    def __init__(self, connection: Connection, registry: RoomRegistry, report_rejections: bool = False):
        self.connection = connection
        self.registry = registry
        self.report_rejections = report_rejections
        self.room: Optional[Room] = None
        self.player_id: Optional[str] = None

    async def handle_text(self, raw: Union[str, bytes]):
        """Handle one inbound frame; bad frames are logged and dropped without a reply."""
        try:
            event = parse_inbound_event(raw)
        except UnknownEventTypeError as e:
            logger.warning(f"Ignoring unknown event type {e.event_type!r} from {self.connection.id}")
            return
        except InvalidEventError as e:
            logger.warning(f"Dropping malformed frame from {self.connection.id}: {e.message}")
            return

        try:
            await self.handle_event(event)
        except Exception:
            logger.exception(f"Error handling {event.type.value} from {self.connection.id}")

    async def handle_event(self, event: InboundEvent):
        if isinstance(event, JoinRoomEvent):
            await self.handle_join(event)
        elif isinstance(event, PlayCardEvent):
            await self._apply(lambda state: play_card(state, self.player_id, event.card_id, event.target_id))
        elif isinstance(event, DealHandsEvent):
            await self._apply(lambda state: deal_player_hands(state, self.player_id))
        elif isinstance(event, RevealCardEvent):
            await self._apply(lambda state: reveal_next_card(state, self.player_id))
        elif isinstance(event, AdvancePhaseEvent):
            await self._apply(lambda state: advance_phase(state, self.player_id))
        elif isinstance(event, RequestStateEvent):
            await self.handle_request_state()
        else:
            raise ValueError(f"Unhandled event type: {type(event)}")

    async def handle_join(self, event: JoinRoomEvent):
        """Create or join a room, answer the joiner, then broadcast to the room."""
        if self.room is not None and self.room.code != event.room_code:
            await self.leave()

        outcome = await self.registry.resolve_room(
            event.room_code, event.player_id, event.player_name, self.connection
        )
        self.room = outcome.room
        self.player_id = event.player_id

        if outcome.displaced is not None:
            try:
                await outcome.displaced.close(CLOSE_REPLACED)
            except Exception as e:
                logger.error(f"Error closing displaced connection {outcome.displaced.id}: {e}")

        room = outcome.room
        async with room.lock:
            await send_snapshot(self.connection, room.match)
            await broadcast_state(room.connections, room.match)

    async def handle_request_state(self):
        room = self._joined_room()
        if room is None:
            await self._reject(ErrorCode.NOT_IN_ROOM, "Join a room first")
            return
        async with room.lock:
            await send_snapshot(self.connection, room.match)

    async def handle_close(self):
        """Connection went away, for whatever reason."""
        await self.leave()

    async def leave(self):
        room = self.room
        self.room = None
        self.player_id = None
        if room is None:
            return

        survives = await self.registry.remove_connection(room, self.connection)
        if survives:
            async with room.lock:
                await broadcast_state(room.connections, room.match)

    async def _apply(self, operation):
        """Run a match operation under the room lock; broadcast only if it changed the match."""
        room = self._joined_room()
        if room is None:
            logger.info(f"Connection {self.connection.id} sent an action before joining a room")
            await self._reject(ErrorCode.NOT_IN_ROOM, "Join a room first")
            return

        async with room.lock:
            result: EngineResult = operation(room.match)
            if result.success:
                await broadcast_state(room.connections, room.match)

        if not result.success:
            logger.info(f"Rejected action from {self.player_id} in room {room.code}: {result.error_message}")
            await self._reject(result.error_code, result.error_message)

    def _joined_room(self) -> Optional[Room]:
        """The room this connection still belongs to, if any."""
        room = self.room
        if room is None or room.closed or self.connection not in room.connections:
            return None
        return room

    async def _reject(self, code: ErrorCode, message: str):
        if not self.report_rejections or not self.connection.is_open:
            return
        try:
            await self.connection.send_text(encode_event(create_error_event(code, message)))
        except Exception as e:
            logger.error(f"Error sending rejection to {self.connection.id}: {e}")
