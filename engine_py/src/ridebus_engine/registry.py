"""Room registry: room codes to live rooms, with one lock per room"""

import asyncio
import logging
from typing import Dict, Optional, Set

from .broadcast import Connection
from .engine import add_player, create_match, disconnect_player
from .models import MatchState
from .rules import RuleConfig

logger = logging.getLogger(__name__)


class Room:
    """One game session: its match state, live connections and their players."""

    def __init__(self, code: str, match: MatchState):
        self.code = code
        self.match = match
        self.connections: Set[Connection] = set()
        # player id -> the one connection currently speaking for that player
        self.owners: Dict[str, Connection] = {}
        self.lock = asyncio.Lock()
        self.closed = False

    def player_for(self, connection: Connection) -> Optional[str]:
        for player_id, owner in self.owners.items():
            if owner is connection:
                return player_id
        return None

    def __repr__(self) -> str:
        return f"Room(code={self.code!r}, players={len(self.match.players)}, connections={len(self.connections)})"


class JoinOutcome:
    """Result of resolving a join: the room plus any connection it displaced."""

    def __init__(self, room: Room, created: bool, displaced: Optional[Connection] = None):
        self.room = room
        self.created = created
        self.displaced = displaced


class RoomRegistry:
    """
    Maps room codes to rooms.

    The registry lock only guards the code -> room map and is never held
    across a send; everything inside a room goes through ``room.lock``.
    """

    def __init__(self, rules: Optional[RuleConfig] = None):
        self.rules = rules or RuleConfig()
        self._rooms: Dict[str, Room] = {}
        self._lock = asyncio.Lock()

    def get(self, code: str) -> Optional[Room]:
        return self._rooms.get(code)

    def __contains__(self, code: str) -> bool:
        return code in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def connection_count(self) -> int:
        return sum(len(room.connections) for room in self._rooms.values())

    async def resolve_room(
        self,
        code: str,
        player_id: str,
        player_name: str,
        connection: Connection
    ) -> JoinOutcome:
        """
        Create or join the room for ``code`` and bind ``connection`` to ``player_id``.

        The first join of an unseen code creates the match with that player as
        host. If another connection already owns ``player_id`` in this room it
        is detached and returned as ``displaced`` for the caller to close.
        """
        while True:
            created = False
            async with self._lock:
                room = self._rooms.get(code)
                if room is None:
                    room = Room(code, create_match(code, player_id, rules=self.rules))
                    self._rooms[code] = room
                    created = True
                    logger.info(f"Created room {code} (host {player_id}, seed {room.match.rng_seed!r})")

            async with room.lock:
                if room.closed:
                    # Emptied and dropped between lookup and lock; look again
                    continue

                displaced = None
                owner = room.owners.get(player_id)
                if owner is not None and owner is not connection:
                    room.connections.discard(owner)
                    displaced = owner
                    logger.info(f"Player {player_id} in room {code} taken over by connection {connection.id}")

                previous = room.player_for(connection)
                if previous is not None and previous != player_id:
                    del room.owners[previous]
                    disconnect_player(room.match, previous)

                add_player(room.match, player_id, player_name)
                room.owners[player_id] = connection
                room.connections.add(connection)
                logger.info(f"Player {player_id} joined room {code}")
                return JoinOutcome(room, created, displaced)

    async def remove_connection(self, room: Room, connection: Connection) -> bool:
        """
        Detach a connection from its room.

        The player it owned stays in the match, marked disconnected. The room
        and its match are dropped once no connection is left.

        Returns:
            True if the room survives
        """
        async with room.lock:
            if connection not in room.connections:
                return not room.closed

            room.connections.discard(connection)
            player_id = room.player_for(connection)
            if player_id is not None:
                del room.owners[player_id]
                disconnect_player(room.match, player_id)
                logger.info(f"Player {player_id} left room {room.code}")

            if room.connections:
                return True

            room.closed = True
            async with self._lock:
                if self._rooms.get(room.code) is room:
                    del self._rooms[room.code]
            logger.info(f"Room {room.code} is empty and was removed")
            return False

    async def close(self):
        """Drop every room; used at shutdown."""
        async with self._lock:
            rooms = list(self._rooms.values())
            self._rooms.clear()
        for room in rooms:
            async with room.lock:
                room.closed = True
                connections = list(room.connections)
                room.connections.clear()
                room.owners.clear()
            for connection in connections:
                try:
                    await connection.close()
                except Exception as e:
                    logger.error(f"Error closing connection {connection.id}: {e}")
        logger.info(f"Registry closed {len(rooms)} room(s)")
