"""Snapshot delivery to every connection in a room"""

import logging
from typing import Iterable, Protocol

from .models import MatchState
from .ws.events import create_match_state_event, encode_event

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """Transport seam: anything that can send text frames and report whether it is open."""

    id: str

    @property
    def is_open(self) -> bool: ...

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


async def send_snapshot(connection: Connection, state: MatchState) -> bool:
    """Send the full match snapshot to one connection."""
    return await _deliver(connection, encode_event(create_match_state_event(state)))


async def broadcast_state(connections: Iterable[Connection], state: MatchState) -> int:
    """
    Broadcast the full match snapshot to a set of connections.

    The snapshot is encoded once. Connections that are not open are skipped
    and a failed send is logged; neither is retried nor stops the others.

    Returns:
        Number of connections the snapshot was delivered to
    """
    frame = encode_event(create_match_state_event(state))
    delivered = 0
    for connection in list(connections):
        if await _deliver(connection, frame):
            delivered += 1
    return delivered


async def _deliver(connection: Connection, frame: str) -> bool:
    if not connection.is_open:
        logger.debug(f"Skipping closed connection {connection.id}")
        return False
    try:
        await connection.send_text(frame)
    except Exception as e:
        logger.error(f"Error sending to connection {connection.id}: {e}")
        return False
    return True
