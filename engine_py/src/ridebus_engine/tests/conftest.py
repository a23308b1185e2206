"""
Shared fixtures: fabricated connections and ready-made matches.
"""

import itertools
import json

import pytest

from ridebus_engine.engine import add_player, create_match
from ridebus_engine.rules import create_rules

_connection_ids = itertools.count(1)


class FakeConnection:
    """In-memory stand-in for a WebSocket connection."""

    def __init__(self, open: bool = True, fail_sends: bool = False):
        self.id = f"fake-{next(_connection_ids)}"
        self.open = open
        self.fail_sends = fail_sends
        self.sent = []
        self.close_code = None

    @property
    def is_open(self) -> bool:
        return self.open

    async def send_text(self, data: str):
        if self.fail_sends:
            raise ConnectionResetError("peer went away")
        self.sent.append(json.loads(data))

    async def close(self, code: int = 1000):
        self.open = False
        self.close_code = code

    def frames(self, frame_type: str = "MATCH_STATE"):
        return [frame for frame in self.sent if frame["type"] == frame_type]

    def last_state(self):
        return self.frames()[-1]["matchState"]


@pytest.fixture
def make_connection():
    return FakeConnection


@pytest.fixture
def match():
    """A fixed-seed match with three players."""
    state = create_match("ROOM1", "p1", seed="fixed-seed", created_at=1700000000.0)
    add_player(state, "p1", "Alice")
    add_player(state, "p2", "Bob")
    add_player(state, "p3", "Charlie")
    return state


@pytest.fixture
def free_play_match():
    """A two-player match without turn enforcement."""
    rules = create_rules(enforce_turn_order=False)
    state = create_match("ROOM2", "p1", seed="free-seed", rules=rules, created_at=1700000000.0)
    add_player(state, "p1", "Alice")
    add_player(state, "p2", "Bob")
    return state
