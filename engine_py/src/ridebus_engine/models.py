"""Game models and data structures"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .constants import PHASE_PYRAMID
from .rules import RuleConfig


@dataclass(frozen=True)
class Card:
    id: str
    rank: str
    suit: str


@dataclass
class Player:
    id: str
    name: str
    connected: bool = True
    hand: List[Card] = field(default_factory=list)
    sips_given: int = 0
    sips_received: int = 0

    def find_card(self, card_id: str) -> Optional[Card]:
        for card in self.hand:
            if card.id == card_id:
                return card
        return None


@dataclass
class PyramidCell:
    row: int
    col: int
    card: Optional[Card] = None
    revealed: bool = False


@dataclass
class Pyramid:
    # rows[0] is the apex (1 cell), rows[-1] the widest row
    rows: List[List[PyramidCell]] = field(default_factory=list)
    # Reveal cursor; starts on the widest row, climbs to the apex, -1 once done
    current_row: int = 0
    current_index: int = 0
    last_revealed: Optional[PyramidCell] = None

    def cells(self) -> List[PyramidCell]:
        return [cell for row in self.rows for cell in row]

    def dealt_cells(self) -> List[PyramidCell]:
        return [cell for cell in self.cells() if cell.card is not None]

    def is_fully_revealed(self) -> bool:
        return all(cell.revealed for cell in self.dealt_cells())


@dataclass
class BusState:
    queue: List[str] = field(default_factory=list)  # player ids who must ride
    current_rider: Optional[str] = None
    position: int = 0


@dataclass
class MatchState:
    room_code: str
    host_id: str
    rng_seed: str
    rules: RuleConfig = field(default_factory=RuleConfig)
    players: Dict[str, Player] = field(default_factory=dict)  # insertion order is turn order
    deck: List[Card] = field(default_factory=list)
    discard: List[Card] = field(default_factory=list)
    phase: str = PHASE_PYRAMID
    pyramid: Pyramid = field(default_factory=Pyramid)
    bus: Optional[BusState] = None
    current_turn: int = 0
    version: int = 0
    created_at: float = 0.0
    # Players who already answered the current reveal (used when stacking is off)
    played_this_reveal: List[str] = field(default_factory=list)

    def player_order(self) -> List[str]:
        return list(self.players.keys())

    def current_player_id(self) -> Optional[str]:
        order = self.player_order()
        if not order:
            return None
        return order[self.current_turn % len(order)]
