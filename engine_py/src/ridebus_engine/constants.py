"""Game constants and card id helpers"""

from typing import Dict, Tuple

SUITS = ['C', 'D', 'H', 'S']
# Canonical deck order within a suit
RANKS = ['A', 'K', 'Q', 'J', '10', '9', '8', '7', '6', '5', '4', '3', '2']

RANK_VALUES: Dict[str, int] = {
    '2': 2, '3': 3, '4': 4, '5': 5, '6': 6, '7': 7, '8': 8, '9': 9, '10': 10,
    'J': 11, 'Q': 12, 'K': 13, 'A': 14,
}
ACE_LOW_VALUE = 1

DECK_SIZE = 52
DEFAULT_PYRAMID_ROWS = 5
DEFAULT_HAND_SIZE = 4

# Match phases
PHASE_LOBBY = 'LOBBY'
PHASE_PYRAMID = 'PYRAMID'
PHASE_BUS = 'BUS'
PHASE_RESULTS = 'RESULTS'


def parse_card(card_id: str) -> Tuple[str, str]:
    """Split a card id such as ``10H`` into ``('10', 'H')``."""
    rank, suit = card_id[:-1], card_id[-1:]
    if rank not in RANK_VALUES or suit not in SUITS:
        raise ValueError(f"Invalid card id: {card_id!r}")
    return rank, suit


def pyramid_size(rows: int) -> int:
    return rows * (rows + 1) // 2
