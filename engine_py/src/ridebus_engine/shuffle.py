"""
Card shuffling and dealing utilities.
"""

import random
from typing import Dict, List, Tuple

from .constants import DECK_SIZE, RANKS, SUITS
from .models import Card, MatchState, Pyramid, PyramidCell


def create_deck() -> List[Card]:
    """Create a standard 52 card deck in canonical order (suit-major, ace first)."""
    deck = []
    for suit in SUITS:
        for rank in RANKS:
            deck.append(Card(id=f"{rank}{suit}", rank=rank, suit=suit))
    return deck


def derive_seed(room_code: str, created_at: float) -> str:
    """Build the shuffle seed for a room created at ``created_at`` (epoch seconds)."""
    return f"{room_code}:{int(created_at * 1000)}"


def shuffle_deck(deck: List[Card], seed: str) -> List[Card]:
    """
    Shuffle a deck deterministically.

    Args:
        deck: Cards to shuffle; left untouched
        seed: Seed keying the PRNG, the same seed always yields the same order

    Returns:
        Shuffled copy of the deck
    """
    deck_copy = deck.copy()
    # random.Random.shuffle is a Fisher-Yates pass over the copy
    rng = random.Random(seed)
    rng.shuffle(deck_copy)
    return deck_copy


def deal_pyramid(deck: List[Card], rows: int) -> Tuple[List[Card], Pyramid]:
    """
    Deal a triangular pyramid from the front of the deck.

    Row ``r`` holds ``r + 1`` cells; cells are filled row by row starting at
    the apex. A deck that runs out leaves the remaining cells empty.

    Args:
        deck: Shuffled deck to deal from
        rows: Number of pyramid rows

    Returns:
        Tuple of (remaining deck, pyramid)
    """
    remaining = deck.copy()
    grid = []
    for row in range(rows):
        cells = []
        for col in range(row + 1):
            card = remaining.pop(0) if remaining else None
            cells.append(PyramidCell(row=row, col=col, card=card))
        grid.append(cells)

    return remaining, Pyramid(rows=grid, current_row=max(rows - 1, 0), current_index=0)


def deal_hands(
    deck: List[Card],
    player_ids: List[str],
    hand_size: int
) -> Tuple[List[Card], Dict[str, List[Card]]]:
    """
    Deal ``hand_size`` cards to each player round-robin from the front of the deck.

    Raises:
        ValueError: If the deck cannot cover every hand
    """
    needed = hand_size * len(player_ids)
    if needed > len(deck):
        raise ValueError(f"Deck has {len(deck)} cards, {needed} needed")

    hands: Dict[str, List[Card]] = {player_id: [] for player_id in player_ids}
    for i, card in enumerate(deck[:needed]):
        hands[player_ids[i % len(player_ids)]].append(card)

    return deck[needed:], hands


def validate_deck_integrity(state: MatchState) -> bool:
    """
    Validate that every card of the deck sits in exactly one place.

    Args:
        state: Match state to validate

    Returns:
        True if all 52 cards are accounted for with no duplicates
    """
    all_cards = []
    all_cards.extend(state.deck)
    all_cards.extend(state.discard)
    for player in state.players.values():
        all_cards.extend(player.hand)
    all_cards.extend(cell.card for cell in state.pyramid.dealt_cells())

    ids = [card.id for card in all_cards]
    expected = {card.id for card in create_deck()}
    return len(ids) == DECK_SIZE and set(ids) == expected
