"""
Rank comparison logic.
"""

from .constants import ACE_LOW_VALUE, RANK_VALUES


def rank_value(rank: str, ace_high: bool = True) -> int:
    """Get the numeric weight of a rank (2..10 face value, J=11, Q=12, K=13, A=14)."""
    try:
        value = RANK_VALUES[rank]
    except KeyError:
        raise ValueError(f"Invalid rank: {rank}")
    if rank == 'A' and not ace_high:
        return ACE_LOW_VALUE
    return value


def compare_ranks(rank_a: str, rank_b: str, ace_high: bool = True) -> int:
    """
    Compare two ranks.

    Returns:
        -1 if rank_a is lower than rank_b
        0 if ranks are equal
        1 if rank_a is higher than rank_b
    """
    value_a = rank_value(rank_a, ace_high)
    value_b = rank_value(rank_b, ace_high)
    if value_a < value_b:
        return -1
    if value_a > value_b:
        return 1
    return 0


def is_higher_rank(rank_a: str, rank_b: str, ace_high: bool = True) -> bool:
    """Check if rank_a is higher than rank_b."""
    return compare_ranks(rank_a, rank_b, ace_high) > 0


def is_lower_rank(rank_a: str, rank_b: str, ace_high: bool = True) -> bool:
    """Check if rank_a is lower than rank_b."""
    return compare_ranks(rank_a, rank_b, ace_high) < 0

