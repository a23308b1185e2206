"""
Match state serialization for transmission to clients.
"""

from typing import Any, Dict, List, Optional

from .models import BusState, Card, MatchState, Player, Pyramid, PyramidCell
from .rules import RuleConfig


def serialize_card(card: Optional[Card]) -> Optional[Dict[str, str]]:
    if card is None:
        return None
    return {"id": card.id, "rank": card.rank, "suit": card.suit}


def serialize_cards(cards: List[Card]) -> List[Dict[str, str]]:
    return [serialize_card(card) for card in cards]


def serialize_match(state: MatchState) -> Dict[str, Any]:
    """
    Serialize the whole match state into the wire snapshot.

    Every viewer receives the same full snapshot, hands included; clients
    keep no state between snapshots.

    Args:
        state: Match state to serialize

    Returns:
        JSON-safe dictionary with camelCase keys
    """
    return {
        "roomCode": state.room_code,
        "hostId": state.host_id,
        "rules": _serialize_rule_config(state.rules),
        "players": {
            player_id: _serialize_player(player)
            for player_id, player in state.players.items()
        },
        "deck": serialize_cards(state.deck),
        "discard": serialize_cards(state.discard),
        "phase": state.phase,
        "pyramid": _serialize_pyramid(state.pyramid),
        "bus": _serialize_bus(state.bus),
        "currentTurn": state.current_turn,
        "rngSeed": state.rng_seed,
        "version": state.version,
        "createdAt": state.created_at,
        "playedThisReveal": list(state.played_this_reveal),
    }


def _serialize_rule_config(rule_config: RuleConfig) -> Dict[str, Any]:
    """Serialize rule configuration."""
    return {
        "stacking": rule_config.stacking,
        "busPenalty": rule_config.bus_penalty,
        "aceHigh": rule_config.ace_high,
        "pyramidRows": rule_config.pyramid_rows,
        "handSize": rule_config.hand_size,
        "enforceTurnOrder": rule_config.enforce_turn_order,
    }


def _serialize_player(player: Player) -> Dict[str, Any]:
    return {
        "id": player.id,
        "name": player.name,
        "connected": player.connected,
        "hand": serialize_cards(player.hand),
        "sipsGiven": player.sips_given,
        "sipsReceived": player.sips_received,
    }


def _serialize_cell(cell: PyramidCell) -> Dict[str, Any]:
    return {
        "row": cell.row,
        "col": cell.col,
        "card": serialize_card(cell.card),
        "revealed": cell.revealed,
    }


def _serialize_pyramid(pyramid: Pyramid) -> Dict[str, Any]:
    last = pyramid.last_revealed
    return {
        "rows": [[_serialize_cell(cell) for cell in row] for row in pyramid.rows],
        "currentRow": pyramid.current_row,
        "currentIndex": pyramid.current_index,
        "lastRevealed": {"row": last.row, "col": last.col} if last else None,
    }


def _serialize_bus(bus: Optional[BusState]) -> Optional[Dict[str, Any]]:
    if bus is None:
        return None
    return {
        "queue": list(bus.queue),
        "currentRider": bus.current_rider,
        "position": bus.position,
    }
