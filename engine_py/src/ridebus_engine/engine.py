"""Match engine: every mutation of a room's authoritative match state"""

import logging
import time
from typing import List, Optional

from .constants import PHASE_BUS, PHASE_LOBBY, PHASE_PYRAMID
from .errors import ErrorCode
from .models import BusState, MatchState, Player, PyramidCell
from .rules import RuleConfig
from .shuffle import create_deck, deal_hands, deal_pyramid, derive_seed, shuffle_deck

logger = logging.getLogger(__name__)


class EngineResult:
    """Outcome of a match operation."""

    def __init__(
        self,
        success: bool,
        state: Optional[MatchState] = None,
        error_code: Optional[ErrorCode] = None,
        error_message: Optional[str] = None
    ):
        self.success = success
        self.state = state
        self.error_code = error_code
        self.error_message = error_message

    @classmethod
    def ok(cls, state: MatchState) -> 'EngineResult':
        """Create a successful result."""
        return cls(success=True, state=state)

    @classmethod
    def error(cls, state: MatchState, error_code: ErrorCode, error_message: str) -> 'EngineResult':
        """Create a rejected result; the state is returned unchanged."""
        return cls(success=False, state=state, error_code=error_code, error_message=error_message)

    def __bool__(self) -> bool:
        return self.success

    def __repr__(self) -> str:
        if self.success:
            return "EngineResult(success=True)"
        return f"EngineResult(success=False, error_code={self.error_code!r})"


def create_match(
    room_code: str,
    host_id: str,
    seed: Optional[str] = None,
    rules: Optional[RuleConfig] = None,
    created_at: Optional[float] = None
) -> MatchState:
    """
    Create a match for a new room: shuffle, deal the pyramid and open the PYRAMID phase.

    Args:
        room_code: Code of the room the match belongs to
        host_id: Player id of the room creator
        seed: Explicit shuffle seed; derived from room code and creation time when omitted
        rules: Rule configuration, defaults apply when omitted
        created_at: Creation time in epoch seconds, now when omitted

    Returns:
        The new match state
    """
    rules = rules or RuleConfig()
    if created_at is None:
        created_at = time.time()
    if seed is None:
        seed = derive_seed(room_code, created_at)

    deck = shuffle_deck(create_deck(), seed)
    remaining, pyramid = deal_pyramid(deck, rules.pyramid_rows)

    logger.debug(f"Created match for room {room_code} with seed {seed!r}")
    return MatchState(
        room_code=room_code,
        host_id=host_id,
        rng_seed=seed,
        rules=rules,
        deck=remaining,
        pyramid=pyramid,
        phase=PHASE_PYRAMID,
        current_turn=0,
        created_at=created_at,
    )


def add_player(state: MatchState, player_id: str, player_name: str) -> EngineResult:
    """Add a player, or mark a known player as connected again."""
    player = state.players.get(player_id)
    if player is None:
        state.players[player_id] = Player(id=player_id, name=player_name)
    else:
        player.connected = True
    state.version += 1
    return EngineResult.ok(state)


def _next_connected_seat(state: MatchState, seat: int) -> Optional[int]:
    """First seat after ``seat`` whose player is connected, wrapping round to ``seat`` itself."""
    order = state.player_order()
    for step in range(1, len(order) + 1):
        candidate = (seat + step) % len(order)
        if state.players[order[candidate]].connected:
            return candidate
    return None


def disconnect_player(state: MatchState, player_id: str) -> EngineResult:
    """
    Mark a player as disconnected; hand and counters are kept.

    A leaving host hands the room to the next connected seat, and a leaving
    player who holds the turn passes it on the same way.
    """
    player = state.players.get(player_id)
    if player is None:
        return EngineResult.error(state, ErrorCode.UNKNOWN_PLAYER, f"Unknown player {player_id}")
    player.connected = False

    successor = _next_connected_seat(state, state.player_order().index(player_id))
    if successor is not None:
        if state.host_id == player_id:
            state.host_id = state.player_order()[successor]
            logger.info(f"Room {state.room_code} host passed from {player_id} to {state.host_id}")
        if state.current_player_id() == player_id:
            state.current_turn = successor

    state.version += 1
    return EngineResult.ok(state)


def sips_for_row(state: MatchState, row: int) -> int:
    """Sips handed out for matching a card in ``row``; the apex is worth the most."""
    return state.rules.pyramid_rows - row


def play_card(
    state: MatchState,
    player_id: str,
    card_id: str,
    target_id: Optional[str] = None
) -> EngineResult:
    """
    Play a card from a player's hand onto the discard pile and pass the turn on.

    A card matching the rank of the last revealed pyramid card gives out
    sips worth that card's row. They go to ``target_id``, or to the next
    connected seat when no target is named.

    The turn moves on after every play, so with turn order enforced a player
    answers each reveal with one card whatever ``stacking`` says.
    """
    player = state.players.get(player_id)
    if player is None:
        return EngineResult.error(state, ErrorCode.UNKNOWN_PLAYER, f"Unknown player {player_id}")
    if state.phase != PHASE_PYRAMID:
        return EngineResult.error(state, ErrorCode.WRONG_PHASE, f"Cannot play cards during {state.phase}")
    if state.rules.enforce_turn_order and state.current_player_id() != player_id:
        return EngineResult.error(state, ErrorCode.NOT_YOUR_TURN, "Not your turn")
    if target_id is not None and (target_id == player_id or target_id not in state.players):
        return EngineResult.error(state, ErrorCode.INVALID_TARGET, f"Cannot give sips to {target_id}")

    card = player.find_card(card_id)
    if card is None:
        return EngineResult.error(state, ErrorCode.CARD_NOT_IN_HAND, f"You don't hold {card_id}")
    if not state.rules.stacking and player_id in state.played_this_reveal:
        return EngineResult.error(state, ErrorCode.ALREADY_PLAYED, "Already played on this reveal")

    player.hand.remove(card)
    state.discard.append(card)

    order = state.player_order()
    seat = order.index(player_id)
    next_seat = _next_connected_seat(state, seat)

    revealed = state.pyramid.last_revealed
    if revealed is not None and revealed.card is not None and revealed.card.rank == card.rank:
        sips = sips_for_row(state, revealed.row)
        player.sips_given += sips
        if target_id is None and next_seat is not None and next_seat != seat:
            target_id = order[next_seat]
        if target_id is not None:
            state.players[target_id].sips_received += sips

    if player_id not in state.played_this_reveal:
        state.played_this_reveal.append(player_id)
    state.current_turn = next_seat if next_seat is not None else (seat + 1) % len(order)
    state.version += 1
    return EngineResult.ok(state)


def deal_player_hands(state: MatchState, player_id: str) -> EngineResult:
    """Deal a full hand to every player still holding no cards (host only)."""
    if player_id != state.host_id:
        return EngineResult.error(state, ErrorCode.NOT_HOST, "Only the host can deal")
    if state.phase != PHASE_PYRAMID:
        return EngineResult.error(state, ErrorCode.WRONG_PHASE, f"Cannot deal during {state.phase}")

    empty_hands = [pid for pid, player in state.players.items() if not player.hand]
    try:
        remaining, hands = deal_hands(state.deck, empty_hands, state.rules.hand_size)
    except ValueError as e:
        return EngineResult.error(state, ErrorCode.DECK_EXHAUSTED, str(e))

    for pid, cards in hands.items():
        state.players[pid].hand = cards
    state.deck = remaining
    state.version += 1
    return EngineResult.ok(state)


def _reveal_order(state: MatchState) -> List[PyramidCell]:
    """Dealt cells in reveal order: widest row first, left to right, up to the apex."""
    order = []
    for row in reversed(state.pyramid.rows):
        order.extend(cell for cell in row if cell.card is not None)
    return order


def reveal_next_card(state: MatchState, player_id: str) -> EngineResult:
    """Flip the pyramid card under the reveal cursor (host only)."""
    if player_id != state.host_id:
        return EngineResult.error(state, ErrorCode.NOT_HOST, "Only the host can reveal")
    if state.phase != PHASE_PYRAMID:
        return EngineResult.error(state, ErrorCode.WRONG_PHASE, f"Cannot reveal during {state.phase}")

    pending = [cell for cell in _reveal_order(state) if not cell.revealed]
    if not pending:
        return EngineResult.error(state, ErrorCode.PYRAMID_COMPLETE, "Every pyramid card is revealed")

    cell = pending[0]
    cell.revealed = True
    pyramid = state.pyramid
    pyramid.last_revealed = cell
    if len(pending) > 1:
        pyramid.current_row = pending[1].row
        pyramid.current_index = pending[1].col
    else:
        # Cursor parks past the apex once the pyramid is done
        pyramid.current_row = -1
        pyramid.current_index = 0

    state.played_this_reveal = []
    state.version += 1
    logger.debug(f"Room {state.room_code} revealed {cell.card.id} at ({cell.row}, {cell.col})")
    return EngineResult.ok(state)


def _pick_bus_riders(state: MatchState) -> List[str]:
    """Players left holding the most cards ride the bus."""
    if not state.players:
        return []
    most = max(len(player.hand) for player in state.players.values())
    return [pid for pid, player in state.players.items() if len(player.hand) == most]


def advance_phase(state: MatchState, player_id: str) -> EngineResult:
    """
    Move the match to its next phase (host only).

    LOBBY goes to PYRAMID at once; PYRAMID goes to BUS only after every
    dealt pyramid card has been revealed. Nothing drives BUS onwards yet.
    """
    if player_id != state.host_id:
        return EngineResult.error(state, ErrorCode.NOT_HOST, "Only the host can advance the phase")

    if state.phase == PHASE_LOBBY:
        state.phase = PHASE_PYRAMID
    elif state.phase == PHASE_PYRAMID:
        if not state.pyramid.is_fully_revealed():
            return EngineResult.error(state, ErrorCode.PYRAMID_INCOMPLETE, "Pyramid still has hidden cards")
        riders = _pick_bus_riders(state)
        for rider in riders:
            state.players[rider].sips_received += state.rules.bus_penalty
        state.bus = BusState(queue=riders, current_rider=riders[0] if riders else None)
        state.phase = PHASE_BUS
    else:
        return EngineResult.error(state, ErrorCode.WRONG_PHASE, f"No transition out of {state.phase}")

    state.version += 1
    logger.info(f"Room {state.room_code} entered phase {state.phase}")
    return EngineResult.ok(state)
