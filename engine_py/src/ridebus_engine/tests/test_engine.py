"""
Match state operations.
"""

from ridebus_engine.constants import PHASE_BUS, PHASE_LOBBY, PHASE_PYRAMID, PHASE_RESULTS
from ridebus_engine.engine import (
    add_player, advance_phase, create_match, deal_player_hands, disconnect_player,
    play_card, reveal_next_card, sips_for_row
)
from ridebus_engine.errors import ErrorCode
from ridebus_engine.models import Card
from ridebus_engine.rules import create_rules
from ridebus_engine.serialization import serialize_match
from ridebus_engine.shuffle import create_deck, deal_pyramid, shuffle_deck, validate_deck_integrity


def reveal_all(state):
    while reveal_next_card(state, state.host_id).success:
        pass


def test_create_match():
    state = create_match("ABC123", "p1", created_at=1700000000.0)
    assert state.room_code == "ABC123"
    assert state.host_id == "p1"
    assert state.phase == PHASE_PYRAMID
    assert state.current_turn == 0
    assert state.players == {}
    assert state.discard == []
    assert state.bus is None
    assert state.rng_seed == "ABC123:1700000000000"
    assert len(state.deck) == 37
    assert len(state.pyramid.dealt_cells()) == 15
    assert validate_deck_integrity(state)


def test_seed_reproduces_the_deal():
    state = create_match("ABC123", "p1")
    remaining, pyramid = deal_pyramid(shuffle_deck(create_deck(), state.rng_seed), 5)
    assert remaining == state.deck
    assert [cell.card for cell in pyramid.cells()] == [cell.card for cell in state.pyramid.cells()]


def test_explicit_seed_and_rules():
    rules = create_rules(pyramid_rows=4)
    state = create_match("ABC123", "p1", seed="seedA", rules=rules)
    assert state.rng_seed == "seedA"
    assert [len(row) for row in state.pyramid.rows] == [1, 2, 3, 4]
    assert len(state.deck) == 42


def test_add_player_keeps_insertion_order():
    state = create_match("ABC123", "p1")
    for pid, name in [("p1", "Alice"), ("p2", "Bob"), ("p3", "Charlie")]:
        assert add_player(state, pid, name).success
    assert state.player_order() == ["p1", "p2", "p3"]
    player = state.players["p2"]
    assert player.name == "Bob"
    assert player.hand == []
    assert (player.sips_given, player.sips_received) == (0, 0)
    assert player.connected


def test_rejoin_is_idempotent_and_reconnects(match):
    match.players["p2"].hand.append(match.deck.pop(0))
    disconnect_player(match, "p2")
    assert not match.players["p2"].connected

    add_player(match, "p2", "Bobby")
    assert match.player_order() == ["p1", "p2", "p3"]
    assert match.players["p2"].connected
    assert match.players["p2"].name == "Bob"
    assert len(match.players["p2"].hand) == 1


def test_disconnect_unknown_player(match):
    result = disconnect_player(match, "ghost")
    assert not result.success
    assert result.error_code == ErrorCode.UNKNOWN_PLAYER


def test_deal_player_hands(match):
    result = deal_player_hands(match, "p1")
    assert result.success
    assert all(len(player.hand) == 4 for player in match.players.values())
    assert len(match.deck) == 37 - 12
    assert validate_deck_integrity(match)

    # Only empty hands are dealt the second time round
    add_player(match, "p4", "Dana")
    deal_player_hands(match, "p1")
    assert len(match.players["p4"].hand) == 4
    assert len(match.players["p1"].hand) == 4
    assert validate_deck_integrity(match)


def test_deal_player_hands_host_only(match):
    result = deal_player_hands(match, "p2")
    assert result.error_code == ErrorCode.NOT_HOST
    assert all(player.hand == [] for player in match.players.values())


def test_deal_player_hands_deck_exhausted():
    state = create_match("BIG", "p0", seed="s")
    for i in range(10):
        add_player(state, f"p{i}", f"Player {i}")
    before = list(state.deck)
    result = deal_player_hands(state, "p0")
    assert result.error_code == ErrorCode.DECK_EXHAUSTED
    assert state.deck == before
    assert all(player.hand == [] for player in state.players.values())


def test_play_card_moves_card_and_advances_turn(match):
    deal_player_hands(match, "p1")
    card = match.players["p1"].hand[0]

    result = play_card(match, "p1", card.id)

    assert result.success
    assert card not in match.players["p1"].hand
    assert match.discard[-1] == card
    assert match.current_turn == 1
    assert validate_deck_integrity(match)


def test_turn_wraps_around(match):
    deal_player_hands(match, "p1")
    for pid in ["p1", "p2", "p3"]:
        assert play_card(match, pid, match.players[pid].hand[0].id).success
    assert match.current_turn == 0
    assert len(match.discard) == 3


def test_play_card_not_in_hand_is_a_no_op(match):
    deal_player_hands(match, "p1")
    hand_before = list(match.players["p1"].hand)
    version = match.version

    missing = match.deck[0].id
    result = play_card(match, "p1", missing)

    assert not result.success
    assert result.error_code == ErrorCode.CARD_NOT_IN_HAND
    assert match.players["p1"].hand == hand_before
    assert match.discard == []
    assert match.current_turn == 0
    assert match.version == version


def test_play_card_unknown_player(match):
    result = play_card(match, "ghost", "AS")
    assert result.error_code == ErrorCode.UNKNOWN_PLAYER
    assert match.discard == []


def test_play_card_out_of_turn_rejected(match):
    deal_player_hands(match, "p1")
    result = play_card(match, "p2", match.players["p2"].hand[0].id)
    assert result.error_code == ErrorCode.NOT_YOUR_TURN
    assert match.discard == []
    assert match.current_turn == 0


def test_play_card_out_of_turn_allowed_without_enforcement(free_play_match):
    deal_player_hands(free_play_match, "p1")
    result = play_card(free_play_match, "p2", free_play_match.players["p2"].hand[0].id)
    assert result.success
    # Turn moves to the seat after whoever played
    assert free_play_match.current_turn == 0


def test_play_card_wrong_phase(match):
    deal_player_hands(match, "p1")
    reveal_all(match)
    advance_phase(match, "p1")
    result = play_card(match, "p1", match.players["p1"].hand[0].id)
    assert result.error_code == ErrorCode.WRONG_PHASE


def test_reveal_order_runs_from_widest_row_to_apex(match):
    first = reveal_next_card(match, "p1")
    assert first.success
    assert match.pyramid.rows[4][0].revealed
    assert (match.pyramid.current_row, match.pyramid.current_index) == (4, 1)

    reveal_all(match)
    assert match.pyramid.is_fully_revealed()
    assert match.pyramid.last_revealed is match.pyramid.rows[0][0]
    assert match.pyramid.current_row == -1
    assert reveal_next_card(match, "p1").error_code == ErrorCode.PYRAMID_COMPLETE


def test_reveal_host_only(match):
    assert reveal_next_card(match, "p2").error_code == ErrorCode.NOT_HOST
    assert not any(cell.revealed for cell in match.pyramid.cells())


def test_matching_play_gives_sips(free_play_match):
    state = free_play_match
    reveal_next_card(state, "p1")
    revealed = state.pyramid.last_revealed
    # Hand p2 a card of the same rank
    matching = Card(id=f"{revealed.card.rank}X", rank=revealed.card.rank, suit="X")
    state.players["p2"].hand.append(matching)

    assert play_card(state, "p2", matching.id).success
    assert state.players["p2"].sips_given == sips_for_row(state, revealed.row) == 1
    # No target named: the next seat drinks
    assert state.players["p1"].sips_received == 1
    assert state.players["p2"].sips_received == 0


def test_matching_play_gives_sips_to_named_target(match):
    reveal_next_card(match, "p1")
    rank = match.pyramid.last_revealed.card.rank
    matching = Card(id=f"{rank}X", rank=rank, suit="X")
    match.players["p1"].hand.append(matching)

    assert play_card(match, "p1", matching.id, target_id="p3").success
    assert match.players["p1"].sips_given == 1
    assert match.players["p3"].sips_received == 1
    assert match.players["p2"].sips_received == 0


def test_play_card_invalid_target(match):
    deal_player_hands(match, "p1")
    card_id = match.players["p1"].hand[0].id
    assert play_card(match, "p1", card_id, target_id="p1").error_code == ErrorCode.INVALID_TARGET
    assert play_card(match, "p1", card_id, target_id="ghost").error_code == ErrorCode.INVALID_TARGET
    assert match.discard == []
    assert match.current_turn == 0


def test_stacked_plays_are_listed_once(free_play_match):
    deal_player_hands(free_play_match, "p1")
    reveal_next_card(free_play_match, "p1")
    hand = free_play_match.players["p1"].hand

    assert play_card(free_play_match, "p1", hand[0].id).success
    assert play_card(free_play_match, "p1", hand[0].id).success
    assert free_play_match.played_this_reveal == ["p1"]
    assert serialize_match(free_play_match)["playedThisReveal"] == ["p1"]


def test_turn_order_allows_one_card_per_turn_even_with_stacking(match):
    assert match.rules.stacking
    deal_player_hands(match, "p1")
    reveal_next_card(match, "p1")
    hand = match.players["p1"].hand

    assert play_card(match, "p1", hand[0].id).success
    assert play_card(match, "p1", hand[0].id).error_code == ErrorCode.NOT_YOUR_TURN


def test_turn_skips_disconnected_seat(match):
    deal_player_hands(match, "p1")
    disconnect_player(match, "p2")

    assert play_card(match, "p1", match.players["p1"].hand[0].id).success
    assert match.current_player_id() == "p3"


def test_disconnect_passes_the_turn_on(match):
    deal_player_hands(match, "p1")
    play_card(match, "p1", match.players["p1"].hand[0].id)
    assert match.current_player_id() == "p2"

    disconnect_player(match, "p2")

    assert match.current_player_id() == "p3"
    assert play_card(match, "p3", match.players["p3"].hand[0].id).success
    # The absent seat is skipped on the way round
    assert match.current_player_id() == "p1"


def test_disconnect_passes_host_to_next_connected_seat(match):
    disconnect_player(match, "p2")
    disconnect_player(match, "p1")

    assert match.host_id == "p3"
    assert reveal_next_card(match, "p3").success
    assert reveal_next_card(match, "p1").error_code == ErrorCode.NOT_HOST


def test_last_connected_player_keeps_host_and_turn(match):
    disconnect_player(match, "p2")
    disconnect_player(match, "p3")
    disconnect_player(match, "p1")

    assert match.host_id == "p1"
    assert match.current_turn == 0


def test_sips_for_row_apex_is_worth_most(match):
    assert sips_for_row(match, 0) == 5
    assert sips_for_row(match, 4) == 1


def test_no_stacking_limits_one_play_per_reveal():
    rules = create_rules(stacking=False, enforce_turn_order=False)
    state = create_match("NOSTACK", "p1", seed="seedA", rules=rules)
    add_player(state, "p1", "Alice")
    deal_player_hands(state, "p1")
    reveal_next_card(state, "p1")

    hand = state.players["p1"].hand
    assert play_card(state, "p1", hand[0].id).success
    assert play_card(state, "p1", hand[0].id).error_code == ErrorCode.ALREADY_PLAYED

    reveal_next_card(state, "p1")
    assert play_card(state, "p1", hand[0].id).success


def test_advance_phase_requires_revealed_pyramid(match):
    result = advance_phase(match, "p1")
    assert result.error_code == ErrorCode.PYRAMID_INCOMPLETE
    assert match.phase == PHASE_PYRAMID

    reveal_all(match)
    assert advance_phase(match, "p2").error_code == ErrorCode.NOT_HOST
    assert advance_phase(match, "p1").success
    assert match.phase == PHASE_BUS


def test_bus_riders_hold_the_most_cards(match):
    deal_player_hands(match, "p1")
    play_card(match, "p1", match.players["p1"].hand[0].id)
    reveal_all(match)
    advance_phase(match, "p1")

    assert match.bus.queue == ["p2", "p3"]
    assert match.bus.current_rider == "p2"
    assert match.bus.position == 0
    # Boarding costs each rider the bus penalty
    assert [match.players[pid].sips_received for pid in ("p1", "p2", "p3")] == [0, 1, 1]


def test_no_transition_out_of_bus(match):
    reveal_all(match)
    advance_phase(match, "p1")
    result = advance_phase(match, "p1")
    assert result.error_code == ErrorCode.WRONG_PHASE
    assert match.phase == PHASE_BUS
    assert match.phase != PHASE_RESULTS


def test_lobby_advances_to_pyramid(match):
    match.phase = PHASE_LOBBY
    assert advance_phase(match, "p1").success
    assert match.phase == PHASE_PYRAMID


def test_serialize_match_has_every_field(match):
    deal_player_hands(match, "p1")
    reveal_next_card(match, "p1")
    snapshot = serialize_match(match)

    assert set(snapshot) >= {
        "roomCode", "hostId", "rules", "players", "deck", "discard",
        "phase", "pyramid", "bus", "currentTurn", "rngSeed",
    }
    assert snapshot["roomCode"] == "ROOM1"
    assert snapshot["rngSeed"] == "fixed-seed"
    assert list(snapshot["players"]) == ["p1", "p2", "p3"]
    assert len(snapshot["players"]["p1"]["hand"]) == 4
    assert snapshot["players"]["p1"]["sipsGiven"] == 0
    assert snapshot["rules"]["pyramidRows"] == 5
    assert snapshot["pyramid"]["rows"][4][0]["revealed"] is True
    assert snapshot["pyramid"]["lastRevealed"] == {"row": 4, "col": 0}
    assert snapshot["bus"] is None
