"""
Tests for the reducer.

Tests:
- Entry validation (player, count, trash)
- Counter and supply accounting
- Paused and ended games
- Turn boundaries
"""

import pytest

from ..engine_core.action import GameLogAction, LogEntry
from ..engine_core.constants import NO_PLAYER, NOT_PRESENT
from ..engine_core.errors import (
    CountRequiredError,
    GameEndedError,
    GamePausedError,
    InvalidActionError,
    InvalidCountError,
    InvalidLogStartGameError,
    InvalidPlayerIndexError,
    InvalidTrashActionError,
    NotEnoughProphecyError,
    NotEnoughSubfieldError,
    NotEnoughSupplyError,
    PlayerIndexNotAllowedError,
)
from ..engine_core.reducer import (
    apply_log_action,
    get_next_player_index,
    get_player_next_turn_count,
    get_previous_player_index,
)
from ..engine_core.setup import initial_state
from ..engine_core.state import GamePhase, TurnCounters
from .conftest import GAME_START


A = GameLogAction


class TestValidation:
    """Tests for rejected entries."""

    def test_count_required(self, table):
        with pytest.raises(CountRequiredError):
            table.log(A.ADD_ACTIONS, 0)

    def test_zero_count_rejected(self, table):
        with pytest.raises(InvalidCountError):
            table.log(A.ADD_ACTIONS, 0, count=0)

    def test_player_required(self, table):
        with pytest.raises(InvalidPlayerIndexError, match="required"):
            table.log(A.ADD_COINS, NO_PLAYER, count=1)

    def test_player_out_of_range(self, table):
        with pytest.raises(InvalidPlayerIndexError):
            table.log(A.ADD_COINS, 2, count=1)

    def test_player_not_allowed(self, table):
        with pytest.raises(PlayerIndexNotAllowedError):
            table.log(A.END_GAME, 0)

    def test_trash_only_on_victory_removal(self, table):
        with pytest.raises(InvalidTrashActionError):
            table.log(A.ADD_PROVINCES, 0, count=1, trash=True)
        with pytest.raises(InvalidTrashActionError):
            table.log(A.REMOVE_COINS, 0, count=1, trash=True)

    def test_first_entry_must_start_game(self, two_player_setup):
        state = initial_state(two_player_setup)
        entry = LogEntry.create(A.ADD_COINS, 0, GAME_START, count=1)
        with pytest.raises(InvalidLogStartGameError):
            apply_log_action(state, entry)

    def test_second_start_game_rejected(self, table):
        with pytest.raises(InvalidActionError):
            table.log(A.START_GAME, 0)

    def test_rejected_entry_leaves_state_alone(self, table):
        before = table.state
        with pytest.raises(NotEnoughSubfieldError):
            table.log(A.REMOVE_COINS, 0, count=1)
        assert table.state is before
        assert len(before.log) == 1


class TestAdjustments:
    """Tests for counter and supply accounting."""

    def test_turn_counter(self, table):
        table.log(A.ADD_ACTIONS, 0, count=2)
        table.log(A.REMOVE_ACTIONS, 0, count=1)
        assert table.state.players[0].turn.actions == 2
        assert table.state.players[1].turn.actions == 1

    def test_input_state_not_mutated(self, table):
        before = table.state
        table.log(A.ADD_COINS, 0, count=3)
        assert before.players[0].turn.coins == 0
        assert len(before.log) == 1
        assert table.state.players[0].turn.coins == 3

    def test_gain_takes_from_supply(self, table):
        table.log(A.ADD_PROVINCES, 0, count=1)
        assert table.state.players[0].victory.provinces == 1
        assert table.state.supply.provinces == 7

    def test_removal_returns_to_supply(self, table):
        table.log(A.REMOVE_ESTATES, 0, count=1)
        assert table.state.players[0].victory.estates == 2
        assert table.state.supply.estates == 9

    def test_trashed_removal_leaves_supply(self, table):
        table.log(A.REMOVE_ESTATES, 0, count=1, trash=True)
        assert table.state.players[0].victory.estates == 2
        assert table.state.supply.estates == 8

    def test_not_enough_counter(self, table):
        with pytest.raises(NotEnoughSubfieldError, match="Not enough coins in turn"):
            table.log(A.REMOVE_COINS, 0, count=1)

    def test_not_enough_supply(self, table):
        with pytest.raises(NotEnoughSupplyError, match="provinces"):
            table.log(A.ADD_PROVINCES, 0, count=9)

    def test_vp_tokens_not_a_supply_pile(self, table):
        supply = table.state.supply
        table.log(A.ADD_VP_TOKENS, 1, count=4)
        assert table.state.players[1].victory.tokens == 4
        assert table.state.supply == supply


class TestProphecy:
    """Tests for the Rising Sun prophecy counter."""

    def test_remove_suns(self, rising_sun_table):
        rising_sun_table.log(A.REMOVE_PROPHECY, 0, count=2)
        assert rising_sun_table.state.expansions.rising_sun.prophecy_suns == 3

    def test_not_enough_suns(self, rising_sun_table):
        with pytest.raises(NotEnoughProphecyError):
            rising_sun_table.log(A.REMOVE_PROPHECY, 0, count=6)

    def test_no_effect_without_rising_sun(self, table):
        table.log(A.REMOVE_PROPHECY, 0, count=1)
        assert table.state.expansions.rising_sun.prophecy_suns == NOT_PRESENT
        assert table.state.log[-1].action is A.REMOVE_PROPHECY


class TestLifecycle:
    """Tests for pause, end and turn boundaries."""

    def test_paused_game_only_unpauses(self, table):
        table.log(A.PAUSE)
        assert table.state.is_paused
        with pytest.raises(GamePausedError):
            table.log(A.ADD_COINS, 0, count=1)
        with pytest.raises(GamePausedError):
            table.next_turn()

        table.log(A.UNPAUSE)
        table.log(A.ADD_COINS, 0, count=1)
        assert table.state.players[0].turn.coins == 1

    def test_ended_game(self, table):
        table.log(A.END_GAME)
        assert table.state.phase is GamePhase.GAME_OVER
        with pytest.raises(GameEndedError):
            table.log(A.ADD_COINS, 0, count=1)
        table.log(A.SAVE_GAME)
        assert table.state.log[-1].action is A.SAVE_GAME

    def test_next_turn_passes_to_next_seat(self, table):
        entry = table.next_turn()
        assert entry.player_index == 1
        assert entry.turn == 2
        assert entry.prev_player_index == 0
        assert table.state.current_turn == 2
        assert table.state.current_player_index == 1
        assert table.state.selected_player_index == 1

    def test_next_turn_wraps_around(self, three_player_table):
        for _ in range(3):
            three_player_table.next_turn()
        assert three_player_table.state.current_player_index == 0
        assert three_player_table.state.current_turn == 4

    def test_next_turn_resets_counters(self, table):
        table.log(A.ADD_ACTIONS, 0, count=3)
        table.log(A.ADD_COINS, 0, count=5)
        table.log(A.ADD_COFFERS, 0, count=2)
        table.next_turn()
        alice = table.state.players[0]
        assert alice.turn.actions == 1
        assert alice.turn.coins == 0
        # Mats carry over
        assert alice.mats.coffers == 2

    def test_next_turn_records_turn_details(self, table):
        table.log(A.ADD_COINS, 0, count=3)
        table.log(A.ADD_BUYS, 0, count=1)
        entry = table.next_turn()
        assert entry.player_turn_details == (
            TurnCounters(coins=3, buys=2),
            TurnCounters(),
        )
        assert table.state.players[0].turn == TurnCounters()

    def test_next_turn_defaults_carry_over(self, table):
        table.log(A.ADD_NEXT_TURN_COINS, 1, count=2)
        assert table.state.players[1].turn.coins == 0
        table.next_turn()
        assert table.state.players[1].turn.coins == 2

    def test_select_player(self, table):
        table.log(A.SELECT_PLAYER, 1)
        assert table.state.selected_player_index == 1
        assert table.state.current_player_index == 0

    def test_start_game_does_not_move_current_player(self, three_player_table):
        assert three_player_table.state.current_player_index == 0
        assert three_player_table.state.log[0].player_index == 0


class TestTurnOrder:
    """Tests for turn order helpers."""

    def test_next_and_previous(self, table):
        assert get_next_player_index(table.state) == 1
        assert get_previous_player_index(table.state) == NO_PLAYER
        table.next_turn()
        assert get_previous_player_index(table.state) == 0

    def test_player_next_turn_count(self, three_player_table):
        state = three_player_table.state
        assert get_player_next_turn_count(state, 0) == 1
        assert get_player_next_turn_count(state, 0, skip_current_turn=True) == 4
        assert get_player_next_turn_count(state, 2) == 3

    def test_player_next_turn_count_bad_index(self, table):
        with pytest.raises(InvalidPlayerIndexError):
            get_player_next_turn_count(table.state, 5)
