"""
Tests for log replay and the linked action index.
"""

import pytest

from ..engine_core.action import GameLogAction, LogEntry
from ..engine_core.errors import EmptyLogError, InvalidLogStartGameError, NotEnoughSubfieldError
from ..engine_core.replay import LinkedActionIndex, reconstruct_game_state, replay_states
from .conftest import GAME_START


A = GameLogAction


def play_a_few_turns(table):
    table.log(A.ADD_COINS, 0, count=3)
    table.recipe("Village")
    table.log(A.ADD_PROVINCES, 0, count=1)
    table.next_turn()
    table.recipe("Witch")
    table.log(A.ADD_COFFERS, 1, count=2)
    table.next_turn()


class TestReconstruct:
    """Tests for rebuilding state from setup + log."""

    def test_replay_matches_live_state(self, table):
        play_a_few_turns(table)
        replayed = reconstruct_game_state(table.setup, table.state.log)
        assert replayed == table.state

    def test_replay_is_deterministic(self, table):
        play_a_few_turns(table)
        first = reconstruct_game_state(table.setup, table.state.log)
        second = reconstruct_game_state(table.setup, table.state.log)
        assert first == second

    def test_replay_with_materialized_triggers(self, table):
        table.recipe("Caravan")
        table.next_turn()
        table.next_turn()
        assert not table.state.pending_grouped_actions

        replayed = reconstruct_game_state(table.setup, table.state.log)
        assert replayed == table.state
        assert replayed.players[0].turn.cards == 1

    def test_replay_states_yields_each_step(self, table):
        table.log(A.ADD_COINS, 0, count=1)
        table.log(A.ADD_COINS, 0, count=1)
        coins = [state.players[0].turn.coins for _, state in replay_states(table.setup, table.state.log)]
        assert coins == [0, 1, 2]

    def test_empty_log(self, two_player_setup):
        with pytest.raises(EmptyLogError):
            reconstruct_game_state(two_player_setup, [])

    def test_log_must_start_with_start_game(self, two_player_setup):
        log = [LogEntry.create(A.ADD_COINS, 0, GAME_START, count=1)]
        with pytest.raises(InvalidLogStartGameError):
            reconstruct_game_state(two_player_setup, log)

    def test_first_failing_entry_propagates(self, table):
        table.log(A.ADD_COINS, 0, count=1)
        bad = LogEntry.create(A.REMOVE_COINS, 0, GAME_START, count=5)
        with pytest.raises(NotEnoughSubfieldError):
            reconstruct_game_state(table.setup, table.state.log + [bad])


class TestLinkedActionIndex:
    """Tests for grouping entries by master id."""

    def test_groups_recipe_entries(self, table):
        table.recipe("Village")
        index = LinkedActionIndex(table.state.log)

        assert index.group_indices("e2") == [1, 2, 3]
        assert index.group_indices("e1") == [0]
        assert "e2" in index
        assert "e3" not in index
        assert len(index) == 2

    def test_has_entry(self, table):
        table.recipe("Village")
        index = LinkedActionIndex(table.state.log)
        assert index.has_entry("e3")
        assert not index.has_entry("missing")

    def test_unknown_group_is_empty(self, table):
        assert LinkedActionIndex(table.state.log).group_indices("missing") == []
