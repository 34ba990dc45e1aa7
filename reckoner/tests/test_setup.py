"""
Tests for game setup.

Tests:
- Supply sizes per player count
- Roster validation
- The START_GAME state
"""

import pytest

from ..engine_core.action import GameLogAction
from ..engine_core.constants import NOT_PRESENT
from ..engine_core.errors import InvalidPlayerIndexError, MaxPlayersError, MinPlayersError
from ..engine_core.setup import (
    calculate_initial_sun_tokens,
    get_next_available_player_color,
    initial_state,
    new_game_state,
    supply_for_player_count,
)
from ..engine_core.state import GamePhase, GameSupply, new_player
from .conftest import GAME_START, make_setup


class TestSupply:
    """Tests for starting supply."""

    def test_two_player_base_supply(self):
        supply = supply_for_player_count(2, prosperity=False)
        assert supply == GameSupply(
            coppers=46,
            silvers=40,
            golds=30,
            platinums=NOT_PRESENT,
            estates=8,
            duchies=8,
            provinces=8,
            colonies=NOT_PRESENT,
            curses=10,
        )

    def test_prosperity_adds_platinum_and_colonies(self):
        two = supply_for_player_count(2, prosperity=True)
        four = supply_for_player_count(4, prosperity=True)
        assert two.platinums == 12
        assert two.colonies == 8
        assert four.colonies == 12

    def test_five_players_use_two_sets(self):
        supply = supply_for_player_count(5, prosperity=False)
        assert supply.coppers == 120 - 35
        assert supply.silvers == 80
        assert supply.provinces == 15
        assert supply.curses == 40

    def test_invalid_player_count(self):
        with pytest.raises(ValueError, match="Invalid player count: 7"):
            supply_for_player_count(7, prosperity=False)

    @pytest.mark.parametrize("players, suns", [(2, 5), (3, 8), (4, 10), (5, 12), (6, 13)])
    def test_sun_tokens(self, players, suns):
        assert calculate_initial_sun_tokens(players) == suns


class TestNewGame:
    """Tests for starting a game."""

    def test_new_game_logs_start(self, two_player_setup):
        state = new_game_state(two_player_setup, GAME_START)

        assert len(state.log) == 1
        assert state.log[0].action is GameLogAction.START_GAME
        assert state.phase is GamePhase.PLAYING
        assert state.current_turn == 1

    def test_players_start_with_three_estates(self, two_player_setup):
        state = new_game_state(two_player_setup, GAME_START)
        for player in state.players:
            assert player.victory.estates == 3
            assert player.turn.actions == 1
            assert player.turn.buys == 1
        # Starting estates do not come out of the supply
        assert state.supply.estates == 8

    def test_first_player(self):
        state = new_game_state(make_setup(3, first_player_index=2), GAME_START)
        assert state.current_player_index == 2
        assert state.selected_player_index == 2

    def test_too_few_players(self):
        with pytest.raises(MinPlayersError):
            new_game_state(make_setup(1), GAME_START)

    def test_too_many_players(self):
        with pytest.raises(MaxPlayersError):
            new_game_state(make_setup(7), GAME_START)

    def test_first_player_out_of_range(self):
        with pytest.raises(InvalidPlayerIndexError):
            initial_state(make_setup(2, first_player_index=5))

    def test_rising_sun_places_suns(self):
        state = new_game_state(make_setup(3, rising_sun=True), GAME_START)
        assert state.expansions.rising_sun.prophecy_suns == 8

    def test_no_rising_sun_no_prophecy(self, two_player_setup):
        state = new_game_state(two_player_setup, GAME_START)
        assert state.expansions.rising_sun.prophecy_suns == NOT_PRESENT

    def test_to_setup_round_trips(self):
        setup = make_setup(3, first_player_index=1)
        state = new_game_state(setup, GAME_START)
        assert state.to_setup() == setup


class TestPlayers:
    """Tests for player helpers."""

    def test_new_player_trims_name(self):
        player = new_player("  Alice ", "#fff")
        assert player.name == "Alice"

    def test_next_available_color(self):
        assert get_next_available_player_color([]) == "#e57373"
        assert get_next_available_player_color(["#e57373"]) == "#64b5f6"

    def test_no_colors_left(self):
        from ..engine_core.constants import DEFAULT_PLAYER_COLORS
        with pytest.raises(ValueError):
            get_next_available_player_color(list(DEFAULT_PLAYER_COLORS))
