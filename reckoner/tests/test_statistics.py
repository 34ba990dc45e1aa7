"""
Tests for scoring and turn statistics.
"""

from ..engine_core.action import GameLogAction
from ..engine_core.state import new_player
from ..engine_core.statistics import (
    calculate_victory_points,
    calculate_victory_points_and_supply_by_turn,
    rank_players,
    rebuild_turn_statistics_cache,
)
from .conftest import GAME_START


A = GameLogAction


def alice_and_bob_turn(table):
    """Both players act during Alice's turn, then the turn passes."""
    table.log(A.ADD_ACTIONS, 0, count=1)
    table.log(A.ADD_COINS, 0, count=5)
    table.log(A.ADD_BUYS, 1, count=1)
    table.log(A.ADD_COINS, 1, count=3)
    table.next_turn()


class TestVictoryPoints:

    def test_starting_score(self, table):
        assert calculate_victory_points(table.state.players[0]) == 3

    def test_all_victory_counters(self, table):
        table.log(A.ADD_PROVINCES, 0, count=1)
        table.log(A.ADD_DUCHIES, 0, count=1)
        table.log(A.ADD_CURSES, 0, count=2)
        table.log(A.ADD_VP_TOKENS, 0, count=4)
        table.log(A.ADD_OTHER_VP, 0, count=1)
        # 3 estates + 6 + 3 - 2 + 4 + 1
        assert calculate_victory_points(table.state.players[0]) == 15


class TestRankPlayers:
    """Tests for the scoreboard order."""

    def test_ties_share_a_rank(self, table):
        ranked = rank_players(table.state.players)
        assert [r.rank for r in ranked] == [1, 1]
        assert [r.index for r in ranked] == [0, 1]

    def test_rank_skips_after_tie(self, three_player_table):
        three_player_table.log(A.ADD_PROVINCES, 2, count=1)
        ranked = rank_players(three_player_table.state.players)
        assert [(r.index, r.score, r.rank) for r in ranked] == [
            (2, 9, 1),
            (0, 3, 2),
            (1, 3, 2),
        ]

    def test_ties_ordered_by_name(self):
        players = [new_player("Zed", "#000"), new_player("Amy", "#111")]
        assert [r.index for r in rank_players(players)] == [1, 0]


class TestTurnSnapshots:
    """Tests for statistics captured at turn boundaries."""

    def test_snapshot_taken_before_reset(self, table):
        alice_and_bob_turn(table)
        [stats] = table.state.turn_statistics_cache

        assert stats.turn == 1
        assert stats.player_index == 0
        assert stats.player_actions == {0: 2, 1: 1}
        assert stats.player_buys == {0: 1, 1: 2}
        assert stats.player_coins == {0: 5, 1: 3}
        assert stats.player_scores == {0: 3, 1: 3}
        assert stats.player_potions is None

    def test_snapshot_times(self, table):
        alice_and_bob_turn(table)
        [stats] = table.state.turn_statistics_cache
        assert stats.start == GAME_START
        assert stats.end == table.state.log[-1].timestamp
        assert stats.turn_duration == 50_000

    def test_snapshot_player_is_the_ending_player(self, table):
        table.next_turn()
        table.next_turn()
        assert [s.player_index for s in table.state.turn_statistics_cache] == [0, 1]
        assert [s.turn for s in table.state.turn_statistics_cache] == [1, 2]

    def test_end_game_snapshots_last_turn(self, table):
        table.next_turn()
        table.log(A.ADD_COINS, 1, count=2)
        table.log(A.END_GAME)
        last = table.state.turn_statistics_cache[-1]
        assert last.turn == 2
        assert last.player_index == 1
        assert last.player_coins[1] == 2

    def test_snapshot_supply(self, table):
        table.log(A.ADD_PROVINCES, 1, count=1)
        table.next_turn()
        assert table.state.turn_statistics_cache[0].supply.provinces == 7

    def test_rebuild_matches_cache(self, table):
        alice_and_bob_turn(table)
        table.recipe("Market")
        table.next_turn()
        assert rebuild_turn_statistics_cache(table.state) == table.state.turn_statistics_cache

    def test_victory_graph(self, table):
        table.log(A.ADD_PROVINCES, 0, count=1)
        table.next_turn()
        table.log(A.ADD_DUCHIES, 1, count=1)
        table.next_turn()

        points = calculate_victory_points_and_supply_by_turn(table.state)
        assert [p.player_scores for p in points] == [{0: 9, 1: 3}, {0: 9, 1: 6}]
        assert points[-1].supply.duchies == 7
