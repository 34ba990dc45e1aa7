"""
Tests for grouped actions (recipes).

Tests:
- Marker and linked sub-action entries
- Target selectors
- Computed counts
- Deferred triggers and the pending queue
- Great Leader prophecy bonus
"""

import uuid

import pytest

from ..engine_core.action import GameLogAction, LogEntryDraft
from ..engine_core.errors import InvalidRecipeError, NotEnoughSubfieldError
from ..engine_core.expression import CountExpression
from ..engine_core.grouped import (
    GroupedActionDest,
    GroupedActionTrigger,
    Recipe,
    RecipeAction,
    apply_grouped_action,
    describe_pending_action,
    get_grouped_action_target_players,
)
from ..games.dominion.recipes import find_recipe, iter_recipes
from .conftest import GAME_START


A = GameLogAction


class TestApplyRecipe:
    """Tests for applying a recipe as one group."""

    def test_marker_and_linked_entries(self, table):
        table.recipe("Village")
        marker, cards, actions = table.state.log[1:]

        assert marker.action is A.GROUPED_ACTION
        assert marker.action_name == "Village"
        assert marker.action_key == "Village"
        assert marker.linked_action_id is None
        assert cards.action is A.ADD_CARDS and cards.count == 1
        assert actions.action is A.ADD_ACTIONS and actions.count == 2
        assert cards.linked_action_id == actions.linked_action_id == marker.id

        alice = table.state.players[0]
        assert alice.turn.cards == 1
        assert alice.turn.actions == 3

    def test_others_targeting(self, three_player_table):
        three_player_table.recipe("Witch")
        state = three_player_table.state

        assert [p.victory.curses for p in state.players] == [0, 1, 1]
        assert state.players[0].turn.cards == 2
        assert state.supply.curses == 18

    def test_selected_player_targeting(self, rising_sun_table):
        rising_sun_table.log(A.SELECT_PLAYER, 1)
        rising_sun_table.recipe("RemoveSun")
        entry = rising_sun_table.state.log[-1]
        assert entry.action is A.REMOVE_PROPHECY
        assert entry.player_index == 1
        assert rising_sun_table.state.expansions.rising_sun.prophecy_suns == 4

    def test_failed_recipe_commits_nothing(self, table):
        table.recipe("PlayAction")
        before = table.state
        with pytest.raises(NotEnoughSubfieldError):
            table.recipe("PlayAction")
        assert table.state is before
        assert len(table.state.log) == 3

    def test_ad_hoc_recipe(self, table):
        bonus = Recipe(
            name="Bonus",
            actions={GroupedActionDest.ALL_PLAYERS: [RecipeAction(A.ADD_COINS, count=1)]},
        )
        state = apply_grouped_action(table.state, bonus, GAME_START)
        assert [p.turn.coins for p in state.players] == [1, 1]
        assert state.log[1].action_key is None

    def test_target_players(self, three_player_table):
        state = three_player_table.state
        assert get_grouped_action_target_players(state, GroupedActionDest.ALL_PLAYERS) == [0, 1, 2]
        assert get_grouped_action_target_players(
            state, GroupedActionDest.ALL_PLAYERS_EXCEPT_CURRENT
        ) == [1, 2]


class TestRecipeKeys:
    """Tests for checking a recipe against its catalog key."""

    def test_unknown_key(self, table):
        with pytest.raises(InvalidRecipeError, match="Invalid recipe key: Nope"):
            apply_grouped_action(table.state, find_recipe("Village"), GAME_START, recipe_key="Nope")

    def test_mismatched_key(self, table):
        with pytest.raises(InvalidRecipeError, match="does not match"):
            apply_grouped_action(table.state, find_recipe("Village"), GAME_START, recipe_key="Smithy")

    def test_catalog_keys_are_unique(self):
        keys = [key for _, key, _ in iter_recipes()]
        assert len(keys) == len(set(keys))


class TestComputedCounts:
    """Tests for recipes whose counts are read from the state."""

    def test_spend_all_coffers(self, table):
        table.log(A.ADD_COFFERS, 0, count=3)
        table.recipe("SpendAllCoffers")
        alice = table.state.players[0]
        assert alice.turn.coins == 3
        assert alice.mats.coffers == 0

    def test_zero_count_skipped(self, table):
        table.recipe("SpendAllCoffers")
        assert len(table.state.log) == 2
        assert table.state.log[-1].action is A.GROUPED_ACTION

    def test_expression_ops(self, table):
        table.log(A.ADD_COINS, 0, count=7)
        half = CountExpression({
            "op": "floor_div",
            "left": {"op": "counter", "field": "turn", "subfield": "coins"},
            "right": 2,
        })
        assert half.evaluate(table.state, 0) == 3
        assert CountExpression({"op": "supply", "pile": "provinces"}).evaluate(table.state, 0) == 8
        assert CountExpression.literal(-4).evaluate(table.state, 0) == 0


class TestDeferredTriggers:
    """Tests for actions that fire at the start of a later turn."""

    def test_trigger_queued_for_owners_next_turn(self, table):
        table.recipe("Caravan")
        [draft] = table.state.pending_grouped_actions

        assert draft.action is A.ADD_CARDS
        assert draft.player_index == 0
        assert draft.turn == 3
        assert draft.linked_action_id == "e2"

    def test_trigger_applied_on_owners_turn(self, table):
        table.recipe("Caravan")
        table.next_turn()
        assert table.state.players[0].turn.cards == 0
        assert len(table.state.pending_grouped_actions) == 1

        next_turn = table.next_turn()
        applied = table.state.log[-1]

        assert table.state.log[-2] is next_turn
        assert applied.action is A.ADD_CARDS
        assert applied.turn == 3
        assert applied.linked_action_id == "e2"
        assert applied.id == str(uuid.uuid5(uuid.NAMESPACE_OID, f"{next_turn.id}/1"))
        assert table.state.players[0].turn.cards == 1
        assert table.state.pending_grouped_actions == []

    def test_trigger_only_recipe(self, three_player_table):
        three_player_table.recipe("Tactician")
        assert len(three_player_table.state.log) == 2
        assert {d.turn for d in three_player_table.state.pending_grouped_actions} == {4}

        for _ in range(3):
            three_player_table.next_turn()
        alice = three_player_table.state.players[0]
        assert (alice.turn.cards, alice.turn.buys, alice.turn.actions) == (5, 2, 2)

    def test_triggers_by_trigger_kind(self):
        caravan = find_recipe("Caravan")
        assert GroupedActionTrigger.AFTER_NEXT_TURN_BEGINS in caravan.triggers

    def test_describe_pending(self):
        assert describe_pending_action(LogEntryDraft(A.ADD_CARDS, count=1)) == "Will add 1 Cards"
        computed = LogEntryDraft(A.ADD_COINS, count_expression=CountExpression.literal(1))
        assert describe_pending_action(computed) == "Will add computed Coins"


class TestGreatLeader:
    """Tests for the Great Leader prophecy bonus."""

    def test_bonus_when_actions_run_out(self, rising_sun_table):
        rising_sun_table.log(A.REMOVE_PROPHECY, 0, count=5)
        rising_sun_table.recipe("PlayAction")

        bonus = rising_sun_table.state.log[-1]
        assert bonus.action is A.ADD_ACTIONS
        assert bonus.count == 1
        assert bonus.action_name == "Added 1 actions (Great Leader Prophecy)"
        assert bonus.linked_action_id == rising_sun_table.state.log[-3].id
        assert rising_sun_table.state.players[0].turn.actions == 1

    def test_no_bonus_before_prophecy_fulfilled(self, rising_sun_table):
        rising_sun_table.recipe("PlayAction")
        assert rising_sun_table.state.players[0].turn.actions == 0
        assert rising_sun_table.state.log[-1].action is A.REMOVE_ACTIONS
