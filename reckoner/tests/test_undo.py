"""
Tests for undo.

Tests:
- Whole linked groups are removed together
- Undo is rejected when the remaining history would not replay
- Undo policies per action kind
- Pending triggers of an undone recipe are dropped
- Undoing a turn restores the triggers it skipped
"""

from ..engine_core.action import GameLogAction
from ..engine_core.undo import can_undo_action, remove_target_and_linked_actions, undo_action
from .conftest import coffers_windfall


A = GameLogAction


class TestLinkedGroups:
    """Tests for group atomicity."""

    def _linked_pair(self, table):
        master = table.log(A.ADD_COINS, 0, count=2)
        table.log(A.REMOVE_COINS, 0, count=1, linked_action_id=master.id)
        assert table.state.players[0].turn.coins == 1

    def test_undo_master_removes_group(self, table):
        self._linked_pair(table)
        result = undo_action(table.state, 1)
        assert result.success
        assert len(result.state.log) == 1
        assert result.state.players[0].turn.coins == 0

    def test_undo_member_removes_group(self, table):
        self._linked_pair(table)
        result = undo_action(table.state, 2)
        assert result.success
        assert len(result.state.log) == 1
        assert result.state.players[0].turn.coins == 0

    def test_undo_recipe(self, table):
        table.recipe("Village")
        table.log(A.ADD_BUYS, 0, count=1)
        result = undo_action(table.state, 2)

        assert result.success
        assert [e.action for e in result.state.log] == [A.START_GAME, A.ADD_BUYS]
        assert result.state.players[0].turn.actions == 1
        assert result.state.players[0].turn.buys == 2

    def test_remove_target_and_linked_actions(self, table):
        table.recipe("Village")
        table.log(A.ADD_BUYS, 0, count=1)
        remaining = remove_target_and_linked_actions(table.state.log, 3)
        assert [e.id for e in remaining] == ["e1", "e5"]

    def test_input_state_untouched(self, table):
        table.log(A.ADD_COINS, 0, count=2)
        before = table.state
        undo_action(before, 1)
        assert len(before.log) == 2
        assert before.players[0].turn.coins == 2


class TestRejection:
    """Tests for undo that would break later entries."""

    def test_dependent_entry_blocks_undo(self, table):
        table.log(A.ADD_PROVINCES, 0, count=1)
        table.log(A.REMOVE_PROVINCES, 0, count=1)

        assert not can_undo_action(table.state, 1)
        result = undo_action(table.state, 1)
        assert not result.success
        assert result.state is table.state

    def test_last_entry_still_undoable(self, table):
        table.log(A.ADD_PROVINCES, 0, count=1)
        table.log(A.REMOVE_PROVINCES, 0, count=1)
        assert can_undo_action(table.state, 2)

    def test_index_out_of_range(self, table):
        assert not can_undo_action(table.state, 5)
        assert not can_undo_action(table.state, -1)

    def test_dangling_link(self, table):
        table.log(A.ADD_COINS, 0, count=1, linked_action_id="missing")
        assert not can_undo_action(table.state, 1)


class TestPolicies:
    """Tests for per-action undo rules."""

    def test_start_game_never(self, table):
        assert not can_undo_action(table.state, 0)

    def test_admin_entries_never(self, table):
        table.log(A.PAUSE)
        table.log(A.UNPAUSE)
        assert not can_undo_action(table.state, 1)
        assert not can_undo_action(table.state, 2)

    def test_next_turn_only_when_last(self, table):
        table.next_turn()
        assert can_undo_action(table.state, 1)

        table.log(A.ADD_COINS, 1, count=1)
        assert not can_undo_action(table.state, 1)
        assert can_undo_action(table.state, 2)

    def test_undo_next_turn(self, table):
        table.log(A.ADD_COINS, 0, count=4)
        table.next_turn()
        result = undo_action(table.state, 2)

        assert result.success
        assert result.state.current_turn == 1
        assert result.state.current_player_index == 0
        assert result.state.players[0].turn.coins == 4
        assert result.state.turn_statistics_cache == []

    def test_select_player_only_when_last(self, table):
        table.log(A.SELECT_PLAYER, 1)
        table.log(A.ADD_COINS, 1, count=1)
        assert not can_undo_action(table.state, 1)


class TestPendingTriggers:
    """Tests for deferred actions of undone recipes."""

    def test_undo_drops_pending_drafts(self, table):
        table.recipe("Caravan")
        table.recipe("MerchantShip")
        assert len(table.state.pending_grouped_actions) == 2

        result = undo_action(table.state, 1)
        assert result.success
        [draft] = result.state.pending_grouped_actions
        assert draft.action is A.ADD_COINS

    def test_undo_after_trigger_fired(self, table):
        table.recipe("Caravan")
        table.next_turn()
        table.next_turn()
        assert table.state.players[0].turn.cards == 1

        result = undo_action(table.state, 1)
        assert result.success
        assert all(e.linked_action_id != "e2" for e in result.state.log)
        assert result.state.players[0].turn.cards == 0
        assert result.state.current_turn == 3


class TestSkippedTriggers:
    """Tests for deferred actions whose count came to zero."""

    def test_undo_next_turn_requeues_skipped_drafts(self, table):
        coffers_windfall(table)
        [queued] = table.state.pending_grouped_actions
        assert queued.turn == 2

        table.next_turn()
        assert table.state.pending_grouped_actions == []
        assert table.state.skipped_grouped_actions == [queued]
        assert table.state.log[-1].action is A.NEXT_TURN

        result = undo_action(table.state, len(table.state.log) - 1)
        assert result.success
        assert result.state.current_turn == 1
        assert result.state.pending_grouped_actions == [queued]
        assert result.state.skipped_grouped_actions == []

    def test_requeued_draft_fires_on_the_next_turn(self, table):
        coffers_windfall(table)
        table.next_turn()
        table.state = undo_action(table.state, len(table.state.log) - 1).state

        table.log(A.ADD_COFFERS, 1, count=2)
        table.next_turn()
        assert table.state.players[1].turn.coins == 2
        assert table.state.pending_grouped_actions == []

    def test_undo_other_entry_keeps_skipped_drafts(self, table):
        coffers_windfall(table)
        table.next_turn()
        table.log(A.ADD_COINS, 1, count=1)

        result = undo_action(table.state, len(table.state.log) - 1)
        assert result.success
        assert result.state.pending_grouped_actions == []
        assert len(result.state.skipped_grouped_actions) == 1

    def test_undo_recipe_drops_skipped_drafts(self, table):
        coffers_windfall(table)
        table.next_turn()

        result = undo_action(table.state, 1)
        assert result.success
        assert result.state.pending_grouped_actions == []
        assert result.state.skipped_grouped_actions == []
