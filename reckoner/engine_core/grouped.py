"""
Grouped Actions - Apply a recipe as one linked group of log entries.

A recipe says, per target selector, which adjustments to log, and which
adjustments to schedule for later. Applying one produces:
1. A GROUPED_ACTION marker entry whose id is the group id
2. One entry per (target player, recipe action), linked to the group
3. Pending drafts for deferred triggers, also linked to the group

Everything is applied through the reducer, threading the state forward.
If any step fails the error propagates and the caller keeps its original
state; nothing is partially committed.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable
import logging
import uuid

from .action import GameLogAction, LogEntry, LogEntryDraft
from .constants import NO_PLAYER
from .errors import InvalidActionError, InvalidRecipeError, ReckonerError
from .expression import CountExpression
from .fields import NO_PLAYER_ACTIONS
from .reducer import apply_log_action, get_player_next_turn_count
from .state import GameState
from .timeline import calculate_duration_up_to_event

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


class GroupedActionDest(Enum):
    """Which players a set of recipe actions applies to."""
    CURRENT_PLAYER = "current_player"
    SELECTED_PLAYER = "selected_player"
    ALL_PLAYERS = "all_players"
    ALL_PLAYERS_EXCEPT_CURRENT = "all_players_except_current"
    ALL_PLAYERS_EXCEPT_SELECTED = "all_players_except_selected"


class GroupedActionTrigger(Enum):
    """When deferred recipe actions fire."""
    AFTER_NEXT_TURN_BEGINS = "after_next_turn_begins"


@dataclass(frozen=True)
class RecipeAction:
    """
    One adjustment in a recipe.

    The count is either fixed or computed from the state when the action is
    materialized. A computed count of zero means the action is skipped.
    """
    action: GameLogAction
    count: int | None = None
    count_expression: CountExpression | None = None
    trash: bool = False
    action_name: str | None = None

    def to_draft(self, **kwargs) -> LogEntryDraft:
        return LogEntryDraft(
            action=self.action,
            count=self.count,
            count_expression=self.count_expression,
            trash=self.trash,
            action_name=self.action_name,
            **kwargs,
        )


@dataclass(frozen=True)
class Recipe:
    name: str
    actions: dict[GroupedActionDest, list[RecipeAction]] = field(default_factory=dict)
    triggers: dict[GroupedActionTrigger, dict[GroupedActionDest, list[RecipeAction]]] = field(
        default_factory=dict
    )
    description: str = ""


def get_grouped_action_target_players(state: GameState, dest: GroupedActionDest) -> list[int]:
    indices = range(state.num_players)
    if dest is GroupedActionDest.CURRENT_PLAYER:
        return [state.current_player_index]
    if dest is GroupedActionDest.SELECTED_PLAYER:
        return [state.selected_player_index]
    if dest is GroupedActionDest.ALL_PLAYERS:
        return list(indices)
    if dest is GroupedActionDest.ALL_PLAYERS_EXCEPT_CURRENT:
        return [i for i in indices if i != state.current_player_index]
    if dest is GroupedActionDest.ALL_PLAYERS_EXCEPT_SELECTED:
        return [i for i in indices if i != state.selected_player_index]
    raise ValueError(f"Invalid GroupedActionDest: {dest}")


def _resolve_count(draft: LogEntryDraft, state: GameState, player_index: int) -> int | None:
    if draft.count_expression is not None:
        return draft.count_expression.evaluate(state, player_index)
    return draft.count


def _great_leader_applies(state: GameState, player_index: int) -> bool:
    """Great Leader: +Actions whenever a player has none left and the prophecy is fulfilled."""
    rising_sun = state.expansions.rising_sun
    return (
        state.options.expansions.rising_sun
        and rising_sun.great_leader_prophecy
        and rising_sun.prophecy_suns == 0
        and state.players[player_index].turn.actions == 0
    )


def apply_grouped_action_sub_action(
    state: GameState,
    draft: LogEntryDraft,
    player_index: int,
    group_id: str,
    now: datetime,
    id_factory: Callable[[], str] = _new_id,
) -> GameState:
    """
    Materialize one recipe action for one player and apply it.

    `draft.count` must already be resolved.
    """
    if not isinstance(draft.action, GameLogAction):
        raise InvalidActionError(draft.action)

    game_time = calculate_duration_up_to_event(state.log, now)
    entry = LogEntry(
        id=id_factory(),
        timestamp=now,
        game_time=game_time,
        action=draft.action,
        player_index=NO_PLAYER if draft.action in NO_PLAYER_ACTIONS else player_index,
        current_player_index=state.current_player_index,
        turn=state.current_turn,
        count=draft.count,
        trash=draft.trash,
        linked_action_id=group_id,
        action_name=draft.action_name,
    )
    new_state = apply_log_action(state, entry)

    if draft.action is GameLogAction.REMOVE_ACTIONS and _great_leader_applies(new_state, player_index):
        bonus = draft.count if draft.count is not None else 1
        new_state = apply_log_action(new_state, LogEntry(
            id=id_factory(),
            timestamp=now,
            game_time=game_time,
            action=GameLogAction.ADD_ACTIONS,
            player_index=player_index,
            current_player_index=state.current_player_index,
            turn=state.current_turn,
            count=bonus,
            linked_action_id=group_id,
            action_name=f"Added {bonus} actions (Great Leader Prophecy)",
        ))

    return new_state


def check_recipe_key(recipe: Recipe, recipe_key: str, lookup: Callable[[str], Recipe | None]):
    """The recipe passed with a catalog key must be the catalog's recipe."""
    catalog_recipe = lookup(recipe_key)
    if catalog_recipe is None:
        raise InvalidRecipeError(f"Invalid recipe key: {recipe_key}")
    if catalog_recipe.name != recipe.name:
        raise InvalidRecipeError(
            "Invalid grouped action. The passed in grouped action does not match "
            f"the recipe for key '{recipe_key}'."
        )


def apply_grouped_action(
    state: GameState,
    recipe: Recipe,
    now: datetime,
    recipe_key: str | None = None,
    id_factory: Callable[[], str] = _new_id,
    lookup: Callable[[str], Recipe | None] | None = None,
) -> GameState:
    """
    Apply a recipe as one linked group.

    Args:
        state: Current state (not modified)
        recipe: The recipe to apply
        now: Timestamp for every entry in the group
        recipe_key: Catalog key, when the recipe came from the catalog
        id_factory: Source of entry ids
        lookup: Catalog lookup used to check recipe_key

    Returns:
        New state with the marker, all sub-actions and any pending triggers
    """
    try:
        if recipe_key is not None:
            if lookup is None:
                from ..games.dominion.recipes import find_recipe as lookup
            check_recipe_key(recipe, recipe_key, lookup)

        group_id = id_factory()
        marker = LogEntry(
            id=group_id,
            timestamp=now,
            game_time=calculate_duration_up_to_event(state.log, now),
            action=GameLogAction.GROUPED_ACTION,
            player_index=state.selected_player_index,
            current_player_index=state.current_player_index,
            turn=state.current_turn,
            action_name=recipe.name,
            action_key=recipe_key,
        )
        new_state = apply_log_action(state, marker)

        for dest, actions in recipe.actions.items():
            targets = get_grouped_action_target_players(new_state, dest)
            for player_index in targets:
                for recipe_action in actions:
                    draft = recipe_action.to_draft(player_index=player_index)
                    count = _resolve_count(draft, new_state, player_index)
                    if draft.count_expression is not None and count == 0:
                        continue
                    draft.count = count
                    new_state = apply_grouped_action_sub_action(
                        new_state, draft, player_index, group_id, now, id_factory
                    )

        return prepare_grouped_action_triggers(new_state, recipe, group_id)
    except ReckonerError as e:
        logger.warning("Grouped action %r rejected: %s", recipe.name, e)
        raise


def prepare_grouped_action_triggers(state: GameState, recipe: Recipe, group_id: str) -> GameState:
    """Queue the recipe's deferred actions for the turn they fire on."""
    after_next_turn = recipe.triggers.get(GroupedActionTrigger.AFTER_NEXT_TURN_BEGINS)
    if not after_next_turn:
        return state

    pending = list(state.pending_grouped_actions)
    for dest, actions in after_next_turn.items():
        if not isinstance(dest, GroupedActionDest):
            raise ValueError(f"Invalid GroupedActionDest: {dest}")
        if not actions:
            continue
        for player_index in get_grouped_action_target_players(state, dest):
            activation_turn = get_player_next_turn_count(state, player_index, skip_current_turn=True)
            for recipe_action in actions:
                pending.append(recipe_action.to_draft(
                    player_index=player_index,
                    current_player_index=player_index,
                    turn=activation_turn,
                    linked_action_id=group_id,
                ))

    return state._copy_with(pending_grouped_actions=pending)


def apply_pending_grouped_actions(
    state: GameState,
    now: datetime,
    id_factory: Callable[[], str] = _new_id,
) -> GameState:
    """
    Apply the deferred actions due on the current turn.

    Computed counts are resolved against the state after the turn advanced.
    Applied drafts leave the queue; drafts for later turns stay. Drafts whose
    computed count is 0 are kept aside so undoing the NEXT_TURN can restore them.
    """
    due = [d for d in state.pending_grouped_actions if d.turn == state.current_turn]
    if not due:
        return state

    new_state = state._copy_with(pending_grouped_actions=[
        d for d in state.pending_grouped_actions if d.turn != state.current_turn
    ])
    for draft in due:
        player_index = (
            draft.player_index if draft.player_index != NO_PLAYER
            else new_state.current_player_index
        )
        count = _resolve_count(draft, new_state, player_index)
        if draft.count_expression is not None and count == 0:
            new_state.skipped_grouped_actions.append(draft)
            continue
        entry = LogEntry(
            id=id_factory(),
            timestamp=now,
            game_time=calculate_duration_up_to_event(new_state.log, now),
            action=draft.action,
            player_index=NO_PLAYER if draft.action in NO_PLAYER_ACTIONS else player_index,
            current_player_index=(
                draft.current_player_index
                if draft.current_player_index is not None
                else new_state.current_player_index
            ),
            turn=draft.turn,
            count=count,
            trash=draft.trash,
            linked_action_id=draft.linked_action_id,
            action_name=draft.action_name,
        )
        new_state = apply_log_action(new_state, entry)
    logger.debug("Applied %d pending grouped actions on turn %d", len(due), new_state.current_turn)
    return new_state


def describe_pending_action(draft: LogEntryDraft) -> str:
    """Future-tense description of a queued action."""
    from .log import action_to_string
    return action_to_string(
        draft.action, draft.count, future=True, computed=draft.count_expression is not None
    )
