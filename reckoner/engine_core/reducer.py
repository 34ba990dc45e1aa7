"""
Reducer - Applies log entries to game state.

The reducer is the single point of state change.
All state changes must go through apply_log_action().

Design principles:
- Pure function: (state, entry) -> new_state
- Validates before applying; raises a typed error, never returns a partial state
- The input state is never mutated
- Turn boundaries snapshot statistics before the counters reset
"""

from __future__ import annotations
from itertools import count as counter
from typing import Callable
import uuid

from .action import GameLogAction, LogEntry
from .constants import NO_PLAYER
from .errors import (
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
from .fields import Field, FieldTarget, PlayerRequirement, get_action_traits
from .state import GamePhase, GameState
from .statistics import snapshot_turn_statistics


# Still accepted once the game has ended
_ALLOWED_AFTER_END = frozenset({GameLogAction.SAVE_GAME, GameLogAction.LOAD_GAME})


def validate_log_action(state: GameState, entry: LogEntry):
    """
    Check that an entry is well-formed for this state.

    Raises the specific error for the first problem found.
    """
    if not isinstance(entry.action, GameLogAction):
        raise InvalidActionError(entry.action)
    traits = get_action_traits(entry.action)

    if traits.player is PlayerRequirement.REQUIRED:
        if entry.player_index is None or entry.player_index == NO_PLAYER:
            raise InvalidPlayerIndexError(
                entry.player_index, "Player index is required for this action"
            )
        if not state.is_valid_player_index(entry.player_index):
            raise InvalidPlayerIndexError(entry.player_index)
    elif traits.player is PlayerRequirement.FORBIDDEN:
        if entry.player_index is not None and entry.player_index != NO_PLAYER:
            raise PlayerIndexNotAllowedError(entry.action)
    elif entry.player_index not in (None, NO_PLAYER):
        if not state.is_valid_player_index(entry.player_index):
            raise InvalidPlayerIndexError(entry.player_index)

    if entry.count is not None and entry.count <= 0:
        raise InvalidCountError(entry.count)
    if traits.requires_count and entry.count is None:
        raise CountRequiredError()

    if entry.trash and (
        traits.target is None
        or traits.target.field is not Field.VICTORY
        or traits.sign >= 0
    ):
        raise InvalidTrashActionError()


def update_player_field(
    state: GameState,
    player_index: int,
    target: FieldTarget,
    increment: int,
    trash: bool = False,
) -> GameState:
    """
    Return new state with one player counter changed by `increment`.

    Gaining a victory card takes it from its supply pile; removing one
    returns it to the pile unless it was trashed.
    """
    if target.is_global:
        raise InvalidActionError(f"{target.field.value}.{target.subfield.value}")
    player = state.get_player(player_index)

    new_value = player.get_counter(target) + increment
    if new_value < 0:
        raise NotEnoughSubfieldError(target.field.value, target.subfield.value)

    new_state = state.with_player(player_index, player.with_counter(target, new_value))

    if target.is_supply_pile:
        pile = target.subfield.value
        available = state.supply.pile(pile)
        if increment > 0 and available < increment:
            raise NotEnoughSupplyError(pile)
        if not trash:
            new_state = new_state.with_supply(state.supply.with_pile(pile, available - increment))

    return new_state


def apply_log_action(state: GameState, entry: LogEntry) -> GameState:
    """
    Apply one log entry and return the new state.

    The entry is appended to the new state's log. On NEXT_TURN, deferred
    grouped actions scheduled for the new turn are applied after it.
    """
    validate_log_action(state, entry)

    if not state.log and entry.action is not GameLogAction.START_GAME:
        raise InvalidLogStartGameError()
    if state.log and entry.action is GameLogAction.START_GAME:
        raise InvalidActionError(entry.action.value)
    if state.is_paused and entry.action is not GameLogAction.UNPAUSE:
        raise GamePausedError()
    if state.is_over and entry.action not in _ALLOWED_AFTER_END:
        raise GameEndedError()

    handler = _HANDLERS.get(entry.action, _handle_adjustment)
    new_state = handler(state, entry)
    new_state.log.append(entry)

    if entry.action is GameLogAction.NEXT_TURN and new_state.pending_grouped_actions:
        from .grouped import apply_pending_grouped_actions
        new_state = apply_pending_grouped_actions(
            new_state, entry.timestamp, id_factory=_derived_ids(entry)
        )

    return new_state


def _derived_ids(entry: LogEntry) -> Callable[[], str]:
    """Stable ids for entries materialized while applying `entry`."""
    sequence = counter(1)
    return lambda: str(uuid.uuid5(uuid.NAMESPACE_OID, f"{entry.id}/{next(sequence)}"))


def _handle_start_game(state: GameState, entry: LogEntry) -> GameState:
    return state._copy_with(
        phase=GamePhase.PLAYING,
        current_turn=1,
        selected_player_index=entry.player_index,
    )


def _handle_next_turn(state: GameState, entry: LogEntry) -> GameState:
    statistics = snapshot_turn_statistics(state, entry)
    return state._copy_with(
        players=[player.reset_turn() for player in state.players],
        current_turn=state.current_turn + 1,
        current_player_index=entry.player_index,
        selected_player_index=entry.player_index,
        turn_statistics_cache=state.turn_statistics_cache + [statistics],
    )


def _handle_end_game(state: GameState, entry: LogEntry) -> GameState:
    statistics = snapshot_turn_statistics(state, entry)
    return state._copy_with(
        phase=GamePhase.GAME_OVER,
        turn_statistics_cache=state.turn_statistics_cache + [statistics],
    )


def _handle_select_player(state: GameState, entry: LogEntry) -> GameState:
    return state._copy_with(selected_player_index=entry.player_index)


def _handle_no_change(state: GameState, entry: LogEntry) -> GameState:
    """Markers and administrative entries only appear in the log."""
    return state._copy_with()


def _handle_adjustment(state: GameState, entry: LogEntry) -> GameState:
    traits = get_action_traits(entry.action)
    if traits.target is None:
        raise InvalidActionError(entry.action.value)
    increment = traits.sign * (entry.count if entry.count is not None else 1)

    if traits.is_global:
        return _update_prophecy(state, increment)
    return update_player_field(state, entry.player_index, traits.target, increment, entry.trash)


def _update_prophecy(state: GameState, increment: int) -> GameState:
    """Prophecy suns only exist with Rising Sun; otherwise the entry has no effect."""
    if not state.options.expansions.rising_sun:
        return state._copy_with()
    suns = state.expansions.rising_sun.prophecy_suns + increment
    if suns < 0:
        raise NotEnoughProphecyError()
    return state._copy_with(expansions=state.expansions.with_prophecy_suns(suns))


_HANDLERS: dict[GameLogAction, Callable[[GameState, LogEntry], GameState]] = {
    GameLogAction.START_GAME: _handle_start_game,
    GameLogAction.NEXT_TURN: _handle_next_turn,
    GameLogAction.END_GAME: _handle_end_game,
    GameLogAction.SELECT_PLAYER: _handle_select_player,
    GameLogAction.GROUPED_ACTION: _handle_no_change,
    GameLogAction.SAVE_GAME: _handle_no_change,
    GameLogAction.LOAD_GAME: _handle_no_change,
    GameLogAction.PAUSE: _handle_no_change,
    GameLogAction.UNPAUSE: _handle_no_change,
}


# ============================================================================
# Turn order
# ============================================================================

def get_next_player_index(state: GameState) -> int:
    if state.num_players == 0:
        return NO_PLAYER
    return (state.current_player_index + 1) % state.num_players


def get_previous_player_index(state: GameState) -> int:
    """Player before the current one, or NO_PLAYER on the first turn."""
    if state.current_turn <= 1 or state.num_players == 0:
        return NO_PLAYER
    return (state.current_player_index - 1) % state.num_players


def get_player_next_turn_count(
    state: GameState, player_index: int, skip_current_turn: bool = False
) -> int:
    """
    Turn number at which a player is next the current player.

    Without skip_current_turn, the current player's answer is the current turn.
    """
    if not state.is_valid_player_index(player_index):
        raise InvalidPlayerIndexError(player_index)
    if not skip_current_turn and state.current_player_index == player_index:
        return state.current_turn
    steps = (player_index - state.current_player_index) % state.num_players or state.num_players
    return state.current_turn + steps
