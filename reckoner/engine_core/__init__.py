"""
Engine Core - Event-sourced Dominion game state.

The engine is the runtime that:
1. Starts a game from a setup and logs START_GAME
2. Applies log entries via the reducer
3. Applies recipes as linked groups of entries, with deferred triggers
4. Rebuilds state by replaying the log
5. Undoes entries by replaying a log without them
"""

from .action import GameLogAction, LogEntry, LogEntryDraft
from .errors import ReckonerError, InvariantViolationError
from .state import GameState, GameSetup, GameOptions, PlayerSetup, PlayerState, TurnStatistics
from .setup import initial_state, new_game_state
from .reducer import apply_log_action, validate_log_action
from .replay import LinkedActionIndex, reconstruct_game_state
from .log import add_log_entry, log_entry_to_string
from .grouped import GroupedActionDest, GroupedActionTrigger, Recipe, RecipeAction, apply_grouped_action
from .undo import UndoResult, can_undo_action, undo_action

__all__ = [
    "GameLogAction",
    "LogEntry",
    "LogEntryDraft",
    "ReckonerError",
    "InvariantViolationError",
    "GameState",
    "GameSetup",
    "GameOptions",
    "PlayerSetup",
    "PlayerState",
    "TurnStatistics",
    "initial_state",
    "new_game_state",
    "apply_log_action",
    "validate_log_action",
    "LinkedActionIndex",
    "reconstruct_game_state",
    "add_log_entry",
    "log_entry_to_string",
    "GroupedActionDest",
    "GroupedActionTrigger",
    "Recipe",
    "RecipeAction",
    "apply_grouped_action",
    "UndoResult",
    "can_undo_action",
    "undo_action",
]
