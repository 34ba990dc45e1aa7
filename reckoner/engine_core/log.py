"""
Game Log - Appending entries and describing them.

add_log_entry is the live path: it stamps a new entry with the clock time,
pause-adjusted game time, current turn and current player, then applies it
through the reducer. It returns the new state and the entry; the state it
was given is left untouched.
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Callable
import uuid

from .action import FUTURE_ACTION_TEMPLATES, GameLogAction, LogEntry
from .constants import NO_PLAYER
from .reducer import apply_log_action, get_next_player_index
from .state import GameState
from .timeline import calculate_duration_up_to_event


def _format(template: str, count: Any) -> str:
    if count is None:
        return template.replace(" {COUNT}", "")
    return template.replace("{COUNT}", str(count))


def action_to_string(
    action: GameLogAction,
    count: int | None = None,
    future: bool = False,
    computed: bool = False,
) -> str:
    """
    Display text for an action kind.

    A count that is only known later (a count expression) shows as 'computed'.
    """
    template = FUTURE_ACTION_TEMPLATES[action] if future else action.value
    return _format(template, "computed" if computed else count)


def log_entry_to_string(entry: LogEntry, future: bool = False) -> str:
    """Display text for a log entry. Grouped actions show their recipe name."""
    if entry.action is GameLogAction.GROUPED_ACTION and entry.action_name is not None:
        return entry.action_name
    return action_to_string(entry.action, entry.count, future)


def add_log_entry(
    state: GameState,
    action: GameLogAction,
    player_index: int = NO_PLAYER,
    now: datetime | None = None,
    id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    **overrides: Any,
) -> tuple[GameState, LogEntry]:
    """
    Create a log entry for the current moment and apply it.

    A NEXT_TURN entry carries the number of the turn it starts. Without a
    player it passes the turn to the next seat. It records who it came from
    and every player's turn counters before the reset.

    Args:
        state: Current state
        action: Kind of entry
        player_index: Player the entry affects, NO_PLAYER for none
        now: Event time, defaults to the current UTC time
        id_factory: Source of the entry id
        **overrides: Any other LogEntry field (count, trash, correction, ...)

    Returns:
        (new_state, entry)
    """
    if now is None:
        now = datetime.now(timezone.utc)
    fields = {
        "current_player_index": state.current_player_index,
        "turn": state.current_turn,
        "game_time": calculate_duration_up_to_event(state.log, now),
    }
    if action is GameLogAction.NEXT_TURN:
        if player_index == NO_PLAYER:
            player_index = get_next_player_index(state)
        fields["turn"] = state.current_turn + 1
        fields["prev_player_index"] = state.current_player_index
        fields["player_turn_details"] = tuple(p.turn for p in state.players)
    fields.update(overrides)
    fields["id"] = fields.get("id") or id_factory()
    entry = LogEntry.create(action, player_index, now, **fields)
    return apply_log_action(state, entry), entry
