"""
Replay - Rebuild game state from the log.

State is never stored as the source of truth. It is a fold of the log
through the reducer, starting from the state the setup describes. Replay
reads neither the clock nor a random source, so the same setup and log
always give the same state.
"""

from __future__ import annotations
from collections import defaultdict
from typing import Iterator
import logging

from .action import GameLogAction, LogEntry
from .errors import EmptyLogError, InvalidLogStartGameError
from .reducer import apply_log_action
from .setup import initial_state
from .state import GameSetup, GameState

logger = logging.getLogger(__name__)


def _check_log(log: list[LogEntry]):
    if not log:
        raise EmptyLogError()
    if log[0].action is not GameLogAction.START_GAME:
        raise InvalidLogStartGameError()


def replay_states(setup: GameSetup, log: list[LogEntry]) -> Iterator[tuple[LogEntry, GameState]]:
    """Yield each entry with the state right after it was applied."""
    _check_log(log)
    state = initial_state(setup)
    for entry in log:
        state = apply_log_action(state, entry)
        yield entry, state


def reconstruct_game_state(setup: GameSetup, log: list[LogEntry]) -> GameState:
    """
    Fold every log entry over the initial state.

    The first failing entry's error propagates unchanged.
    """
    state = None
    for _, state in replay_states(setup, log):
        pass
    logger.debug("Replayed %d log entries", len(log))
    return state


class LinkedActionIndex:
    """
    Master id -> ordered indices of the log entries in that group.

    An entry's master id is its linked_action_id, or its own id when it is
    not linked to anything. Built once per replay or undo check.
    """

    def __init__(self, log: list[LogEntry]):
        self._ids = {entry.id for entry in log}
        self._groups: dict[str, list[int]] = defaultdict(list)
        for index, entry in enumerate(log):
            self._groups[entry.master_id].append(index)

    def group_indices(self, master_id: str) -> list[int]:
        return list(self._groups.get(master_id, []))

    def has_entry(self, entry_id: str) -> bool:
        return entry_id in self._ids

    def __contains__(self, master_id: str) -> bool:
        return master_id in self._groups

    def __len__(self) -> int:
        return len(self._groups)
