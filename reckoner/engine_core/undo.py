"""
Undo - Remove a log entry and everything linked to it.

Undo is validate-then-commit:
- can_undo_action replays a candidate log without the entry's group and
  reports whether that history is still valid
- undo_action repeats the check and only then replays for real

Both replay from scratch. A cached verdict is never trusted, and the state
passed in is never modified.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging

from .action import GameLogAction, LogEntry
from .errors import InvariantViolationError
from .fields import UndoPolicy, get_action_traits
from .replay import LinkedActionIndex, reconstruct_game_state
from .state import GameState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UndoResult:
    state: GameState
    success: bool


def remove_target_and_linked_actions(
    log: list[LogEntry],
    index: int,
    linked: LinkedActionIndex | None = None,
) -> list[LogEntry]:
    """Copy of the log without the entry at `index` and its whole linked group."""
    linked = linked or LinkedActionIndex(log)
    removed = set(linked.group_indices(log[index].master_id))
    removed.add(index)
    return [entry for i, entry in enumerate(log) if i not in removed]


def _undo_candidate(state: GameState, index: int) -> list[LogEntry] | None:
    """The log with the target group removed, or None if the entry cannot be undone."""
    log = state.log
    if not 0 <= index < len(log):
        return None

    entry = log[index]
    policy = get_action_traits(entry.action).undo
    if policy is UndoPolicy.NEVER:
        return None
    if policy is UndoPolicy.LAST_ONLY and index != len(log) - 1:
        return None

    linked = LinkedActionIndex(log)
    if entry.linked_action_id is not None and not linked.has_entry(entry.linked_action_id):
        return None

    return remove_target_and_linked_actions(log, index, linked)


def _replay_candidate(state: GameState, index: int) -> GameState | None:
    candidate = _undo_candidate(state, index)
    if candidate is None:
        return None
    try:
        return reconstruct_game_state(state.to_setup(), candidate)
    except InvariantViolationError as e:
        logger.warning("Cannot undo log entry %d: %s", index, e)
        return None
    except Exception:
        logger.exception("Unexpected error while checking undo of log entry %d", index)
        return None


def can_undo_action(state: GameState, index: int) -> bool:
    """Whether removing the entry at `index` (and its group) leaves a valid history."""
    return _replay_candidate(state, index) is not None


def undo_action(state: GameState, index: int) -> UndoResult:
    """
    Remove the entry at `index` and its linked group.

    On failure the original state is returned unchanged with success=False.
    Deferred actions scheduled by a removed group are dropped from the queue.
    Undoing a NEXT_TURN re-queues the drafts it skipped for a count of 0.
    """
    if not can_undo_action(state, index):
        return UndoResult(state=state, success=False)

    new_state = _replay_candidate(state, index)
    if new_state is None:
        return UndoResult(state=state, success=False)

    target = state.log[index]
    master_id = target.master_id
    pending = [
        draft for draft in state.pending_grouped_actions
        if draft.linked_action_id != master_id
    ]
    skipped = []
    for draft in state.skipped_grouped_actions:
        if draft.linked_action_id == master_id:
            continue
        if target.action is GameLogAction.NEXT_TURN and draft.turn == target.turn:
            pending.append(draft)
        else:
            skipped.append(draft)
    new_state = new_state._copy_with(
        pending_grouped_actions=pending,
        skipped_grouped_actions=skipped,
        game_version=state.game_version,
    )
    logger.info(
        "Undid log entry %d; log shrank from %d to %d entries",
        index, len(state.log), len(new_state.log),
    )
    return UndoResult(state=new_state, success=True)
