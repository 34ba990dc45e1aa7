"""
Timeline - Time accounting and read-only queries over a game log.

Everything here is plain arithmetic over timestamps already in the log;
nothing reads the clock. Durations are integer milliseconds.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable

from .action import GameLogAction, LogEntry
from .errors import (
    EmptyLogError,
    GamePausedError,
    InvalidLogStartGameError,
    InvalidPlayerIndexError,
)
from .fields import ADJUSTMENT_ACTIONS, FieldTarget, get_field_and_subfield, signed_count


@dataclass(frozen=True)
class TurnDuration:
    turn: int
    player_index: int
    start: datetime
    end: datetime
    duration: int


@dataclass
class TurnAdjustment:
    """Net change to one counter, attributed to one player."""
    target: FieldTarget
    increment: int
    player_index: int


def _ms(delta) -> int:
    return int(delta.total_seconds() * 1000)


def calculate_paused_time(log: list[LogEntry], start_index: int, end_time: datetime) -> int:
    """
    Time spent between SAVE_GAME/LOAD_GAME and PAUSE/UNPAUSE pairs.

    Only entries before end_time count. A pause still open at end_time
    counts up to end_time.
    """
    total = 0
    last_save: datetime | None = None
    pause_start: datetime | None = None

    for entry in log[start_index:]:
        if entry.timestamp >= end_time:
            break
        if entry.action is GameLogAction.SAVE_GAME:
            last_save = entry.timestamp
        elif entry.action is GameLogAction.LOAD_GAME and last_save is not None:
            total += _ms(entry.timestamp - last_save)
            last_save = None
        elif entry.action is GameLogAction.PAUSE:
            pause_start = entry.timestamp
        elif entry.action is GameLogAction.UNPAUSE and pause_start is not None:
            total += _ms(entry.timestamp - pause_start)
            pause_start = None

    if pause_start is not None:
        total += _ms(end_time - pause_start)
    return total


def calculate_duration_up_to_event(log: list[LogEntry], event_time: datetime) -> int:
    """Pause-adjusted game time from START_GAME to event_time."""
    if not log:
        return 0
    start = log[0].timestamp
    if event_time <= start:
        return 0
    paused = calculate_paused_time(log, 0, event_time)
    return max(0, _ms(event_time - start) - paused)


def calculate_turn_durations(log: list[LogEntry]) -> list[TurnDuration]:
    """Duration of every completed turn, from the recorded game times."""
    if len(log) < 2:
        return []
    if log[0].action is not GameLogAction.START_GAME:
        raise InvalidLogStartGameError()

    durations = []
    last_game_time = 0
    last_start = log[0].timestamp
    paused = False

    for entry in log:
        action = entry.action
        if paused and action is not GameLogAction.UNPAUSE:
            raise GamePausedError()
        if action in (GameLogAction.NEXT_TURN, GameLogAction.END_GAME):
            durations.append(TurnDuration(
                turn=entry.turn if action is GameLogAction.END_GAME else entry.turn - 1,
                player_index=(
                    entry.prev_player_index
                    if entry.prev_player_index is not None
                    else entry.current_player_index
                ),
                start=last_start,
                end=entry.timestamp,
                duration=entry.game_time - last_game_time,
            ))
            last_game_time = entry.game_time
            last_start = entry.timestamp
            if action is GameLogAction.END_GAME:
                break
        elif action is GameLogAction.PAUSE:
            paused = True
        elif action is GameLogAction.UNPAUSE:
            paused = False

    return durations


def calculate_current_turn_duration(log: list[LogEntry], current_time: datetime) -> int:
    if not log:
        return 0
    turn_start = get_turn_start_entry(log, log[-1].turn)
    paused = calculate_paused_time(log, log.index(turn_start), current_time)
    return _ms(current_time - turn_start.timestamp) - paused


def calculate_average_turn_duration(durations: list[TurnDuration]) -> float:
    if not durations:
        return 0
    return sum(d.duration for d in durations) / len(durations)


def calculate_average_turn_duration_for_player(
    durations: list[TurnDuration], player_index: int
) -> float:
    return calculate_average_turn_duration(
        [d for d in durations if d.player_index == player_index]
    )


def calculate_game_duration(log: list[LogEntry], current_time: datetime) -> int:
    """Completed turns plus the turn in progress. An ended game stops at END_GAME."""
    if not log:
        return 0
    completed = sum(d.duration for d in calculate_turn_durations(log))
    if any(entry.action is GameLogAction.END_GAME for entry in log):
        return completed
    return completed + calculate_current_turn_duration(log, current_time)


def format_time_span(time_span: int) -> str:
    """Format milliseconds as '1d 2h 3m 4s'. Negative spans format as zero."""
    if time_span < 0:
        return "0d 0h 0m 0s"
    seconds_total = time_span // 1000
    days, rest = divmod(seconds_total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{days}d {hours}h {minutes}m {seconds}s"


def rebuild_game_time_history(log: list[LogEntry]) -> list[LogEntry]:
    """
    Recompute game_time for every entry from the timestamps.

    LOAD_GAME and UNPAUSE keep the game time of the entry before them.
    """
    if not log:
        return []
    rebuilt = [log[0]]
    last_game_time = 0
    for entry in log[1:]:
        if entry.action in (GameLogAction.LOAD_GAME, GameLogAction.UNPAUSE):
            rebuilt.append(replace(entry, game_time=last_game_time))
        else:
            game_time = calculate_duration_up_to_event(rebuilt, entry.timestamp)
            rebuilt.append(replace(entry, game_time=game_time))
            last_game_time = game_time
    return rebuilt


# ============================================================================
# Log queries
# ============================================================================

def get_turn_start_entry(log: list[LogEntry], turn: int) -> LogEntry:
    """Entry that began a turn: START_GAME for turn 1, else its NEXT_TURN."""
    if not log:
        raise EmptyLogError()
    if turn == 1:
        return log[0]
    for entry in log:
        if entry.action is GameLogAction.NEXT_TURN and entry.turn == turn:
            return entry
    raise ValueError(f"Could not find turn {turn} in the log")


def get_turn_start_time(log: list[LogEntry], turn: int) -> datetime:
    return get_turn_start_entry(log, turn).timestamp


def get_turn_end_time(log: list[LogEntry], turn: int) -> datetime:
    """A turn ends at the next NEXT_TURN, or at END_GAME on the same turn."""
    if not log:
        raise EmptyLogError()
    for entry in log:
        if entry.action is GameLogAction.NEXT_TURN and entry.turn == turn + 1:
            return entry.timestamp
    for entry in log:
        if entry.action is GameLogAction.END_GAME and entry.turn == turn:
            return entry.timestamp
    raise ValueError(f"Could not find end time for turn {turn}")


def get_game_start_time(log: list[LogEntry]) -> datetime:
    if not log:
        raise EmptyLogError()
    if log[0].action is not GameLogAction.START_GAME:
        raise InvalidLogStartGameError()
    return log[0].timestamp


def get_game_end_time(log: list[LogEntry]) -> datetime:
    if not log:
        raise EmptyLogError()
    if log[-1].action is not GameLogAction.END_GAME:
        raise ValueError("Game has not ended")
    return log[-1].timestamp


def get_game_turn_count(log: list[LogEntry]) -> int:
    if not log:
        raise EmptyLogError()
    return log[-1].turn


def get_player_index_for_turn(log: list[LogEntry], num_players: int, turn: int) -> int:
    """Index of the player whose turn it was."""
    turn_action = GameLogAction.START_GAME if turn == 1 else GameLogAction.NEXT_TURN
    for entry in log:
        if entry.action is turn_action and entry.turn == turn:
            if not 0 <= entry.player_index < num_players:
                raise InvalidPlayerIndexError(
                    entry.player_index,
                    f"Invalid player index {entry.player_index} for turn {turn} in the log",
                )
            return entry.player_index
    raise ValueError(f"Could not find turn {turn} in the log")


def get_turn_adjustments(log: list[LogEntry], turn: int) -> list[TurnAdjustment]:
    """Every counter adjustment logged during a turn, in log order."""
    return [
        TurnAdjustment(
            target=get_field_and_subfield(entry.action),
            increment=signed_count(entry),
            player_index=entry.player_index,
        )
        for entry in log
        if entry.turn == turn and entry.action in ADJUSTMENT_ACTIONS
    ]


def group_turn_adjustments(adjustments: Iterable[TurnAdjustment]) -> list[TurnAdjustment]:
    """Sum adjustments per counter, dropping net-zero results."""
    grouped: dict[FieldTarget, TurnAdjustment] = {}
    for adj in adjustments:
        if adj.target in grouped:
            grouped[adj.target].increment += adj.increment
        else:
            grouped[adj.target] = TurnAdjustment(adj.target, adj.increment, adj.player_index)
    return [adj for adj in grouped.values() if adj.increment != 0]


def group_turn_adjustments_by_player(
    adjustments: Iterable[TurnAdjustment],
) -> dict[int, list[TurnAdjustment]]:
    """Sum adjustments per player and counter, dropping net-zero results."""
    by_player: dict[int, list[TurnAdjustment]] = {}
    for adj in adjustments:
        by_player.setdefault(adj.player_index, []).append(adj)
    result = {}
    for player_index, player_adjustments in by_player.items():
        grouped = group_turn_adjustments(player_adjustments)
        if grouped:
            result[player_index] = grouped
    return result


_NOT_COUNTED = frozenset({
    GameLogAction.PAUSE,
    GameLogAction.UNPAUSE,
    GameLogAction.SAVE_GAME,
    GameLogAction.LOAD_GAME,
    GameLogAction.SELECT_PLAYER,
})


def get_average_actions_per_turn(log: list[LogEntry]) -> int:
    """
    Logged actions per turn, rounded down.

    Turn boundaries and administrative entries are not counted, and neither
    is the final entry.
    """
    total_actions = 0
    total_turns = 0
    for entry in log[:-1]:
        if entry.action in (GameLogAction.START_GAME, GameLogAction.NEXT_TURN):
            total_turns += 1
        elif entry.action not in _NOT_COUNTED:
            total_actions += 1
    if total_turns == 0:
        return 0
    return total_actions // total_turns
