"""
Turn Statistics - Scores and per-turn snapshots.

A snapshot is taken whenever a turn ends (NEXT_TURN or END_GAME). It must be
taken from the state as it stood before the turn counters reset, so the
numbers describe the turn that just finished.
"""

from __future__ import annotations
from dataclasses import dataclass

from .action import GameLogAction, LogEntry
from .constants import COLONY_VP, CURSE_VP, DUCHY_VP, ESTATE_VP, PROVINCE_VP
from .state import GameState, GameSupply, PlayerState, TurnStatistics
from .timeline import get_turn_start_entry


def calculate_victory_points(player: PlayerState) -> int:
    v = player.victory
    return (
        v.estates * ESTATE_VP
        + v.duchies * DUCHY_VP
        + v.provinces * PROVINCE_VP
        + v.colonies * COLONY_VP
        + v.curses * CURSE_VP
        + v.tokens
        + v.other
    )


@dataclass(frozen=True)
class RankedPlayer:
    index: int
    score: int
    rank: int


def rank_players(players: list[PlayerState]) -> list[RankedPlayer]:
    """
    Rank players by score, highest first.

    Tied players share a rank and the next rank is skipped (1, 1, 3).
    Within a rank players are ordered by name.
    """
    scored = sorted(
        ((i, calculate_victory_points(p)) for i, p in enumerate(players)),
        key=lambda item: (-item[1], players[item[0]].name),
    )
    ranked = []
    rank = 1
    for position, (index, score) in enumerate(scored):
        if position > 0 and score != scored[position - 1][1]:
            rank = position + 1
        ranked.append(RankedPlayer(index=index, score=score, rank=rank))
    return ranked


def snapshot_turn_statistics(state: GameState, entry: LogEntry) -> TurnStatistics:
    """
    Capture the turn that `entry` ends.

    Args:
        state: State before `entry` is applied
        entry: The NEXT_TURN or END_GAME entry closing the turn

    The turn start is looked up in `state.log`, so the closing entry does not
    need to be logged yet.
    """
    players = state.players
    turn_start = get_turn_start_entry(state.log or [entry], state.current_turn)
    track_potions = (
        state.options.expansions.alchemy and state.expansions.alchemy.track_potions
    )

    def per_player(read) -> dict[int, int]:
        return {i: read(p) for i, p in enumerate(players)}

    return TurnStatistics(
        turn=state.current_turn,
        player_index=(
            entry.prev_player_index
            if entry.prev_player_index is not None
            else state.current_player_index
        ),
        start=turn_start.timestamp,
        end=entry.timestamp,
        turn_duration=entry.game_time - turn_start.game_time,
        supply=state.supply,
        player_scores=per_player(calculate_victory_points),
        player_actions=per_player(lambda p: p.turn.actions),
        player_buys=per_player(lambda p: p.turn.buys),
        player_coins=per_player(lambda p: p.turn.coins),
        player_cards_drawn=per_player(lambda p: p.turn.cards),
        player_gains=per_player(lambda p: p.turn.gains),
        player_discards=per_player(lambda p: p.turn.discard),
        player_coffers=per_player(lambda p: p.mats.coffers),
        player_villagers=per_player(lambda p: p.mats.villagers),
        player_debt=per_player(lambda p: p.mats.debt),
        player_favors=per_player(lambda p: p.mats.favors),
        player_potions=per_player(lambda p: p.turn.potions) if track_potions else None,
    )


def rebuild_turn_statistics_cache(state: GameState) -> list[TurnStatistics]:
    """
    Recompute every snapshot by replaying the log.

    Expensive; the cache is normally maintained by the reducer.
    """
    from .replay import reconstruct_game_state

    if not state.log:
        return []
    return reconstruct_game_state(state.to_setup(), state.log).turn_statistics_cache


@dataclass(frozen=True)
class VictoryGraphPoint:
    player_scores: dict[int, int]
    supply: GameSupply


def calculate_victory_points_and_supply_by_turn(state: GameState) -> list[VictoryGraphPoint]:
    """Scores and supply at every turn boundary, for graphing."""
    from .replay import replay_states

    points = []
    for entry, replayed in replay_states(state.to_setup(), state.log):
        if entry.action in (GameLogAction.NEXT_TURN, GameLogAction.END_GAME):
            points.append(VictoryGraphPoint(
                player_scores={
                    i: calculate_victory_points(p) for i, p in enumerate(replayed.players)
                },
                supply=replayed.supply,
            ))
    return points
