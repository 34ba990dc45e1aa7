"""
Game Setup - Starting supply and the initial game state.

Responsibilities:
- Supply pile sizes for 2-6 players (base set + Prosperity)
- Starting prophecy suns for Rising Sun
- Building the state that START_GAME is applied to
- NewGameState: validated roster -> state with a single START_GAME entry
"""

from __future__ import annotations
from dataclasses import replace
from datetime import datetime
from typing import Callable
import uuid

from .action import GameLogAction, LogEntry
from .constants import (
    COLONY_TOTAL_COUNT,
    COLONY_TOTAL_COUNT_2P,
    COPPER_COUNT,
    DEFAULT_PLAYER_COLORS,
    GOLD_COUNT,
    HAND_STARTING_COPPERS,
    HAND_STARTING_ESTATES,
    MAX_PLAYERS,
    MIN_PLAYERS,
    NOT_PRESENT,
    PLATINUM_TOTAL_COUNT,
    SILVER_COUNT,
)
from .errors import InvalidPlayerIndexError, MaxPlayersError, MinPlayersError
from .state import (
    AlchemyState,
    ExpansionState,
    GamePhase,
    GameOptions,
    GameSetup,
    GameState,
    GameSupply,
    RenaissanceState,
    RisingSunState,
    VictoryCounters,
    new_player,
)


# Victory/curse pile sizes and number of treasure sets, per player count
_BASE_PILES = {
    2: {"estates": 8, "duchies": 8, "provinces": 8, "curses": 10, "sets": 1},
    3: {"estates": 12, "duchies": 12, "provinces": 12, "curses": 20, "sets": 1},
    4: {"estates": 12, "duchies": 12, "provinces": 12, "curses": 30, "sets": 1},
    5: {"estates": 12, "duchies": 12, "provinces": 15, "curses": 40, "sets": 2},
    6: {"estates": 12, "duchies": 12, "provinces": 18, "curses": 50, "sets": 2},
}

# Rising Sun: suns placed on the prophecy at setup
_SUN_TOKENS = {2: 5, 3: 8, 4: 10, 5: 12, 6: 13}


def supply_for_player_count(num_players: int, prosperity: bool) -> GameSupply:
    """
    Starting supply for a player count.

    Starting coppers are dealt from the supply; starting estates are not,
    since the estate pile sizes already exclude them.
    """
    piles = _BASE_PILES.get(num_players)
    if piles is None:
        raise ValueError(f"Invalid player count: {num_players}")
    sets = piles["sets"]
    return GameSupply(
        coppers=COPPER_COUNT * sets - HAND_STARTING_COPPERS * num_players,
        silvers=SILVER_COUNT * sets,
        golds=GOLD_COUNT * sets,
        platinums=PLATINUM_TOTAL_COUNT if prosperity else NOT_PRESENT,
        estates=piles["estates"],
        duchies=piles["duchies"],
        provinces=piles["provinces"],
        colonies=(
            (COLONY_TOTAL_COUNT_2P if num_players == 2 else COLONY_TOTAL_COUNT)
            if prosperity else NOT_PRESENT
        ),
        curses=piles["curses"],
    )


def calculate_initial_supply(num_players: int, options: GameOptions) -> GameSupply:
    return supply_for_player_count(num_players, options.expansions.prosperity)


def distribute_initial_supply(state: GameState) -> GameState:
    """Give every player their starting estates. The supply is left untouched."""
    players = [
        replace(player, victory=VictoryCounters(estates=HAND_STARTING_ESTATES))
        for player in state.players
    ]
    return state._copy_with(players=players)


def calculate_initial_sun_tokens(num_players: int) -> int:
    if num_players not in _SUN_TOKENS:
        raise ValueError(f"Invalid player count: {num_players}")
    return _SUN_TOKENS[num_players]


def validate_player_count(num_players: int):
    if num_players < MIN_PLAYERS:
        raise MinPlayersError(MIN_PLAYERS)
    if num_players > MAX_PLAYERS:
        raise MaxPlayersError(MAX_PLAYERS)


def get_next_available_player_color(used_colors: list[str]) -> str:
    """First palette color not already taken."""
    used = set(used_colors)
    for color in DEFAULT_PLAYER_COLORS:
        if color not in used:
            return color
    raise ValueError("No available colors found.")


def initial_state(setup: GameSetup) -> GameState:
    """
    The canonical state a game starts from, before any log entry.

    Pure function of the setup: supply, starting estates, prophecy suns and
    player indices are all computed here.
    """
    num_players = len(setup.players)
    validate_player_count(num_players)
    if not 0 <= setup.first_player_index < num_players:
        raise InvalidPlayerIndexError(setup.first_player_index)

    options = setup.options
    players = [new_player(p.name, p.color) for p in setup.players]

    if options.expansions.rising_sun:
        rising_sun = RisingSunState(
            prophecy_suns=calculate_initial_sun_tokens(num_players),
            great_leader_prophecy=setup.great_leader_prophecy,
        )
    else:
        rising_sun = RisingSunState()

    expansions = ExpansionState(
        alchemy=AlchemyState(
            track_potions=options.expansions.alchemy and setup.track_potions,
        ),
        renaissance=RenaissanceState(
            flag_bearer_enabled=options.expansions.renaissance and setup.flag_bearer_enabled,
        ),
        rising_sun=rising_sun,
    )

    state = GameState(
        players=players,
        supply=calculate_initial_supply(num_players, options),
        options=options,
        expansions=expansions,
        phase=GamePhase.SETUP,
        current_turn=1,
        current_player_index=setup.first_player_index,
        selected_player_index=setup.first_player_index,
    )
    return distribute_initial_supply(state)


def new_game_state(
    setup: GameSetup,
    game_start: datetime,
    id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
) -> GameState:
    """
    Start a new game: validate the roster and log START_GAME.

    Raises MinPlayersError / MaxPlayersError for an invalid roster.
    """
    from .reducer import apply_log_action

    state = initial_state(setup)
    start_entry = LogEntry(
        id=id_factory(),
        timestamp=game_start,
        game_time=0,
        action=GameLogAction.START_GAME,
        player_index=setup.first_player_index,
        current_player_index=setup.first_player_index,
        turn=1,
    )
    return apply_log_action(state, start_entry)
