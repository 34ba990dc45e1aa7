"""
Pytest fixtures for Reckoner tests.
"""

import pytest
from datetime import datetime, timedelta, timezone
from itertools import count

from ..engine_core.action import GameLogAction, LogEntry
from ..engine_core.constants import NO_PLAYER
from ..engine_core.expression import CountExpression
from ..engine_core.fields import Field, Subfield
from ..engine_core.grouped import (
    GroupedActionDest,
    GroupedActionTrigger,
    Recipe,
    RecipeAction,
    apply_grouped_action,
)
from ..engine_core.log import add_log_entry
from ..engine_core.setup import new_game_state
from ..engine_core.state import (
    ExpansionsEnabled,
    GameOptions,
    GameSetup,
    GameState,
    PlayerSetup,
)
from ..games.dominion.recipes import find_recipe


GAME_START = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Table:
    """
    A game being played, one log entry at a time.

    Every entry is ten seconds after the previous one and gets a readable
    id ("e1", "e2", ...) so tests can refer to entries by id.
    """

    def __init__(self, setup: GameSetup):
        self._ids = count(1)
        self.now = GAME_START
        self.setup = setup
        self.state: GameState = new_game_state(setup, GAME_START, id_factory=self.next_id)

    def next_id(self) -> str:
        return f"e{next(self._ids)}"

    def tick(self, seconds: int = 10) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now

    def log(self, action: GameLogAction, player_index: int = NO_PLAYER, **kwargs) -> LogEntry:
        """Append an entry and keep the new state."""
        self.state, entry = add_log_entry(
            self.state, action, player_index, now=self.tick(), id_factory=self.next_id, **kwargs
        )
        return entry

    def recipe(self, key: str) -> GameState:
        """Apply a catalog recipe and keep the new state."""
        self.state = apply_grouped_action(
            self.state, find_recipe(key), self.tick(), recipe_key=key, id_factory=self.next_id
        )
        return self.state

    def next_turn(self) -> LogEntry:
        return self.log(GameLogAction.NEXT_TURN)


def coffers_windfall(table: Table):
    """Everyone else gains coins equal to their coffers when their turn begins."""
    windfall = Recipe(
        name="Windfall",
        triggers={GroupedActionTrigger.AFTER_NEXT_TURN_BEGINS: {
            GroupedActionDest.ALL_PLAYERS_EXCEPT_CURRENT: [RecipeAction(
                GameLogAction.ADD_COINS,
                count_expression=CountExpression.counter(Field.MATS, Subfield.COFFERS),
            )],
        }},
    )
    table.state = apply_grouped_action(
        table.state, windfall, table.tick(), id_factory=table.next_id
    )


def make_setup(num_players: int = 2, **options) -> GameSetup:
    names = ["Alice", "Bob", "Carol", "Dave", "Erin", "Frank", "Grace"]
    colors = ["#e57373", "#64b5f6", "#81c784", "#ffd54f", "#ba68c8", "#4db6ac", "#000000"]
    rising_sun = options.pop("rising_sun", False)
    prosperity = options.pop("prosperity", False)
    alchemy = options.pop("alchemy", False)
    return GameSetup(
        players=tuple(
            PlayerSetup(name=names[i], color=colors[i]) for i in range(num_players)
        ),
        options=GameOptions(
            curses=True,
            expansions=ExpansionsEnabled(
                rising_sun=rising_sun, prosperity=prosperity, alchemy=alchemy
            ),
        ),
        **options,
    )


@pytest.fixture
def two_player_setup() -> GameSetup:
    """Alice and Bob, base game, Alice first."""
    return make_setup(2)


@pytest.fixture
def table(two_player_setup) -> Table:
    """A started 2-player game."""
    return Table(two_player_setup)


@pytest.fixture
def three_player_table() -> Table:
    return Table(make_setup(3))


@pytest.fixture
def rising_sun_table() -> Table:
    """A started 2-player game with Rising Sun and the Great Leader prophecy."""
    return Table(make_setup(2, rising_sun=True, great_leader_prophecy=True))
