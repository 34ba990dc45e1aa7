"""
Game State - The derived state of a Dominion game at one point in its log.

Design principles:
- Immutable-friendly: all mutations return new state
- Derived: built only by folding log entries through the reducer
- Serializable: everything here round-trips through the raw wire form
- Counters are small frozen records replaced wholesale on change
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from .action import GameLogAction, LogEntry, LogEntryDraft
from .constants import NOT_PRESENT, VERSION_NUMBER
from .errors import InvalidFieldError, InvalidPlayerIndexError
from .fields import Field, FieldTarget


class GamePhase(Enum):
    """High-level game phases."""
    SETUP = "setup"
    PLAYING = "playing"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class TurnCounters:
    """Counters that reset at every turn boundary."""
    actions: int = 1
    buys: int = 1
    coins: int = 0
    cards: int = 0
    gains: int = 0
    discard: int = 0
    potions: int = 0


@dataclass(frozen=True)
class MatCounters:
    coffers: int = 0
    villagers: int = 0
    debt: int = 0
    favors: int = 0


@dataclass(frozen=True)
class VictoryCounters:
    estates: int = 0
    duchies: int = 0
    provinces: int = 0
    colonies: int = 0
    curses: int = 0
    tokens: int = 0
    other: int = 0


@dataclass(frozen=True)
class GameSupply:
    """
    Shared card piles.

    A pile that is not part of this game holds NOT_PRESENT.
    """
    coppers: int = 0
    silvers: int = 0
    golds: int = 0
    platinums: int = 0
    estates: int = 0
    duchies: int = 0
    provinces: int = 0
    colonies: int = 0
    curses: int = 0

    def pile(self, name: str) -> int:
        if name not in self.__dataclass_fields__:
            raise InvalidFieldError("supply", name)
        return getattr(self, name)

    def with_pile(self, name: str, value: int) -> GameSupply:
        if name not in self.__dataclass_fields__:
            raise InvalidFieldError("supply", name)
        return replace(self, **{name: value})

    def to_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}


@dataclass(frozen=True)
class ExpansionsEnabled:
    alchemy: bool = False
    prosperity: bool = False
    renaissance: bool = False
    rising_sun: bool = False


@dataclass(frozen=True)
class MatsEnabled:
    coffers_villagers: bool = False
    debt: bool = False
    favors: bool = False


@dataclass(frozen=True)
class GameOptions:
    """Options fixed at game start."""
    curses: bool = False
    expansions: ExpansionsEnabled = field(default_factory=ExpansionsEnabled)
    mats: MatsEnabled = field(default_factory=MatsEnabled)
    track_card_counts: bool = True
    track_card_gains: bool = True
    track_discard: bool = True


@dataclass(frozen=True)
class RisingSunState:
    prophecy_suns: int = NOT_PRESENT
    great_leader_prophecy: bool = False


@dataclass(frozen=True)
class RenaissanceState:
    flag_bearer_enabled: bool = False
    flag_bearer: int | None = None


@dataclass(frozen=True)
class AlchemyState:
    track_potions: bool = False


@dataclass(frozen=True)
class ExpansionState:
    alchemy: AlchemyState = field(default_factory=AlchemyState)
    renaissance: RenaissanceState = field(default_factory=RenaissanceState)
    rising_sun: RisingSunState = field(default_factory=RisingSunState)

    def with_prophecy_suns(self, suns: int) -> ExpansionState:
        return replace(self, rising_sun=replace(self.rising_sun, prophecy_suns=suns))


_FIELD_ATTRS = {
    Field.TURN: "turn",
    Field.NEW_TURN: "new_turn",
    Field.MATS: "mats",
    Field.VICTORY: "victory",
}


@dataclass(frozen=True)
class PlayerState:
    """
    State for a single player.

    `new_turn` holds the values `turn` resets to at the next turn boundary,
    which is how bonuses that carry into the following turn are recorded.
    """
    name: str
    color: str
    turn: TurnCounters = field(default_factory=TurnCounters)
    new_turn: TurnCounters = field(default_factory=TurnCounters)
    mats: MatCounters = field(default_factory=MatCounters)
    victory: VictoryCounters = field(default_factory=VictoryCounters)

    def get_counter(self, target: FieldTarget) -> int:
        """Current value of a per-player counter."""
        attr = _FIELD_ATTRS.get(target.field)
        if attr is None:
            raise InvalidFieldError(target.field.value, target.subfield.value)
        return getattr(getattr(self, attr), target.subfield.value)

    def with_counter(self, target: FieldTarget, value: int) -> PlayerState:
        """Return new player state with one counter replaced."""
        attr = _FIELD_ATTRS.get(target.field)
        if attr is None:
            raise InvalidFieldError(target.field.value, target.subfield.value)
        group = replace(getattr(self, attr), **{target.subfield.value: value})
        return replace(self, **{attr: group})

    def reset_turn(self) -> PlayerState:
        """Return new player state with turn counters reset to next-turn defaults."""
        return replace(self, turn=self.new_turn)


def new_player(name: str, color: str) -> PlayerState:
    """Create a player with default counters."""
    return PlayerState(name=name.strip(), color=color)


@dataclass(frozen=True)
class TurnStatistics:
    """
    Aggregates for one completed turn.

    Captured at NEXT_TURN / END_GAME, before turn counters reset. Per-player
    maps are keyed by player index.
    """
    turn: int
    player_index: int
    start: datetime
    end: datetime
    turn_duration: int
    supply: GameSupply
    player_scores: dict[int, int]
    player_actions: dict[int, int]
    player_buys: dict[int, int]
    player_coins: dict[int, int]
    player_cards_drawn: dict[int, int]
    player_gains: dict[int, int]
    player_discards: dict[int, int]
    player_coffers: dict[int, int]
    player_villagers: dict[int, int]
    player_debt: dict[int, int]
    player_favors: dict[int, int]
    player_potions: dict[int, int] | None = None


@dataclass(frozen=True)
class PlayerSetup:
    name: str
    color: str


@dataclass(frozen=True)
class GameSetup:
    """
    Everything chosen before the first log entry.

    Together with the log this fully determines a GameState.
    """
    players: tuple[PlayerSetup, ...]
    options: GameOptions = field(default_factory=GameOptions)
    first_player_index: int = 0
    great_leader_prophecy: bool = False
    flag_bearer_enabled: bool = False
    track_potions: bool = False


@dataclass
class GameState:
    """
    Complete game state at a point in the log.

    This is the canonical state the engine operates on.
    All state changes go through the reducer.
    """
    players: list[PlayerState] = field(default_factory=list)
    supply: GameSupply = field(default_factory=GameSupply)
    options: GameOptions = field(default_factory=GameOptions)
    expansions: ExpansionState = field(default_factory=ExpansionState)

    phase: GamePhase = GamePhase.SETUP
    current_turn: int = 1
    current_player_index: int = 0
    selected_player_index: int = 0

    log: list[LogEntry] = field(default_factory=list)
    turn_statistics_cache: list[TurnStatistics] = field(default_factory=list)
    pending_grouped_actions: list[LogEntryDraft] = field(default_factory=list)
    # Due drafts whose computed count was 0; undoing their NEXT_TURN re-queues them
    skipped_grouped_actions: list[LogEntryDraft] = field(default_factory=list)

    game_version: str = VERSION_NUMBER

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def current_player(self) -> PlayerState:
        """Get the current player."""
        return self.players[self.current_player_index]

    @property
    def last_entry(self) -> LogEntry | None:
        return self.log[-1] if self.log else None

    @property
    def is_paused(self) -> bool:
        last = self.last_entry
        return last is not None and last.action is GameLogAction.PAUSE

    @property
    def is_over(self) -> bool:
        return self.phase is GamePhase.GAME_OVER

    def is_valid_player_index(self, index: int) -> bool:
        return 0 <= index < len(self.players)

    def get_player(self, index: int) -> PlayerState:
        """Get player by index."""
        if not self.is_valid_player_index(index):
            raise InvalidPlayerIndexError(index)
        return self.players[index]

    def with_player(self, index: int, player: PlayerState) -> GameState:
        """Return new state with updated player."""
        if not self.is_valid_player_index(index):
            raise InvalidPlayerIndexError(index)
        new_players = self.players.copy()
        new_players[index] = player
        return self._copy_with(players=new_players)

    def with_supply(self, supply: GameSupply) -> GameState:
        """Return new state with updated supply."""
        return self._copy_with(supply=supply)

    def _copy_with(self, **kwargs) -> GameState:
        """Create a shallow copy with some fields replaced. Lists are copied."""
        return GameState(
            players=kwargs.get("players", self.players.copy()),
            supply=kwargs.get("supply", self.supply),
            options=kwargs.get("options", self.options),
            expansions=kwargs.get("expansions", self.expansions),
            phase=kwargs.get("phase", self.phase),
            current_turn=kwargs.get("current_turn", self.current_turn),
            current_player_index=kwargs.get("current_player_index", self.current_player_index),
            selected_player_index=kwargs.get("selected_player_index", self.selected_player_index),
            log=kwargs.get("log", self.log.copy()),
            turn_statistics_cache=kwargs.get(
                "turn_statistics_cache", self.turn_statistics_cache.copy()
            ),
            pending_grouped_actions=kwargs.get(
                "pending_grouped_actions", self.pending_grouped_actions.copy()
            ),
            skipped_grouped_actions=kwargs.get(
                "skipped_grouped_actions", self.skipped_grouped_actions.copy()
            ),
            game_version=kwargs.get("game_version", self.game_version),
        )

    def to_setup(self) -> GameSetup:
        """
        Recover the setup this game was started from.

        The first player is read from the START_GAME entry when present.
        """
        first_player = self.log[0].player_index if self.log else self.current_player_index
        return GameSetup(
            players=tuple(PlayerSetup(name=p.name, color=p.color) for p in self.players),
            options=self.options,
            first_player_index=first_player,
            great_leader_prophecy=self.expansions.rising_sun.great_leader_prophecy,
            flag_bearer_enabled=self.expansions.renaissance.flag_bearer_enabled,
            track_potions=self.expansions.alchemy.track_potions,
        )

