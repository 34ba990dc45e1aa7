"""
Log Actions - Action kinds and the immutable log entries that record them.

Log entries represent:
1. Game lifecycle (start, end, next turn, pause, save/load)
2. Per-player adjustments (actions, buys, mats, victory cards)
3. Game-wide adjustments (prophecy suns)
4. Grouped action markers (a recipe applied as one unit)

All state changes flow through log entries. State is never edited by hand;
it is derived by folding entries through the reducer.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, TYPE_CHECKING
import uuid

from .constants import NO_PLAYER

if TYPE_CHECKING:
    from .state import TurnCounters


class GameLogAction(Enum):
    """
    Kinds of log entries.

    Each value doubles as the display template; `{COUNT}` is replaced by
    the entry's count, or dropped together with its leading space when the
    entry carries no count.
    """
    START_GAME = "Started Game"
    END_GAME = "Ended Game"
    SAVE_GAME = "Saved Game"
    LOAD_GAME = "Loaded Game"
    NEXT_TURN = "Next Turn"
    PAUSE = "Paused Game"
    UNPAUSE = "Unpaused Game"
    SELECT_PLAYER = "Selected Player"
    GROUPED_ACTION = "Grouped Action"

    # Turn counters
    ADD_ACTIONS = "Added {COUNT} Actions"
    REMOVE_ACTIONS = "Removed {COUNT} Actions"
    ADD_BUYS = "Added {COUNT} Buys"
    REMOVE_BUYS = "Removed {COUNT} Buys"
    ADD_COINS = "Added {COUNT} Coins"
    REMOVE_COINS = "Removed {COUNT} Coins"
    ADD_CARDS = "Added {COUNT} Cards"
    REMOVE_CARDS = "Removed {COUNT} Cards"
    ADD_GAINS = "Added {COUNT} Gains"
    REMOVE_GAINS = "Removed {COUNT} Gains"
    ADD_DISCARD = "Added {COUNT} Discards"
    REMOVE_DISCARD = "Removed {COUNT} Discards"
    ADD_POTIONS = "Added {COUNT} Potions"
    REMOVE_POTIONS = "Removed {COUNT} Potions"

    # Mats
    ADD_COFFERS = "Added {COUNT} Coffers"
    REMOVE_COFFERS = "Removed {COUNT} Coffers"
    ADD_VILLAGERS = "Added {COUNT} Villagers"
    REMOVE_VILLAGERS = "Removed {COUNT} Villagers"
    ADD_DEBT = "Added {COUNT} Debt"
    REMOVE_DEBT = "Removed {COUNT} Debt"
    ADD_FAVORS = "Added {COUNT} Favors"
    REMOVE_FAVORS = "Removed {COUNT} Favors"

    # Victory
    ADD_CURSES = "Added {COUNT} Curses"
    REMOVE_CURSES = "Removed {COUNT} Curses"
    ADD_ESTATES = "Added {COUNT} Estates"
    REMOVE_ESTATES = "Removed {COUNT} Estates"
    ADD_DUCHIES = "Added {COUNT} Duchies"
    REMOVE_DUCHIES = "Removed {COUNT} Duchies"
    ADD_PROVINCES = "Added {COUNT} Provinces"
    REMOVE_PROVINCES = "Removed {COUNT} Provinces"
    ADD_COLONIES = "Added {COUNT} Colonies"
    REMOVE_COLONIES = "Removed {COUNT} Colonies"
    ADD_VP_TOKENS = "Added {COUNT} VP Tokens"
    REMOVE_VP_TOKENS = "Removed {COUNT} VP Tokens"
    ADD_OTHER_VP = "Added {COUNT} Other VP"
    REMOVE_OTHER_VP = "Removed {COUNT} Other VP"

    # Game-wide
    ADD_PROPHECY = "Added {COUNT} Prophecy Suns"
    REMOVE_PROPHECY = "Removed {COUNT} Prophecy Suns"

    # Next-turn defaults
    ADD_NEXT_TURN_ACTIONS = "Added {COUNT} Next Turn Actions"
    REMOVE_NEXT_TURN_ACTIONS = "Removed {COUNT} Next Turn Actions"
    ADD_NEXT_TURN_BUYS = "Added {COUNT} Next Turn Buys"
    REMOVE_NEXT_TURN_BUYS = "Removed {COUNT} Next Turn Buys"
    ADD_NEXT_TURN_COINS = "Added {COUNT} Next Turn Coins"
    REMOVE_NEXT_TURN_COINS = "Removed {COUNT} Next Turn Coins"
    ADD_NEXT_TURN_CARDS = "Added {COUNT} Next Turn Cards"
    REMOVE_NEXT_TURN_CARDS = "Removed {COUNT} Next Turn Cards"
    ADD_NEXT_TURN_DISCARD = "Added {COUNT} Next Turn Discards"
    REMOVE_NEXT_TURN_DISCARD = "Removed {COUNT} Next Turn Discards"
    ADD_NEXT_TURN_POTIONS = "Added {COUNT} Next Turn Potions"
    REMOVE_NEXT_TURN_POTIONS = "Removed {COUNT} Next Turn Potions"

    @classmethod
    def from_value(cls, value: str) -> GameLogAction:
        """Look up an action by its wire value (the display template)."""
        from .errors import InvalidActionError
        try:
            return cls(value)
        except ValueError:
            raise InvalidActionError(value) from None


def _future_template(action: GameLogAction) -> str:
    template = action.value
    if template.startswith("Added "):
        return "Will add " + template[len("Added "):]
    if template.startswith("Removed "):
        return "Will remove " + template[len("Removed "):]
    return template


# Future tense, for describing deferred actions that have not happened yet
FUTURE_ACTION_TEMPLATES: dict[GameLogAction, str] = {
    action: _future_template(action) for action in GameLogAction
}


@dataclass(frozen=True)
class LogEntry:
    """
    One immutable record in the game log.

    Log entries are:
    - Appended, never edited
    - Validated by the reducer before they affect state
    - Removed only by the undo controller, together with their linked group
    """
    id: str
    timestamp: datetime
    action: GameLogAction
    player_index: int = NO_PLAYER
    current_player_index: int = 0
    turn: int = 1
    game_time: int = 0  # milliseconds since START_GAME, pause-adjusted
    count: int | None = None
    correction: bool = False
    trash: bool = False
    linked_action_id: str | None = None
    action_name: str | None = None
    action_key: str | None = None
    prev_player_index: int | None = None
    player_turn_details: tuple[TurnCounters, ...] | None = None

    @classmethod
    def create(
        cls,
        action: GameLogAction,
        player_index: int,
        timestamp: datetime,
        **kwargs: Any,
    ) -> LogEntry:
        """Factory that assigns a fresh id unless one is supplied."""
        entry_id = kwargs.pop("id", None) or str(uuid.uuid4())
        return cls(
            id=entry_id,
            timestamp=timestamp,
            action=action,
            player_index=player_index,
            **kwargs,
        )

    @property
    def master_id(self) -> str:
        """Id of the group this entry belongs to (its own id when unlinked)."""
        return self.linked_action_id or self.id

    def with_changes(self, **kwargs: Any) -> LogEntry:
        """Return a copy with some fields replaced."""
        return replace(self, **kwargs)


@dataclass
class LogEntryDraft:
    """
    A not-yet-materialized log entry.

    Used for grouped action sub-actions and for deferred triggers waiting in
    the pending queue. The count is either fixed or described by a
    CountExpression evaluated when the draft is materialized.
    """
    action: GameLogAction
    player_index: int = NO_PLAYER
    current_player_index: int | None = None
    turn: int | None = None
    count: int | None = None
    count_expression: Any | None = None  # CountExpression
    linked_action_id: str | None = None
    action_name: str | None = None
    trash: bool = False
