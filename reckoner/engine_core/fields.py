"""
Field Resolver - Maps each action kind to the counter it changes.

Every GameLogAction has exactly one ActionTraits row in ACTION_TRAITS:
- which (field, subfield) it mutates, and with which sign
- whether it requires, forbids or optionally carries a player index
- whether it requires a count
- how it may be undone
- whether it touches a per-player field or a game-wide counter

The table is checked for exhaustiveness when this module is imported, so a
new GameLogAction without a row fails immediately rather than at replay time.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

from .action import GameLogAction, LogEntry
from .errors import InvalidActionError, InvalidFieldError


class Field(Enum):
    """Top-level counter groups."""
    TURN = "turn"
    NEW_TURN = "new_turn"
    MATS = "mats"
    VICTORY = "victory"
    PROPHECY = "prophecy"


class Subfield(Enum):
    """Individual counters within a field."""
    ACTIONS = "actions"
    BUYS = "buys"
    COINS = "coins"
    CARDS = "cards"
    GAINS = "gains"
    DISCARD = "discard"
    POTIONS = "potions"
    COFFERS = "coffers"
    VILLAGERS = "villagers"
    DEBT = "debt"
    FAVORS = "favors"
    ESTATES = "estates"
    DUCHIES = "duchies"
    PROVINCES = "provinces"
    COLONIES = "colonies"
    CURSES = "curses"
    TOKENS = "tokens"
    OTHER = "other"
    SUNS = "suns"


TURN_SUBFIELDS = frozenset({
    Subfield.ACTIONS, Subfield.BUYS, Subfield.COINS, Subfield.CARDS,
    Subfield.GAINS, Subfield.DISCARD, Subfield.POTIONS,
})

VALID_SUBFIELDS: dict[Field, frozenset[Subfield]] = {
    Field.TURN: TURN_SUBFIELDS,
    Field.NEW_TURN: TURN_SUBFIELDS,
    Field.MATS: frozenset({
        Subfield.COFFERS, Subfield.VILLAGERS, Subfield.DEBT, Subfield.FAVORS,
    }),
    Field.VICTORY: frozenset({
        Subfield.ESTATES, Subfield.DUCHIES, Subfield.PROVINCES, Subfield.COLONIES,
        Subfield.CURSES, Subfield.TOKENS, Subfield.OTHER,
    }),
    Field.PROPHECY: frozenset({Subfield.SUNS}),
}

# Victory subfields that are physical cards drawn from a supply pile
SUPPLY_PILE_SUBFIELDS = frozenset({
    Subfield.ESTATES, Subfield.DUCHIES, Subfield.PROVINCES,
    Subfield.COLONIES, Subfield.CURSES,
})


@dataclass(frozen=True)
class FieldTarget:
    """A closed (field, subfield) pair."""
    field: Field
    subfield: Subfield

    def __post_init__(self):
        if self.subfield not in VALID_SUBFIELDS[self.field]:
            raise InvalidFieldError(self.field.value, self.subfield.value)

    @property
    def is_global(self) -> bool:
        return self.field is Field.PROPHECY

    @property
    def is_supply_pile(self) -> bool:
        return self.field is Field.VICTORY and self.subfield in SUPPLY_PILE_SUBFIELDS


class PlayerRequirement(Enum):
    REQUIRED = "required"
    FORBIDDEN = "forbidden"
    OPTIONAL = "optional"


class UndoPolicy(Enum):
    ALWAYS = "always"
    LAST_ONLY = "last_only"
    NEVER = "never"


@dataclass(frozen=True)
class ActionTraits:
    """Static classification of one action kind."""
    target: FieldTarget | None = None
    sign: int = 0
    player: PlayerRequirement = PlayerRequirement.REQUIRED
    undo: UndoPolicy = UndoPolicy.ALWAYS

    @property
    def requires_count(self) -> bool:
        return self.target is not None

    @property
    def is_adjustment(self) -> bool:
        return self.target is not None

    @property
    def is_global(self) -> bool:
        return self.target is not None and self.target.is_global


def _adjust(field: Field, subfield: Subfield, sign: int) -> ActionTraits:
    return ActionTraits(target=FieldTarget(field, subfield), sign=sign)


_ADMIN = ActionTraits(player=PlayerRequirement.FORBIDDEN, undo=UndoPolicy.NEVER)

A = GameLogAction
F = Field
S = Subfield

ACTION_TRAITS: dict[GameLogAction, ActionTraits] = {
    A.START_GAME: ActionTraits(undo=UndoPolicy.NEVER),
    A.END_GAME: _ADMIN,
    A.SAVE_GAME: _ADMIN,
    A.LOAD_GAME: _ADMIN,
    A.PAUSE: _ADMIN,
    A.UNPAUSE: _ADMIN,
    A.NEXT_TURN: ActionTraits(undo=UndoPolicy.LAST_ONLY),
    A.SELECT_PLAYER: ActionTraits(undo=UndoPolicy.LAST_ONLY),
    A.GROUPED_ACTION: ActionTraits(player=PlayerRequirement.OPTIONAL),

    A.ADD_ACTIONS: _adjust(F.TURN, S.ACTIONS, 1),
    A.REMOVE_ACTIONS: _adjust(F.TURN, S.ACTIONS, -1),
    A.ADD_BUYS: _adjust(F.TURN, S.BUYS, 1),
    A.REMOVE_BUYS: _adjust(F.TURN, S.BUYS, -1),
    A.ADD_COINS: _adjust(F.TURN, S.COINS, 1),
    A.REMOVE_COINS: _adjust(F.TURN, S.COINS, -1),
    A.ADD_CARDS: _adjust(F.TURN, S.CARDS, 1),
    A.REMOVE_CARDS: _adjust(F.TURN, S.CARDS, -1),
    A.ADD_GAINS: _adjust(F.TURN, S.GAINS, 1),
    A.REMOVE_GAINS: _adjust(F.TURN, S.GAINS, -1),
    A.ADD_DISCARD: _adjust(F.TURN, S.DISCARD, 1),
    A.REMOVE_DISCARD: _adjust(F.TURN, S.DISCARD, -1),
    A.ADD_POTIONS: _adjust(F.TURN, S.POTIONS, 1),
    A.REMOVE_POTIONS: _adjust(F.TURN, S.POTIONS, -1),

    A.ADD_COFFERS: _adjust(F.MATS, S.COFFERS, 1),
    A.REMOVE_COFFERS: _adjust(F.MATS, S.COFFERS, -1),
    A.ADD_VILLAGERS: _adjust(F.MATS, S.VILLAGERS, 1),
    A.REMOVE_VILLAGERS: _adjust(F.MATS, S.VILLAGERS, -1),
    A.ADD_DEBT: _adjust(F.MATS, S.DEBT, 1),
    A.REMOVE_DEBT: _adjust(F.MATS, S.DEBT, -1),
    A.ADD_FAVORS: _adjust(F.MATS, S.FAVORS, 1),
    A.REMOVE_FAVORS: _adjust(F.MATS, S.FAVORS, -1),

    A.ADD_CURSES: _adjust(F.VICTORY, S.CURSES, 1),
    A.REMOVE_CURSES: _adjust(F.VICTORY, S.CURSES, -1),
    A.ADD_ESTATES: _adjust(F.VICTORY, S.ESTATES, 1),
    A.REMOVE_ESTATES: _adjust(F.VICTORY, S.ESTATES, -1),
    A.ADD_DUCHIES: _adjust(F.VICTORY, S.DUCHIES, 1),
    A.REMOVE_DUCHIES: _adjust(F.VICTORY, S.DUCHIES, -1),
    A.ADD_PROVINCES: _adjust(F.VICTORY, S.PROVINCES, 1),
    A.REMOVE_PROVINCES: _adjust(F.VICTORY, S.PROVINCES, -1),
    A.ADD_COLONIES: _adjust(F.VICTORY, S.COLONIES, 1),
    A.REMOVE_COLONIES: _adjust(F.VICTORY, S.COLONIES, -1),
    A.ADD_VP_TOKENS: _adjust(F.VICTORY, S.TOKENS, 1),
    A.REMOVE_VP_TOKENS: _adjust(F.VICTORY, S.TOKENS, -1),
    A.ADD_OTHER_VP: _adjust(F.VICTORY, S.OTHER, 1),
    A.REMOVE_OTHER_VP: _adjust(F.VICTORY, S.OTHER, -1),

    A.ADD_PROPHECY: _adjust(F.PROPHECY, S.SUNS, 1),
    A.REMOVE_PROPHECY: _adjust(F.PROPHECY, S.SUNS, -1),

    A.ADD_NEXT_TURN_ACTIONS: _adjust(F.NEW_TURN, S.ACTIONS, 1),
    A.REMOVE_NEXT_TURN_ACTIONS: _adjust(F.NEW_TURN, S.ACTIONS, -1),
    A.ADD_NEXT_TURN_BUYS: _adjust(F.NEW_TURN, S.BUYS, 1),
    A.REMOVE_NEXT_TURN_BUYS: _adjust(F.NEW_TURN, S.BUYS, -1),
    A.ADD_NEXT_TURN_COINS: _adjust(F.NEW_TURN, S.COINS, 1),
    A.REMOVE_NEXT_TURN_COINS: _adjust(F.NEW_TURN, S.COINS, -1),
    A.ADD_NEXT_TURN_CARDS: _adjust(F.NEW_TURN, S.CARDS, 1),
    A.REMOVE_NEXT_TURN_CARDS: _adjust(F.NEW_TURN, S.CARDS, -1),
    A.ADD_NEXT_TURN_DISCARD: _adjust(F.NEW_TURN, S.DISCARD, 1),
    A.REMOVE_NEXT_TURN_DISCARD: _adjust(F.NEW_TURN, S.DISCARD, -1),
    A.ADD_NEXT_TURN_POTIONS: _adjust(F.NEW_TURN, S.POTIONS, 1),
    A.REMOVE_NEXT_TURN_POTIONS: _adjust(F.NEW_TURN, S.POTIONS, -1),
}

del A, F, S

_unmapped = [action.name for action in GameLogAction if action not in ACTION_TRAITS]
if _unmapped:
    raise RuntimeError(f"Actions missing from ACTION_TRAITS: {', '.join(_unmapped)}")

# Reverse lookup: (target, sign) -> action
_ACTION_BY_TARGET: dict[tuple[FieldTarget, int], GameLogAction] = {
    (traits.target, traits.sign): action
    for action, traits in ACTION_TRAITS.items()
    if traits.target is not None
}

NO_PLAYER_ACTIONS = frozenset(
    action for action, traits in ACTION_TRAITS.items()
    if traits.player is PlayerRequirement.FORBIDDEN
)
ACTIONS_WITH_PLAYER = frozenset(
    action for action, traits in ACTION_TRAITS.items()
    if traits.player is PlayerRequirement.REQUIRED
)
ADJUSTMENT_ACTIONS = frozenset(
    action for action, traits in ACTION_TRAITS.items() if traits.is_adjustment
)
NEGATIVE_ADJUSTMENT_ACTIONS = frozenset(
    action for action, traits in ACTION_TRAITS.items() if traits.sign < 0
)
NO_UNDO_ACTIONS = frozenset(
    action for action, traits in ACTION_TRAITS.items()
    if traits.undo is UndoPolicy.NEVER
)
ACTIONS_WITH_ONLY_LAST_ACTION_UNDO = frozenset(
    action for action, traits in ACTION_TRAITS.items()
    if traits.undo is UndoPolicy.LAST_ONLY
)


def get_action_traits(action: GameLogAction) -> ActionTraits:
    """Classification row for an action kind."""
    if not isinstance(action, GameLogAction):
        raise InvalidActionError(action)
    return ACTION_TRAITS[action]


def get_field_and_subfield(action: GameLogAction) -> FieldTarget | None:
    """The counter an action mutates, or None for lifecycle/marker actions."""
    return get_action_traits(action).target


def field_subfield_to_action(field: Field, subfield: Subfield, increment: int) -> GameLogAction:
    """
    Map a counter change back to the action kind that records it.

    A positive increment maps to the Add* kind, anything else to Remove*.
    """
    target = FieldTarget(field, subfield)
    sign = 1 if increment > 0 else -1
    try:
        return _ACTION_BY_TARGET[(target, sign)]
    except KeyError:
        raise InvalidFieldError(field.value, subfield.value) from None


def signed_count(entry: LogEntry, default: int = 0) -> int:
    """Count of an entry, negated for Remove* kinds."""
    count = entry.count if entry.count is not None else default
    return -count if get_action_traits(entry.action).sign < 0 else count
