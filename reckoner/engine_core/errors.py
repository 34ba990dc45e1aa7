"""
Engine Errors - Typed failures raised by the applicator, replay and composer.

The engine never catches-and-continues: every error below propagates to the
caller. Only the undo controller inspects them, and only the
InvariantViolationError family is treated as an expected outcome there.
"""

from __future__ import annotations


class ReckonerError(Exception):
    """Base class for all engine errors."""


class InvariantViolationError(ReckonerError):
    """A counter, supply pile or global counter would go negative."""


class NotEnoughSubfieldError(InvariantViolationError):
    """A per-player counter would drop below zero."""

    def __init__(self, field: str, subfield: str):
        self.field = field
        self.subfield = subfield
        super().__init__(f"Not enough {subfield} in {field}")


class NotEnoughSupplyError(InvariantViolationError):
    """A gain was attempted from a supply pile without enough cards."""

    def __init__(self, pile: str):
        self.pile = pile
        super().__init__(f"Not enough {pile} in supply")


class NotEnoughProphecyError(InvariantViolationError):
    """The prophecy sun counter would drop below zero."""

    def __init__(self):
        super().__init__("Not enough prophecy suns")


class InvalidActionError(ReckonerError):
    def __init__(self, action: object):
        self.action = action
        super().__init__(f"Invalid log entry action: {action}")


class InvalidFieldError(ReckonerError):
    def __init__(self, field: object, subfield: object | None = None):
        self.field = field
        self.subfield = subfield
        if subfield is None:
            super().__init__(f"Invalid field: {field}")
        else:
            super().__init__(f"Invalid field: {field}.{subfield}")


class InvalidPlayerIndexError(ReckonerError):
    def __init__(self, player_index: int | None, message: str | None = None):
        self.player_index = player_index
        super().__init__(message or f"Invalid player index: {player_index}")


class PlayerIndexNotAllowedError(ReckonerError):
    """A player index was given for an action that affects no player."""

    def __init__(self, action: object):
        self.action = action
        super().__init__(f"Player index is not relevant for this action: {action}")


class CountRequiredError(ReckonerError):
    def __init__(self):
        super().__init__("Count is required for this action")


class InvalidCountError(ReckonerError):
    def __init__(self, count: object):
        self.count = count
        super().__init__(f"Invalid log entry count: {count}")


class InvalidTrashActionError(ReckonerError):
    """Trash may only mark the removal of a victory card."""

    def __init__(self):
        super().__init__("Trash is only valid when removing a victory card")


class GamePausedError(ReckonerError):
    def __init__(self):
        super().__init__("The game is paused")


class GameEndedError(ReckonerError):
    def __init__(self):
        super().__init__("The game has ended")


class EmptyLogError(ReckonerError):
    def __init__(self):
        super().__init__("The game log is empty")


class InvalidLogStartGameError(ReckonerError):
    def __init__(self):
        super().__init__("The game log must begin with a START_GAME action")


class MinPlayersError(ReckonerError):
    def __init__(self, minimum: int):
        super().__init__(f"At least {minimum} players are required")


class MaxPlayersError(ReckonerError):
    def __init__(self, maximum: int):
        super().__init__(f"At most {maximum} players are allowed")


class InvalidTimestampError(ReckonerError, ValueError):
    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid timestamp: {value}")


class InvalidRecipeError(ReckonerError):
    """A grouped action does not match the recipe catalog entry for its key."""
