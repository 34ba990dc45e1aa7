"""
Count Expressions - State-dependent counts for grouped actions.

Some recipes cannot know their count up front ("remove all remaining
actions"), and deferred triggers are evaluated turns after they were
scheduled. Their counts are stored as a small JSON AST rather than a
callable, so pending triggers can be saved with the game and replay the
same way every time.

AST format:
    {"op": "literal", "value": 2}
    {"op": "counter", "field": "turn", "subfield": "actions"}
    {"op": "prophecy"}
    {"op": "supply", "pile": "provinces"}
    {"op": "add", "left": ..., "right": ...}
    {"op": "subtract", "left": ..., "right": ...}
    {"op": "multiply", "left": ..., "right": ...}
    {"op": "floor_div", "left": ..., "right": ...}
    {"op": "max", "operands": [...]}
    {"op": "min", "operands": [...]}

"counter" reads the player the action is being materialized for.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

from .fields import Field, FieldTarget, Subfield

if TYPE_CHECKING:
    from .state import GameState


class ExpressionError(ValueError):
    """Malformed count expression."""


@dataclass
class ExpressionContext:
    """
    Context for evaluating expressions.

    Provides access to:
    - Current game state
    - The player the count is being computed for
    """
    game_state: GameState
    player_index: int

    def get_counter(self, target: FieldTarget) -> int:
        if target.is_global:
            return max(self.game_state.expansions.rising_sun.prophecy_suns, 0)
        return self.game_state.get_player(self.player_index).get_counter(target)


class ExpressionEvaluator:
    """Evaluates count ASTs against a game state."""

    _BINARY = {
        "add": lambda a, b: a + b,
        "subtract": lambda a, b: a - b,
        "multiply": lambda a, b: a * b,
        "floor_div": lambda a, b: a // b,
    }

    def evaluate(self, ast: dict | int, context: ExpressionContext) -> int:
        if isinstance(ast, bool):
            raise ExpressionError(f"Not a count expression: {ast!r}")
        if isinstance(ast, int):
            return ast
        if not isinstance(ast, dict):
            raise ExpressionError(f"Not a count expression: {ast!r}")

        op = ast.get("op")

        if op == "literal":
            return int(ast.get("value", 0))

        elif op == "counter":
            return context.get_counter(_parse_target(ast))

        elif op == "prophecy":
            return context.get_counter(FieldTarget(Field.PROPHECY, Subfield.SUNS))

        elif op == "supply":
            pile = context.game_state.supply.pile(ast.get("pile", ""))
            return max(pile, 0)

        elif op in self._BINARY:
            left = self.evaluate(ast.get("left", 0), context)
            right = self.evaluate(ast.get("right", 0), context)
            if op == "floor_div" and right == 0:
                raise ExpressionError("Division by zero in count expression")
            return self._BINARY[op](left, right)

        elif op in ("max", "min"):
            operands = [self.evaluate(o, context) for o in ast.get("operands", [])]
            if not operands:
                raise ExpressionError(f"'{op}' needs at least one operand")
            return max(operands) if op == "max" else min(operands)

        raise ExpressionError(f"Unknown expression op: {op!r}")


def _parse_target(ast: dict) -> FieldTarget:
    try:
        return FieldTarget(Field(ast["field"]), Subfield(ast["subfield"]))
    except (KeyError, ValueError) as e:
        raise ExpressionError(f"Invalid counter reference: {ast!r}") from e


@dataclass(frozen=True)
class CountExpression:
    """
    A serializable count, resolved when the action is materialized.

    Results below zero are clamped to zero; the composer skips actions whose
    count resolves to zero.
    """
    ast: dict[str, Any] = field(default_factory=lambda: {"op": "literal", "value": 0})

    @classmethod
    def counter(cls, field_: Field, subfield: Subfield) -> CountExpression:
        """Current value of a counter on the target player."""
        target = FieldTarget(field_, subfield)
        return cls({"op": "counter", "field": target.field.value, "subfield": target.subfield.value})

    @classmethod
    def literal(cls, value: int) -> CountExpression:
        return cls({"op": "literal", "value": value})

    def evaluate(self, state: GameState, player_index: int) -> int:
        context = ExpressionContext(game_state=state, player_index=player_index)
        return max(ExpressionEvaluator().evaluate(self.ast, context), 0)

    def to_dict(self) -> dict[str, Any]:
        return self.ast

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CountExpression:
        if not isinstance(data, dict) or "op" not in data:
            raise ExpressionError(f"Not a count expression: {data!r}")
        return cls(data)
