"""
Dominion Recipes - Cards expressed as grouped actions.

A recipe only records what the card does to the tracked counters. Card
text that the tracker does not model (trashing, looking at cards) is left
out.

Recipe structure:
- Actions per target selector, applied immediately
- Deferred actions per trigger, applied when the target's next turn begins
- Counts are fixed, or a CountExpression read from the state
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterator

from ...engine_core.action import GameLogAction
from ...engine_core.expression import CountExpression
from ...engine_core.fields import Field, Subfield
from ...engine_core.grouped import (
    GroupedActionDest,
    GroupedActionTrigger,
    Recipe,
    RecipeAction,
)

A = GameLogAction
CURRENT = GroupedActionDest.CURRENT_PLAYER
SELECTED = GroupedActionDest.SELECTED_PLAYER
OTHERS = GroupedActionDest.ALL_PLAYERS_EXCEPT_CURRENT
NEXT_TURN = GroupedActionTrigger.AFTER_NEXT_TURN_BEGINS


def _do(action: GameLogAction, count: int = 1) -> RecipeAction:
    return RecipeAction(action=action, count=count)


def _all_of(action: GameLogAction, field_: Field, subfield: Subfield) -> RecipeAction:
    """Action whose count is the player's whole current counter."""
    return RecipeAction(action=action, count_expression=CountExpression.counter(field_, subfield))


@dataclass
class RecipeSection:
    title: str
    recipes: dict[str, Recipe] = field(default_factory=dict)


# ============================================================================
# General
# ============================================================================

GENERAL = RecipeSection(
    title="General",
    recipes={
        "PlayAction": Recipe(
            name="Play Action",
            description="-1 Action",
            actions={CURRENT: [_do(A.REMOVE_ACTIONS)]},
        ),
        "BuyCard": Recipe(
            name="Buy Card",
            description="-1 Buy, +1 Gain",
            actions={CURRENT: [_do(A.REMOVE_BUYS), _do(A.ADD_GAINS)]},
        ),
        "SpendAllCoffers": Recipe(
            name="Spend All Coffers",
            description="+$1 per Coffers, then empty the Coffers mat",
            actions={CURRENT: [
                _all_of(A.ADD_COINS, Field.MATS, Subfield.COFFERS),
                _all_of(A.REMOVE_COFFERS, Field.MATS, Subfield.COFFERS),
            ]},
        ),
        "SpendAllVillagers": Recipe(
            name="Spend All Villagers",
            description="+1 Action per Villager, then empty the Villagers mat",
            actions={CURRENT: [
                _all_of(A.ADD_ACTIONS, Field.MATS, Subfield.VILLAGERS),
                _all_of(A.REMOVE_VILLAGERS, Field.MATS, Subfield.VILLAGERS),
            ]},
        ),
    },
)


# ============================================================================
# Base
# ============================================================================

BASE = RecipeSection(
    title="Base",
    recipes={
        "Village": Recipe(
            name="Village",
            description="+1 Card, +2 Actions",
            actions={CURRENT: [_do(A.ADD_CARDS), _do(A.ADD_ACTIONS, 2)]},
        ),
        "Smithy": Recipe(
            name="Smithy",
            description="+3 Cards",
            actions={CURRENT: [_do(A.ADD_CARDS, 3)]},
        ),
        "Laboratory": Recipe(
            name="Laboratory",
            description="+2 Cards, +1 Action",
            actions={CURRENT: [_do(A.ADD_CARDS, 2), _do(A.ADD_ACTIONS)]},
        ),
        "Market": Recipe(
            name="Market",
            description="+1 Card, +1 Action, +1 Buy, +$1",
            actions={CURRENT: [
                _do(A.ADD_CARDS), _do(A.ADD_ACTIONS), _do(A.ADD_BUYS), _do(A.ADD_COINS),
            ]},
        ),
        "Festival": Recipe(
            name="Festival",
            description="+2 Actions, +1 Buy, +$2",
            actions={CURRENT: [_do(A.ADD_ACTIONS, 2), _do(A.ADD_BUYS), _do(A.ADD_COINS, 2)]},
        ),
        "CouncilRoom": Recipe(
            name="Council Room",
            description="+4 Cards, +1 Buy. Each other player draws a card.",
            actions={
                CURRENT: [_do(A.ADD_CARDS, 4), _do(A.ADD_BUYS)],
                OTHERS: [_do(A.ADD_CARDS)],
            },
        ),
        "Witch": Recipe(
            name="Witch",
            description="+2 Cards. Each other player gains a Curse.",
            actions={
                CURRENT: [_do(A.ADD_CARDS, 2)],
                OTHERS: [_do(A.ADD_CURSES)],
            },
        ),
    },
)


# ============================================================================
# Seaside (effects that carry into the next turn)
# ============================================================================

SEASIDE = RecipeSection(
    title="Seaside",
    recipes={
        "Caravan": Recipe(
            name="Caravan",
            description="+1 Card, +1 Action. At the start of your next turn, +1 Card.",
            actions={CURRENT: [_do(A.ADD_CARDS), _do(A.ADD_ACTIONS)]},
            triggers={NEXT_TURN: {CURRENT: [_do(A.ADD_CARDS)]}},
        ),
        "FishingVillage": Recipe(
            name="Fishing Village",
            description="+2 Actions, +$1. At the start of your next turn, +1 Action and +$1.",
            actions={CURRENT: [_do(A.ADD_ACTIONS, 2), _do(A.ADD_COINS)]},
            triggers={NEXT_TURN: {CURRENT: [_do(A.ADD_ACTIONS), _do(A.ADD_COINS)]}},
        ),
        "Wharf": Recipe(
            name="Wharf",
            description="Now and at the start of your next turn: +2 Cards, +1 Buy.",
            actions={CURRENT: [_do(A.ADD_CARDS, 2), _do(A.ADD_BUYS)]},
            triggers={NEXT_TURN: {CURRENT: [_do(A.ADD_CARDS, 2), _do(A.ADD_BUYS)]}},
        ),
        "MerchantShip": Recipe(
            name="Merchant Ship",
            description="Now and at the start of your next turn: +$2.",
            actions={CURRENT: [_do(A.ADD_COINS, 2)]},
            triggers={NEXT_TURN: {CURRENT: [_do(A.ADD_COINS, 2)]}},
        ),
        "Tactician": Recipe(
            name="Tactician",
            description="Discard your hand. At the start of your next turn, +5 Cards, +1 Buy, +1 Action.",
            triggers={NEXT_TURN: {CURRENT: [
                _do(A.ADD_CARDS, 5), _do(A.ADD_BUYS), _do(A.ADD_ACTIONS),
            ]}},
        ),
    },
)


# ============================================================================
# Prosperity
# ============================================================================

PROSPERITY = RecipeSection(
    title="Prosperity",
    recipes={
        "Monument": Recipe(
            name="Monument",
            description="+$2, +1 VP",
            actions={CURRENT: [_do(A.ADD_COINS, 2), _do(A.ADD_VP_TOKENS)]},
        ),
        "Bishop": Recipe(
            name="Bishop",
            description="+$1, +1 VP",
            actions={CURRENT: [_do(A.ADD_COINS), _do(A.ADD_VP_TOKENS)]},
        ),
        "WorkersVillage": Recipe(
            name="Worker's Village",
            description="+1 Card, +2 Actions, +1 Buy",
            actions={CURRENT: [_do(A.ADD_CARDS), _do(A.ADD_ACTIONS, 2), _do(A.ADD_BUYS)]},
        ),
    },
)


# ============================================================================
# Renaissance
# ============================================================================

RENAISSANCE = RecipeSection(
    title="Renaissance",
    recipes={
        "Patron": Recipe(
            name="Patron",
            description="+1 Villager, +$2",
            actions={CURRENT: [_do(A.ADD_VILLAGERS), _do(A.ADD_COINS, 2)]},
        ),
        "Spices": Recipe(
            name="Spices",
            description="+$2, +1 Buy",
            actions={CURRENT: [_do(A.ADD_COINS, 2), _do(A.ADD_BUYS)]},
        ),
    },
)


# ============================================================================
# Rising Sun
# ============================================================================

RISING_SUN = RecipeSection(
    title="Rising Sun",
    recipes={
        "RemoveSun": Recipe(
            name="Remove Sun",
            description="Remove a Sun token from the Prophecy",
            actions={SELECTED: [_do(A.REMOVE_PROPHECY)]},
        ),
        "Daimyo": Recipe(
            name="Daimyo",
            description="+1 Card, +1 Action",
            actions={CURRENT: [_do(A.ADD_CARDS), _do(A.ADD_ACTIONS)]},
        ),
    },
)


# ============================================================================
# Catalog
# ============================================================================

RECIPES: dict[str, RecipeSection] = {
    "General": GENERAL,
    "Base": BASE,
    "Seaside": SEASIDE,
    "Prosperity": PROSPERITY,
    "Renaissance": RENAISSANCE,
    "RisingSun": RISING_SUN,
}

del A


def iter_recipes() -> Iterator[tuple[str, str, Recipe]]:
    """Yield (section key, recipe key, recipe) for the whole catalog."""
    for section_key, section in RECIPES.items():
        for key, recipe in section.recipes.items():
            yield section_key, key, recipe


def find_recipe(key: str) -> Recipe | None:
    """Look up a recipe by key."""
    for _, recipe_key, recipe in iter_recipes():
        if recipe_key == key:
            return recipe
    return None
