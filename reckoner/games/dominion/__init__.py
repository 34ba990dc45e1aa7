"""
Dominion - Card data for the tracker.

Dominion is a deck-building game. The tracker does not model decks; it
records the counters a card changes (actions, buys, coins, mats, victory
cards) so players can keep score at the table.

This module contains:
- The recipe catalog: cards expressed as grouped actions
"""

from .recipes import RECIPES, RecipeSection, find_recipe, iter_recipes

__all__ = [
    "RECIPES",
    "RecipeSection",
    "find_recipe",
    "iter_recipes",
]
