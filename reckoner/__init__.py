"""
Reckoner - Dominion game state tracker

An event-sourced engine that tracks a tabletop Dominion game from an
append-only log. It provides:
- Turn counters, mats, victory cards and supply piles derived from the log
- Recipes that apply a card's effects as one linked group
- Deferred effects that fire when a player's next turn begins
- Undo of any past entry by replaying the log without it
"""

__version__ = "0.2.0"
