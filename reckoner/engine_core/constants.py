"""
Game constants - player bounds, sentinels and base-set card values.
"""

VERSION_NUMBER = "0.2.0"

MIN_PLAYERS = 2
MAX_PLAYERS = 6

# Sentinels
NO_PLAYER = -1
NOT_PRESENT = -1  # supply pile or mat not in this game

# Base set
ESTATE_VP = 1
DUCHY_VP = 3
PROVINCE_VP = 6
CURSE_VP = -1
COPPER_COUNT = 60
SILVER_COUNT = 40
GOLD_COUNT = 30
HAND_STARTING_ESTATES = 3
HAND_STARTING_COPPERS = 7

# Prosperity
PLATINUM_TOTAL_COUNT = 12
COLONY_TOTAL_COUNT_2P = 8
COLONY_TOTAL_COUNT = 12
COLONY_VP = 10

DEFAULT_PLAYER_COLORS = [
    "#e57373",
    "#64b5f6",
    "#81c784",
    "#ffd54f",
    "#ba68c8",
    "#4db6ac",
]
