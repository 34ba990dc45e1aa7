"""
Session Module - Live games and saved games.

A session represents one game being tracked:
- Created when a game is started or loaded
- Holds the current derived game state
- Replaces that state only through engine calls, one at a time

Saved games live in the GameStore as JSON in the raw wire form. Loading
replays the saved log, so a save can never smuggle in state the log does
not justify.
"""

from .manager import SessionManager, Session
from .storage import GameStore, SaveNotFoundError

__all__ = [
    "SessionManager",
    "Session",
    "GameStore",
    "SaveNotFoundError",
]
