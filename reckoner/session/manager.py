"""
Session Manager - Holds the live state of each game being tracked.

LIFECYCLE:
1. A game is created from a roster -> new session holding the START_GAME state
2. During the game every change is a pure engine call:
   - append a log entry
   - apply a recipe
   - undo an entry
   The session swaps in the returned state as a whole
3. A game can be saved to and loaded from the GameStore at any time
4. Ending the session drops the state from memory

CONCURRENCY:
- The engine itself is pure and single-threaded
- A session is the only place state is replaced, and each replacement
  happens under the session's lock, so two requests for the same game
  cannot interleave
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, TypeVar
import logging
import threading
import time
import uuid

from ..engine_core.state import GameState

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Session:
    """
    One live game.

    `game_state` is replaced wholesale by `SessionManager.mutate`; it is
    never edited in place.
    """
    session_id: str
    created_at: float
    game_state: GameState
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    # Name of the save slot this game was loaded from or last saved to
    save_name: str | None = None

    def is_over(self) -> bool:
        return self.game_state.is_over


class SessionManager:
    """
    Tracks live sessions.

    Sessions are in memory only; the GameStore is the persistence layer.
    """

    def __init__(self):
        self._sessions: dict[str, Session] = {}
        self._registry_lock = threading.Lock()

    def create_session(self, game_state: GameState, save_name: str | None = None) -> Session:
        """Start tracking a game state under a fresh session id."""
        session = Session(
            session_id=str(uuid.uuid4()),
            created_at=time.time(),
            game_state=game_state,
            save_name=save_name,
        )
        with self._registry_lock:
            self._sessions[session.session_id] = session
        logger.info(
            "Created session %s with %d players", session.session_id, game_state.num_players
        )
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def mutate(self, session_id: str, fn: Callable[[GameState], tuple[GameState, T]]) -> T:
        """
        Replace a session's state with the result of `fn`.

        `fn` receives the current state and returns (new_state, result). If
        it raises, the session keeps its old state and the error propagates.

        Raises:
            KeyError: No session with that id
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise KeyError(session_id)
        with session.lock:
            new_state, result = fn(session.game_state)
            session.game_state = new_state
        return result

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """Drop a session. Returns False if there was no such session."""
        with self._registry_lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        logger.info("Ended session %s (%s)", session_id, reason)
        return True

    def list_sessions(self) -> list[str]:
        """List IDs of live sessions."""
        return list(self._sessions)

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        End finished sessions older than max_age.

        Games still in progress are kept regardless of age.
        """
        current_time = time.time()
        stale = [
            sid for sid, session in list(self._sessions.items())
            if current_time - session.created_at > max_age_seconds and session.is_over()
        ]
        for session_id in stale:
            self.end_session(session_id, reason="stale")
        return len(stale)

