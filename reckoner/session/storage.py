"""
Game Store - Saves games to local disk as JSON.

The store:
- Keeps one JSON file per save name, in the raw wire form (GameRaw)
- Needs no database
- Never stores derived state on its own: a saved game is rebuilt and
  checked by replaying its log on load

Usage:
    store = GameStore(save_dir="~/.reckoner/games")
    store.save("friday", state)
    state = store.load("friday")
"""

from __future__ import annotations
import logging
import re
from pathlib import Path

from ..api.schemas import GameRaw, convert_game_raw_to_game, convert_game_to_raw
from ..engine_core.replay import reconstruct_game_state
from ..engine_core.state import GameState

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


class SaveNotFoundError(KeyError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No saved game named {name!r}")


class GameStore:
    """File-based store for saved games."""

    def __init__(self, save_dir: str | Path | None = None):
        if save_dir is None:
            save_dir = Path.home() / ".reckoner" / "games"
        self.save_dir = Path(save_dir).expanduser()

        # Ensure save directory exists
        self.save_dir.mkdir(parents=True, exist_ok=True)

    def save(self, name: str, state: GameState) -> Path:
        """Write a game under `name`, replacing any earlier save with that name."""
        path = self._get_save_path(name)
        raw = convert_game_to_raw(state)
        path.write_text(raw.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        logger.info("Saved game %r (%d log entries) to %s", name, len(state.log), path)
        return path

    def load(self, name: str) -> GameState:
        """
        Read a saved game.

        The log is replayed against the saved setup and the replayed state is
        returned. Only the queued and skipped deferred actions are taken from the file.

        Raises:
            SaveNotFoundError: Nothing is saved under `name`
            InvalidTimestampError: A saved timestamp does not parse
            ReckonerError: The saved log does not replay
        """
        path = self._get_save_path(name)
        if not path.exists():
            raise SaveNotFoundError(name)

        raw = GameRaw.model_validate_json(path.read_text(encoding="utf-8"))
        return self.restore(raw)

    @staticmethod
    def restore(raw: GameRaw) -> GameState:
        saved = convert_game_raw_to_game(raw)
        if not saved.log:
            return saved
        state = reconstruct_game_state(saved.to_setup(), saved.log)
        return state._copy_with(
            pending_grouped_actions=saved.pending_grouped_actions,
            skipped_grouped_actions=saved.skipped_grouped_actions,
            game_version=saved.game_version,
        )

    def delete(self, name: str) -> bool:
        path = self._get_save_path(name)
        if not path.exists():
            return False
        path.unlink()
        logger.info("Deleted saved game %r", name)
        return True

    def list_saved(self) -> list[str]:
        """Names of all saved games, sorted."""
        if not self.save_dir.exists():
            return []
        return sorted(f.stem for f in self.save_dir.glob("*.json"))

    def _get_save_path(self, name: str) -> Path:
        safe_name = _UNSAFE_CHARS.sub("_", name.strip()).strip(".")
        if not safe_name:
            raise ValueError(f"Invalid save name: {name!r}")
        return self.save_dir / f"{safe_name}.json"
