"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine calls
2. Manages sessions (one per live game)
3. Saves and loads games through the GameStore
4. Turns engine errors into ErrorResponse objects

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable
import logging

from .schemas import (
    # Requests
    AddLogEntryRequest,
    ApplyRecipeRequest,
    CreateGameRequest,
    LoadGameRequest,
    SaveGameRequest,
    # Responses
    ErrorResponse,
    GameStateResponse,
    LogEntryInfo,
    LogResponse,
    RankingInfo,
    RecipeInfo,
    RecipeListResponse,
    SaveResponse,
    StatisticsResponse,
    UndoCheckResponse,
    UndoResponse,
    # Shared
    PlayerInfo,
    # Enums
    ErrorCode,
    # Conversion
    convert_options_raw,
    convert_statistics_to_raw,
    format_timestamp,
)
from ..engine_core.action import GameLogAction
from ..engine_core.errors import (
    GameEndedError,
    GamePausedError,
    InvalidPlayerIndexError,
    InvalidRecipeError,
    InvariantViolationError,
    MaxPlayersError,
    MinPlayersError,
    ReckonerError,
)
from ..engine_core.grouped import apply_grouped_action, describe_pending_action
from ..engine_core.log import add_log_entry, log_entry_to_string
from ..engine_core.setup import get_next_available_player_color, new_game_state
from ..engine_core.state import GameSetup, GameState, PlayerSetup
from ..engine_core.statistics import calculate_victory_points, rank_players
from ..engine_core.timeline import (
    calculate_average_turn_duration,
    calculate_game_duration,
    calculate_turn_durations,
    format_time_span,
    get_game_turn_count,
)
from ..engine_core.undo import can_undo_action, undo_action
from ..games.dominion.recipes import find_recipe, iter_recipes
from ..session.manager import SessionManager

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _game_not_found(game_id: str) -> ErrorResponse:
    return ErrorResponse(
        error="Game not found",
        error_code=ErrorCode.GAME_NOT_FOUND,
        details={"game_id": game_id},
    )


def error_from_exception(error: Exception) -> ErrorResponse:
    """Map an engine error to a structured error response."""
    if isinstance(error, GamePausedError):
        code = ErrorCode.GAME_PAUSED
    elif isinstance(error, GameEndedError):
        code = ErrorCode.GAME_ENDED
    elif isinstance(error, InvariantViolationError):
        code = ErrorCode.INVARIANT_VIOLATION
    elif isinstance(error, InvalidRecipeError):
        code = ErrorCode.INVALID_RECIPE
    elif isinstance(error, (MinPlayersError, MaxPlayersError, InvalidPlayerIndexError)):
        code = ErrorCode.VALIDATION_ERROR
    elif isinstance(error, ReckonerError):
        code = ErrorCode.INVALID_ACTION
    else:
        code = ErrorCode.INTERNAL_ERROR
    return ErrorResponse(
        error=str(error),
        error_code=code,
        details={"error_type": type(error).__name__},
    )


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        # Start a game
        game = service.create_game(request)

        # Record what happened at the table
        game = service.add_log_entry(game.game_id, AddLogEntryRequest(...))
        game = service.apply_recipe(game.game_id, ApplyRecipeRequest(recipe_key="Village"))

        # Take it back
        result = service.undo(game.game_id, index)
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # GameStore; created on first save/load so building the service touches no disk
    store: Any = None

    clock: Callable[[], datetime] = _utc_now

    def get_store(self):
        if self.store is None:
            from ..session.storage import GameStore
            self.store = GameStore()
        return self.store

    # =========================================================================
    # Games
    # =========================================================================

    def create_game(self, request: CreateGameRequest) -> GameStateResponse | ErrorResponse:
        """
        Start a new game and open a session for it.
        """
        try:
            used_colors = [p.color for p in request.players if p.color]
            players = []
            for p in request.players:
                color = p.color
                if not color:
                    color = get_next_available_player_color(used_colors)
                    used_colors.append(color)
                players.append(PlayerSetup(name=p.name, color=color))

            setup = GameSetup(
                players=tuple(players),
                options=convert_options_raw(request.options),
                first_player_index=request.first_player_index,
                great_leader_prophecy=request.great_leader_prophecy,
                flag_bearer_enabled=request.flag_bearer_enabled,
                track_potions=request.track_potions,
            )
            state = new_game_state(setup, self.clock())
        except ReckonerError as e:
            logger.warning("Rejected new game: %s", e)
            return error_from_exception(e)
        except ValueError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.VALIDATION_ERROR)

        session = self.session_manager.create_session(state)
        return self._build_game_state(session.session_id, state)

    def get_game(self, game_id: str) -> GameStateResponse | ErrorResponse:
        """
        Get the current derived state of a game.
        """
        session = self.session_manager.get_session(game_id)
        if not session:
            return _game_not_found(game_id)
        return self._build_game_state(game_id, session.game_state)

    def end_game(self, game_id: str) -> bool:
        """
        Stop tracking a game. Saved copies are not touched.
        """
        return self.session_manager.end_session(game_id, reason="user_ended")

    def list_games(self) -> list[str]:
        """
        List live game IDs.
        """
        return self.session_manager.list_sessions()

    # =========================================================================
    # Log
    # =========================================================================

    def add_log_entry(
        self, game_id: str, request: AddLogEntryRequest
    ) -> GameStateResponse | ErrorResponse:
        """
        Append one entry for the current moment.
        """
        def append(state: GameState):
            action = GameLogAction.from_value(request.action)
            new_state, entry = add_log_entry(
                state,
                action,
                player_index=request.player_index,
                now=self.clock(),
                count=request.count,
                correction=request.correction,
                trash=request.trash,
            )
            return new_state, entry

        return self._mutate(game_id, append)

    def apply_recipe(
        self, game_id: str, request: ApplyRecipeRequest
    ) -> GameStateResponse | ErrorResponse:
        """
        Apply a catalog recipe as one linked group.
        """
        recipe = find_recipe(request.recipe_key)
        if recipe is None:
            return ErrorResponse(
                error=f"Invalid recipe key: {request.recipe_key}",
                error_code=ErrorCode.INVALID_RECIPE,
            )

        def apply(state: GameState):
            new_state = apply_grouped_action(
                state, recipe, self.clock(), recipe_key=request.recipe_key
            )
            return new_state, None

        return self._mutate(game_id, apply)

    def get_log(self, game_id: str) -> LogResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if not session:
            return _game_not_found(game_id)

        entries = [
            LogEntryInfo(
                index=index,
                id=entry.id,
                description=log_entry_to_string(entry),
                action=entry.action.value,
                timestamp=format_timestamp(entry.timestamp),
                turn=entry.turn,
                player_index=entry.player_index,
                count=entry.count,
                correction=entry.correction,
                linked_action_id=entry.linked_action_id,
            )
            for index, entry in enumerate(session.game_state.log)
        ]
        return LogResponse(game_id=game_id, entries=entries, count=len(entries))

    # =========================================================================
    # Undo
    # =========================================================================

    def can_undo(self, game_id: str, index: int) -> UndoCheckResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if not session:
            return _game_not_found(game_id)
        return UndoCheckResponse(
            game_id=game_id,
            index=index,
            can_undo=can_undo_action(session.game_state, index),
        )

    def undo(self, game_id: str, index: int) -> UndoResponse | ErrorResponse:
        """
        Remove a log entry and its linked group.

        A rejected undo leaves the game as it was.
        """
        def undo(state: GameState):
            result = undo_action(state, index)
            return result.state, result

        try:
            result = self.session_manager.mutate(game_id, undo)
        except KeyError:
            return _game_not_found(game_id)
        if not result.success:
            return ErrorResponse(
                error=f"Log entry {index} cannot be undone",
                error_code=ErrorCode.UNDO_REJECTED,
                details={"game_id": game_id, "index": index},
            )
        return UndoResponse(
            success=True,
            game=self._build_game_state(game_id, result.state),
        )

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_statistics(self, game_id: str) -> StatisticsResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if not session:
            return _game_not_found(game_id)

        state = session.game_state
        rankings = [
            RankingInfo(
                index=ranked.index,
                name=state.players[ranked.index].name,
                score=ranked.score,
                rank=ranked.rank,
            )
            for ranked in rank_players(state.players)
        ]
        durations = calculate_turn_durations(state.log)
        return StatisticsResponse(
            game_id=game_id,
            rankings=rankings,
            turns=[convert_statistics_to_raw(s) for s in state.turn_statistics_cache],
            turn_count=get_game_turn_count(state.log),
            average_turn_duration=calculate_average_turn_duration(durations),
            game_duration=format_time_span(calculate_game_duration(state.log, self.clock())),
        )

    # =========================================================================
    # Save / Load
    # =========================================================================

    def save_game(self, game_id: str, request: SaveGameRequest) -> SaveResponse | ErrorResponse:
        session = self.session_manager.get_session(game_id)
        if not session:
            return _game_not_found(game_id)

        def save(state: GameState):
            new_state, _ = add_log_entry(state, GameLogAction.SAVE_GAME, now=self.clock())
            self.get_store().save(request.name, new_state)
            return new_state, None

        try:
            self.session_manager.mutate(game_id, save)
        except KeyError:
            return _game_not_found(game_id)
        except ReckonerError as e:
            return error_from_exception(e)
        except ValueError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.VALIDATION_ERROR)
        session.save_name = request.name
        return SaveResponse(success=True, name=request.name, game_id=game_id)

    def load_game(self, request: LoadGameRequest) -> GameStateResponse | ErrorResponse:
        """
        Load a saved game into a new session and log LOAD_GAME.
        """
        from ..session.storage import SaveNotFoundError

        try:
            state = self.get_store().load(request.name)
            state, _ = add_log_entry(state, GameLogAction.LOAD_GAME, now=self.clock())
        except SaveNotFoundError as e:
            return ErrorResponse(
                error=str(e.args[0]),
                error_code=ErrorCode.SAVE_NOT_FOUND,
                details={"name": request.name},
            )
        except ReckonerError as e:
            logger.warning("Could not load saved game %r: %s", request.name, e)
            return error_from_exception(e)

        session = self.session_manager.create_session(state, save_name=request.name)
        return self._build_game_state(session.session_id, state)

    def list_saved(self) -> list[str]:
        return self.get_store().list_saved()

    def delete_saved(self, name: str) -> bool:
        return self.get_store().delete(name)

    # =========================================================================
    # Recipes
    # =========================================================================

    def list_recipes(self) -> RecipeListResponse:
        recipes = [
            RecipeInfo(
                section=section,
                key=key,
                name=recipe.name,
                description=recipe.description,
                has_triggers=bool(recipe.triggers),
            )
            for section, key, recipe in iter_recipes()
        ]
        return RecipeListResponse(recipes=recipes, count=len(recipes))

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _mutate(self, game_id: str, fn) -> GameStateResponse | ErrorResponse:
        """Run an engine call against a session; errors leave the session unchanged."""
        try:
            self.session_manager.mutate(game_id, fn)
        except KeyError:
            return _game_not_found(game_id)
        except ReckonerError as e:
            logger.info("Rejected change to game %s: %s", game_id, e)
            return error_from_exception(e)
        return self.get_game(game_id)

    def _build_game_state(self, game_id: str, state: GameState) -> GameStateResponse:
        """Convert GameState to GameStateResponse."""
        players = [
            PlayerInfo(
                index=index,
                name=player.name,
                color=player.color,
                is_current_turn=index == state.current_player_index,
                is_selected=index == state.selected_player_index,
                victory_points=calculate_victory_points(player),
                turn=asdict(player.turn),
                new_turn=asdict(player.new_turn),
                mats=asdict(player.mats),
                victory=asdict(player.victory),
            )
            for index, player in enumerate(state.players)
        ]
        prophecy = None
        if state.options.expansions.rising_sun:
            prophecy = state.expansions.rising_sun.prophecy_suns

        return GameStateResponse(
            game_id=game_id,
            phase=state.phase.value,
            current_turn=state.current_turn,
            current_player_index=state.current_player_index,
            selected_player_index=state.selected_player_index,
            is_paused=state.is_paused,
            players=players,
            supply=state.supply.to_dict(),
            prophecy_suns=prophecy,
            log_length=len(state.log),
            pending_actions=[describe_pending_action(d) for d in state.pending_grouped_actions],
            game_version=state.game_version,
        )
