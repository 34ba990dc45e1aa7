"""
FastAPI Application - REST API for the score tracker.

Endpoints:
    GET    /api/v1/health                          Health check
    POST   /api/v1/games                           Start a game
    GET    /api/v1/games                           List live games
    GET    /api/v1/games/{id}                      Get derived game state
    DELETE /api/v1/games/{id}                      Stop tracking a game
    POST   /api/v1/games/{id}/log                  Append a log entry
    GET    /api/v1/games/{id}/log                  Read the log
    POST   /api/v1/games/{id}/recipes              Apply a recipe (grouped action)
    GET    /api/v1/games/{id}/log/{index}/undoable Check whether an entry can be undone
    POST   /api/v1/games/{id}/log/{index}/undo     Undo an entry and its group
    GET    /api/v1/games/{id}/statistics           Scoreboard and turn history
    POST   /api/v1/games/{id}/save                 Save to the game store
    POST   /api/v1/games/load                      Load a saved game
    GET    /api/v1/saves                           List saved games
    DELETE /api/v1/saves/{name}                    Delete a saved game
    GET    /api/v1/recipes                         Recipe catalog

State is never sent by the client. Every change is a log entry (or a
recipe, which becomes a linked group of entries), and the state returned
is derived from the log.
"""

from typing import Optional, Union
import os

# Environment configuration
RECKONER_ENV = os.getenv("RECKONER_ENV", "development")
RECKONER_SAVE_DIR = os.getenv("RECKONER_SAVE_DIR", None)
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import APIService
    from .schemas import (
        # Request models
        AddLogEntryRequest,
        ApplyRecipeRequest,
        CreateGameRequest,
        LoadGameRequest,
        SaveGameRequest,
        # Response models
        DeleteGameResponse,
        ErrorResponse,
        GameListResponse,
        GameStateResponse,
        HealthResponse,
        LogResponse,
        RecipeListResponse,
        SavedGameListResponse,
        SaveResponse,
        StatisticsResponse,
        UndoCheckResponse,
        UndoResponse,
        # Enums
        ErrorCode,
    )

    app = FastAPI(
        title="Reckoner API",
        description="""
Dominion score tracker - an event-sourced game log with undo.

## How state works

The game log is the only source of truth. Each request appends entries
(or removes them, for undo) and the response carries the state derived by
replaying the log.

## Error Codes

| Code | HTTP | Description |
|------|------|-------------|
| `GAME_NOT_FOUND` | 404 | No live game with that id |
| `SAVE_NOT_FOUND` | 404 | No saved game with that name |
| `INVALID_ACTION` | 400 | The entry was rejected |
| `INVALID_RECIPE` | 400 | Unknown recipe key |
| `VALIDATION_ERROR` | 400 | Bad roster or request |
| `INVARIANT_VIOLATION` | 409 | A counter or pile would go negative |
| `GAME_PAUSED` | 409 | Only unpausing is allowed |
| `GAME_ENDED` | 409 | The game is over |
| `UNDO_REJECTED` | 409 | The entry cannot be undone |
        """,
        version="0.2.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    if service is None:
        service = APIService()
        if RECKONER_SAVE_DIR:
            from ..session.storage import GameStore
            service.store = GameStore(RECKONER_SAVE_DIR)
    api_service = service

    # =========================================================================
    # Error helpers
    # =========================================================================

    status_codes = {
        ErrorCode.GAME_NOT_FOUND: 404,
        ErrorCode.SAVE_NOT_FOUND: 404,
        ErrorCode.INVARIANT_VIOLATION: 409,
        ErrorCode.GAME_PAUSED: 409,
        ErrorCode.GAME_ENDED: 409,
        ErrorCode.UNDO_REJECTED: 409,
        ErrorCode.INTERNAL_ERROR: 500,
    }

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code or status_codes.get(error_code, 400),
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def respond(result):
        """Pass a model through, or turn an ErrorResponse into a JSON error."""
        if isinstance(result, ErrorResponse):
            return make_error_response(result.error_code, result.error, details=result.details)
        return result

    error_responses = {
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    }

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games",
        response_model=GameStateResponse,
        status_code=201,
        responses={400: {"model": ErrorResponse, "description": "Invalid roster or options"}},
        tags=["Games"],
        summary="Start a new game",
    )
    async def create_game(request: CreateGameRequest) -> Union[GameStateResponse, JSONResponse]:
        """
        Start a game with 2-6 players.

        The game begins with a single START_GAME entry in its log.
        """
        return respond(api_service.create_game(request))

    @app.get(
        "/api/v1/games",
        response_model=GameListResponse,
        tags=["Games"],
        summary="List live games",
    )
    async def list_games() -> GameListResponse:
        games = api_service.list_games()
        return GameListResponse(games=games, count=len(games))

    @app.get(
        "/api/v1/games/{game_id}",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Get game state",
    )
    async def get_game(game_id: str) -> Union[GameStateResponse, JSONResponse]:
        """Get the state derived from the game's log."""
        return respond(api_service.get_game(game_id))

    @app.delete(
        "/api/v1/games/{game_id}",
        response_model=DeleteGameResponse,
        tags=["Games"],
        summary="Stop tracking a game",
    )
    async def end_game(game_id: str) -> DeleteGameResponse:
        """Drop a live game from memory. Saved copies are kept."""
        success = api_service.end_game(game_id)
        return DeleteGameResponse(success=success, game_id=game_id)

    # =========================================================================
    # Log Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games/{game_id}/log",
        response_model=GameStateResponse,
        responses=error_responses,
        tags=["Log"],
        summary="Append a log entry",
    )
    async def add_log_entry(
        game_id: str, request: AddLogEntryRequest
    ) -> Union[GameStateResponse, JSONResponse]:
        """
        Record one thing that happened at the table.

        `action` is the action's template value, e.g. `Added {COUNT} Actions`
        or `Next Turn`. A rejected entry leaves the game unchanged.
        """
        return respond(api_service.add_log_entry(game_id, request))

    @app.get(
        "/api/v1/games/{game_id}/log",
        response_model=LogResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Log"],
        summary="Read the game log",
    )
    async def get_log(game_id: str) -> Union[LogResponse, JSONResponse]:
        return respond(api_service.get_log(game_id))

    @app.post(
        "/api/v1/games/{game_id}/recipes",
        response_model=GameStateResponse,
        responses=error_responses,
        tags=["Log"],
        summary="Apply a recipe",
    )
    async def apply_recipe(
        game_id: str, request: ApplyRecipeRequest
    ) -> Union[GameStateResponse, JSONResponse]:
        """
        Apply a catalog recipe as one grouped action.

        Every entry the recipe produces is linked to one marker entry, so the
        whole group is undone together. Deferred effects are queued for the
        target player's next turn.
        """
        return respond(api_service.apply_recipe(game_id, request))

    # =========================================================================
    # Undo Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/games/{game_id}/log/{index}/undoable",
        response_model=UndoCheckResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Undo"],
        summary="Check whether an entry can be undone",
    )
    async def can_undo(game_id: str, index: int) -> Union[UndoCheckResponse, JSONResponse]:
        return respond(api_service.can_undo(game_id, index))

    @app.post(
        "/api/v1/games/{game_id}/log/{index}/undo",
        response_model=UndoResponse,
        responses=error_responses,
        tags=["Undo"],
        summary="Undo an entry",
    )
    async def undo(game_id: str, index: int) -> Union[UndoResponse, JSONResponse]:
        """
        Remove an entry and every entry linked to it, then replay.

        Rejected (409) when the remaining log would not replay, e.g. undoing
        a gain that later entries depend on.
        """
        return respond(api_service.undo(game_id, index))

    # =========================================================================
    # Statistics
    # =========================================================================

    @app.get(
        "/api/v1/games/{game_id}/statistics",
        response_model=StatisticsResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Scoreboard and turn history",
    )
    async def get_statistics(game_id: str) -> Union[StatisticsResponse, JSONResponse]:
        return respond(api_service.get_statistics(game_id))

    # =========================================================================
    # Save / Load Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games/load",
        response_model=GameStateResponse,
        status_code=201,
        responses=error_responses,
        tags=["Saves"],
        summary="Load a saved game",
    )
    async def load_game(request: LoadGameRequest) -> Union[GameStateResponse, JSONResponse]:
        """Replay a saved game into a new live game."""
        return respond(api_service.load_game(request))

    @app.post(
        "/api/v1/games/{game_id}/save",
        response_model=SaveResponse,
        responses=error_responses,
        tags=["Saves"],
        summary="Save a game",
    )
    async def save_game(
        game_id: str, request: SaveGameRequest
    ) -> Union[SaveResponse, JSONResponse]:
        return respond(api_service.save_game(game_id, request))

    @app.get(
        "/api/v1/saves",
        response_model=SavedGameListResponse,
        tags=["Saves"],
        summary="List saved games",
    )
    async def list_saved() -> SavedGameListResponse:
        saves = api_service.list_saved()
        return SavedGameListResponse(saves=saves, count=len(saves))

    @app.delete(
        "/api/v1/saves/{name}",
        response_model=DeleteGameResponse,
        tags=["Saves"],
        summary="Delete a saved game",
    )
    async def delete_saved(name: str) -> DeleteGameResponse:
        return DeleteGameResponse(success=api_service.delete_saved(name), game_id=name)

    # =========================================================================
    # Recipes
    # =========================================================================

    @app.get(
        "/api/v1/recipes",
        response_model=RecipeListResponse,
        tags=["Recipes"],
        summary="Recipe catalog",
    )
    async def list_recipes() -> RecipeListResponse:
        return api_service.list_recipes()

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(status="healthy", service="reckoner", version="0.2.0")

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Reckoner API",
            "version": "0.2.0",
            "environment": RECKONER_ENV,
            "docs": "/api/docs",
            "health": "/api/v1/health",
        }

    return app


# For running directly: uvicorn reckoner.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass
