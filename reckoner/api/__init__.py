"""
API Module - HTTP interface to the tracker.

Exposes the engine via REST API. A client:
1. Starts a game from a roster and options
2. Appends log entries or applies recipes as things happen at the table
3. Reads the derived state, log and statistics
4. Undoes entries, saves and loads games

The FastAPI app lives in `reckoner.api.app` (`create_app`); it is not
imported here so the wire schemas can be used without FastAPI.
"""

from .schemas import (
    # Wire form
    GameRaw,
    LogEntryRaw,
    TurnStatisticsRaw,
    convert_game_raw_to_game,
    convert_game_to_raw,
    parse_timestamp,
    # Requests
    AddLogEntryRequest,
    ApplyRecipeRequest,
    CreateGameRequest,
    LoadGameRequest,
    SaveGameRequest,
    # Responses
    ErrorResponse,
    GameStateResponse,
    ErrorCode,
)
from .service import APIService

__all__ = [
    # Wire form
    "GameRaw",
    "LogEntryRaw",
    "TurnStatisticsRaw",
    "convert_game_raw_to_game",
    "convert_game_to_raw",
    "parse_timestamp",
    # Requests
    "AddLogEntryRequest",
    "ApplyRecipeRequest",
    "CreateGameRequest",
    "LoadGameRequest",
    "SaveGameRequest",
    # Responses
    "ErrorResponse",
    "GameStateResponse",
    "ErrorCode",
    # Service
    "APIService",
]
