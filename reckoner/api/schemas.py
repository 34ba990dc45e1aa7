"""
Pydantic Schemas for API - Wire models and request/response contracts.

Two families of models live here:
1. Raw wire models (GameRaw and friends). This is the form a saved game
   takes on disk and over HTTP. Keys are camelCase, timestamps are ISO-8601
   strings, action kinds are their display-template values.
2. Request/response models for the HTTP endpoints (snake_case, OpenAPI).

Converting raw -> engine never coerces a bad timestamp: it raises
InvalidTimestampError with the offending value.

Error Codes:
- GAME_NOT_FOUND: No live game with that id
- INVALID_ACTION: The entry was rejected by the reducer
- INVARIANT_VIOLATION: A counter, pile or prophecy would go negative
- GAME_PAUSED / GAME_ENDED: The game does not accept that entry now
- UNDO_REJECTED: The entry cannot be undone
- INVALID_RECIPE: Unknown recipe key
- SAVE_NOT_FOUND: No saved game with that name
"""

from dataclasses import asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from ..engine_core.action import GameLogAction, LogEntry, LogEntryDraft
from ..engine_core.constants import NO_PLAYER, NOT_PRESENT, VERSION_NUMBER
from ..engine_core.errors import InvalidTimestampError
from ..engine_core.expression import CountExpression
from ..engine_core.state import (
    AlchemyState,
    ExpansionState,
    ExpansionsEnabled,
    GameOptions,
    GamePhase,
    GameState,
    GameSupply,
    MatCounters,
    MatsEnabled,
    PlayerState,
    RenaissanceState,
    RisingSunState,
    TurnCounters,
    TurnStatistics,
    VictoryCounters,
)


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    INVALID_ACTION = "INVALID_ACTION"
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"
    GAME_PAUSED = "GAME_PAUSED"
    GAME_ENDED = "GAME_ENDED"
    UNDO_REJECTED = "UNDO_REJECTED"
    INVALID_RECIPE = "INVALID_RECIPE"
    SAVE_NOT_FOUND = "SAVE_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Raw Wire Models
# =============================================================================

class RawModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class TurnCountersRaw(RawModel):
    actions: int = 1
    buys: int = 1
    coins: int = 0
    cards: int = 0
    gains: int = 0
    discard: int = 0
    potions: int = 0


class MatCountersRaw(RawModel):
    coffers: int = 0
    villagers: int = 0
    debt: int = 0
    favors: int = 0


class VictoryCountersRaw(RawModel):
    estates: int = 0
    duchies: int = 0
    provinces: int = 0
    colonies: int = 0
    curses: int = 0
    tokens: int = 0
    other: int = 0


class PlayerRaw(RawModel):
    name: str
    color: str
    turn: TurnCountersRaw = Field(default_factory=TurnCountersRaw)
    new_turn: TurnCountersRaw = Field(default_factory=TurnCountersRaw)
    mats: MatCountersRaw = Field(default_factory=MatCountersRaw)
    victory: VictoryCountersRaw = Field(default_factory=VictoryCountersRaw)


class GameSupplyRaw(RawModel):
    coppers: int = 0
    silvers: int = 0
    golds: int = 0
    platinums: int = NOT_PRESENT
    estates: int = 0
    duchies: int = 0
    provinces: int = 0
    colonies: int = NOT_PRESENT
    curses: int = 0


class ExpansionsEnabledRaw(RawModel):
    alchemy: bool = False
    prosperity: bool = False
    renaissance: bool = False
    rising_sun: bool = False


class MatsEnabledRaw(RawModel):
    coffers_villagers: bool = False
    debt: bool = False
    favors: bool = False


class GameOptionsRaw(RawModel):
    curses: bool = False
    expansions: ExpansionsEnabledRaw = Field(default_factory=ExpansionsEnabledRaw)
    mats: MatsEnabledRaw = Field(default_factory=MatsEnabledRaw)
    track_card_counts: bool = True
    track_card_gains: bool = True
    track_discard: bool = True


class RisingSunRaw(RawModel):
    prophecy_suns: int = NOT_PRESENT
    great_leader_prophecy: bool = False


class RenaissanceRaw(RawModel):
    flag_bearer_enabled: bool = False
    flag_bearer: Optional[int] = None


class AlchemyRaw(RawModel):
    track_potions: bool = False


class ExpansionStateRaw(RawModel):
    alchemy: AlchemyRaw = Field(default_factory=AlchemyRaw)
    renaissance: RenaissanceRaw = Field(default_factory=RenaissanceRaw)
    rising_sun: RisingSunRaw = Field(default_factory=RisingSunRaw)


class LogEntryRaw(RawModel):
    """A log entry with its timestamp as an ISO-8601 string."""
    id: str
    timestamp: str
    action: str = Field(..., description="Display template, e.g. 'Added {COUNT} Actions'")
    player_index: int = NO_PLAYER
    current_player_index: int = 0
    turn: int = 1
    game_time: int = 0
    count: Optional[int] = None
    correction: bool = False
    trash: bool = False
    linked_action_id: Optional[str] = None
    action_name: Optional[str] = None
    action_key: Optional[str] = None
    prev_player_index: Optional[int] = None
    player_turn_details: Optional[list[TurnCountersRaw]] = None


class PendingActionRaw(RawModel):
    """A deferred recipe action waiting for its turn."""
    action: str
    player_index: int = NO_PLAYER
    current_player_index: Optional[int] = None
    turn: Optional[int] = None
    count: Optional[int] = None
    count_expression: Optional[dict[str, Any]] = None
    linked_action_id: Optional[str] = None
    action_name: Optional[str] = None
    trash: bool = False


class TurnStatisticsRaw(RawModel):
    turn: int
    player_index: int
    start: str
    end: str
    turn_duration: int
    supply: GameSupplyRaw
    player_scores: dict[int, int] = Field(default_factory=dict)
    player_actions: dict[int, int] = Field(default_factory=dict)
    player_buys: dict[int, int] = Field(default_factory=dict)
    player_coins: dict[int, int] = Field(default_factory=dict)
    player_cards_drawn: dict[int, int] = Field(default_factory=dict)
    player_gains: dict[int, int] = Field(default_factory=dict)
    player_discards: dict[int, int] = Field(default_factory=dict)
    player_coffers: dict[int, int] = Field(default_factory=dict)
    player_villagers: dict[int, int] = Field(default_factory=dict)
    player_debt: dict[int, int] = Field(default_factory=dict)
    player_favors: dict[int, int] = Field(default_factory=dict)
    player_potions: Optional[dict[int, int]] = None


class GameRaw(RawModel):
    """A whole game as it is saved."""
    players: list[PlayerRaw]
    options: GameOptionsRaw = Field(default_factory=GameOptionsRaw)
    supply: GameSupplyRaw = Field(default_factory=GameSupplyRaw)
    expansions: ExpansionStateRaw = Field(default_factory=ExpansionStateRaw)
    phase: str = GamePhase.SETUP.value
    current_turn: int = 1
    current_player_index: int = 0
    selected_player_index: int = 0
    first_player_index: int = 0
    log: list[LogEntryRaw] = Field(default_factory=list)
    turn_statistics_cache: list[TurnStatisticsRaw] = Field(default_factory=list)
    pending_grouped_actions: list[PendingActionRaw] = Field(default_factory=list)
    skipped_grouped_actions: list[PendingActionRaw] = Field(default_factory=list)
    game_version: str = VERSION_NUMBER


# =============================================================================
# Raw <-> Engine Conversion
# =============================================================================

def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO-8601 timestamp.

    A trailing 'Z' is accepted. Timestamps without an offset are taken as UTC.
    """
    if not isinstance(value, str) or not value:
        raise InvalidTimestampError(value)
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise InvalidTimestampError(value) from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def convert_log_entry_raw(raw: LogEntryRaw) -> LogEntry:
    details = None
    if raw.player_turn_details is not None:
        details = tuple(TurnCounters(**d.model_dump()) for d in raw.player_turn_details)
    return LogEntry(
        id=raw.id,
        timestamp=parse_timestamp(raw.timestamp),
        action=GameLogAction.from_value(raw.action),
        player_index=raw.player_index,
        current_player_index=raw.current_player_index,
        turn=raw.turn,
        game_time=raw.game_time,
        count=raw.count,
        correction=raw.correction,
        trash=raw.trash,
        linked_action_id=raw.linked_action_id,
        action_name=raw.action_name,
        action_key=raw.action_key,
        prev_player_index=raw.prev_player_index,
        player_turn_details=details,
    )


def convert_log_entry_to_raw(entry: LogEntry) -> LogEntryRaw:
    details = None
    if entry.player_turn_details is not None:
        details = [TurnCountersRaw(**asdict(d)) for d in entry.player_turn_details]
    return LogEntryRaw(
        id=entry.id,
        timestamp=format_timestamp(entry.timestamp),
        action=entry.action.value,
        player_index=entry.player_index,
        current_player_index=entry.current_player_index,
        turn=entry.turn,
        game_time=entry.game_time,
        count=entry.count,
        correction=entry.correction,
        trash=entry.trash,
        linked_action_id=entry.linked_action_id,
        action_name=entry.action_name,
        action_key=entry.action_key,
        prev_player_index=entry.prev_player_index,
        player_turn_details=details,
    )


def _convert_pending_raw(raw: PendingActionRaw) -> LogEntryDraft:
    expression = None
    if raw.count_expression is not None:
        expression = CountExpression.from_dict(raw.count_expression)
    return LogEntryDraft(
        action=GameLogAction.from_value(raw.action),
        player_index=raw.player_index,
        current_player_index=raw.current_player_index,
        turn=raw.turn,
        count=raw.count,
        count_expression=expression,
        linked_action_id=raw.linked_action_id,
        action_name=raw.action_name,
        trash=raw.trash,
    )


def _convert_pending_to_raw(draft: LogEntryDraft) -> PendingActionRaw:
    return PendingActionRaw(
        action=draft.action.value,
        player_index=draft.player_index,
        current_player_index=draft.current_player_index,
        turn=draft.turn,
        count=draft.count,
        count_expression=(
            draft.count_expression.to_dict() if draft.count_expression is not None else None
        ),
        linked_action_id=draft.linked_action_id,
        action_name=draft.action_name,
        trash=draft.trash,
    )


_STATISTICS_MAPS = (
    "player_scores",
    "player_actions",
    "player_buys",
    "player_coins",
    "player_cards_drawn",
    "player_gains",
    "player_discards",
    "player_coffers",
    "player_villagers",
    "player_debt",
    "player_favors",
)


def _convert_statistics_raw(raw: TurnStatisticsRaw) -> TurnStatistics:
    return TurnStatistics(
        turn=raw.turn,
        player_index=raw.player_index,
        start=parse_timestamp(raw.start),
        end=parse_timestamp(raw.end),
        turn_duration=raw.turn_duration,
        supply=GameSupply(**raw.supply.model_dump()),
        player_potions=dict(raw.player_potions) if raw.player_potions is not None else None,
        **{name: dict(getattr(raw, name)) for name in _STATISTICS_MAPS},
    )


def convert_statistics_to_raw(stats: TurnStatistics) -> TurnStatisticsRaw:
    return TurnStatisticsRaw(
        turn=stats.turn,
        player_index=stats.player_index,
        start=format_timestamp(stats.start),
        end=format_timestamp(stats.end),
        turn_duration=stats.turn_duration,
        supply=GameSupplyRaw(**stats.supply.to_dict()),
        player_potions=stats.player_potions,
        **{name: getattr(stats, name) for name in _STATISTICS_MAPS},
    )


def _convert_player_raw(raw: PlayerRaw) -> PlayerState:
    return PlayerState(
        name=raw.name,
        color=raw.color,
        turn=TurnCounters(**raw.turn.model_dump()),
        new_turn=TurnCounters(**raw.new_turn.model_dump()),
        mats=MatCounters(**raw.mats.model_dump()),
        victory=VictoryCounters(**raw.victory.model_dump()),
    )


def convert_options_raw(raw: GameOptionsRaw) -> GameOptions:
    return GameOptions(
        curses=raw.curses,
        expansions=ExpansionsEnabled(**raw.expansions.model_dump()),
        mats=MatsEnabled(**raw.mats.model_dump()),
        track_card_counts=raw.track_card_counts,
        track_card_gains=raw.track_card_gains,
        track_discard=raw.track_discard,
    )


def convert_game_raw_to_game(raw: GameRaw) -> GameState:
    """
    Build an engine GameState from its saved form.

    Raises:
        InvalidTimestampError: A log or statistics timestamp does not parse
        InvalidActionError: A log entry names an unknown action
    """
    expansions = ExpansionState(
        alchemy=AlchemyState(**raw.expansions.alchemy.model_dump()),
        renaissance=RenaissanceState(**raw.expansions.renaissance.model_dump()),
        rising_sun=RisingSunState(**raw.expansions.rising_sun.model_dump()),
    )
    return GameState(
        players=[_convert_player_raw(p) for p in raw.players],
        supply=GameSupply(**raw.supply.model_dump()),
        options=convert_options_raw(raw.options),
        expansions=expansions,
        phase=GamePhase(raw.phase),
        current_turn=raw.current_turn,
        current_player_index=raw.current_player_index,
        selected_player_index=raw.selected_player_index,
        log=[convert_log_entry_raw(e) for e in raw.log],
        turn_statistics_cache=[_convert_statistics_raw(s) for s in raw.turn_statistics_cache],
        pending_grouped_actions=[_convert_pending_raw(d) for d in raw.pending_grouped_actions],
        skipped_grouped_actions=[_convert_pending_raw(d) for d in raw.skipped_grouped_actions],
        game_version=raw.game_version,
    )


def convert_game_to_raw(state: GameState) -> GameRaw:
    """Saved form of an engine GameState."""
    return GameRaw(
        players=[PlayerRaw(**asdict(p)) for p in state.players],
        options=GameOptionsRaw(**asdict(state.options)),
        supply=GameSupplyRaw(**state.supply.to_dict()),
        expansions=ExpansionStateRaw(**asdict(state.expansions)),
        phase=state.phase.value,
        current_turn=state.current_turn,
        current_player_index=state.current_player_index,
        selected_player_index=state.selected_player_index,
        first_player_index=state.to_setup().first_player_index,
        log=[convert_log_entry_to_raw(e) for e in state.log],
        turn_statistics_cache=[convert_statistics_to_raw(s) for s in state.turn_statistics_cache],
        pending_grouped_actions=[_convert_pending_to_raw(d) for d in state.pending_grouped_actions],
        skipped_grouped_actions=[_convert_pending_to_raw(d) for d in state.skipped_grouped_actions],
        game_version=state.game_version,
    )


# =============================================================================
# Request Models
# =============================================================================

class PlayerSetupRequest(BaseModel):
    """A player joining a new game."""
    name: str = Field(..., min_length=1, description="Display name")
    color: Optional[str] = Field(None, description="Hex color; the next free color if omitted")


class CreateGameRequest(BaseModel):
    """Request to start a new game."""
    players: list[PlayerSetupRequest] = Field(..., description="Players in seating order")
    first_player_index: int = Field(0, ge=0, description="Who takes turn 1")
    options: GameOptionsRaw = Field(default_factory=GameOptionsRaw)
    great_leader_prophecy: bool = False
    flag_bearer_enabled: bool = False
    track_potions: bool = False


class AddLogEntryRequest(BaseModel):
    """Request to append one entry to a game's log."""
    action: str = Field(..., description="Action template value, e.g. 'Added {COUNT} Actions'")
    player_index: int = Field(NO_PLAYER, description="Affected player, -1 for none")
    count: Optional[int] = Field(None, description="Amount for adjustments")
    correction: bool = Field(False, description="Entry corrects an earlier mistake")
    trash: bool = Field(False, description="Victory card removed to the trash, not the supply")


class ApplyRecipeRequest(BaseModel):
    """Request to apply a catalog recipe as a grouped action."""
    recipe_key: str = Field(..., description="Catalog key, e.g. 'Village'")


class SaveGameRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Save slot name")


class LoadGameRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Save slot name")


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class PlayerInfo(BaseModel):
    """Player information for display."""
    index: int
    name: str
    color: str
    is_current_turn: bool = False
    is_selected: bool = False
    victory_points: int = 0
    turn: dict[str, int] = Field(default_factory=dict)
    new_turn: dict[str, int] = Field(default_factory=dict)
    mats: dict[str, int] = Field(default_factory=dict)
    victory: dict[str, int] = Field(default_factory=dict)


class GameStateResponse(BaseModel):
    """Derived game state for display."""
    game_id: str
    phase: str
    current_turn: int
    current_player_index: int
    selected_player_index: int
    is_paused: bool = False
    players: list[PlayerInfo] = Field(default_factory=list)
    supply: dict[str, int] = Field(default_factory=dict)
    prophecy_suns: Optional[int] = Field(None, description="Rising Sun prophecy, when in play")
    log_length: int = 0
    pending_actions: list[str] = Field(
        default_factory=list, description="Descriptions of queued deferred actions"
    )
    game_version: str = VERSION_NUMBER
    api_version: str = "v1"


class LogEntryInfo(BaseModel):
    """One log entry for display."""
    index: int
    id: str
    description: str
    action: str
    timestamp: str
    turn: int
    player_index: int
    count: Optional[int] = None
    correction: bool = False
    linked_action_id: Optional[str] = None


class LogResponse(BaseModel):
    game_id: str
    entries: list[LogEntryInfo] = Field(default_factory=list)
    count: int = 0


class UndoCheckResponse(BaseModel):
    game_id: str
    index: int
    can_undo: bool


class UndoResponse(BaseModel):
    success: bool
    game: GameStateResponse


class GameListResponse(BaseModel):
    games: list[str] = Field(default_factory=list)
    count: int = 0


class DeleteGameResponse(BaseModel):
    success: bool
    game_id: str


class SaveResponse(BaseModel):
    success: bool
    name: str
    game_id: str


class SavedGameListResponse(BaseModel):
    saves: list[str] = Field(default_factory=list)
    count: int = 0


class RankingInfo(BaseModel):
    index: int
    name: str
    score: int
    rank: int


class StatisticsResponse(BaseModel):
    """Scoreboard and per-turn history."""
    game_id: str
    rankings: list[RankingInfo] = Field(default_factory=list)
    turns: list[TurnStatisticsRaw] = Field(default_factory=list)
    turn_count: int = 0
    average_turn_duration: float = Field(0.0, description="Milliseconds")
    game_duration: str = Field("0d 0h 0m 0s", description="Pause-adjusted time played")


class RecipeInfo(BaseModel):
    section: str
    key: str
    name: str
    description: str = ""
    has_triggers: bool = False


class RecipeListResponse(BaseModel):
    recipes: list[RecipeInfo] = Field(default_factory=list)
    count: int = 0


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    service: str = "reckoner"
    version: str = "0.2.0"
