"""
Reckoner CLI - Command-line interface for the tracker.

Usage:
    reckoner new <name> <name> ... --save SLOT   Start a game and save it
    reckoner replay <file>                       Replay a saved game and summarize it
    reckoner log <file>                          Print a saved game's log
    reckoner undo-check <file> <index>           Can this log entry be undone?
    reckoner recipes                             List the recipe catalog

Files are saved games in the raw JSON form (see GameStore).
"""

import argparse
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

RECKONER_LOG_LEVEL = os.getenv("RECKONER_LOG_LEVEL", "INFO")
RECKONER_SAVE_DIR = os.getenv("RECKONER_SAVE_DIR", None)


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Reckoner - Dominion score tracker",
        prog="reckoner",
    )
    parser.add_argument("--log-level", default=RECKONER_LOG_LEVEL, help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # New game command
    new_parser = subparsers.add_parser("new", help="Start a game and save it")
    new_parser.add_argument("names", nargs="+", help="Player names in seating order")
    new_parser.add_argument("--save", required=True, help="Save slot name")
    new_parser.add_argument("--first", type=int, default=0, help="Index of the first player")
    new_parser.add_argument("--curses", action="store_true", help="Play with curses")
    new_parser.add_argument("--prosperity", action="store_true", help="Add Platinum and Colony")
    new_parser.add_argument("--rising-sun", action="store_true", help="Track the Prophecy")
    new_parser.add_argument("--save-dir", default=RECKONER_SAVE_DIR, help="Save directory")

    # Replay command
    replay_parser = subparsers.add_parser("replay", help="Replay a saved game")
    replay_parser.add_argument("file", help="Path to saved game JSON")

    # Log command
    log_parser = subparsers.add_parser("log", help="Print a saved game's log")
    log_parser.add_argument("file", help="Path to saved game JSON")

    # Undo check command
    undo_parser = subparsers.add_parser("undo-check", help="Check whether an entry can be undone")
    undo_parser.add_argument("file", help="Path to saved game JSON")
    undo_parser.add_argument("index", type=int, help="Log entry index")

    # Recipes command
    subparsers.add_parser("recipes", help="List the recipe catalog")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "new":
        return cmd_new(args)
    elif args.command == "replay":
        return cmd_replay(args)
    elif args.command == "log":
        return cmd_log(args)
    elif args.command == "undo-check":
        return cmd_undo_check(args)
    elif args.command == "recipes":
        return cmd_recipes(args)
    else:
        parser.print_help()
        sys.exit(1)


def _load_file(path):
    """Read and replay a saved game file, exiting on failure."""
    from .api.schemas import GameRaw
    from .engine_core.errors import ReckonerError
    from .session.storage import GameStore
    from pydantic import ValidationError

    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: File not found: {path}")
        sys.exit(1)

    try:
        return GameStore.restore(GameRaw.model_validate_json(text))
    except ValidationError as e:
        print(f"Error: Not a saved game: {e.error_count()} problem(s)")
        sys.exit(1)
    except ReckonerError as e:
        print(f"Error: {e}")
        sys.exit(1)


def cmd_new(args):
    """Start a game and save it."""
    from .engine_core.errors import ReckonerError
    from .engine_core.setup import get_next_available_player_color, new_game_state
    from .engine_core.state import ExpansionsEnabled, GameOptions, GameSetup, PlayerSetup
    from .session.storage import GameStore

    colors = []
    players = []
    for name in args.names:
        color = get_next_available_player_color(colors)
        colors.append(color)
        players.append(PlayerSetup(name=name, color=color))

    setup = GameSetup(
        players=tuple(players),
        options=GameOptions(
            curses=args.curses,
            expansions=ExpansionsEnabled(prosperity=args.prosperity, rising_sun=args.rising_sun),
        ),
        first_player_index=args.first,
    )
    try:
        state = new_game_state(setup, datetime.now(timezone.utc))
    except ReckonerError as e:
        print(f"Error: {e}")
        sys.exit(1)

    store = GameStore(args.save_dir)
    path = store.save(args.save, state)
    print(f"Started game for {', '.join(p.name for p in state.players)}")
    print(f"Saved to: {path}")
    return 0


def cmd_replay(args):
    """Replay a saved game and print a summary."""
    from .engine_core.statistics import rank_players
    from .engine_core.timeline import (
        calculate_game_duration,
        format_time_span,
        get_game_turn_count,
    )

    state = _load_file(args.file)
    end = state.log[-1].timestamp if state.log else datetime.now(timezone.utc)

    print(f"Phase: {state.phase.value}")
    print(f"Turn: {state.current_turn} ({state.players[state.current_player_index].name})")
    print(f"Log entries: {len(state.log)}")
    print(f"Turns played: {get_game_turn_count(state.log)}")
    print(f"Time played: {format_time_span(calculate_game_duration(state.log, end))}")
    if state.options.expansions.rising_sun:
        print(f"Prophecy suns: {state.expansions.rising_sun.prophecy_suns}")

    print("\nScores:")
    for ranked in rank_players(state.players):
        print(f"  {ranked.rank}. {state.players[ranked.index].name}: {ranked.score} VP")

    if state.pending_grouped_actions:
        from .engine_core.grouped import describe_pending_action
        print("\nPending:")
        for draft in state.pending_grouped_actions:
            print(f"  - turn {draft.turn}: {describe_pending_action(draft)}")
    return 0


def cmd_log(args):
    """Print a saved game's log."""
    from .engine_core.log import log_entry_to_string

    state = _load_file(args.file)
    for index, entry in enumerate(state.log):
        player = ""
        if 0 <= entry.player_index < state.num_players:
            player = f" [{state.players[entry.player_index].name}]"
        linked = "  +" if entry.linked_action_id else ""
        print(f"{index:4d} T{entry.turn}{linked} {log_entry_to_string(entry)}{player}")
    return 0


def cmd_undo_check(args):
    """Report whether a log entry can be undone."""
    from .engine_core.log import log_entry_to_string
    from .engine_core.undo import can_undo_action

    state = _load_file(args.file)
    if not 0 <= args.index < len(state.log):
        print(f"Error: No log entry {args.index} (log has {len(state.log)} entries)")
        sys.exit(1)

    entry = state.log[args.index]
    if can_undo_action(state, args.index):
        print(f"Entry {args.index} ({log_entry_to_string(entry)}) can be undone")
        return 0
    print(f"Entry {args.index} ({log_entry_to_string(entry)}) cannot be undone")
    return 2


def cmd_recipes(args):
    """List the recipe catalog."""
    from .games.dominion.recipes import RECIPES

    for section in RECIPES.values():
        print(f"{section.title}:")
        for key, recipe in section.recipes.items():
            deferred = " (next turn)" if recipe.triggers else ""
            print(f"  {key:<18} {recipe.description}{deferred}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
