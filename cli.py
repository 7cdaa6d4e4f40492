#!/usr/bin/env python3
"""
Win Log CLI — console frontend.

Usage:
    python cli.py show
    python cli.py add-player [NAME]
    python cli.py win Chess Alice
    python cli.py win Chess Alice --at 2024-05-01T19:30
    python cli.py delete-game Chess --yes

Names left off the command line are asked for on stdin; destructive
actions ask for confirmation unless --yes is given.
"""
import argparse
import logging
import sys

from data_store import DataStore, FileSlot, MemorySlot
from frontend_adapter import FrontendAdapter, PromptInterface
from record_engine import use_environment_collation
from settings import WIRE_KEYS
from tracker import Tracker


class ConsolePrompt(PromptInterface):
    """Prompts on stdin. End of input counts as cancelling."""

    def __init__(self, assume_yes=False):
        self.assume_yes = assume_yes

    def ask_text(self, message):
        try:
            return input(f"{message} ")
        except EOFError:
            return None

    def ask_confirm(self, message):
        if self.assume_yes:
            return True
        try:
            answer = input(f"{message} [y/N] ")
        except EOFError:
            return False
        return answer.strip().lower() in ("y", "yes")


def render_snapshot(snapshot):
    """Plain-text rendering of an adapter snapshot."""
    lines = ["Players:"]
    if not snapshot["players"]:
        lines.append(f"  {snapshot['players_text']}")
    for player in snapshot["players"]:
        marker = "*" if player["active"] else " "
        lines.append(f"  [{marker}] {player['name']}")

    lines.append("")
    lines.append("Games:")
    if snapshot["games_text"]:
        lines.append(f"  {snapshot['games_text']}")
    show_dates = snapshot["settings"]["showPlayDates"]
    for game in snapshot["games"]:
        lines.append(f"  {game['name']}")
        for player in game["players"]:
            lines.append(f"    {player['label']}")
        if game["empty_text"]:
            lines.append(f"    {game['empty_text']}")
            continue
        if show_dates and game["history"]:
            lines.append("    Play History:")
            for i, play in enumerate(game["history"], 1):
                lines.append(f"      {i}. {play['label']}")
        if game["streak"]:
            lines.append(f"    {game['streak']['label']}")
    return "\n".join(lines)


class GivenName(PromptInterface):
    """Answers the first name prompt with a name from argv.

    Later name prompts count as cancelled; confirmations go to the
    wrapped prompt.
    """

    def __init__(self, name, prompts):
        self._name = name
        self._prompts = prompts

    def ask_text(self, message):
        name, self._name = self._name, None
        return name

    def ask_confirm(self, message):
        return self._prompts.ask_confirm(message)


def _with_name(args, prompts):
    if args.name is None:
        return prompts
    return GivenName(args.name, prompts)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Win Log — track who won")
    parser.add_argument("--data-dir", help="Directory for stored data (default: ~/.win_log)")
    parser.add_argument("--memory", action="store_true", help="Keep data in memory only")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    parser.add_argument("--yes", "-y", action="store_true", help="Confirm destructive actions")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("show", help="Show players, records and streaks")
    for command, help_text in (("add-player", "Add a player"), ("add-game", "Add a game"),
                               ("delete-player", "Delete a player"), ("delete-game", "Delete a game")):
        cmd = sub.add_parser(command, help=help_text)
        cmd.add_argument("name", nargs="?", help="Name (asked for when omitted)")

    toggle = sub.add_parser("toggle", help="Toggle whether a player is active")
    toggle.add_argument("name")

    win = sub.add_parser("win", help="Record who won a game")
    win.add_argument("game")
    win.add_argument("winner")
    win.add_argument("--at", metavar="WHEN", help="Backdate the play (ISO date and time)")

    clear = sub.add_parser("clear-history", help="Clear a game's play history")
    clear.add_argument("game")

    setting = sub.add_parser("setting", help="Toggle a display setting")
    setting.add_argument("key", choices=sorted(WIRE_KEYS.values()))

    return parser.parse_args(argv)


def run(args, adapter, prompts):
    """Apply one command. Returns True unless an error was reported."""
    command = args.command or "show"

    if command == "add-player":
        changed = adapter.add_player(_with_name(args, prompts))
    elif command == "add-game":
        changed = adapter.add_game(_with_name(args, prompts))
    elif command == "delete-player":
        changed = adapter.delete_item("player", _with_name(args, prompts))
    elif command == "delete-game":
        changed = adapter.delete_item("game", _with_name(args, prompts))
    elif command == "toggle":
        changed = adapter.toggle_player(args.name)
    elif command == "win":
        if args.at is not None:
            changed = adapter.record_historical(args.game, args.winner, args.at)
        else:
            changed = adapter.record_win(args.game, args.winner)
    elif command == "clear-history":
        changed = adapter.clear_history(args.game, prompts)
    elif command == "setting":
        changed = adapter.toggle_setting(args.key)
    else:
        changed = False

    if adapter.message:
        print(adapter.message, file=sys.stderr)
        return False
    if command == "show" or changed:
        print(render_snapshot(adapter.get_snapshot()))
    return True


def main(argv=None):
    """Entry point for the CLI."""
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    use_environment_collation()

    slot = MemorySlot() if args.memory else FileSlot(args.data_dir)
    adapter = FrontendAdapter(Tracker.open(DataStore(slot)))
    if not run(args, adapter, ConsolePrompt(assume_yes=args.yes)):
        sys.exit(1)


if __name__ == "__main__":
    main()
