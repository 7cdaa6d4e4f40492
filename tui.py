#!/usr/bin/env python3
"""
Win Log TUI — Terminal-based frontend using Textual.

Keyboard-driven interface with the roster, per-game records, play history
and streaks. Names and confirmations are asked for in modal screens.
"""
import argparse
import logging

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Center, Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Input, Label, Static

from data_store import DataStore, FileSlot, MemorySlot
from frontend_adapter import FrontendAdapter, ReplyPrompt
from record_engine import use_environment_collation
from tracker import ItemKind, Tracker


# ── Widgets ──────────────────────────────────────────────────────────────────

class PlayersDisplay(Static):
    """Roster with active markers."""

    def render(self):
        snapshot = self.app.adapter.get_snapshot()
        lines = ["[bold]PLAYERS[/bold]", f"[dim]{escape(snapshot['players_text'])}[/dim]", ""]
        for player in snapshot["players"]:
            if player["active"]:
                lines.append(f"[bold green]● {escape(player['name'])}[/bold green]")
            else:
                lines.append(f"[dim]○ {escape(player['name'])}[/dim]")
        return "\n".join(lines)


class GamesDisplay(Static):
    """Every game with records, history and streak."""

    def render(self):
        snapshot = self.app.adapter.get_snapshot()
        settings = snapshot["settings"]
        lines = ["[bold]GAMES[/bold]", ""]
        if snapshot["games_text"]:
            lines.append(escape(snapshot["games_text"]))
        for game in snapshot["games"]:
            lines.append(f"[bold underline]{escape(game['name'])}[/bold underline]")
            lines.append("👑 Who Won?")
            for player in game["players"]:
                lines.append(f"  {escape(player['label'])}")
            if game["empty_text"]:
                lines.append(f"[dim]{escape(game['empty_text'])}[/dim]")
            else:
                if settings["showPlayDates"]:
                    lines.append("Play History:")
                    for i, play in enumerate(game["history"], 1):
                        lines.append(f"  {i}. {escape(play['label'])}")
                if game["streak"]:
                    lines.append(f"🔥 {escape(game['streak']['label'])}")
            lines.append("")
        return "\n".join(lines)


# ── Modal Screens ────────────────────────────────────────────────────────────

class TextPromptScreen(ModalScreen):
    """Ask for a line of text. Dismisses with None when cancelled."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, message: str, placeholder: str = ""):
        super().__init__()
        self.message = message
        self.placeholder = placeholder

    def compose(self) -> ComposeResult:
        with Center():
            with Vertical(id="prompt-panel"):
                yield Label(escape(self.message))
                yield Input(placeholder=self.placeholder, id="prompt-input")
                yield Label("[dim]Enter to accept,  Esc to cancel[/dim]")

    def on_mount(self):
        self.query_one("#prompt-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted):
        self.dismiss(event.value)

    def action_cancel(self):
        self.dismiss(None)


class ConfirmScreen(ModalScreen[bool]):
    """Yes/no confirmation for destructive actions."""

    BINDINGS = [
        Binding("y", "confirm", "Yes"),
        Binding("n", "cancel", "No"),
        Binding("escape", "cancel", "No"),
    ]

    def __init__(self, message: str):
        super().__init__()
        self.message = message

    def compose(self) -> ComposeResult:
        text = f"[bold]{escape(self.message)}[/bold]\n\n"
        text += "Y to confirm,  N / Esc to cancel"
        yield Center(Static(text, id="confirm-panel"))

    def action_confirm(self):
        self.dismiss(True)

    def action_cancel(self):
        self.dismiss(False)


class HelpScreen(ModalScreen):
    """Help overlay showing key bindings."""

    BINDINGS = [
        Binding("escape", "dismiss", "Close"),
        Binding("question_mark", "dismiss", "Close"),
    ]

    def compose(self) -> ComposeResult:
        controls = [
            ("W", "Record who won"),
            ("B", "Add historical entry"),
            ("T", "Toggle player active"),
            ("A / G", "Add player / game"),
            ("R / X", "Delete player / game"),
            ("C", "Clear a game's play history"),
            ("H", "Show play dates"),
            ("E", "Allow historical entries"),
            ("Z", "Show destructive game actions"),
            ("I", "Show add/delete actions"),
            ("Esc", "Close overlay / Quit"),
            ("?", "This help screen"),
        ]
        text = "[bold]CONTROLS[/bold]\n\n"
        for key, desc in controls:
            text += f"  {key:<10} {desc}\n"
        text += "\n[dim]Press Esc or ? to close[/dim]"
        yield Center(Static(text, id="help-panel"))


# ── Main App ─────────────────────────────────────────────────────────────────

class WinLogApp(App):
    """Win Log terminal UI application."""

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-area {
        layout: horizontal;
        height: 1fr;
    }

    #players-panel {
        width: 32;
        padding: 1 2;
    }

    #games-panel {
        width: 1fr;
        padding: 1 2;
    }

    #message {
        height: auto;
        padding: 0 2;
        color: $error;
    }

    #prompt-panel, #help-panel, #confirm-panel {
        padding: 2 4;
        border: thick $accent;
        background: $surface;
        width: 70;
        height: auto;
    }
    """

    BINDINGS = [
        Binding("w", "record_win", "Who won?", show=True),
        Binding("b", "record_historical", "Backdate"),
        Binding("t", "toggle_player", "Toggle player", show=True),
        Binding("a", "add_player", "Add player"),
        Binding("g", "add_game", "Add game"),
        Binding("r", "delete_player", "Delete player"),
        Binding("x", "delete_game", "Delete game"),
        Binding("c", "clear_history", "Clear history"),
        Binding("h", "setting('showPlayDates')", "Dates"),
        Binding("e", "setting('allowHistoricalEntries')", "Historical"),
        Binding("z", "setting('showGameDestructiveActions')", "Destructive"),
        Binding("i", "setting('showItemEditButtons')", "Edit buttons"),
        Binding("question_mark", "help", "Help"),
        Binding("escape", "quit_or_close", "Quit"),
    ]

    def __init__(self, tracker: Tracker):
        super().__init__()
        self.tracker = tracker
        self.adapter = FrontendAdapter(tracker)

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("", id="message")
        with Horizontal(id="main-area"):
            with VerticalScroll(id="players-panel"):
                yield PlayersDisplay(id="players-display")
            with VerticalScroll(id="games-panel"):
                yield GamesDisplay(id="games-display")
        yield Footer()

    def on_mount(self):
        self.title = "Win Log"

    def _refresh_display(self):
        """Refresh all display widgets."""
        self.query_one("#players-display", PlayersDisplay).refresh(layout=True)
        self.query_one("#games-display", GamesDisplay).refresh(layout=True)
        self.query_one("#message", Static).update(escape(self.adapter.message or ""))

    def _ask(self, message, callback, placeholder=""):
        self.push_screen(TextPromptScreen(message, placeholder), callback)

    @property
    def _settings(self):
        return self.tracker.settings

    # ── Roster and games ──────────────────────────────────────────────────

    def _add_named(self, label, add):
        """Ask for a name, asking again while it is blank."""
        def on_name(name):
            if name is None:
                return
            added = add(ReplyPrompt([name]))
            self._refresh_display()
            if not added:
                self._add_named(label, add)
        self._ask(f"Enter {label} name:", on_name)

    def action_add_player(self):
        if self._settings.show_item_edit_buttons:
            self._add_named("player", self.adapter.add_player)

    def action_add_game(self):
        if self._settings.show_item_edit_buttons:
            self._add_named("game", self.adapter.add_game)

    def _delete(self, kind):
        lookup = self.tracker.find_game if kind is ItemKind.GAME else self.tracker.find_player

        def on_name(name):
            if not name:
                return
            item = lookup(name)
            if item is None:
                self.adapter.delete_item(kind, ReplyPrompt([name]))
                self._refresh_display()
                return

            def on_confirm(confirmed):
                self.adapter.delete_item(kind, ReplyPrompt([name], confirm=confirmed))
                self._refresh_display()
            self.push_screen(ConfirmScreen(
                f'Are you sure you want to delete the {kind.value} "{item.name}"? '
                "This action cannot be undone."), on_confirm)
        self._ask(f"Enter the name of the {kind.value} you want to delete:", on_name)

    def action_delete_player(self):
        if self._settings.show_item_edit_buttons:
            self._delete(ItemKind.PLAYER)

    def action_delete_game(self):
        if self._settings.show_item_edit_buttons:
            self._delete(ItemKind.GAME)

    def action_toggle_player(self):
        def on_name(name):
            if name:
                self.adapter.toggle_player(name)
                self._refresh_display()
        self._ask("Toggle which player?", on_name)

    # ── Plays ─────────────────────────────────────────────────────────────

    def _ask_game_and_winner(self, then):
        def on_game(game_name):
            if not game_name:
                return

            def on_winner(winner):
                if winner:
                    then(game_name, winner)
            names = ", ".join(p.name for p in self.tracker.roster())
            self._ask(f"Who won {game_name}?", on_winner, placeholder=names)
        self._ask("Which game?", on_game)

    def action_record_win(self):
        self.adapter.clear_message()

        def record(game_name, winner):
            self.adapter.record_win(game_name, winner)
            self._refresh_display()
        self._ask_game_and_winner(record)

    def action_record_historical(self):
        if not self._settings.allow_historical_entries:
            return
        self.adapter.clear_message()

        def record(game_name, winner):
            def on_when(when):
                if when is None:
                    return
                self.adapter.record_historical(game_name, winner, when)
                self._refresh_display()
            self._ask("When was it played?", on_when, placeholder="YYYY-MM-DDTHH:MM")
        self._ask_game_and_winner(record)

    def action_clear_history(self):
        if not self._settings.show_game_destructive_actions:
            return

        def on_game(game_name):
            if not game_name:
                return

            def on_confirm(confirmed):
                self.adapter.clear_history(game_name, ReplyPrompt(confirm=confirmed))
                self._refresh_display()
            self.push_screen(ConfirmScreen(
                "Are you sure you want to clear the play history for this game? "
                "This action cannot be undone."), on_confirm)
        self._ask("Clear the history of which game?", on_game)

    # ── Settings and overlays ─────────────────────────────────────────────

    def action_setting(self, key: str):
        self.adapter.toggle_setting(key)
        self._refresh_display()

    def action_help(self):
        self.push_screen(HelpScreen())

    def action_quit_or_close(self):
        if len(self.screen_stack) > 1:
            self.pop_screen()
        else:
            self.exit()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Win Log terminal UI")
    parser.add_argument("--data-dir", help="Directory for stored data (default: ~/.win_log)")
    parser.add_argument("--memory", action="store_true", help="Keep data in memory only")
    return parser.parse_args(argv)


def main(argv=None):
    """Entry point for the TUI."""
    args = parse_args(argv)
    # Log lines would draw over the screen, so only problems are kept.
    logging.basicConfig(level=logging.ERROR)
    use_environment_collation()

    slot = MemorySlot() if args.memory else FileSlot(args.data_dir)
    app = WinLogApp(Tracker.open(DataStore(slot)))
    app.run()


if __name__ == "__main__":
    main()
