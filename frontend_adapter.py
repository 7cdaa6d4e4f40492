"""FrontendAdapter — Shared UI flows for all Win Log frontends.

Owns name prompting, destructive-action confirmation, the user-facing
message for recoverable errors, and the view snapshot every frontend
renders. Pure Python, no Flask, Textual or terminal dependency.

Each frontend (web, TUI, CLI) creates a FrontendAdapter wrapping a Tracker
and delegates flow logic here, keeping only rendering and input
translation frontend-specific.
"""

from abc import ABC, abstractmethod

from record_engine import (
    collation_key,
    current_record,
    format_record,
    play_history,
    roster_names,
    sorted_games,
    win_streak,
)
from settings import settings_to_dict
from tracker import EmptyName, ItemKind, TrackerError

NO_GAMES_TEXT = "No games added yet. Click 'Add Game' to get started!"
NO_PLAYERS_TEXT = "No players added yet. Click 'Add Player' to get started!"
PLAYERS_HINT_TEXT = ("Click a player to toggle whether they are active or not. "
                     "Only active players will be included in game plays.")
NO_PLAYS_TEXT = "No plays yet."


# ── Prompt interface ──────────────────────────────────────────────────────────

class PromptInterface(ABC):
    """Asks the user for text or a yes/no answer. Each frontend provides one."""

    @abstractmethod
    def ask_text(self, message):
        """Return the entered text, or None if the user cancelled."""

    @abstractmethod
    def ask_confirm(self, message):
        """Return True if the user confirmed."""


class ReplyPrompt(PromptInterface):
    """Answers from values the frontend already collected.

    Hands out answers in order, then behaves as a cancelled prompt.
    Every confirmation gets the same preset answer.
    """

    def __init__(self, answers=(), confirm=False):
        self._answers = list(answers)
        self._confirm = confirm
        self.asked = []

    def ask_text(self, message):
        self.asked.append(message)
        if not self._answers:
            return None
        return self._answers.pop(0)

    def ask_confirm(self, message):
        self.asked.append(message)
        return self._confirm


def format_timestamp(moment):
    """Local-time display form of a play timestamp."""
    return moment.astimezone().strftime("%Y-%m-%d %H:%M:%S")


# ── Frontend Adapter ──────────────────────────────────────────────────────────

class FrontendAdapter:
    """Shared UI flows for all Win Log frontends.

    Operations return True when state changed. Recoverable errors leave
    state untouched and put their text in `message`.
    """

    def __init__(self, tracker):
        self.tracker = tracker
        self.message = None

    def clear_message(self):
        self.message = None

    def _fail(self, error):
        self.message = str(error)
        return False

    # ── Names ─────────────────────────────────────────────────────────────

    def _add_named(self, prompts, label, add):
        """Ask for a name until a non-blank one arrives or the user cancels."""
        while True:
            name = prompts.ask_text(f"Enter {label} name:")
            if name is None:
                return False
            try:
                add(name)
            except EmptyName as exc:
                self.message = str(exc)
                continue
            except TrackerError as exc:
                return self._fail(exc)
            self.message = None
            return True

    def add_player(self, prompts):
        """Prompt for and add a player. Returns True if one was added."""
        return self._add_named(prompts, "player", self.tracker.add_player)

    def add_game(self, prompts):
        """Prompt for and add a game. Returns True if one was added."""
        return self._add_named(prompts, "game", self.tracker.add_game)

    def delete_item(self, kind, prompts):
        """Prompt for a name, then delete that player or game once confirmed."""
        kind = ItemKind(kind)
        name = prompts.ask_text(f"Enter the name of the {kind.value} you want to delete:")
        if not name:
            return False
        try:
            return self.tracker.delete_item(kind, name, prompts.ask_confirm)
        except TrackerError as exc:
            return self._fail(exc)

    # ── Per-item actions ──────────────────────────────────────────────────

    def _game(self, game_name):
        game = self.tracker.find_game(game_name)
        if game is None:
            self.message = f'Game "{game_name}" not found.'
        return game

    def toggle_player(self, name):
        """Flip a player's active flag."""
        player = self.tracker.find_player(name)
        if player is None:
            self.message = f'Player "{name}" not found.'
            return False
        try:
            self.tracker.toggle_active(player)
        except TrackerError as exc:
            return self._fail(exc)
        return True

    def record_win(self, game_name, winner):
        """Record a live win for the named game."""
        game = self._game(game_name)
        if game is None:
            return False
        try:
            self.tracker.record_play(game, winner)
        except TrackerError as exc:
            return self._fail(exc)
        return True

    def record_historical(self, game_name, winner, when):
        """Record a backdated win from date/time text."""
        game = self._game(game_name)
        if game is None:
            return False
        try:
            self.tracker.record_historical_play(game, winner, when)
        except TrackerError as exc:
            return self._fail(exc)
        return True

    def clear_history(self, game_name, prompts):
        game = self._game(game_name)
        if game is None:
            return False
        try:
            return self.tracker.clear_history(game, prompts.ask_confirm)
        except TrackerError as exc:
            return self._fail(exc)

    def delete_game(self, game_name, prompts):
        game = self._game(game_name)
        if game is None:
            return False
        try:
            return self.tracker.delete_game(game, prompts.ask_confirm)
        except TrackerError as exc:
            return self._fail(exc)

    def toggle_setting(self, key):
        """Flip a display toggle. Returns False for an unknown key."""
        try:
            self.tracker.toggle_setting(key)
        except KeyError:
            self.message = f"Unknown setting {key!r}."
            return False
        except TrackerError as exc:
            return self._fail(exc)
        return True

    # ── Snapshot ──────────────────────────────────────────────────────────

    def _game_view(self, game, roster):
        names = roster_names(roster)
        buttons = []
        for player in roster:
            record = format_record(current_record(player.name, roster, game))
            buttons.append({
                "name": player.name,
                "record": record,
                "label": f"{player.name} (Current Record: {record})",
            })

        history = play_history(game, names)
        streak = win_streak(history)
        return {
            "name": game.name,
            "players": buttons,
            "has_plays": bool(game.plays),
            "empty_text": None if game.plays else NO_PLAYS_TEXT,
            "history": [
                {
                    "winner": play.winner,
                    "timestamp": play.timestamp.isoformat(),
                    "label": f"{play.winner} won on {format_timestamp(play.timestamp)}",
                }
                for play in history
            ],
            "streak": None if streak is None else {
                "winner": streak[0],
                "count": streak[1],
                "label": f"Current win streak: {streak[0]} ({streak[1]} wins in a row)",
            },
        }

    def get_snapshot(self):
        """Return a complete JSON-serializable dict of the tracker view."""
        tracker = self.tracker
        roster = tracker.roster()
        players = sorted(tracker.players, key=lambda p: collation_key(p.name))
        return {
            "players": [{"name": p.name, "active": p.active} for p in players],
            "players_text": PLAYERS_HINT_TEXT if players else NO_PLAYERS_TEXT,
            "games": [self._game_view(g, roster) for g in sorted_games(tracker.games)],
            "games_text": None if tracker.games else NO_GAMES_TEXT,
            "settings": settings_to_dict(tracker.settings),
            "message": self.message,
        }
