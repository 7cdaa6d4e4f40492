"""
Tracker — Roster and game mutations for Win Log.

Owns the State and the DataStore it is persisted to. Every mutation that
changes state saves before returning; record and streak views are derived
on demand by record_engine and never stored here.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum

from data_store import DataStore
from record_engine import (
    Game,
    Play,
    Player,
    State,
    active_roster,
    find_by_name,
    roster_names,
)
from settings import resolve_key

logger = logging.getLogger(__name__)


# ── Errors ────────────────────────────────────────────────────────────────────

class TrackerError(Exception):
    """Base class for recoverable domain errors."""


class EmptyName(TrackerError):
    """A name was blank after trimming."""


class NotFound(TrackerError):
    """No player or game matched the given name."""

    def __init__(self, kind, name):
        super().__init__(f'{kind.label} "{name}" not found.')
        self.kind = kind
        self.name = name


class MissingTimestamp(TrackerError):
    """A historical entry was requested without a date and time."""


class InvalidTimestamp(TrackerError):
    """A historical entry's date and time could not be parsed."""


class NotInRoster(TrackerError):
    """The named winner is not in the current active roster."""


class SaveFailed(TrackerError):
    """The store could not be written. The mutation was rolled back."""


class ItemKind(Enum):
    GAME = "game"
    PLAYER = "player"

    @property
    def label(self):
        return self.value.capitalize()


# ── Timestamps ────────────────────────────────────────────────────────────────

def to_stored_precision(moment):
    """Convert an aware datetime to UTC, truncated to milliseconds."""
    moment = moment.astimezone(timezone.utc)
    return moment.replace(microsecond=moment.microsecond // 1000 * 1000)


def utc_now():
    """Current instant in UTC, at the millisecond precision that is stored."""
    return to_stored_precision(datetime.now(timezone.utc))


def parse_timestamp(text):
    """Parse user-entered date/time text into an aware datetime.

    Accepts what datetime.fromisoformat accepts on Python 3.11+: the
    "2024-05-01T19:30" a datetime-local input produces, a trailing Z or
    offset, and fractions of any length up to six digits. Naive values are
    local time.
    """
    if text is None or not text.strip():
        raise MissingTimestamp("Please select a date and time for the play.")
    text = text.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(text)
    except ValueError as exc:
        raise InvalidTimestamp(f"Could not read {text!r} as a date and time.") from exc
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return moment.astimezone(timezone.utc)


def _clean_name(name):
    if name is None or not name.strip():
        raise EmptyName("Name cannot be empty.")
    return name


# ── Tracker ───────────────────────────────────────────────────────────────────

class Tracker:
    """Applies roster and game mutations to a State and persists them.

    Frontends hold a Tracker and call its methods; nothing else mutates
    the State's players, games or plays.
    """

    def __init__(self, state: State | None = None, store: DataStore | None = None) -> None:
        self.state = state if state is not None else State()
        self.store = store if store is not None else DataStore()

    @classmethod
    def open(cls, store: DataStore | None = None) -> Tracker:
        """Load the stored State, or start from defaults."""
        store = store if store is not None else DataStore()
        state = store.load()
        if state is None:
            logger.info("No stored data found, starting fresh")
            state = State()
        return cls(state=state, store=store)

    def _persist(self, undo) -> None:
        """Save the State; on failure run undo so memory matches the disk."""
        try:
            self.store.save(self.state)
        except OSError as exc:
            undo()
            raise SaveFailed(f"Could not save your changes: {exc}") from exc

    # ── Lookups ───────────────────────────────────────────────────────────

    @property
    def players(self) -> list[Player]:
        return self.state.players

    @property
    def games(self) -> list[Game]:
        return self.state.games

    @property
    def settings(self):
        return self.state.settings

    def roster(self) -> list[Player]:
        """Current active roster, sorted by name."""
        return active_roster(self.state.players)

    def find_player(self, name: str) -> Player | None:
        return find_by_name(self.state.players, name)

    def find_game(self, name: str) -> Game | None:
        return find_by_name(self.state.games, name)

    def _items(self, kind: ItemKind) -> list:
        return self.state.games if kind is ItemKind.GAME else self.state.players

    # ── Roster and games ──────────────────────────────────────────────────

    def add_player(self, name: str) -> Player:
        """Append a new active player. Duplicate names are allowed."""
        player = Player(name=_clean_name(name), active=True)
        self.state.players.append(player)
        self._persist(self.state.players.pop)
        logger.info("Added player %r", player.name)
        return player

    def add_game(self, name: str) -> Game:
        """Append a new game with no plays."""
        game = Game(name=_clean_name(name))
        self.state.games.append(game)
        self._persist(self.state.games.pop)
        logger.info("Added game %r", game.name)
        return game

    def delete_item(self, kind, name: str, confirm) -> bool:
        """Delete the first player or game matching name, once confirmed.

        Args:
            kind: ItemKind or its value ("game" / "player")
            name: name to look up, case-insensitively
            confirm: callable taking a message and returning a bool

        Returns:
            True if deleted, False if the confirmation was declined.

        Raises:
            NotFound: nothing matches name.
            SaveFailed: the store could not be written; nothing was deleted.
        """
        kind = ItemKind(kind)
        items = self._items(kind)
        item = find_by_name(items, name)
        if item is None:
            raise NotFound(kind, name)
        message = (f'Are you sure you want to delete the {kind.value} "{item.name}"? '
                   "This action cannot be undone.")
        if not confirm(message):
            return False
        index = next(i for i, other in enumerate(items) if other is item)
        del items[index]
        self._persist(lambda: items.insert(index, item))
        logger.info("Deleted %s %r", kind.value, item.name)
        return True

    def delete_game(self, game: Game, confirm) -> bool:
        """Delete a specific game, once confirmed."""
        if not confirm("Are you sure you want to delete this game? This action cannot be undone."):
            return False
        previous = self.state.games
        self.state.games = [g for g in previous if g is not game]
        self._persist(lambda: setattr(self.state, "games", previous))
        logger.info("Deleted game %r", game.name)
        return True

    def toggle_active(self, player: Player) -> bool:
        """Flip a player's active flag. Recorded plays are left as they are."""
        previous = player.active
        player.active = not previous
        self._persist(lambda: setattr(player, "active", previous))
        logger.info("Player %r is now %s", player.name, "active" if player.active else "inactive")
        return player.active

    # ── Plays ─────────────────────────────────────────────────────────────

    def record_play(self, game: Game, winner_name: str, timestamp: datetime | None = None) -> Play:
        """Append a play won by winner_name among the current active roster.

        A None timestamp records a live entry at the current instant. Any
        timestamp is stored in UTC at millisecond precision.
        """
        names = roster_names(self.roster())
        if winner_name not in names:
            raise NotInRoster(f'"{winner_name}" is not an active player.')
        play = Play(
            players=tuple(names),
            winner=winner_name,
            timestamp=utc_now() if timestamp is None else to_stored_precision(timestamp),
        )
        game.plays.append(play)
        self._persist(game.plays.pop)
        logger.info("Recorded %r win in %r", winner_name, game.name)
        return play

    def record_historical_play(self, game: Game, winner_name: str, when: str | None) -> Play:
        """Append a backdated play from user-entered date/time text."""
        return self.record_play(game, winner_name, parse_timestamp(when))

    def clear_history(self, game: Game, confirm) -> bool:
        """Remove every play of a game, once confirmed."""
        if not confirm("Are you sure you want to clear the play history for this game? "
                       "This action cannot be undone."):
            return False
        previous = game.plays
        game.plays = []
        self._persist(lambda: setattr(game, "plays", previous))
        logger.info("Cleared play history of %r", game.name)
        return True

    # ── Settings ──────────────────────────────────────────────────────────

    def set_setting(self, key: str, value: bool) -> None:
        """Set a display toggle by field name or wire key."""
        attr = resolve_key(key)
        if attr is None:
            raise KeyError(key)
        settings = self.state.settings
        previous = getattr(settings, attr)
        setattr(settings, attr, bool(value))
        self._persist(lambda: setattr(settings, attr, previous))

    def toggle_setting(self, key: str) -> bool:
        """Flip a display toggle and return its new value."""
        attr = resolve_key(key)
        if attr is None:
            raise KeyError(key)
        value = not getattr(self.state.settings, attr)
        self.set_setting(attr, value)
        return value
