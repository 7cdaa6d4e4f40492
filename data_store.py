"""Persistence for Win Log.

The whole state (players, games with their plays, settings) is one JSON
document stored under a fixed key in a key-value slot. The default slot
keeps one file per key in ~/.win_log/. No frontend dependency.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from record_engine import Game, Play, Player, State
from settings import settings_from_dict, settings_to_dict

logger = logging.getLogger(__name__)

STORE_KEY = "win-log-data"


class CorruptStore(Exception):
    """The persisted document could not be decoded."""


def _default_root():
    """Return the default directory for slot files."""
    return Path.home() / ".win_log"


# ── Slots ─────────────────────────────────────────────────────────────────────

class FileSlot:
    """Key-value slot with one JSON file per key."""

    def __init__(self, root=None):
        if root is None:
            root = _default_root()
        self.root = Path(root)

    def path_for(self, key):
        return self.root / f"{key}.json"

    def get(self, key):
        """Return the stored string, or None if nothing is stored."""
        try:
            return self.path_for(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key, value):
        """Store a string, replacing the old file atomically."""
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        raw = value.encode("utf-8")
        fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
        closed = False
        try:
            os.write(fd, raw)
            os.close(fd)
            closed = True
            os.replace(tmp, path)
        except BaseException:
            if not closed:
                os.close(fd)
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise


class MemorySlot:
    """Key-value slot held in a dict. Nothing survives the process."""

    def __init__(self):
        self.values = {}

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value):
        self.values[key] = value


# ── Encoding ──────────────────────────────────────────────────────────────────

def encode_timestamp(moment):
    """Format an aware datetime as UTC ISO-8601 with milliseconds and a Z."""
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def decode_timestamp(text):
    """Parse an ISO-8601 instant. Naive values are taken as UTC."""
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    moment = datetime.fromisoformat(text)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def state_to_dict(state):
    """Serialize a State to the persisted document layout."""
    data = {
        "games": [
            {
                "name": game.name,
                "plays": [
                    {
                        "players": list(play.players),
                        "winner": play.winner,
                        "timestamp": encode_timestamp(play.timestamp),
                    }
                    for play in game.plays
                ],
            }
            for game in state.games
        ],
        "players": [{"name": p.name, "active": p.active} for p in state.players],
    }
    data.update(settings_to_dict(state.settings))
    return data


def _require(value, kind, what):
    if not isinstance(value, kind):
        raise CorruptStore(f"{what} has unexpected type {type(value).__name__}")
    return value


def _play_from_dict(data):
    _require(data, dict, "play")
    players = tuple(_require(name, str, "play player")
                    for name in _require(data["players"], list, "play players"))
    winner = _require(data["winner"], str, "play winner")
    if winner not in players:
        raise CorruptStore(f"winner {winner!r} is not one of the play's players")
    timestamp = decode_timestamp(_require(data["timestamp"], str, "play timestamp"))
    return Play(players=players, winner=winner, timestamp=timestamp)


def state_from_dict(data):
    """Deserialize a document dict. Raises CorruptStore on bad structure."""
    try:
        _require(data, dict, "document")
        players = []
        for entry in _require(data.get("players", []), list, "players"):
            _require(entry, dict, "player")
            players.append(Player(
                name=_require(entry["name"], str, "player name"),
                active=_require(entry.get("active", True), bool, "player active"),
            ))
        games = []
        for entry in _require(data.get("games", []), list, "games"):
            _require(entry, dict, "game")
            plays = [_play_from_dict(p) for p in _require(entry.get("plays", []), list, "plays")]
            games.append(Game(name=_require(entry["name"], str, "game name"), plays=plays))
    except (KeyError, TypeError, ValueError) as exc:
        raise CorruptStore(str(exc)) from exc
    return State(players=players, games=games, settings=settings_from_dict(data))


# ── Store ─────────────────────────────────────────────────────────────────────

class DataStore:
    """Loads and saves the State document in a slot."""

    def __init__(self, slot=None, key=STORE_KEY):
        self.slot = slot if slot is not None else FileSlot()
        self.key = key

    def load(self):
        """Return the stored State, or None when missing or corrupt."""
        try:
            raw = self.slot.get(self.key)
        except OSError:
            logger.warning("Could not read stored data", exc_info=True)
            return None
        except UnicodeDecodeError as exc:
            logger.warning("Ignoring corrupt stored data: %s", exc)
            return None
        if not raw:
            return None
        try:
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise CorruptStore(str(exc)) from exc
            return state_from_dict(data)
        except CorruptStore as exc:
            logger.warning("Ignoring corrupt stored data: %s", exc)
            return None

    def save(self, state):
        """Write the full State in one slot update."""
        raw = json.dumps(state_to_dict(state), indent=2)
        try:
            self.slot.set(self.key, raw)
        except OSError:
            logger.error("Could not save data under %r", self.key, exc_info=True)
            raise
        logger.debug("Saved %d players and %d games", len(state.players), len(state.games))
