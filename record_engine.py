"""
Win Log Record Engine - Pure record-keeping logic without any frontend dependency

Holds the data model (players, games, plays) and the pure functions that derive
records and streaks from play history. Nothing here caches or persists: every
view is recomputed from the current history.
"""
from __future__ import annotations

import locale
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime

from settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class Player:
    """A roster member. Only active players take part in new plays."""
    name: str
    active: bool = True


@dataclass(frozen=True)
class Play:
    """One recorded result. Frozen once created."""
    players: tuple[str, ...]    # active roster names when the play was recorded
    winner: str
    timestamp: datetime         # timezone-aware


@dataclass
class Game:
    """A game and its append-only play history."""
    name: str
    plays: list[Play] = field(default_factory=list)


@dataclass
class State:
    """Everything the tracker persists."""
    players: list[Player] = field(default_factory=list)
    games: list[Game] = field(default_factory=list)
    settings: Settings = field(default_factory=Settings)


def use_environment_collation():
    """Collate names by the user's locale (LC_ALL / LC_COLLATE / LANG).

    Returns False and keeps the current collation when the environment
    names a locale that is not installed.
    """
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error:
        logger.warning("Locale from the environment is not available; sorting by code point")
        return False
    return True


def collation_key(name):
    """Locale-aware sort key for display names.

    Follows the process LC_COLLATE; entry points call
    use_environment_collation() at startup.
    """
    return locale.strxfrm(name.casefold())


def find_by_name(items, name):
    """Return the first item whose name matches case-insensitively, or None."""
    wanted = name.casefold()
    for item in items:
        if item.name.casefold() == wanted:
            return item
    return None


def active_roster(players):
    """Return active players sorted by name; ties keep their input order."""
    return sorted((p for p in players if p.active), key=lambda p: collation_key(p.name))


def roster_names(roster):
    """Names of the given roster, in roster order."""
    return [p.name for p in roster]


def sorted_games(games):
    """Return games ordered by name without reordering the stored list."""
    return sorted(games, key=lambda g: collation_key(g.name))


def same_players(play_players, names):
    """Whether two name collections hold the same players, ignoring order.

    Compares counted copies, so neither argument is reordered.
    """
    return Counter(play_players) == Counter(names)


def applicable_plays(game, names):
    """
    Plays of a game recorded with exactly the given roster.

    Args:
        game: Game whose history is filtered
        names: current active roster names, in any order

    Returns:
        List of Play in insertion order
    """
    return [play for play in game.plays if same_players(play.players, names)]


def play_history(game, names):
    """Applicable plays ordered by timestamp, oldest first."""
    return sorted(applicable_plays(game, names), key=lambda play: play.timestamp)


def current_record(player_name, roster, game):
    """
    A player's (wins, losses) over the applicable plays of a game.

    Every applicable play the player did not win counts as a loss,
    whoever actually won it.

    Args:
        player_name: name of the player whose record is computed
        roster: current active roster (sequence of Player)
        game: Game to tally

    Returns:
        Tuple of (wins, losses)
    """
    plays = applicable_plays(game, roster_names(roster))
    wins = sum(1 for play in plays if play.winner == player_name)
    return wins, len(plays) - wins


def format_record(record):
    """Render a (wins, losses) tuple as "W-L"."""
    wins, losses = record
    return f"{wins}-{losses}"


def win_streak(plays):
    """
    Current win streak over plays sorted oldest first.

    Returns:
        (winner, count) for the most recent run of wins, or None when
        there are no plays
    """
    if not plays:
        return None
    winner = plays[-1].winner
    count = 0
    for play in reversed(plays):
        if play.winner != winner:
            break
        count += 1
    return winner, count
