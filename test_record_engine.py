"""
Record Engine Test Suite

The rules for which plays count toward a record and how streaks are read.
Every function here is pure, so tests build State by hand.

Sections:
    1. Active Roster — filtering, ordering, stability
    2. Applicable Plays — exact roster match, order independence, no mutation
    3. Current Record — wins, losses against the field, empty games
    4. Win Streak — backward scan, ties at the start, no plays
    5. Scenarios — end-to-end examples
    6. Helpers — lookup, game ordering, formatting
    7. Collation — locale taken from the environment
"""
import itertools
import locale
from datetime import datetime, timedelta, timezone

import pytest

from record_engine import (
    Game, Play, Player,
    active_roster, applicable_plays, current_record, find_by_name,
    format_record, play_history, roster_names, sorted_games,
    use_environment_collation, win_streak,
)

T0 = datetime(2024, 3, 1, 19, 0, tzinfo=timezone.utc)


# ── Helpers ──────────────────────────────────────────────────────────────────

def at(minutes):
    """A timestamp some minutes after T0."""
    return T0 + timedelta(minutes=minutes)


def play(winner, *players, minutes=0):
    return Play(players=tuple(players), winner=winner, timestamp=at(minutes))


def roster(*names):
    return [Player(name) for name in names]


# ═══════════════════════════════════════════════════════════════════════════════
# 1. ACTIVE ROSTER
# ═══════════════════════════════════════════════════════════════════════════════

class TestActiveRoster:

    def test_only_active_players(self):
        players = [Player("Alice"), Player("Bob", active=False), Player("Carol")]
        assert roster_names(active_roster(players)) == ["Alice", "Carol"]

    def test_sorted_by_name(self):
        players = [Player("Carol"), Player("Alice"), Player("Bob")]
        assert roster_names(active_roster(players)) == ["Alice", "Bob", "Carol"]

    def test_case_does_not_decide_order(self):
        players = [Player("dave"), Player("Carol"), Player("alice")]
        assert roster_names(active_roster(players)) == ["alice", "Carol", "dave"]

    def test_ties_keep_input_order(self):
        first, second = Player("Sam"), Player("Sam")
        result = active_roster([first, Player("Ann"), second])
        assert result[1] is first
        assert result[2] is second

    def test_does_not_reorder_input(self):
        players = [Player("Carol"), Player("Alice")]
        active_roster(players)
        assert [p.name for p in players] == ["Carol", "Alice"]

    def test_empty(self):
        assert active_roster([]) == []


# ═══════════════════════════════════════════════════════════════════════════════
# 2. APPLICABLE PLAYS
# ═══════════════════════════════════════════════════════════════════════════════

class TestApplicablePlays:

    def test_exact_roster_matches(self):
        game = Game("Chess", [play("Alice", "Alice", "Bob")])
        assert len(applicable_plays(game, ["Alice", "Bob"])) == 1

    def test_subset_does_not_match(self):
        game = Game("Chess", [play("Alice", "Alice", "Bob")])
        assert applicable_plays(game, ["Alice"]) == []

    def test_superset_does_not_match(self):
        game = Game("Chess", [play("Alice", "Alice", "Bob")])
        assert applicable_plays(game, ["Alice", "Bob", "Carol"]) == []

    def test_invariant_under_roster_permutation(self):
        game = Game("Catan", [
            play("Alice", "Carol", "Alice", "Bob", minutes=1),
            play("Bob", "Alice", "Bob", minutes=2),
            play("Carol", "Bob", "Alice", "Carol", minutes=3),
        ])
        expected = applicable_plays(game, ["Alice", "Bob", "Carol"])
        assert len(expected) == 2
        for order in itertools.permutations(["Alice", "Bob", "Carol"]):
            assert applicable_plays(game, list(order)) == expected

    def test_stored_player_order_is_untouched(self):
        stored = play("Bob", "Carol", "Bob", "Alice")
        game = Game("Catan", [stored])
        applicable_plays(game, ["Alice", "Bob", "Carol"])
        assert game.plays[0].players == ("Carol", "Bob", "Alice")

    def test_roster_argument_is_untouched(self):
        names = ["Carol", "Alice", "Bob"]
        applicable_plays(Game("Catan", [play("Bob", "Alice", "Bob", "Carol")]), names)
        assert names == ["Carol", "Alice", "Bob"]

    def test_keeps_insertion_order(self):
        late = play("Alice", "Alice", "Bob", minutes=10)
        early = play("Bob", "Alice", "Bob", minutes=1)
        game = Game("Chess", [late, early])
        assert applicable_plays(game, ["Alice", "Bob"]) == [late, early]

    def test_history_sorted_by_timestamp(self):
        late = play("Alice", "Alice", "Bob", minutes=10)
        early = play("Bob", "Alice", "Bob", minutes=1)
        game = Game("Chess", [late, early])
        assert play_history(game, ["Alice", "Bob"]) == [early, late]

    def test_no_plays(self):
        assert applicable_plays(Game("Chess"), ["Alice"]) == []


# ═══════════════════════════════════════════════════════════════════════════════
# 3. CURRENT RECORD
# ═══════════════════════════════════════════════════════════════════════════════

class TestCurrentRecord:

    def test_empty_game_is_zero_zero(self):
        assert current_record("Alice", roster("Alice", "Bob"), Game("Chess")) == (0, 0)

    def test_every_other_win_is_a_loss(self):
        game = Game("Catan", [
            play("Alice", "Alice", "Bob", "Carol"),
            play("Bob", "Alice", "Bob", "Carol"),
            play("Carol", "Alice", "Bob", "Carol"),
            play("Carol", "Alice", "Bob", "Carol"),
        ])
        players = roster("Alice", "Bob", "Carol")
        assert current_record("Alice", players, game) == (1, 3)
        assert current_record("Carol", players, game) == (2, 2)

    def test_only_applicable_plays_count(self):
        game = Game("Chess", [
            play("Alice", "Alice", "Bob"),
            play("Alice", "Alice", "Carol"),
        ])
        assert current_record("Alice", roster("Alice", "Bob"), game) == (1, 0)

    def test_wins_plus_losses_is_applicable_count(self):
        game = Game("Catan", [
            play("Alice", "Alice", "Bob", "Carol"),
            play("Bob", "Bob", "Alice"),
            play("Carol", "Carol", "Bob", "Alice"),
        ])
        players = roster("Alice", "Bob", "Carol")
        applicable = len(applicable_plays(game, roster_names(players)))
        for name in ("Alice", "Bob", "Carol", "Nobody"):
            wins, losses = current_record(name, players, game)
            assert wins + losses == applicable

    def test_repeat_calls_agree(self):
        game = Game("Chess", [play("Alice", "Alice", "Bob"), play("Bob", "Bob", "Alice")])
        players = roster("Alice", "Bob")
        assert current_record("Bob", players, game) == current_record("Bob", players, game)


# ═══════════════════════════════════════════════════════════════════════════════
# 4. WIN STREAK
# ═══════════════════════════════════════════════════════════════════════════════

class TestWinStreak:

    def test_no_plays(self):
        assert win_streak([]) is None

    def test_single_play(self):
        assert win_streak([play("Alice", "Alice", "Bob")]) == ("Alice", 1)

    def test_counts_latest_run_only(self):
        plays = [
            play("Alice", "Alice", "Bob", minutes=1),
            play("Alice", "Alice", "Bob", minutes=2),
            play("Bob", "Alice", "Bob", minutes=3),
            play("Bob", "Alice", "Bob", minutes=4),
            play("Bob", "Alice", "Bob", minutes=5),
        ]
        assert win_streak(plays) == ("Bob", 3)

    def test_run_back_to_start(self):
        plays = [play("Carol", "Carol", "Bob", minutes=m) for m in range(4)]
        assert win_streak(plays) == ("Carol", 4)

    def test_backdated_play_breaks_streak_in_timestamp_order(self):
        game = Game("Chess", [
            play("Alice", "Alice", "Bob", minutes=1),
            play("Alice", "Alice", "Bob", minutes=3),
            play("Bob", "Alice", "Bob", minutes=2),
        ])
        assert win_streak(play_history(game, ["Alice", "Bob"])) == ("Alice", 1)


# ═══════════════════════════════════════════════════════════════════════════════
# 5. SCENARIOS
# ═══════════════════════════════════════════════════════════════════════════════

class TestScenarios:

    @pytest.fixture
    def chess(self):
        return Game("Chess", [
            play("Alice", "Alice", "Bob", minutes=1),
            play("Alice", "Alice", "Bob", minutes=2),
        ])

    def test_both_players_active(self, chess):
        players = [Player("Alice"), Player("Bob")]
        current = active_roster(players)
        assert current_record("Alice", current, chess) == (2, 0)
        assert current_record("Bob", current, chess) == (0, 2)
        assert win_streak(play_history(chess, roster_names(current))) == ("Alice", 2)

    def test_deactivated_player_hides_history(self, chess):
        players = [Player("Alice"), Player("Bob", active=False)]
        current = active_roster(players)
        assert current_record("Alice", current, chess) == (0, 0)
        assert win_streak(play_history(chess, roster_names(current))) is None


# ═══════════════════════════════════════════════════════════════════════════════
# 6. HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

class TestHelpers:

    def test_find_by_name_ignores_case(self):
        games = [Game("Chess"), Game("Catan")]
        assert find_by_name(games, "CHESS") is games[0]

    def test_find_by_name_first_match_wins(self):
        players = [Player("Sam"), Player("sam")]
        assert find_by_name(players, "SAM") is players[0]

    def test_find_by_name_missing(self):
        assert find_by_name([Game("Chess")], "Go") is None

    def test_sorted_games_leaves_list_alone(self):
        games = [Game("Go"), Game("chess"), Game("Azul")]
        assert [g.name for g in sorted_games(games)] == ["Azul", "chess", "Go"]
        assert [g.name for g in games] == ["Go", "chess", "Azul"]

    def test_format_record(self):
        assert format_record((3, 1)) == "3-1"

    def test_play_is_frozen(self):
        p = play("Alice", "Alice", "Bob")
        with pytest.raises(AttributeError):
            p.winner = "Bob"


# ═══════════════════════════════════════════════════════════════════════════════
# 7. COLLATION
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def restore_collation():
    setlocale = locale.setlocale
    saved = setlocale(locale.LC_COLLATE)
    yield
    setlocale(locale.LC_COLLATE, saved)


class TestCollation:

    def test_environment_locale_applied(self, restore_collation, monkeypatch):
        calls = []
        monkeypatch.setattr(locale, "setlocale", lambda category, value=None: calls.append((category, value)))
        assert use_environment_collation() is True
        assert calls == [(locale.LC_COLLATE, "")]

    def test_missing_locale_tolerated(self, restore_collation, monkeypatch, caplog):
        def unavailable(category, value=None):
            raise locale.Error("unsupported locale setting")
        monkeypatch.setattr(locale, "setlocale", unavailable)
        assert use_environment_collation() is False
        assert "not available" in caplog.text

    def test_accented_names_sort_by_language(self, restore_collation, monkeypatch):
        monkeypatch.setenv("LC_ALL", "en_US.UTF-8")
        if not use_environment_collation():
            pytest.skip("en_US.UTF-8 locale is not installed")
        names = roster_names(active_roster([Player("Zoe"), Player("Émile"), Player("adam")]))
        assert names == ["adam", "Émile", "Zoe"]
