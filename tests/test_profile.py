import pytest

from bingo_stats import build_participation_history, build_player_profile, summarize_player
from bingo_stats.models import parse_player

from conftest import player_doc


def test_history_is_chronological_and_skips_other_players(make_match):
    matches = [
        make_match("3", "2025-01-03", ["ana", "bo"], "ana"),
        make_match("x", "2025-01-02", ["bo", "cy"], "bo"),
        make_match("1", "2025-01-01", ["ana", "bo"], "bo"),
    ]

    history = build_participation_history("ana", matches)

    assert [r.match.id for r in history] == ["1", "3"]
    assert [r.is_winner for r in history] == [False, True]


def test_summary(make_match):
    matches = [
        make_match("1", "2025-01-01", ["ana", "bo"], "ana", time_taken="1h", outcome="blackout"),
        make_match("2", "2025-01-02", ["ana", "bo"], "ana", time_taken="30m"),
        make_match("3", "2025-01-03", ["ana", "bo"], "bo"),
        make_match("4", "2025-01-04", ["ana", "bo"], None, outcome="draw", time_taken="2h"),
    ]

    s = summarize_player(build_participation_history("ana", matches))

    assert (s.total_matches, s.wins, s.losses) == (4, 2, 2)
    assert s.win_rate == pytest.approx(50.0)
    assert s.total_minutes == 210
    assert s.avg_minutes == 70
    assert (s.current_streak, s.longest_streak) == (0, 2)
    assert (s.blackout_wins, s.bingo_wins) == (1, 1)


def test_empty_summary():
    s = summarize_player([])
    assert s.total_matches == 0
    assert s.win_rate == 0
    assert s.avg_minutes == 0


def test_build_player_profile(make_series):
    matches = make_series("ana", "bo", "WWWL", time_taken="45m")
    player = parse_player(player_doc("ana"))

    prof = build_player_profile(player, matches)

    assert prof.player is player
    assert [m.id for m in prof.matches][0] == matches[-1].id  # newest first
    assert prof.stats.wins == 3
    assert [u.achievement.id for u in prof.achievements] == ["first-blood", "hot-streak", "speed-demon"]
    assert prof.head_to_head[0].opponent.id == "bo"
    assert (prof.head_to_head[0].wins, prof.head_to_head[0].losses) == (3, 1)
