from datetime import date

import pytest

from bingo_stats import compute_stats, compute_streaks


def _row(result, pid):
    return next(p for p in result.player_stats if p.player_id == pid)


def test_compute_streaks():
    assert compute_streaks([]) == (0, 0)
    assert compute_streaks([True, True, True, False, True, True]) == (2, 3)
    assert compute_streaks([True, False]) == (0, 1)
    assert compute_streaks([False, True, True]) == (2, 2)


def test_empty_input():
    for empty in ([], None):
        result = compute_stats(empty)
        assert result.total_matches == 0
        assert result.total_minutes_played == 0
        assert result.player_stats == []
        assert result.chart_data.cumulative_wins == []
        assert result.chart_data.monthly_matches == []
        assert result.match_duration_stats.longest is None
        assert result.match_duration_stats.shortest is None


def test_streaks_follow_play_date_not_input_order(make_series):
    matches = make_series("ana", "bo", "WWWLWW")
    matches.reverse()  # the store hands back newest first

    result = compute_stats(matches)
    ana = _row(result, "ana")

    assert ana.wins == 5
    assert ana.matches == 6
    assert ana.win_rate == pytest.approx(500 / 6)
    assert ana.longest_streak == 3
    assert ana.current_streak == 2

    bo = _row(result, "bo")
    assert (bo.current_streak, bo.longest_streak) == (0, 1)


def test_leaderboard_order_wins_then_matches_then_name(make_match):
    matches = [
        make_match("1", "2025-01-01", ["cy", "bo"], "cy"),
        make_match("2", "2025-01-02", ["bo", "ana"], "bo"),
        make_match("3", "2025-01-03", ["ana", "dee"], "ana"),
        make_match("4", "2025-01-04", ["cy", "dee"], "dee"),
    ]

    result = compute_stats(matches)

    # everyone has 1 win; bo/cy/ana/dee have 2 matches each -> alphabetical
    assert [p.player_name for p in result.player_stats] == ["Ana", "Bo", "Cy", "Dee"]

    matches.append(make_match("5", "2025-01-05", ["dee", "eve"], "eve"))
    result = compute_stats(matches)
    assert [p.player_name for p in result.player_stats][-1] == "Eve"
    assert result.player_stats[0].player_name == "Dee"


def test_duration_stats_ignore_untimed_matches(make_match):
    matches = [
        make_match("a", "2025-01-01", ["ana"], "ana", time_taken="1h"),
        make_match("b", "2025-01-02", ["ana"], "ana", time_taken="30m"),
        make_match("c", "2025-01-03", ["ana"], "ana", time_taken="whenever"),
        make_match("d", "2025-01-04", ["ana"], "ana"),
    ]

    result = compute_stats(matches)
    d = result.match_duration_stats

    assert result.total_minutes_played == 90
    assert d.matches_with_time == 2
    assert d.average_minutes == 45
    assert d.longest.id == "a"
    assert d.shortest.id == "b"

    ana = _row(result, "ana")
    assert ana.total_minutes == 90
    assert ana.avg_minutes == 45


def test_first_match_wins_duration_ties(make_match):
    matches = [
        make_match("a", "2025-01-01", ["ana"], "ana", time_taken="40m"),
        make_match("b", "2025-01-02", ["ana"], "ana", time_taken="40m"),
    ]
    d = compute_stats(matches).match_duration_stats
    assert d.longest.id == "a"
    assert d.shortest.id == "a"


def test_match_without_players_still_counts(make_match):
    result = compute_stats([make_match("a", "2025-01-01", [], time_taken="20m")])
    assert result.total_matches == 1
    assert result.total_minutes_played == 20
    assert result.player_stats == []


def test_chart_data_folds_same_day_matches(make_match):
    matches = [
        make_match("1", "2025-01-05", ["ana", "bo"], "ana"),
        make_match("2", "2025-01-05", ["ana", "bo"], "ana"),
        make_match("3", "2025-02-10", ["ana", "bo"], "bo"),
        make_match("4", None, ["ana", "bo"], "bo"),
    ]

    chart = compute_stats(matches).chart_data

    assert [pt.day for pt in chart.cumulative_wins] == [date(2025, 1, 5), date(2025, 2, 10)]
    assert chart.cumulative_wins[0].wins == {"Ana": 2, "Bo": 0}
    assert chart.cumulative_wins[1].wins == {"Ana": 2, "Bo": 1}
    assert chart.cumulative_wins[0].label == "Jan 5"

    assert [(m.month, m.label, m.matches) for m in chart.monthly_matches] == [
        ("2025-01", "Jan 2025", 2),
        ("2025-02", "Feb 2025", 1),
    ]
    assert set(chart.player_colors) == {"Ana", "Bo"}


def test_compute_stats_returns_fresh_objects(make_series):
    matches = make_series("ana", "bo", "WL")
    a = compute_stats(matches)
    b = compute_stats(matches)
    assert a is not b
    assert a.player_stats[0] is not b.player_stats[0]
    assert a.total_matches == b.total_matches
