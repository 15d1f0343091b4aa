"""League-wide stats from a list of matches.

compute_stats() is a pure function of its input: no I/O, no caching, fresh
result objects every call. Callers that need it off the event loop wrap it
in asyncio.to_thread (see bingo_stats.service).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from utils.dates import day_label, month_key, month_label

from .models import Match


@dataclass
class PlayerStats:
    player_id: str
    player_name: str
    player_color: str
    wins: int = 0
    matches: int = 0
    win_rate: float = 0.0          # percent, 0..100
    total_minutes: float = 0.0
    avg_minutes: float = 0.0       # over matches with a recorded time only
    current_streak: int = 0
    longest_streak: int = 0
    timed_matches: int = 0


@dataclass
class MatchDurationStats:
    longest: Optional[Match] = None
    shortest: Optional[Match] = None
    longest_minutes: float = 0.0
    shortest_minutes: float = 0.0
    average_minutes: float = 0.0
    total_minutes: float = 0.0
    matches_with_time: int = 0


@dataclass
class CumulativeWinsPoint:
    day: date
    label: str
    wins: Dict[str, int]           # player name -> wins so far (after this day)


@dataclass
class MonthlyMatchCount:
    month: str                     # 'YYYY-MM'
    label: str                     # 'Jan 2025'
    matches: int


@dataclass
class ChartData:
    cumulative_wins: List[CumulativeWinsPoint] = field(default_factory=list)
    monthly_matches: List[MonthlyMatchCount] = field(default_factory=list)
    player_colors: Dict[str, str] = field(default_factory=dict)

    @property
    def player_names(self) -> List[str]:
        return list(self.player_colors.keys())


@dataclass
class StatsResult:
    total_matches: int = 0
    total_minutes_played: float = 0.0
    match_duration_stats: MatchDurationStats = field(default_factory=MatchDurationStats)
    player_stats: List[PlayerStats] = field(default_factory=list)
    chart_data: ChartData = field(default_factory=ChartData)

    @property
    def total_hours(self) -> float:
        return self.total_minutes_played / 60.0


# ---------------------------------------------------------------------------
# Streaks
# ---------------------------------------------------------------------------

def compute_streaks(results: Sequence[bool]) -> Tuple[int, int]:
    """
    (current_streak, longest_streak) for a chronological list of win flags.

    Longest: best run of consecutive wins scanning forward.
    Current: trailing run ending at the most recent result.
    """
    longest = 0
    run = 0
    for won in results:
        if won:
            run += 1
            if run > longest:
                longest = run
        else:
            run = 0
    # `run` is now the trailing run
    return run, longest


def _chrono_key(m: Match) -> date:
    return m.played_at or date.min


# ---------------------------------------------------------------------------
# Duration stats
# ---------------------------------------------------------------------------

def compute_duration_stats(matches: Sequence[Match]) -> MatchDurationStats:
    out = MatchDurationStats()
    for m in matches:
        minutes = m.minutes
        if minutes <= 0:
            continue

        out.total_minutes += minutes
        out.matches_with_time += 1

        # strict comparisons: first match wins ties
        if out.longest is None or minutes > out.longest_minutes:
            out.longest = m
            out.longest_minutes = minutes
        if out.shortest is None or minutes < out.shortest_minutes:
            out.shortest = m
            out.shortest_minutes = minutes

    if out.matches_with_time:
        out.average_minutes = out.total_minutes / out.matches_with_time
    return out


# ---------------------------------------------------------------------------
# Per-player rows
# ---------------------------------------------------------------------------

def _leaderboard_key(p: PlayerStats):
    return (-p.wins, -p.matches, p.player_name, p.player_id)


def compute_player_stats(matches: Sequence[Match]) -> List[PlayerStats]:
    rows: Dict[str, PlayerStats] = {}
    history: Dict[str, List[Tuple[date, bool]]] = {}

    for m in matches:
        minutes = m.minutes
        for mp in m.match_players:
            pid = mp.player_id or mp.player.id
            row = rows.get(pid)
            if row is None:
                row = PlayerStats(
                    player_id=pid,
                    player_name=mp.player.name,
                    player_color=mp.player.color,
                )
                rows[pid] = row
                history[pid] = []

            row.matches += 1
            if mp.won:
                row.wins += 1
            if minutes > 0:
                row.total_minutes += minutes
                row.timed_matches += 1

            history[pid].append((_chrono_key(m), mp.won))

    for pid, row in rows.items():
        row.win_rate = (row.wins / row.matches) * 100.0 if row.matches else 0.0
        row.avg_minutes = (row.total_minutes / row.timed_matches) if row.timed_matches else 0.0

        ordered = sorted(history[pid], key=lambda h: h[0])
        row.current_streak, row.longest_streak = compute_streaks([won for _, won in ordered])

    return sorted(rows.values(), key=_leaderboard_key)


# ---------------------------------------------------------------------------
# Chart series
# ---------------------------------------------------------------------------

def compute_chart_data(matches: Sequence[Match]) -> ChartData:
    colors: Dict[str, str] = {}
    by_day: Dict[date, List[Match]] = {}
    by_month: Dict[str, int] = {}

    for m in matches:
        for mp in m.match_players:
            colors.setdefault(mp.player.name, mp.player.color)
        if m.played_at is None:
            continue
        by_day.setdefault(m.played_at, []).append(m)
        mk = month_key(m.played_at)
        by_month[mk] = by_month.get(mk, 0) + 1

    running: Dict[str, int] = {name: 0 for name in colors}
    points: List[CumulativeWinsPoint] = []
    for d in sorted(by_day):
        for m in by_day[d]:
            for mp in m.winners():
                running[mp.player.name] = running.get(mp.player.name, 0) + 1
        points.append(CumulativeWinsPoint(day=d, label=day_label(d), wins=dict(running)))

    monthly = [
        MonthlyMatchCount(month=mk, label=month_label(mk), matches=by_month[mk])
        for mk in sorted(by_month)
    ]

    return ChartData(cumulative_wins=points, monthly_matches=monthly, player_colors=colors)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def compute_stats(matches: Optional[Sequence[Match]]) -> StatsResult:
    """
    Build every aggregate the stats views need from one match snapshot.

    An empty (or None) list yields zeros and empty collections.
    """
    matches = list(matches or [])
    durations = compute_duration_stats(matches)

    return StatsResult(
        total_matches=len(matches),
        total_minutes_played=durations.total_minutes,
        match_duration_stats=durations,
        player_stats=compute_player_stats(matches),
        chart_data=compute_chart_data(matches),
    )
