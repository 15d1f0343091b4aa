from typing import Dict, List, Optional, Sequence

import pytest

from bingo_stats.models import Match, parse_match

COLORS = ["#9b59b6", "#e74c3c", "#5dade2"]


def player_doc(pid: str, name: Optional[str] = None, color: Optional[str] = None, user_id: Optional[str] = None) -> Dict:
    return {
        "id": pid,
        "name": name or pid.title(),
        "color": color or COLORS[sum(map(ord, pid)) % len(COLORS)],
        "user_id": user_id,
    }


def match_doc(
    mid: str,
    played_at: Optional[str],
    players: Sequence[str],
    winner: Optional[str] = None,
    *,
    outcome: str = "bingo",
    time_taken: Optional[str] = None,
    title: Optional[str] = None,
) -> Dict:
    """Record-store shaped match row. `players` are player ids."""
    meta = {}
    if time_taken is not None:
        meta["time_taken"] = time_taken
    return {
        "id": mid,
        "title": title or f"Match {mid}",
        "played_at": played_at,
        "outcome": outcome,
        "metadata": meta,
        "accolades": [],
        "match_players": [
            {
                "id": f"{mid}-{pid}",
                "match_id": mid,
                "player_id": pid,
                "position": i,
                "is_winner": pid == winner,
                "player": player_doc(pid),
            }
            for i, pid in enumerate(players)
        ],
    }


def build_match(*args, **kwargs) -> Match:
    return parse_match(match_doc(*args, **kwargs))


def series(pid: str, opp: str, results: str, *, start_day: int = 1, month: str = "2025-01", time_taken=None) -> List[Match]:
    """'WWL' -> three matches on consecutive days; W means `pid` won, L means `opp` won."""
    out = []
    for i, r in enumerate(results):
        day = f"{month}-{start_day + i:02d}"
        out.append(build_match(
            f"{pid}-{opp}-{month}-{i}",
            day,
            [pid, opp],
            pid if r == "W" else opp,
            time_taken=time_taken,
        ))
    return out


@pytest.fixture
def make_match():
    return build_match


@pytest.fixture
def make_series():
    return series
