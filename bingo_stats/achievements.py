"""Badge catalog and unlock rules.

Counts come from the player's stats summary; the unlock date for each badge
is found by scanning the participation history oldest-first and taking the
match where the threshold was first crossed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, List, Optional, Sequence

from utils.logger import log_debug

from .profile import ParticipationRecord, PlayerStatsSummary

RARITY_EMOJIS = {
    "common": "⚪",
    "rare": "🔵",
    "epic": "🟣",
    "legendary": "🟡",
}


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    icon: str
    rarity: str


@dataclass(frozen=True)
class UnlockedAchievement:
    achievement: Achievement
    unlocked_at: date


ACHIEVEMENTS: List[Achievement] = [
    Achievement("first-blood", "First Blood", "Win your first match", "🩸", "common"),
    Achievement("veteran", "Veteran", "Win 10 matches", "🎖️", "rare"),
    Achievement("champion", "Champion", "Win 25 matches", "🏆", "epic"),
    Achievement("legend", "Legend", "Win 50 matches", "👑", "legendary"),
    Achievement("hot-streak", "Hot Streak", "Win 3 matches in a row", "🔥", "rare"),
    Achievement("unstoppable", "Unstoppable", "Win 5 matches in a row", "⚡", "epic"),
    Achievement("elden-lord", "Elden Lord", "Win 10 matches in a row", "💍", "legendary"),
    Achievement("speed-demon", "Speed Demon", "Win a match in under an hour", "⏱️", "rare"),
    Achievement("lightning", "Lightning", "Win a match in under 45 minutes", "🌩️", "epic"),
    Achievement("dedicated", "Dedicated", "Play 10 matches", "📅", "common"),
    Achievement("regular", "Regular", "Play 25 matches", "🗓️", "rare"),
    Achievement("addicted", "Addicted", "Play 50 matches", "🎲", "epic"),
    Achievement("blackout-king", "Blackout King", "Win by blackout", "🌑", "rare"),
    Achievement("perfectionist", "Perfectionist", "Win 5 matches by blackout", "💎", "legendary"),
    Achievement("survivor", "Survivor", "Play a match lasting 3 hours or more", "🛡️", "rare"),
]

ACHIEVEMENTS_BY_ID: Dict[str, Achievement] = {a.id: a for a in ACHIEVEMENTS}


# ---------------------------------------------------------------------------
# Unlock-date scans (history is oldest first)
# ---------------------------------------------------------------------------

def _nth(history: Sequence[ParticipationRecord], n: int,
         pred: Callable[[ParticipationRecord], bool]) -> Optional[date]:
    count = 0
    for rec in history:
        if pred(rec):
            count += 1
            if count == n:
                return rec.played_at
    return None


def nth_win_date(history: Sequence[ParticipationRecord], n: int) -> Optional[date]:
    return _nth(history, n, lambda r: r.is_winner)


def nth_match_date(history: Sequence[ParticipationRecord], n: int) -> Optional[date]:
    return _nth(history, n, lambda r: True)


def nth_blackout_win_date(history: Sequence[ParticipationRecord], n: int) -> Optional[date]:
    return _nth(history, n, lambda r: r.is_winner and r.outcome == "blackout")


def streak_date(history: Sequence[ParticipationRecord], length: int) -> Optional[date]:
    """Date of the match that first completed a run of `length` wins."""
    run = 0
    for rec in history:
        if rec.is_winner:
            run += 1
            if run == length:
                return rec.played_at
        else:
            run = 0
    return None


def first_fast_win_date(history: Sequence[ParticipationRecord], under_minutes: float) -> Optional[date]:
    # 0 minutes means "no recorded time", never a fast win
    return _nth(history, 1, lambda r: r.is_winner and 0 < r.minutes < under_minutes)


def first_long_match_date(history: Sequence[ParticipationRecord], min_minutes: float) -> Optional[date]:
    return _nth(history, 1, lambda r: r.minutes >= min_minutes)


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def compute_player_achievements(
    history: Sequence[ParticipationRecord],
    stats: PlayerStatsSummary,
) -> List[UnlockedAchievement]:
    """
    Badges unlocked by one player, in catalog order.

    A badge whose predicate holds but whose date cannot be found (for
    example a match missing played_at) is left out rather than dated
    arbitrarily.
    """
    h = list(history)

    candidates = [
        ("first-blood", stats.wins >= 1, lambda: nth_win_date(h, 1)),
        ("veteran", stats.wins >= 10, lambda: nth_win_date(h, 10)),
        ("champion", stats.wins >= 25, lambda: nth_win_date(h, 25)),
        ("legend", stats.wins >= 50, lambda: nth_win_date(h, 50)),
        ("hot-streak", stats.longest_streak >= 3, lambda: streak_date(h, 3)),
        ("unstoppable", stats.longest_streak >= 5, lambda: streak_date(h, 5)),
        ("elden-lord", stats.longest_streak >= 10, lambda: streak_date(h, 10)),
        ("speed-demon", True, lambda: first_fast_win_date(h, 60)),
        ("lightning", True, lambda: first_fast_win_date(h, 45)),
        ("dedicated", stats.total_matches >= 10, lambda: nth_match_date(h, 10)),
        ("regular", stats.total_matches >= 25, lambda: nth_match_date(h, 25)),
        ("addicted", stats.total_matches >= 50, lambda: nth_match_date(h, 50)),
        ("blackout-king", stats.blackout_wins >= 1, lambda: nth_blackout_win_date(h, 1)),
        ("perfectionist", stats.blackout_wins >= 5, lambda: nth_blackout_win_date(h, 5)),
        ("survivor", True, lambda: first_long_match_date(h, 180)),
    ]

    out: List[UnlockedAchievement] = []
    for aid, earned, find_date in candidates:
        if not earned:
            continue

        ach = ACHIEVEMENTS_BY_ID.get(aid)
        if ach is None:
            log_debug(f"[achievements] unknown id {aid!r}, skipping")
            continue

        when = find_date()
        if when is None:
            # scan-based rules (speed, survivor) land here when simply not earned
            log_debug(f"[achievements] no unlock date for {aid}, skipping")
            continue

        out.append(UnlockedAchievement(achievement=ach, unlocked_at=when))

    return out


def rarity_emoji(rarity: str) -> str:
    return RARITY_EMOJIS.get(rarity, "⚪")
