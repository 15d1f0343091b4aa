"""One player's view of the archive: history, summary, badges, rivals."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

from .aggregate import compute_streaks
from .models import Match, Player


@dataclass(frozen=True)
class ParticipationRecord:
    """One match from the point of view of a single participant."""
    match: Match
    is_winner: bool
    minutes: float

    @property
    def played_at(self) -> Optional[date]:
        return self.match.played_at

    @property
    def outcome(self) -> str:
        return self.match.outcome


@dataclass
class PlayerStatsSummary:
    total_matches: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    total_minutes: float = 0.0
    avg_minutes: float = 0.0
    current_streak: int = 0
    longest_streak: int = 0
    blackout_wins: int = 0
    bingo_wins: int = 0


@dataclass
class PlayerProfile:
    player: Player
    matches: List[Match] = field(default_factory=list)
    stats: PlayerStatsSummary = field(default_factory=PlayerStatsSummary)
    achievements: list = field(default_factory=list)      # List[UnlockedAchievement]
    head_to_head: list = field(default_factory=list)      # List[HeadToHeadRecord]


def build_participation_history(player_id: str, matches: Sequence[Match]) -> List[ParticipationRecord]:
    """Chronological (oldest first) history; matches without the player are skipped."""
    out: List[ParticipationRecord] = []
    for m in matches:
        mp = m.participant(player_id)
        if mp is None:
            continue
        out.append(ParticipationRecord(match=m, is_winner=mp.won, minutes=m.minutes))

    # stable: same-day matches keep their input order
    out.sort(key=lambda r: r.played_at or date.min)
    return out


def summarize_player(history: Sequence[ParticipationRecord]) -> PlayerStatsSummary:
    s = PlayerStatsSummary(total_matches=len(history))
    timed = 0

    for rec in history:
        if rec.is_winner:
            s.wins += 1
            if rec.outcome == "blackout":
                s.blackout_wins += 1
            elif rec.outcome == "bingo":
                s.bingo_wins += 1
        if rec.minutes > 0:
            s.total_minutes += rec.minutes
            timed += 1

    s.losses = s.total_matches - s.wins
    s.win_rate = (s.wins / s.total_matches) * 100.0 if s.total_matches else 0.0
    s.avg_minutes = (s.total_minutes / timed) if timed else 0.0
    s.current_streak, s.longest_streak = compute_streaks([r.is_winner for r in history])
    return s


def build_player_profile(player: Player, matches: Sequence[Match]) -> PlayerProfile:
    # local imports keep profile <- achievements/head_to_head one-directional
    from .achievements import compute_player_achievements
    from .head_to_head import compute_head_to_head

    history = build_participation_history(player.id, matches)
    summary = summarize_player(history)

    return PlayerProfile(
        player=player,
        matches=[r.match for r in reversed(history)],
        stats=summary,
        achievements=compute_player_achievements(history, summary),
        head_to_head=compute_head_to_head(player.id, matches),
    )
