# bingo_stats/__init__.py
"""Stats engine - pure derivations over archived bingo matches."""

from utils.durations import format_minutes, format_total, parse_duration

from .models import (
    ACCOLADES,
    OUTCOMES,
    OUTCOME_LABELS,
    PLAYER_COLORS,
    Board,
    Comment,
    Match,
    MatchPlayer,
    Player,
    parse_match,
    parse_matches,
    parse_player,
)
from .aggregate import (
    ChartData,
    MatchDurationStats,
    PlayerStats,
    StatsResult,
    compute_stats,
    compute_streaks,
)
from .profile import (
    ParticipationRecord,
    PlayerProfile,
    PlayerStatsSummary,
    build_participation_history,
    build_player_profile,
    summarize_player,
)
from .achievements import ACHIEVEMENTS, Achievement, UnlockedAchievement, compute_player_achievements
from .head_to_head import HeadToHeadRecord, compute_head_to_head
from .service import StatsService

__all__ = [
    # Durations
    "parse_duration",
    "format_minutes",
    "format_total",
    # Entities
    "ACCOLADES",
    "OUTCOMES",
    "OUTCOME_LABELS",
    "PLAYER_COLORS",
    "Board",
    "Comment",
    "Match",
    "MatchPlayer",
    "Player",
    "parse_match",
    "parse_matches",
    "parse_player",
    # Aggregates
    "ChartData",
    "MatchDurationStats",
    "PlayerStats",
    "StatsResult",
    "compute_stats",
    "compute_streaks",
    # Profiles
    "ParticipationRecord",
    "PlayerProfile",
    "PlayerStatsSummary",
    "build_participation_history",
    "build_player_profile",
    "summarize_player",
    "ACHIEVEMENTS",
    "Achievement",
    "UnlockedAchievement",
    "compute_player_achievements",
    "HeadToHeadRecord",
    "compute_head_to_head",
    # Service
    "StatsService",
]
