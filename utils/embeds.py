# utils/embeds.py
"""Embed branding + small text formatters shared by the bingo cogs."""

from __future__ import annotations

from typing import Optional

import discord

from bingo_stats.models import OUTCOME_LABELS, Match
from .dates import short_date
from .durations import format_minutes
from .settings import BINGO

OUTCOME_EMOJIS = {
    "bingo": "🎯",
    "blackout": "🌑",
    "abandoned": "🏳️",
    "draw": "🤝",
}

MEDALS = ["🥇", "🥈", "🥉"]


def branded_embed(title: str, *, description: Optional[str] = None, footer: str = "") -> discord.Embed:
    emb = discord.Embed(
        title=title,
        description=description,
        color=int(BINGO.embed_color or 0xD4A84A),
    )

    thumb_url = BINGO.embed_thumbnail_url or ""
    if thumb_url.startswith(("http://", "https://")):
        emb.set_thumbnail(url=thumb_url)

    if footer:
        emb.set_footer(text=f"Bingo Brawlers • {footer}")
    return emb


def pct(x: float) -> str:
    """Percent value (0..100) to '42.9%'."""
    try:
        return f"{float(x):.1f}%"
    except (TypeError, ValueError):
        return "—"


def rank_marker(i: int) -> str:
    return MEDALS[i - 1] if 1 <= i <= len(MEDALS) else f"`#{i}`"


def outcome_label(outcome: str) -> str:
    return f"{OUTCOME_EMOJIS.get(outcome, '')} {OUTCOME_LABELS.get(outcome, outcome.title())}".strip()


def match_line(m: Match) -> str:
    """One-line summary: date, title, outcome, winner(s), time."""
    winners = ", ".join(mp.player.name for mp in m.winners()) or "—"
    parts = [
        f"`{short_date(m.played_at)}`",
        f"**{m.title}**",
        outcome_label(m.outcome),
        f"🏆 {winners}",
    ]
    if m.minutes > 0:
        parts.append(f"⏱️ {format_minutes(m.minutes)}")
    return " · ".join(parts) + f"\n`id: {m.id}`"
