# utils/submissions.py
"""Turn raw /submitmatch and /editmatch options into a checked submission."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from bingo_stats.models import ACCOLADES, OUTCOMES, PLAYER_COLORS, WINNABLE_OUTCOMES
from .dates import parse_played_at
from .durations import parse_duration

MAX_PLAYERS = 8


class SubmissionError(ValueError):
    pass


@dataclass
class SubmissionPlayer:
    name: str
    color: str
    is_winner: bool = False


@dataclass
class MatchSubmission:
    title: str
    played_at: date
    outcome: str
    players: List[SubmissionPlayer] = field(default_factory=list)
    time_taken: Optional[str] = None
    notes: Optional[str] = None
    accolades: List[str] = field(default_factory=list)

    def player_rows(self) -> List[dict]:
        return [{"name": p.name, "color": p.color, "is_winner": p.is_winner} for p in self.players]


def split_names(csv: Optional[str]) -> List[str]:
    """'Ana, bo ,, Cy' -> ['Ana', 'bo', 'Cy'] (first spelling of a duplicate wins)."""
    out: List[str] = []
    seen = set()
    for part in re.split(r"[,;\n]+", csv or ""):
        name = part.strip()
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())
        out.append(name)
    return out


def parse_accolades(csv: Optional[str]) -> List[str]:
    """Accepts ids or labels, any case; unknown tags raise."""
    by_label = {label.lower(): key for key, label in ACCOLADES.items()}
    out: List[str] = []
    for raw in split_names(csv):
        key = raw.lower().replace(" ", "-")
        if key not in ACCOLADES:
            key = by_label.get(raw.lower(), "")
        if not key:
            raise SubmissionError(
                f"Unknown accolade '{raw}'. Choose from: {', '.join(ACCOLADES.values())}."
            )
        if key not in out:
            out.append(key)
    return out


def check_time_taken(text: Optional[str]) -> Optional[str]:
    t = (text or "").strip()
    if not t:
        return None
    if parse_duration(t) <= 0:
        raise SubmissionError(f"Couldn't read time '{t}'. Use something like `1h 23m` or `45m`.")
    return t


def check_edit_winner(outcome: Optional[str], current_outcome: str, winner: Optional[str]) -> bool:
    """
    Winner rule for editing an archived match.

    Returns True when every winner flag should be cleared (the resulting
    outcome is a draw or abandoned game). Naming a winner for such an
    outcome raises SubmissionError.
    """
    effective = (outcome or current_outcome or "").strip().lower()
    if effective in WINNABLE_OUTCOMES:
        return False
    if (winner or "").strip():
        raise SubmissionError(f"A {effective} match has no winner.")
    return True


def assign_colors(names: List[str]) -> List[str]:
    palette = list(PLAYER_COLORS.values())
    return [palette[i % len(palette)] for i in range(len(names))]


def build_submission(
    *,
    title: str,
    outcome: str,
    players: str,
    winner: Optional[str] = None,
    time_taken: Optional[str] = None,
    notes: Optional[str] = None,
    accolades: Optional[str] = None,
    played_at: Optional[str] = None,
    today: Optional[date] = None,
) -> MatchSubmission:
    clean_title = (title or "").strip()
    if not clean_title:
        raise SubmissionError("A title is required.")

    oc = (outcome or "").strip().lower()
    if oc not in OUTCOMES:
        raise SubmissionError(f"Outcome must be one of: {', '.join(OUTCOMES)}.")

    names = split_names(players)
    if not names:
        raise SubmissionError("Add at least one player.")
    if len(names) > MAX_PLAYERS:
        raise SubmissionError(f"At most {MAX_PLAYERS} players per match.")

    winner_name = (winner or "").strip()
    if oc in WINNABLE_OUTCOMES:
        if not winner_name:
            raise SubmissionError(f"A {oc} needs a winner.")
        if winner_name.lower() not in {n.lower() for n in names}:
            raise SubmissionError(f"Winner '{winner_name}' isn't one of the players.")
    elif winner_name:
        raise SubmissionError(f"A {oc} match has no winner.")

    when = today or date.today()
    if played_at and played_at.strip():
        parsed = parse_played_at(played_at.strip())
        if parsed is None:
            raise SubmissionError(f"Couldn't read date '{played_at.strip()}'. Use YYYY-MM-DD.")
        when = parsed

    colors = assign_colors(names)
    return MatchSubmission(
        title=clean_title,
        played_at=when,
        outcome=oc,
        players=[
            SubmissionPlayer(name=n, color=c, is_winner=bool(winner_name) and n.lower() == winner_name.lower())
            for n, c in zip(names, colors)
        ],
        time_taken=check_time_taken(time_taken),
        notes=(notes or "").strip() or None,
        accolades=parse_accolades(accolades),
    )
