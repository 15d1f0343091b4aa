"""Record entities as the stats engine sees them.

Rows come back from the record store as nested dicts
(match -> board, match_players -> player, comments). `parse_match` and
friends turn them into dataclasses; anything missing gets a neutral default
so a half-filled row never blows up a leaderboard.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from utils.dates import parse_played_at, parse_timestamp
from utils.durations import parse_duration

OUTCOMES = ("bingo", "blackout", "abandoned", "draw")
WINNABLE_OUTCOMES = ("bingo", "blackout")

OUTCOME_LABELS = {
    "bingo": "Bingo",
    "blackout": "Blackout",
    "abandoned": "Abandoned",
    "draw": "Draw",
}

# Optional match tags, flavor only
ACCOLADES = {
    "short": "Short",
    "long": "Long",
    "close": "Close",
    "comeback": "Comeback",
    "first-win": "First Win",
    "rematch": "Rematch",
    "practice": "Practice",
    "tournament": "Tournament",
}

# Matches the colors on the bingo boards
PLAYER_COLORS = {
    "Purple": "#9b59b6",
    "Red": "#e74c3c",
    "Blue": "#5dade2",
}

DEFAULT_PLAYER_COLOR = "#d4a84a"


@dataclass
class Player:
    id: str
    name: str
    color: str = DEFAULT_PLAYER_COLOR
    avatar_url: Optional[str] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Board:
    id: str
    image_url: str = ""
    image_path: str = ""
    source: str = "bingo-brawlers"
    perceptual_hash: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass
class MatchPlayer:
    id: str
    match_id: str
    player_id: str
    player: Player
    color: str = DEFAULT_PLAYER_COLOR
    position: int = 0
    is_winner: Optional[bool] = None

    @property
    def won(self) -> bool:
        # null/absent winner flag is a non-win
        return self.is_winner is True


@dataclass
class Comment:
    id: str
    match_id: str
    author_name: str
    content: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Match:
    id: str
    title: str
    played_at: Optional[date]
    outcome: str = "bingo"
    board_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    accolades: List[str] = field(default_factory=list)
    board: Optional[Board] = None
    match_players: List[MatchPlayer] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def time_taken(self) -> Optional[str]:
        raw = self.metadata.get("time_taken")
        return raw if isinstance(raw, str) and raw.strip() else None

    @property
    def notes(self) -> Optional[str]:
        raw = self.metadata.get("notes")
        return raw if isinstance(raw, str) and raw.strip() else None

    @property
    def minutes(self) -> float:
        """Parsed duration; 0 means 'no recorded time'."""
        return parse_duration(self.time_taken or "")

    def participant(self, player_id: str) -> Optional[MatchPlayer]:
        for mp in self.match_players:
            if mp.player_id == player_id:
                return mp
        return None

    def winners(self) -> List[MatchPlayer]:
        return [mp for mp in self.match_players if mp.won]


# ---------------------------------------------------------------------------
# dict -> dataclass
# ---------------------------------------------------------------------------

def _s(v: Any, default: str = "") -> str:
    if v is None:
        return default
    return str(v)


def _opt_int(v: Any) -> Optional[int]:
    try:
        return int(v) if v is not None else None
    except (TypeError, ValueError):
        return None


def parse_player(doc: Mapping[str, Any]) -> Player:
    return Player(
        id=_s(doc.get("id")),
        name=_s(doc.get("name"), "(unknown)"),
        color=_s(doc.get("color")) or DEFAULT_PLAYER_COLOR,
        avatar_url=doc.get("avatar_url") or None,
        user_id=_s(doc.get("user_id")) or None,
        created_at=parse_timestamp(doc.get("created_at")),
        updated_at=parse_timestamp(doc.get("updated_at")),
    )


def parse_board(doc: Mapping[str, Any]) -> Board:
    return Board(
        id=_s(doc.get("id")),
        image_url=_s(doc.get("image_url")),
        image_path=_s(doc.get("image_path")),
        source=_s(doc.get("source")) or "bingo-brawlers",
        perceptual_hash=doc.get("perceptual_hash") or None,
        width=_opt_int(doc.get("width")),
        height=_opt_int(doc.get("height")),
        created_at=parse_timestamp(doc.get("created_at")),
    )


def parse_match_player(doc: Mapping[str, Any], match_id: str = "") -> MatchPlayer:
    pdoc = doc.get("player")
    player_id = _s(doc.get("player_id"))
    if isinstance(pdoc, Mapping):
        player = parse_player(pdoc)
        player_id = player_id or player.id
    else:
        player = Player(id=player_id, name="(unknown)")

    winner = doc.get("is_winner")
    return MatchPlayer(
        id=_s(doc.get("id")),
        match_id=_s(doc.get("match_id")) or match_id,
        player_id=player_id,
        player=player,
        color=_s(doc.get("color")) or player.color,
        position=_opt_int(doc.get("position")) or 0,
        is_winner=winner if isinstance(winner, bool) else None,
    )


def parse_comment(doc: Mapping[str, Any]) -> Comment:
    return Comment(
        id=_s(doc.get("id")),
        match_id=_s(doc.get("match_id")),
        author_name=_s(doc.get("author_name"), "Anonymous"),
        content=_s(doc.get("content")),
        created_at=parse_timestamp(doc.get("created_at")),
        updated_at=parse_timestamp(doc.get("updated_at")),
    )


def parse_match(doc: Mapping[str, Any]) -> Match:
    mid = _s(doc.get("id"))

    meta = doc.get("metadata")
    if not isinstance(meta, Mapping):
        meta = {}

    accolades = doc.get("accolades")
    if not isinstance(accolades, list):
        accolades = []

    bdoc = doc.get("board")
    mps = [
        parse_match_player(x, mid)
        for x in (doc.get("match_players") or [])
        if isinstance(x, Mapping)
    ]
    mps.sort(key=lambda mp: mp.position)

    comments = [parse_comment(x) for x in (doc.get("comments") or []) if isinstance(x, Mapping)]

    outcome = _s(doc.get("outcome"), "bingo").lower()
    if outcome not in OUTCOMES:
        outcome = "bingo"

    return Match(
        id=mid,
        title=_s(doc.get("title"), "Untitled match"),
        played_at=parse_played_at(doc.get("played_at")),
        outcome=outcome,
        board_id=_s(doc.get("board_id")) or None,
        metadata=dict(meta),
        accolades=[str(a) for a in accolades],
        board=parse_board(bdoc) if isinstance(bdoc, Mapping) else None,
        match_players=mps,
        comments=comments,
        created_at=parse_timestamp(doc.get("created_at")),
        updated_at=parse_timestamp(doc.get("updated_at")),
    )


def parse_matches(docs: Any) -> List[Match]:
    return [parse_match(d) for d in (docs or []) if isinstance(d, Mapping)]
