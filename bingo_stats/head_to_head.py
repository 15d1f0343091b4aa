from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence

from .models import Match, Player


@dataclass
class HeadToHeadRecord:
    opponent: Player
    wins: int = 0       # subject won
    losses: int = 0     # subject didn't win, this opponent did
    total: int = 0      # every shared match

    @property
    def draws(self) -> int:
        return self.total - self.wins - self.losses


def compute_head_to_head(player_id: str, matches: Sequence[Match]) -> List[HeadToHeadRecord]:
    """
    Record against every player who shared a match with `player_id`.

    Busiest rivalries first; equal totals keep first-seen order.
    """
    records: Dict[str, HeadToHeadRecord] = {}

    for m in matches:
        me = m.participant(player_id)
        if me is None:
            continue

        for opp in m.match_players:
            if opp.player_id == player_id:
                continue

            rec = records.get(opp.player_id)
            if rec is None:
                rec = HeadToHeadRecord(opponent=opp.player)
                records[opp.player_id] = rec

            rec.total += 1
            if me.won:
                rec.wins += 1
            elif opp.won:
                rec.losses += 1

    return sorted(records.values(), key=lambda r: -r.total)
