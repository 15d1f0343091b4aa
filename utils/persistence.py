# utils/persistence.py
"""
MongoDB-backed player sessions.

Maps a Discord user to their claimed player record so commands don't hit
the record store on every call. Documents expire via `expires_at` (TTL index
in db.ensure_indexes); reads also ignore anything already past it.

The collection is injected so tests can hand in an in-memory fake.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, TypedDict

from bingo_stats.models import PLAYER_COLORS, Player, parse_player
from record_store import RecordStoreError
from utils.logger import log_ok, log_sync


class PlayerSessionDoc(TypedDict, total=False):
    """Schema for player_sessions documents."""
    user_id: str
    player: Dict[str, Any]  # serialized Player
    expires_at: datetime
    updated_at: datetime


class NameTakenError(ValueError):
    pass


@dataclass
class SessionState:
    player: Optional[Player]
    needs_setup: bool


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _aware(dt: Any) -> Optional[datetime]:
    # Mongo hands back naive UTC datetimes unless tz_aware=True
    if not isinstance(dt, datetime):
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def player_to_doc(p: Player) -> Dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "color": p.color,
        "avatar_url": p.avatar_url,
        "user_id": p.user_id,
        "created_at": p.created_at.isoformat() if p.created_at else None,
        "updated_at": p.updated_at.isoformat() if p.updated_at else None,
    }


class PlayerSessionCache:
    def __init__(self, collection: Any, ttl_seconds: float = 3600.0):
        self.collection = collection
        self.ttl = timedelta(seconds=max(1.0, float(ttl_seconds)))

    async def get(self, user_id: str) -> Optional[Player]:
        doc = await self.collection.find_one({"user_id": str(user_id)})
        if not doc:
            return None

        expires_at = _aware(doc.get("expires_at"))
        if expires_at is None or expires_at <= _now_utc():
            return None

        pdoc = doc.get("player")
        if not isinstance(pdoc, dict):
            return None
        return parse_player(pdoc)

    async def put(self, user_id: str, player: Player) -> None:
        now = _now_utc()
        doc: PlayerSessionDoc = {
            "user_id": str(user_id),
            "player": player_to_doc(player),
            "expires_at": now + self.ttl,
            "updated_at": now,
        }
        await self.collection.update_one(
            {"user_id": str(user_id)},
            {"$set": doc},
            upsert=True,
        )

    async def invalidate(self, user_id: str) -> None:
        await self.collection.delete_one({"user_id": str(user_id)})

    async def clear(self) -> int:
        result = await self.collection.delete_many({})
        return int(getattr(result, "deleted_count", 0) or 0)


# ============================================================================
# SESSION FLOWS
# ============================================================================

async def initialize_session(user_id: str, *, store: Any, cache: PlayerSessionCache) -> SessionState:
    """
    Resolve the player linked to a Discord user.

    Cache first, then the record store. `needs_setup` is True when the user
    has not claimed or created a player yet.
    """
    uid = str(user_id)

    player = await cache.get(uid)
    if player is not None:
        return SessionState(player=player, needs_setup=False)

    player = await store.fetch_player_by_user(uid)
    if player is None:
        return SessionState(player=None, needs_setup=True)

    await cache.put(uid, player)
    return SessionState(player=player, needs_setup=False)


def random_player_color() -> str:
    return random.choice(list(PLAYER_COLORS.values()))


async def setup_player(
    user_id: str,
    display_name: str,
    avatar_url: Optional[str],
    *,
    store: Any,
    cache: PlayerSessionCache,
) -> Player:
    """
    Link a Discord user to a player by display name.

    - unclaimed existing player (case-insensitive match) -> claimed
    - existing player owned by someone else -> NameTakenError
    - otherwise a new player with a palette color
    """
    uid = str(user_id)
    name = (display_name or "").strip()
    if not name:
        raise ValueError("Display name is required.")

    existing = await store.find_player_by_name(name)

    if existing is not None:
        if existing.user_id and existing.user_id != uid:
            raise NameTakenError("This name is already taken. Please choose another.")

        if existing.user_id == uid:
            player = existing
        else:
            claimed = await store.update_player(
                existing.id,
                {"user_id": uid, "avatar_url": avatar_url or existing.avatar_url},
            )
            if claimed is None:
                raise NameTakenError("This name is already taken. Please choose another.")
            player = claimed
            log_ok(f"[session] user {uid} claimed player '{player.name}'")
    else:
        try:
            player = await store.insert_player(
                name=name,
                color=random_player_color(),
                user_id=uid,
                avatar_url=avatar_url,
            )
        except RecordStoreError as e:
            # unique violation: someone grabbed the name in between
            if e.status == 409:
                raise NameTakenError("This name is already taken. Please choose another.") from e
            raise
        log_sync(f"[session] user {uid} created player '{player.name}'")

    await cache.invalidate(uid)
    await cache.put(uid, player)
    return player
