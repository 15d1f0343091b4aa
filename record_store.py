# record_store.py
"""
Async client for the hosted record store (PostgREST dialect, `rest/v1`).

Tables: boards, matches, players, match_players, comments.
Board images go to the `boards` storage bucket.

Env vars (via utils.settings.BINGO):
  - RECORD_STORE_URL   e.g. https://xyz.supabase.co
  - RECORD_STORE_KEY   anon/service key, sent as apikey + bearer
"""

from __future__ import annotations

import secrets
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import aiohttp

from bingo_stats.models import Match, Player, parse_match, parse_matches, parse_player
from utils.logger import log_error, log_sync

MATCH_SELECT = "*,board:boards(*),match_players(*,player:players(*))"
MATCH_DETAIL_SELECT = "*,board:boards(*),match_players(*,player:players(*)),comments(*)"
PLAYER_MATCHES_SELECT = "*,match:matches(*,board:boards(*),match_players(*,player:players(*)))"

BOARD_BUCKET = "boards"


class RecordStoreError(RuntimeError):
    def __init__(self, message: str, *, status: int = 0, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


def _ilike_escape(text: str) -> str:
    # PostgREST reads * as %; % and _ are escaped for LIKE
    t = text.replace("*", "").replace(",", " ").strip()
    return t.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_match_metadata(time_taken: Optional[str], notes: Optional[str]) -> Dict[str, str]:
    """Empty fields are left out rather than stored as ''."""
    meta: Dict[str, str] = {}
    if time_taken and time_taken.strip():
        meta["time_taken"] = time_taken.strip()
    if notes and notes.strip():
        meta["notes"] = notes.strip()
    return meta


class RecordStore:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout_seconds: float = 15.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = (api_key or "").strip()
        self.timeout_seconds = float(timeout_seconds)
        self._session = session
        self._owns_session = session is None

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    # ------------------------------------------------------------------ http

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        h = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        if prefer:
            h["Prefer"] = prefer
        return h

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        body: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        if not self.configured:
            raise RecordStoreError("Record store is not configured (RECORD_STORE_URL / RECORD_STORE_KEY).")

        url = f"{self.base_url}/rest/v1/{table}"
        session = await self._get_session()

        async with session.request(
            method,
            url,
            params=dict(params or {}),
            json=body,
            headers=self._headers(prefer),
        ) as res:
            if res.status < 200 or res.status >= 300:
                text = await res.text()
                snippet = text[:600]
                raise RecordStoreError(
                    f"{res.status} {res.reason} for {method} {url}\n{snippet}",
                    status=res.status,
                    body=snippet,
                )
            if res.status == 204:
                return None
            return await res.json(content_type=None)

    async def _select(self, table: str, params: Mapping[str, str]) -> List[Dict[str, Any]]:
        data = await self._request("GET", table, params=params)
        return [d for d in (data or []) if isinstance(d, dict)]

    async def _insert_one(self, table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        data = await self._request("POST", table, body=dict(row), prefer="return=representation")
        rows = data if isinstance(data, list) else [data]
        if not rows or not isinstance(rows[0], dict):
            raise RecordStoreError(f"Insert into {table} returned no row.")
        return rows[0]

    async def _update(self, table: str, row_id: str, changes: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        data = await self._request(
            "PATCH",
            table,
            params={"id": f"eq.{row_id}"},
            body=dict(changes),
            prefer="return=representation",
        )
        rows = data if isinstance(data, list) else []
        return rows[0] if rows and isinstance(rows[0], dict) else None

    # ----------------------------------------------------------------- reads

    async def fetch_matches(self, limit: int = 50, offset: int = 0) -> List[Match]:
        """Newest first, with board and participants."""
        docs = await self._select(
            "matches",
            {
                "select": MATCH_SELECT,
                "order": "played_at.desc",
                "limit": str(max(1, int(limit))),
                "offset": str(max(0, int(offset))),
            },
        )
        return parse_matches(docs)

    async def fetch_all_matches(self) -> List[Match]:
        docs = await self._select("matches", {"select": MATCH_SELECT, "order": "played_at.desc"})
        matches = parse_matches(docs)
        log_sync(f"[store] fetched {len(matches)} matches")
        return matches

    async def fetch_match(self, match_id: str) -> Optional[Match]:
        docs = await self._select(
            "matches",
            {
                "select": MATCH_DETAIL_SELECT,
                "id": f"eq.{match_id}",
                "limit": "1",
            },
        )
        if not docs:
            return None
        m = parse_match(docs[0])
        m.comments.sort(key=lambda cm: (cm.created_at is None, cm.created_at or 0))
        return m

    async def fetch_player(self, player_id: str) -> Optional[Player]:
        docs = await self._select("players", {"select": "*", "id": f"eq.{player_id}", "limit": "1"})
        return parse_player(docs[0]) if docs else None

    async def fetch_player_by_user(self, user_id: str) -> Optional[Player]:
        docs = await self._select("players", {"select": "*", "user_id": f"eq.{user_id}", "limit": "1"})
        return parse_player(docs[0]) if docs else None

    async def find_player_by_name(self, name: str) -> Optional[Player]:
        """Case-insensitive exact name lookup."""
        wanted = (name or "").strip().casefold()
        clean = _ilike_escape(name or "")
        if not clean:
            return None
        docs = await self._select("players", {"select": "*", "name": f"ilike.{clean}", "limit": "10"})
        for d in docs:
            player = parse_player(d)
            if player.name.strip().casefold() == wanted:
                return player
        return None

    async def search_players(self, text: str, limit: int = 5) -> List[Player]:
        clean = _ilike_escape(text)
        if not clean:
            return []
        docs = await self._select(
            "players",
            {
                "select": "id,name,color",
                "name": f"ilike.*{clean}*",
                "limit": str(max(1, int(limit))),
            },
        )
        return [parse_player(d) for d in docs]

    async def fetch_player_matches(self, player_id: str) -> List[Match]:
        rows = await self._select(
            "match_players",
            {"select": PLAYER_MATCHES_SELECT, "player_id": f"eq.{player_id}"},
        )
        docs = [r["match"] for r in rows if isinstance(r.get("match"), dict)]
        return parse_matches(docs)

    # ---------------------------------------------------------------- writes

    async def upload_board_image(self, data: bytes, filename: str, content_type: str = "image/png") -> Dict[str, str]:
        """Upload raw image bytes to the boards bucket; returns {path, url}."""
        if not self.configured:
            raise RecordStoreError("Record store is not configured (RECORD_STORE_URL / RECORD_STORE_KEY).")

        ext = (filename.rsplit(".", 1)[-1] if "." in filename else "png").lower() or "png"
        path = f"boards/{int(time.time() * 1000)}-{secrets.token_hex(5)}.{ext}"
        url = f"{self.base_url}/storage/v1/object/{BOARD_BUCKET}/{path}"

        headers = self._headers()
        headers["Content-Type"] = content_type
        headers["Cache-Control"] = "31536000"
        headers["x-upsert"] = "false"

        session = await self._get_session()
        async with session.request("POST", url, data=data, headers=headers) as res:
            if res.status < 200 or res.status >= 300:
                text = await res.text()
                raise RecordStoreError(
                    f"{res.status} {res.reason} for POST {url}\n{text[:600]}",
                    status=res.status,
                    body=text[:600],
                )

        public_url = f"{self.base_url}/storage/v1/object/public/{BOARD_BUCKET}/{path}"
        return {"path": path, "url": public_url}

    async def insert_board(self, image_url: str, image_path: str = "", source: str = "bingo-brawlers") -> Dict[str, Any]:
        return await self._insert_one(
            "boards",
            {"image_url": image_url, "image_path": image_path, "source": source},
        )

    async def insert_match(
        self,
        *,
        title: str,
        played_at: str,
        outcome: str,
        board_id: Optional[str],
        metadata: Mapping[str, Any],
        accolades: Sequence[str] = (),
    ) -> Dict[str, Any]:
        return await self._insert_one(
            "matches",
            {
                "title": title,
                "played_at": played_at,
                "board_id": board_id,
                "outcome": outcome,
                "metadata": dict(metadata),
                "accolades": list(accolades),
            },
        )

    async def upsert_player(self, name: str, color: str) -> Player:
        """Insert or update the player with this exact name."""
        data = await self._request(
            "POST",
            "players",
            params={"on_conflict": "name"},
            body={"name": name.strip(), "color": color},
            prefer="resolution=merge-duplicates,return=representation",
        )
        rows = data if isinstance(data, list) else [data]
        if not rows or not isinstance(rows[0], dict):
            raise RecordStoreError(f"Upsert of player {name!r} returned no row.")
        return parse_player(rows[0])

    async def insert_player(
        self,
        *,
        name: str,
        color: str,
        user_id: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> Player:
        row = await self._insert_one(
            "players",
            {"name": name, "color": color, "user_id": user_id, "avatar_url": avatar_url},
        )
        return parse_player(row)

    async def insert_match_player(
        self,
        *,
        match_id: str,
        player_id: str,
        color: str,
        position: int,
        is_winner: Optional[bool],
    ) -> Dict[str, Any]:
        return await self._insert_one(
            "match_players",
            {
                "match_id": match_id,
                "player_id": player_id,
                "color": color,
                "position": int(position),
                "is_winner": is_winner,
            },
        )

    async def update_match(self, match_id: str, changes: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        return await self._update("matches", match_id, changes)

    async def update_player(self, player_id: str, changes: Mapping[str, Any]) -> Optional[Player]:
        row = await self._update("players", player_id, changes)
        return parse_player(row) if row else None

    async def update_match_player(self, match_player_id: str, changes: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        return await self._update("match_players", match_player_id, changes)

    async def insert_comment(self, match_id: str, author_name: str, content: str) -> Dict[str, Any]:
        return await self._insert_one(
            "comments",
            {"match_id": match_id, "author_name": author_name, "content": content},
        )

    # ---------------------------------------------------------------- flows

    async def submit_match(
        self,
        *,
        title: str,
        played_at: str,
        outcome: str,
        players: Iterable[Mapping[str, Any]],
        image_url: str,
        image_path: str = "",
        source: str = "bingo-brawlers",
        time_taken: Optional[str] = None,
        notes: Optional[str] = None,
        accolades: Sequence[str] = (),
    ) -> str:
        """
        Board -> match -> players -> match_players.

        `players` items: {name, color, is_winner}. Blank names are skipped;
        positions follow the order of the remaining entries. A name matching
        an existing player case-insensitively reuses that player; new names
        are upserted.
        Returns the new match id.
        """
        board = await self.insert_board(image_url, image_path, source)
        board_id = str(board.get("id") or "") or None
        match_id = ""

        try:
            match = await self.insert_match(
                title=title,
                played_at=played_at,
                outcome=outcome,
                board_id=board_id,
                metadata=build_match_metadata(time_taken, notes),
                accolades=accolades,
            )
            match_id = str(match.get("id") or "")
            if not match_id:
                raise RecordStoreError("Match insert returned no id.")

            valid = [p for p in players if str(p.get("name") or "").strip()]
            for position, p in enumerate(valid):
                color = str(p.get("color") or "")
                name = str(p["name"]).strip()
                player = await self.find_player_by_name(name)
                if player is None:
                    player = await self.upsert_player(name, color)
                await self.insert_match_player(
                    match_id=match_id,
                    player_id=player.id,
                    color=color,
                    position=position,
                    is_winner=bool(p.get("is_winner")),
                )
        except RecordStoreError as e:
            log_error(
                f"[submit] '{title}' failed part way; orphaned board={board_id or '-'} "
                f"match={match_id or '-'}: {e}"
            )
            raise

        log_sync(f"[submit] match {match_id} '{title}' with {len(valid)} players")
        return match_id

    async def edit_match(
        self,
        match: Match,
        *,
        title: Optional[str] = None,
        played_at: Optional[str] = None,
        outcome: Optional[str] = None,
        time_taken: Optional[str] = None,
        notes: Optional[str] = None,
        winner_player_id: Optional[str] = None,
        renames: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Apply an edit to an existing match.

        Unset arguments keep the current value. `renames` maps player_id to a
        new player name; `winner_player_id` makes that participant the sole
        winner.
        """
        meta = dict(match.metadata)
        for key, value in (("time_taken", time_taken), ("notes", notes)):
            if value is None:
                continue
            if value.strip():
                meta[key] = value.strip()
            else:
                meta.pop(key, None)

        await self.update_match(
            match.id,
            {
                "title": title if title is not None else match.title,
                "played_at": played_at if played_at is not None else (
                    match.played_at.isoformat() if match.played_at else None
                ),
                "outcome": outcome if outcome is not None else match.outcome,
                "metadata": meta,
            },
        )

        for mp in match.match_players:
            new_name = (renames or {}).get(mp.player_id)
            if new_name and new_name.strip() and new_name.strip() != mp.player.name:
                await self.update_player(mp.player_id, {"name": new_name.strip()})

            if winner_player_id is not None:
                is_winner = mp.player_id == winner_player_id
                if is_winner != mp.won:
                    await self.update_match_player(mp.id, {"is_winner": is_winner})
