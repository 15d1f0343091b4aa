"""
MongoDB (Motor) setup for the bingo bot.

Match records live in the hosted record store; Mongo only holds the bot's
own state (the per-user player session cache).

Env vars:
  - MONGO_URI (or MONGODB_URI)
  - MONGO_DB_NAME (optional)
  - IS_DEV=1 (optional)
"""

from __future__ import annotations

import os

import motor.motor_asyncio
from pymongo import ASCENDING, IndexModel


MONGO_URI = (os.getenv("MONGO_URI") or os.getenv("MONGODB_URI") or "").strip()
IS_DEV = os.getenv("IS_DEV", "0") == "1"

_default_name = "bingobot_dev" if IS_DEV else "bingobot"
DB_NAME = os.getenv("MONGO_DB_NAME", _default_name)

if not MONGO_URI:
    raise RuntimeError("Missing MONGO_URI/MONGODB_URI env var. The session cache requires MongoDB.")

_client = motor.motor_asyncio.AsyncIOMotorClient(MONGO_URI)

try:
    db = _client.get_default_database() or _client[DB_NAME]
except Exception:
    db = _client[DB_NAME]


# ---------------------------- Collections ---------------------------------

# One doc per Discord user: {user_id, player, expires_at}
player_sessions = db["player_sessions"]


async def ping() -> bool:
    await _client.admin.command("ping")
    return True


async def ensure_indexes() -> None:
    await player_sessions.create_indexes(
        [
            IndexModel(
                [("user_id", ASCENDING)],
                unique=True,
                name="uniq_user_id",
            ),
            # Mongo drops the doc once expires_at has passed
            IndexModel(
                [("expires_at", ASCENDING)],
                expireAfterSeconds=0,
                name="ttl_expires_at",
            ),
        ]
    )

    return
