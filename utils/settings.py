# utils/settings.py
import os
import re
from dataclasses import dataclass
from typing import Set


def env_int(name: str, default: int = 0) -> int:
    try:
        return int((os.getenv(name) or "").strip(), 0)
    except Exception:
        return default

def env_float(name: str, default: float = 0.0) -> float:
    try:
        return float((os.getenv(name) or "").strip())
    except Exception:
        return default

def env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()

def parse_int_set(csv: str) -> Set[int]:
    out: Set[int] = set()
    for part in re.split(r"[\s,]+", (csv or "").strip()):
        if part.isdigit():
            out.add(int(part))
    return out

GUILD_ID = env_int("GUILD_ID", 0)

@dataclass(frozen=True)
class BingoConfig:
    guild_id: int

    # hosted record store (REST)
    record_store_url: str
    record_store_key: str
    record_store_timeout_seconds: float

    # caches
    stats_cache_minutes: int
    session_cache_minutes: int

    # moderation (match edits)
    mod_role_id: int
    mod_role_name: str
    mod_user_ids: Set[int]

    log_channel_id: int

    gallery_page_size: int
    board_source: str

    embed_color: int
    embed_thumbnail_url: str

def load_bingo_config() -> BingoConfig:
    return BingoConfig(
        guild_id=env_int("GUILD_ID", 0),

        record_store_url=env_str("RECORD_STORE_URL").rstrip("/"),
        record_store_key=env_str("RECORD_STORE_KEY"),
        record_store_timeout_seconds=max(1.0, env_float("RECORD_STORE_TIMEOUT_SECONDS", 15.0)),

        stats_cache_minutes=max(0, env_int("STATS_CACHE_MINUTES", 10)),
        session_cache_minutes=max(1, env_int("SESSION_CACHE_MINUTES", 60)),

        mod_role_id=env_int("BINGO_MOD_ROLE_ID", 0),
        mod_role_name=env_str("BINGO_MOD_ROLE_NAME", "Bingo Mod"),
        mod_user_ids=parse_int_set(os.getenv("BINGO_MOD_USER_IDS", "")),

        log_channel_id=env_int("BINGO_LOG_CHANNEL_ID", 0),

        gallery_page_size=min(25, max(1, env_int("GALLERY_PAGE_SIZE", 10))),
        board_source=env_str("BOARD_SOURCE", "bingo-brawlers"),

        embed_color=env_int("BINGO_EMBED_COLOR", 0xD4A84A),
        embed_thumbnail_url=env_str("BINGO_EMBED_ICON_URL"),
    )


BINGO = load_bingo_config()
