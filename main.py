import os
import discord
from discord.ext import commands
from dotenv import load_dotenv

load_dotenv()

from bingo_stats import StatsService  # noqa: E402
from record_store import RecordStore  # noqa: E402
from utils.logger import log_error, log_ok, log_sync, log_warn  # noqa: E402
from utils.persistence import PlayerSessionCache  # noqa: E402
from utils.settings import BINGO  # noqa: E402

# Mongo bootstrap (Motor)
try:
    from db import ping as mongo_ping, ensure_indexes as mongo_ensure_indexes, player_sessions
except Exception as e:
    mongo_ping = None
    mongo_ensure_indexes = None
    player_sessions = None
    log_warn(f"[boot] Mongo not ready: {e}")


TOKEN = os.getenv("DISCORD_TOKEN")

intents = discord.Intents.default()
intents.members = True
intents.guilds = True

bot = commands.Bot(command_prefix="!", intents=intents)

INITIAL_EXTENSIONS = [
    "cogs.stats_cog",
    "cogs.graphs_cog",
    "cogs.matches_cog",
    "cogs.profile_setup_cog",
]

_MONGO_BOOTSTRAPPED = False


def attach_services(bot: commands.Bot) -> None:
    """Record store, stats snapshot and session cache, shared by every cog."""
    store = RecordStore(
        BINGO.record_store_url,
        BINGO.record_store_key,
        timeout_seconds=BINGO.record_store_timeout_seconds,
    )
    if not store.configured:
        log_warn("[boot] RECORD_STORE_URL / RECORD_STORE_KEY not set; commands will report errors.")

    bot.record_store = store
    bot.stats_service = StatsService(
        store.fetch_all_matches,
        ttl_seconds=BINGO.stats_cache_minutes * 60,
    )
    bot.session_cache = PlayerSessionCache(
        player_sessions,
        ttl_seconds=BINGO.session_cache_minutes * 60,
    )


@bot.event
async def on_ready():
    global _MONGO_BOOTSTRAPPED

    # MongoDB connectivity check + indexes
    if (not _MONGO_BOOTSTRAPPED) and mongo_ping and mongo_ensure_indexes:
        try:
            await mongo_ping()
            await mongo_ensure_indexes()
            log_ok("[boot] MongoDB OK + indexes ensured")
            _MONGO_BOOTSTRAPPED = True
        except Exception as e:
            log_error(f"[boot] MongoDB ERROR: {e}")

    # warm the stats snapshot so the first /leaderboard is instant
    if bot.record_store.configured and bot.stats_service.result is None:
        try:
            await bot.stats_service.refresh()
        except Exception as e:
            log_warn(f"[boot] initial stats refresh failed: {type(e).__name__}: {e}")

    log_sync(f"[boot] Logged in as {bot.user} ({bot.user.id})")


if __name__ == "__main__":
    if not TOKEN:
        raise RuntimeError("Missing DISCORD_TOKEN env var.")
    if player_sessions is None:
        raise RuntimeError("MongoDB is required for player sessions (MONGO_URI/MONGODB_URI).")

    attach_services(bot)

    # load extensions (sync in py-cord)
    for ext in INITIAL_EXTENSIONS:
        try:
            bot.load_extension(ext)
        except Exception as e:
            log_error(f"[boot] Failed to load extension '{ext}': {e}")

    bot.run(TOKEN)
