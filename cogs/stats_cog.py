# cogs/stats_cog.py
"""/leaderboard, /bingostats, /profile, /refreshstats.

League numbers come from the shared StatsService (bot.stats_service), which
caches one snapshot and recomputes it off the event loop. /profile builds a
player view straight from that player's matches.

/profile without a name shows the caller's claimed player (see
/setupprofile).
"""

from __future__ import annotations

import asyncio
from typing import List, Optional, Tuple

import discord
from discord.ext import commands
from discord import Option

from bingo_stats import PlayerProfile, StatsResult
from bingo_stats.achievements import rarity_emoji
from bingo_stats.models import Player
from record_store import RecordStoreError
from utils.dates import short_date
from utils.durations import format_minutes, format_total
from utils.embeds import branded_embed, match_line, pct, rank_marker
from utils.graph_renderer import render_player_record
from utils.interactions import safe_ctx_defer, safe_ctx_followup
from utils.logger import log_sync, log_warn
from utils.persistence import initialize_session
from utils.settings import GUILD_ID

LEADERBOARD_SIZE = 15
TOP_RIVALS = 5
RECENT_MATCHES = 5


async def player_name_autocomplete(ctx: discord.AutocompleteContext) -> List[str]:
    store = getattr(ctx.bot, "record_store", None)
    text = (ctx.value or "").strip()
    if store is None or len(text) < 2:
        return []
    try:
        players = await store.search_players(text, limit=5)
    except RecordStoreError as e:
        log_warn(f"[profile] autocomplete failed: {e.status}")
        return []
    return [p.name for p in players]


class StatsCog(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    async def _stats(self, ctx: discord.ApplicationContext, *, force: bool = False) -> Optional[StatsResult]:
        service = getattr(self.bot, "stats_service", None)
        if service is None:
            await safe_ctx_followup(ctx, "Stats aren't available right now.", ephemeral=True)
            return None
        try:
            return await service.get(force_refresh=force)
        except RecordStoreError as e:
            log_warn(f"[stats] refresh failed: {e}")
            await safe_ctx_followup(ctx, f"I couldn't load matches right now ({e.status or 'no response'}).", ephemeral=True)
            return None

    async def _resolve_player(
        self,
        ctx: discord.ApplicationContext,
        name: Optional[str],
    ) -> Tuple[Optional[Player], str]:
        store = self.bot.record_store

        if name and name.strip():
            player = await store.find_player_by_name(name)
            if player is None:
                hits = await store.search_players(name, limit=1)
                player = hits[0] if hits else None
            if player is None:
                return None, f"No player named **{name.strip()}**."
            return player, ""

        state = await initialize_session(str(ctx.author.id), store=store, cache=self.bot.session_cache)
        if state.needs_setup:
            return None, "You haven't linked a player yet. Use `/setupprofile` first, or pass a name."
        return state.player, ""

    # ------------------------------------------------------------------
    # /leaderboard
    # ------------------------------------------------------------------

    @commands.slash_command(
        name="leaderboard",
        description="Bingo leaderboard: wins, win rate, streaks.",
        guild_ids=[GUILD_ID] if GUILD_ID else None,
    )
    async def leaderboard(self, ctx: discord.ApplicationContext):
        await safe_ctx_defer(ctx, ephemeral=False, label="leaderboard")

        result = await self._stats(ctx)
        if result is None:
            return

        rows = result.player_stats[:LEADERBOARD_SIZE]
        if not rows:
            await safe_ctx_followup(ctx, "No matches recorded yet.", ephemeral=True)
            return

        lines = []
        for i, p in enumerate(rows, start=1):
            streak = f" · 🔥{p.current_streak}" if p.current_streak >= 2 else ""
            lines.append(
                f"{rank_marker(i)} **{p.player_name}** · **{p.wins}**W / {p.matches} · {pct(p.win_rate)}"
                f" · best streak {p.longest_streak}{streak}"
            )

        emb = branded_embed(
            "🏆 Bingo Leaderboard",
            description="\n".join(lines),
            footer=f"{result.total_matches} matches • /leaderboard",
        )
        await safe_ctx_followup(ctx, embed=emb)

    # ------------------------------------------------------------------
    # /bingostats
    # ------------------------------------------------------------------

    @commands.slash_command(
        name="bingostats",
        description="League totals and match duration records.",
        guild_ids=[GUILD_ID] if GUILD_ID else None,
    )
    async def bingostats(self, ctx: discord.ApplicationContext):
        await safe_ctx_defer(ctx, ephemeral=False, label="bingostats")

        result = await self._stats(ctx)
        if result is None:
            return

        d = result.match_duration_stats
        emb = branded_embed("📊 Bingo Stats", footer="/bingostats")

        emb.add_field(name="Matches", value=f"**{result.total_matches}**", inline=True)
        emb.add_field(name="Time Played", value=f"**{format_total(result.total_minutes_played)}**", inline=True)
        emb.add_field(name="Players", value=f"**{len(result.player_stats)}**", inline=True)

        if d.matches_with_time:
            emb.add_field(name="Average Match", value=format_minutes(d.average_minutes), inline=True)
            emb.add_field(name="Timed Matches", value=str(d.matches_with_time), inline=True)
            emb.add_field(name="​", value="​", inline=True)

        if d.longest is not None:
            emb.add_field(
                name="🐢 Longest Match",
                value=f"**{d.longest.title}** · {format_minutes(d.longest_minutes)} · {short_date(d.longest.played_at)}",
                inline=False,
            )
        if d.shortest is not None:
            emb.add_field(
                name="⚡ Fastest Match",
                value=f"**{d.shortest.title}** · {format_minutes(d.shortest_minutes)} · {short_date(d.shortest.played_at)}",
                inline=False,
            )

        await safe_ctx_followup(ctx, embed=emb)

    # ------------------------------------------------------------------
    # /profile
    # ------------------------------------------------------------------

    @commands.slash_command(
        name="profile",
        description="A player's record, achievements and rivals (defaults to you).",
        guild_ids=[GUILD_ID] if GUILD_ID else None,
    )
    async def profile(
        self,
        ctx: discord.ApplicationContext,
        name: Optional[str] = Option(
            str,
            "Player name (defaults to your linked player)",
            required=False,
            autocomplete=player_name_autocomplete,
        ),
    ):
        await safe_ctx_defer(ctx, ephemeral=False, label="profile")

        store = self.bot.record_store
        service = self.bot.stats_service

        try:
            player, err = await self._resolve_player(ctx, name)
            if player is None:
                await safe_ctx_followup(ctx, err, ephemeral=True)
                return

            prof = await service.player_profile(player.id, store.fetch_player, store.fetch_player_matches)
        except RecordStoreError as e:
            log_warn(f"[profile] fetch failed: {e}")
            await safe_ctx_followup(ctx, f"I couldn't load that profile ({e.status or 'no response'}).", ephemeral=True)
            return

        if prof is None:
            await safe_ctx_followup(ctx, "That player no longer exists.", ephemeral=True)
            return

        log_sync(f"[profile] {prof.player.name}: {prof.stats.total_matches} matches, "
                 f"{len(prof.achievements)} achievements")

        emb = self._profile_embed(prof)
        buf = await asyncio.to_thread(render_player_record, prof.stats.wins, prof.stats.losses, prof.player.name)
        filename = "record.png"
        emb.set_image(url=f"attachment://{filename}")

        await safe_ctx_followup(ctx, embed=emb, file=discord.File(buf, filename=filename))

    def _profile_embed(self, prof: PlayerProfile) -> discord.Embed:
        s = prof.stats
        emb = branded_embed(f"🎯 {prof.player.name}", footer="/profile")
        if prof.player.avatar_url:
            emb.set_thumbnail(url=prof.player.avatar_url)

        emb.description = (
            f"**{s.wins}**W · **{s.losses}**L · **{pct(s.win_rate)}** win rate\n"
            f"Streak **{s.current_streak}** (best {s.longest_streak}) · "
            f"🌑 {s.blackout_wins} blackout · 🎯 {s.bingo_wins} bingo"
        )

        emb.add_field(name="Matches", value=str(s.total_matches), inline=True)
        emb.add_field(name="Time Played", value=format_total(s.total_minutes), inline=True)
        emb.add_field(
            name="Avg Match",
            value=format_minutes(s.avg_minutes) if s.avg_minutes > 0 else "—",
            inline=True,
        )

        if prof.achievements:
            lines = [
                f"{u.achievement.icon} **{u.achievement.name}** {rarity_emoji(u.achievement.rarity)}"
                f" · {short_date(u.unlocked_at)}"
                for u in prof.achievements
            ]
            emb.add_field(name=f"Achievements ({len(lines)})", value="\n".join(lines)[:1024], inline=False)

        if prof.head_to_head:
            lines = [
                f"vs **{r.opponent.name}** · {r.wins}-{r.losses} ({r.total} played)"
                for r in prof.head_to_head[:TOP_RIVALS]
            ]
            emb.add_field(name="Rivals", value="\n".join(lines), inline=False)

        if prof.matches:
            lines = [match_line(m) for m in prof.matches[:RECENT_MATCHES]]
            emb.add_field(name="Recent Matches", value="\n".join(lines)[:1024], inline=False)

        return emb

    # ------------------------------------------------------------------
    # /refreshstats
    # ------------------------------------------------------------------

    @commands.slash_command(
        name="refreshstats",
        description="Reload matches and recompute the league stats now.",
        guild_ids=[GUILD_ID] if GUILD_ID else None,
    )
    async def refreshstats(self, ctx: discord.ApplicationContext):
        await safe_ctx_defer(ctx, ephemeral=True, label="refreshstats")

        result = await self._stats(ctx, force=True)
        if result is None:
            return

        await safe_ctx_followup(
            ctx,
            f"✅ Stats refreshed: **{result.total_matches}** matches, **{len(result.player_stats)}** players.",
            ephemeral=True,
        )


def setup(bot: commands.Bot):
    bot.add_cog(StatsCog(bot))
