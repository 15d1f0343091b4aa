"""/bingographs: league charts sent as Discord image attachments.

Chart types:
  - Cumulative Wins   (line per player, by play date)
  - Monthly Matches   (bar per month)
  - Leaderboard       (horizontal bars, wins)
"""

from __future__ import annotations

import asyncio
from typing import Dict, List

import discord
from discord.ext import commands
from discord import Option

from bingo_stats import StatsResult
from record_store import RecordStoreError
from utils.embeds import branded_embed
from utils.graph_renderer import render_cumulative_wins, render_leaderboard, render_monthly_matches
from utils.interactions import safe_ctx_defer, safe_ctx_followup
from utils.logger import log_sync, log_warn
from utils.settings import GUILD_ID

CHART_CHOICES = [
    discord.OptionChoice("Cumulative Wins", "cumulative"),
    discord.OptionChoice("Monthly Matches", "monthly"),
    discord.OptionChoice("Leaderboard", "leaderboard"),
]

LEADERBOARD_BARS = 12


def cumulative_series(result: StatsResult) -> Dict[str, List[int]]:
    """Player name -> running wins, one value per chart point."""
    names = result.chart_data.player_names
    return {
        name: [pt.wins.get(name, 0) for pt in result.chart_data.cumulative_wins]
        for name in names
    }


class GraphsCog(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @commands.slash_command(
        name="bingographs",
        description="Chart the bingo league.",
        guild_ids=[GUILD_ID] if GUILD_ID else None,
    )
    async def bingographs(
        self,
        ctx: discord.ApplicationContext,
        chart: str = Option(
            str,
            "Chart type",
            choices=CHART_CHOICES,
            required=True,
        ),
    ):
        await safe_ctx_defer(ctx, ephemeral=False, label="graphs")

        try:
            result = await self.bot.stats_service.get()
        except RecordStoreError as e:
            log_warn(f"[graphs] Failed to load stats: {e}")
            await safe_ctx_followup(ctx, f"Couldn't load matches ({e.status or 'no response'}).", ephemeral=True)
            return

        if result.total_matches == 0:
            await safe_ctx_followup(ctx, "No matches recorded yet.", ephemeral=True)
            return

        log_sync(f"[graphs] chart={chart} matches={result.total_matches}")

        try:
            if chart == "cumulative":
                buf, filename, emb = await self._chart_cumulative(result)
            elif chart == "monthly":
                buf, filename, emb = await self._chart_monthly(result)
            elif chart == "leaderboard":
                buf, filename, emb = await self._chart_leaderboard(result)
            else:
                await safe_ctx_followup(ctx, "Unknown chart type.", ephemeral=True)
                return
        except ValueError as e:
            await safe_ctx_followup(ctx, str(e), ephemeral=True)
            return
        except Exception as e:
            log_warn(f"[graphs] Error generating chart={chart}: {type(e).__name__}: {e}")
            await safe_ctx_followup(ctx, f"Error generating chart: {type(e).__name__}", ephemeral=True)
            return

        emb.set_image(url=f"attachment://{filename}")
        await safe_ctx_followup(ctx, embed=emb, file=discord.File(buf, filename=filename))

    # ------------------------------------------------------------------
    # Charts
    # ------------------------------------------------------------------

    async def _chart_cumulative(self, result: StatsResult):
        points = result.chart_data.cumulative_wins
        if not points:
            raise ValueError("No dated matches to chart yet.")

        labels = [pt.label for pt in points]
        series = cumulative_series(result)
        buf = await asyncio.to_thread(render_cumulative_wins, labels, series, result.chart_data.player_colors)

        leader = max(series.items(), key=lambda kv: kv[1][-1] if kv[1] else 0, default=None)
        desc = f"**{len(points)}** play days"
        if leader and leader[1]:
            desc += f" · leader **{leader[0]}** ({leader[1][-1]} wins)"

        emb = branded_embed("📈 Cumulative Wins", description=desc, footer="/bingographs")
        return buf, "cumulative_wins.png", emb

    async def _chart_monthly(self, result: StatsResult):
        months = result.chart_data.monthly_matches
        if not months:
            raise ValueError("No dated matches to chart yet.")

        labels = [m.label for m in months]
        counts = [m.matches for m in months]
        buf = await asyncio.to_thread(render_monthly_matches, labels, counts)

        busiest = max(months, key=lambda m: m.matches)
        emb = branded_embed(
            "📅 Matches per Month",
            description=f"**{sum(counts)}** matches over **{len(months)}** months · busiest **{busiest.label}** ({busiest.matches})",
            footer="/bingographs",
        )
        return buf, "monthly_matches.png", emb

    async def _chart_leaderboard(self, result: StatsResult):
        rows = result.player_stats[:LEADERBOARD_BARS]
        names = [p.player_name for p in rows]
        wins = [p.wins for p in rows]
        colors = [p.player_color for p in rows]

        buf = await asyncio.to_thread(render_leaderboard, names, wins, colors)

        emb = branded_embed(
            "🏆 Leaderboard",
            description=f"Top **{len(rows)}** of {len(result.player_stats)} players by wins",
            footer="/bingographs",
        )
        return buf, "leaderboard.png", emb


def setup(bot: commands.Bot):
    bot.add_cog(GraphsCog(bot))
