# cogs/matches_cog.py
"""Match archive: browse, read, comment, submit, edit.

  /matches [page]      newest first, BINGO.gallery_page_size per page
  /match id            details + comments
  /comment id text     adds a comment under your display name
  /submitmatch ...     board screenshot + players + outcome
  /editmatch ...       mods only

Writes invalidate the stats snapshot so the next /leaderboard recomputes.
"""

from __future__ import annotations

from typing import Optional

import discord
from discord.ext import commands
from discord import Option

from bingo_stats.models import ACCOLADES, OUTCOMES, WINNABLE_OUTCOMES, Match
from record_store import RecordStoreError
from utils.dates import parse_played_at, short_date
from utils.durations import format_minutes
from utils.embeds import branded_embed, match_line, outcome_label
from utils.interactions import safe_ctx_defer, safe_ctx_followup, safe_ctx_respond
from utils.logger import get_logger, log_sync, log_warn
from utils.mod_check import is_mod
from utils.settings import BINGO, GUILD_ID
from utils.submissions import SubmissionError, build_submission, check_edit_winner, check_time_taken

OUTCOME_CHOICES = [discord.OptionChoice(o.title(), o) for o in OUTCOMES]

IMAGE_TYPES = ("image/png", "image/jpeg", "image/webp", "image/gif")
MAX_COMMENT_LEN = 1000


def match_embed(m: Match) -> discord.Embed:
    emb = branded_embed(f"🎯 {m.title}", footer=f"match {m.id}")

    lines = [f"{outcome_label(m.outcome)} · {short_date(m.played_at)}"]
    if m.minutes > 0:
        lines.append(f"⏱️ {format_minutes(m.minutes)}")
    emb.description = "\n".join(lines)

    if m.match_players:
        show_winner = m.outcome in WINNABLE_OUTCOMES
        players = [
            f"{'🏆 ' if show_winner and mp.won else ''}**{mp.player.name}**"
            for mp in m.match_players
        ]
        emb.add_field(name="Players", value="\n".join(players), inline=True)

    if m.accolades:
        emb.add_field(
            name="Accolades",
            value=", ".join(ACCOLADES.get(a, a) for a in m.accolades),
            inline=True,
        )

    if m.notes:
        emb.add_field(name="Notes", value=m.notes[:1024], inline=False)

    if m.comments:
        shown = m.comments[-10:]
        lines = [f"**{c.author_name}**: {c.content}" for c in shown]
        header = f"Comments ({len(m.comments)})"
        emb.add_field(name=header, value="\n".join(lines)[:1024], inline=False)

    if m.board and m.board.image_url.startswith(("http://", "https://")):
        emb.set_image(url=m.board.image_url)

    return emb


class MatchesCog(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.log = get_logger(bot, BINGO)

    def _after_write(self) -> None:
        service = getattr(self.bot, "stats_service", None)
        if service is not None:
            service.invalidate()

    # ------------------------------------------------------------------
    # /matches
    # ------------------------------------------------------------------

    @commands.slash_command(
        name="matches",
        description="Browse archived matches, newest first.",
        guild_ids=[GUILD_ID] if GUILD_ID else None,
    )
    async def matches(
        self,
        ctx: discord.ApplicationContext,
        page: int = Option(int, "Page number", required=False, default=1, min_value=1),
    ):
        await safe_ctx_defer(ctx, ephemeral=False, label="matches")

        size = BINGO.gallery_page_size
        page = max(1, int(page or 1))

        try:
            # one extra row tells us whether a next page exists
            rows = await self.bot.record_store.fetch_matches(limit=size + 1, offset=(page - 1) * size)
        except RecordStoreError as e:
            log_warn(f"[matches] gallery fetch failed: {e}")
            await safe_ctx_followup(ctx, f"Couldn't load matches ({e.status or 'no response'}).", ephemeral=True)
            return

        has_more = len(rows) > size
        rows = rows[:size]

        if not rows:
            msg = "No matches recorded yet." if page == 1 else f"Page {page} is empty."
            await safe_ctx_followup(ctx, msg, ephemeral=True)
            return

        footer = f"page {page}" + (" • more with /matches page:" + str(page + 1) if has_more else "")
        emb = branded_embed(
            "🗂️ Match Archive",
            description="\n\n".join(match_line(m) for m in rows),
            footer=footer,
        )
        await safe_ctx_followup(ctx, embed=emb)

    # ------------------------------------------------------------------
    # /match
    # ------------------------------------------------------------------

    @commands.slash_command(
        name="match",
        description="Show one match with its board and comments.",
        guild_ids=[GUILD_ID] if GUILD_ID else None,
    )
    async def match(
        self,
        ctx: discord.ApplicationContext,
        match_id: str = Option(str, "Match id", name="id", required=True),
    ):
        await safe_ctx_defer(ctx, ephemeral=False, label="match")

        try:
            m = await self.bot.record_store.fetch_match(match_id.strip())
        except RecordStoreError as e:
            log_warn(f"[matches] fetch {match_id} failed: {e}")
            await safe_ctx_followup(ctx, f"Couldn't load that match ({e.status or 'no response'}).", ephemeral=True)
            return

        if m is None:
            await safe_ctx_followup(ctx, "Match not found.", ephemeral=True)
            return

        await safe_ctx_followup(ctx, embed=match_embed(m))

    # ------------------------------------------------------------------
    # /comment
    # ------------------------------------------------------------------

    @commands.slash_command(
        name="comment",
        description="Comment on a match.",
        guild_ids=[GUILD_ID] if GUILD_ID else None,
    )
    async def comment(
        self,
        ctx: discord.ApplicationContext,
        match_id: str = Option(str, "Match id", name="id", required=True),
        text: str = Option(str, "Your comment", required=True, max_length=MAX_COMMENT_LEN),
    ):
        await safe_ctx_defer(ctx, ephemeral=True, label="comment")

        content = (text or "").strip()
        if not content:
            await safe_ctx_followup(ctx, "Comment is empty.", ephemeral=True)
            return

        store = self.bot.record_store
        try:
            if await store.fetch_match(match_id.strip()) is None:
                await safe_ctx_followup(ctx, "Match not found.", ephemeral=True)
                return
            await store.insert_comment(match_id.strip(), ctx.author.display_name, content)
        except RecordStoreError as e:
            log_warn(f"[matches] comment on {match_id} failed: {e}")
            await safe_ctx_followup(ctx, f"Couldn't post your comment ({e.status or 'no response'}).", ephemeral=True)
            return

        log_sync(f"[matches] comment on {match_id} by {ctx.author.display_name}")
        await safe_ctx_followup(ctx, "💬 Comment posted.", ephemeral=True)

    # ------------------------------------------------------------------
    # /submitmatch
    # ------------------------------------------------------------------

    @commands.slash_command(
        name="submitmatch",
        description="Archive a finished bingo match.",
        guild_ids=[GUILD_ID] if GUILD_ID else None,
    )
    async def submitmatch(
        self,
        ctx: discord.ApplicationContext,
        title: str = Option(str, "Match title", required=True, max_length=120),
        outcome: str = Option(str, "How it ended", choices=OUTCOME_CHOICES, required=True),
        board: discord.Attachment = Option(discord.Attachment, "Screenshot of the final board", required=True),
        players: str = Option(str, "Player names, comma separated (in board color order)", required=True),
        winner: str = Option(str, "Winner's name (bingo/blackout only)", required=False, default=None),
        time: str = Option(str, "Match length, e.g. 1h 23m", required=False, default=None),
        notes: str = Option(str, "Notes", required=False, default=None, max_length=500),
        accolades: str = Option(
            str,
            f"Comma separated: {', '.join(ACCOLADES.values())}",
            required=False,
            default=None,
        ),
        played_at: str = Option(str, "Date played (YYYY-MM-DD, default today)", required=False, default=None),
    ):
        await safe_ctx_defer(ctx, ephemeral=True, label="submit")

        try:
            sub = build_submission(
                title=title,
                outcome=outcome,
                players=players,
                winner=winner,
                time_taken=time,
                notes=notes,
                accolades=accolades,
                played_at=played_at,
            )
        except SubmissionError as e:
            await safe_ctx_followup(ctx, f"❌ {e}", ephemeral=True)
            return

        if (board.content_type or "").split(";")[0] not in IMAGE_TYPES:
            await safe_ctx_followup(ctx, "❌ The board must be an image (png, jpg, webp, gif).", ephemeral=True)
            return

        store = self.bot.record_store
        try:
            data = await board.read()
            uploaded = await store.upload_board_image(data, board.filename, board.content_type or "image/png")
            match_id = await store.submit_match(
                title=sub.title,
                played_at=sub.played_at.isoformat(),
                outcome=sub.outcome,
                players=sub.player_rows(),
                image_url=uploaded["url"],
                image_path=uploaded["path"],
                source=BINGO.board_source,
                time_taken=sub.time_taken,
                notes=sub.notes,
                accolades=sub.accolades,
            )
        except (RecordStoreError, discord.HTTPException) as e:
            log_warn(f"[submit] failed for '{sub.title}': {type(e).__name__}: {e}")
            await safe_ctx_followup(ctx, f"❌ Failed to submit match ({type(e).__name__}).", ephemeral=True)
            return

        self._after_write()
        await self.log.ok(f"[submit] {ctx.author} archived '{sub.title}' ({match_id})")
        await safe_ctx_followup(ctx, f"✅ Match archived. View it with `/match id:{match_id}`.", ephemeral=True)

    # ------------------------------------------------------------------
    # /editmatch
    # ------------------------------------------------------------------

    @commands.slash_command(
        name="editmatch",
        description="(Mods) Edit an archived match.",
        guild_ids=[GUILD_ID] if GUILD_ID else None,
    )
    async def editmatch(
        self,
        ctx: discord.ApplicationContext,
        match_id: str = Option(str, "Match id", name="id", required=True),
        title: str = Option(str, "New title", required=False, default=None, max_length=120),
        outcome: str = Option(str, "New outcome", choices=OUTCOME_CHOICES, required=False, default=None),
        winner: str = Option(str, "New winner's name", required=False, default=None),
        time: str = Option(str, "New length (empty text clears)", required=False, default=None),
        notes: str = Option(str, "New notes", required=False, default=None, max_length=500),
        played_at: str = Option(str, "New date (YYYY-MM-DD)", required=False, default=None),
        rename_from: str = Option(str, "Rename this player...", required=False, default=None),
        rename_to: str = Option(str, "...to this name", required=False, default=None),
    ):
        caller = ctx.author if isinstance(ctx.author, discord.Member) else None
        if not is_mod(caller):
            await safe_ctx_respond(ctx, "Only bingo mods can edit matches.", ephemeral=True)
            return

        await safe_ctx_defer(ctx, ephemeral=True, label="editmatch")

        store = self.bot.record_store
        try:
            m = await store.fetch_match(match_id.strip())
        except RecordStoreError as e:
            await safe_ctx_followup(ctx, f"Couldn't load that match ({e.status or 'no response'}).", ephemeral=True)
            return
        if m is None:
            await safe_ctx_followup(ctx, "Match not found.", ephemeral=True)
            return

        by_name = {mp.player.name.lower(): mp for mp in m.match_players}

        try:
            clear_winners = check_edit_winner(outcome, m.outcome, winner)
        except SubmissionError as e:
            await safe_ctx_followup(ctx, f"❌ {e}", ephemeral=True)
            return

        winner_id: Optional[str] = "" if clear_winners else None
        if winner:
            mp = by_name.get(winner.strip().lower())
            if mp is None:
                await safe_ctx_followup(ctx, f"❌ '{winner}' didn't play in this match.", ephemeral=True)
                return
            winner_id = mp.player_id

        renames = {}
        if rename_from and rename_to:
            mp = by_name.get(rename_from.strip().lower())
            if mp is None:
                await safe_ctx_followup(ctx, f"❌ '{rename_from}' didn't play in this match.", ephemeral=True)
                return
            renames[mp.player_id] = rename_to.strip()

        try:
            if time is not None and time.strip():
                check_time_taken(time)
        except SubmissionError as e:
            await safe_ctx_followup(ctx, f"❌ {e}", ephemeral=True)
            return

        new_date = None
        if played_at:
            parsed = parse_played_at(played_at.strip())
            if parsed is None:
                await safe_ctx_followup(ctx, "❌ Use YYYY-MM-DD for the date.", ephemeral=True)
                return
            new_date = parsed.isoformat()

        try:
            await store.edit_match(
                m,
                title=title.strip() if title else None,
                played_at=new_date,
                outcome=outcome,
                time_taken=time,
                notes=notes,
                winner_player_id=winner_id,
                renames=renames,
            )
        except RecordStoreError as e:
            log_warn(f"[matches] edit {m.id} failed: {e}")
            await safe_ctx_followup(ctx, f"❌ Failed to save changes ({e.status or 'no response'}).", ephemeral=True)
            return

        self._after_write()
        await self.log.info(f"[matches] {m.id} edited by {ctx.author} ({ctx.author.id})")
        await safe_ctx_followup(ctx, "✅ Match updated.", ephemeral=True)


def setup(bot: commands.Bot):
    bot.add_cog(MatchesCog(bot))
