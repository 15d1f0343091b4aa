# cogs/profile_setup_cog.py
"""/setupprofile: link your Discord account to a bingo player.

If the name matches an existing player nobody has claimed yet (e.g. one
created by an earlier /submitmatch), you take it over along with its match
history. Names already linked to someone else are refused.
"""

from __future__ import annotations

import discord
from discord.ext import commands
from discord import Option

from record_store import RecordStoreError
from utils.interactions import safe_ctx_defer, safe_ctx_followup
from utils.logger import log_warn
from utils.persistence import initialize_session, setup_player
from utils.settings import GUILD_ID


class ProfileSetupCog(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @commands.slash_command(
        name="setupprofile",
        description="Choose your bingo player name (claims an existing unlinked player).",
        guild_ids=[GUILD_ID] if GUILD_ID else None,
    )
    async def setupprofile(
        self,
        ctx: discord.ApplicationContext,
        name: str = Option(str, "Display name", required=True, max_length=32),
    ):
        await safe_ctx_defer(ctx, ephemeral=True, label="setupprofile")

        store = self.bot.record_store
        cache = self.bot.session_cache
        uid = str(ctx.author.id)

        try:
            state = await initialize_session(uid, store=store, cache=cache)
            if state.player is not None and state.player.name.lower() != name.strip().lower():
                await safe_ctx_followup(
                    ctx,
                    f"You're already linked to **{state.player.name}**. Ask a mod if you need a rename.",
                    ephemeral=True,
                )
                return

            avatar = ctx.author.display_avatar.url if ctx.author.display_avatar else None
            player = await setup_player(uid, name, avatar, store=store, cache=cache)
        except ValueError as e:
            # includes NameTakenError
            await safe_ctx_followup(ctx, f"❌ {e}", ephemeral=True)
            return
        except RecordStoreError as e:
            log_warn(f"[session] setup for {uid} failed: {e}")
            await safe_ctx_followup(ctx, f"Couldn't save your profile ({e.status or 'no response'}).", ephemeral=True)
            return

        await safe_ctx_followup(
            ctx,
            f"✅ You're now **{player.name}**. Try `/profile`.",
            ephemeral=True,
        )


def setup(bot: commands.Bot):
    bot.add_cog(ProfileSetupCog(bot))
