"""Shared helpers for safely responding to slash commands.

- Try to respond through the interaction first.
- If the interaction expired (10062), fall back to a plain channel message
  that mentions the invoking user.
"""

from __future__ import annotations

from typing import Any

import discord

from .logger import log_warn


async def safe_ctx_defer(
    ctx: discord.ApplicationContext,
    *,
    ephemeral: bool = False,
    label: str = "",
) -> bool:
    """Try to ack a slash interaction. If it expired (10062), don't crash."""
    try:
        inter = getattr(ctx, "interaction", None)
        created = getattr(inter, "created_at", None)
        if created:
            age = (discord.utils.utcnow() - created).total_seconds()
            if age > 2.7:
                log_warn(f"[{label}] interaction age before defer: {age:.2f}s (event-loop lag)")

        await ctx.defer(ephemeral=ephemeral)
        return True
    except discord.NotFound:
        log_warn(f"[{label}] ctx.defer failed: Unknown interaction (10062). Falling back to channel messages.")
        return False
    except Exception as e:
        log_warn(f"[{label}] ctx.defer failed: {type(e).__name__}: {e}")
        return False


async def _channel_fallback(ctx: discord.ApplicationContext, args: tuple, kwargs: dict) -> Any:
    if not ctx.channel:
        return None

    kwargs.pop("ephemeral", None)
    content = kwargs.get("content", None)

    if args and isinstance(args[0], str):
        args = (f"{ctx.author.mention} {args[0]}",) + tuple(args[1:])
    elif isinstance(content, str) and content:
        kwargs["content"] = f"{ctx.author.mention} {content}"
    else:
        kwargs["content"] = ctx.author.mention

    return await ctx.channel.send(*args, **kwargs)


async def safe_ctx_respond(ctx: discord.ApplicationContext, *args, **kwargs):
    """ctx.respond, but if interaction expired, fallback to channel.send."""
    try:
        return await ctx.respond(*args, **kwargs)
    except discord.NotFound:
        return await _channel_fallback(ctx, args, kwargs)


async def safe_ctx_followup(ctx: discord.ApplicationContext, *args, **kwargs):
    """ctx.followup.send, but if interaction expired, fallback to channel.send."""
    try:
        return await ctx.followup.send(*args, **kwargs)
    except discord.NotFound:
        return await _channel_fallback(ctx, args, kwargs)
