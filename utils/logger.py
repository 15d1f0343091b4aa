# utils/logger.py
from __future__ import annotations

import contextlib
import os
from typing import Any, Optional, Tuple

from colorama import Fore, Style, just_fix_windows_console

just_fix_windows_console()

RESET = Style.RESET_ALL

PALETTE = {
    "grey": Fore.LIGHTBLACK_EX,
    "red": Fore.LIGHTRED_EX,
    "green": Fore.LIGHTGREEN_EX,
    "yellow": Fore.LIGHTYELLOW_EX,
    "gold": Fore.YELLOW,
    "blue": Fore.LIGHTBLUE_EX,
    "magenta": Fore.LIGHTMAGENTA_EX,
    "cyan": Fore.LIGHTCYAN_EX,
    "white": Fore.WHITE,
}

# ---- prefix -> color (shared by every module that logs "[prefix] ...") ----

PREFIX_COLORS = {
    "boot": "white",
    "db": "white",
    "store": "yellow",
    "stats": "cyan",
    "profile": "cyan",
    "achievements": "gold",
    "graphs": "magenta",
    "matches": "blue",
    "submit": "blue",
    "session": "green",
}

LEVEL_COLORS = {
    "debug": "grey",
    "info": "white",
    "ok": "green",
    "warn": "yellow",
    "error": "red",
}

LEVEL_EMOJIS = {
    "debug": "🔹",
    "info": "ℹ️",
    "ok": "✅",
    "warn": "⚠️",
    "error": "❌",
}

# Debug lines are noisy (achievement filtering etc.); off unless asked for.
DEBUG_ENABLED = (os.getenv("BINGO_DEBUG") or "").strip().lower() in ("1", "true", "yes")


def c(text: str, color: str | None = None, *, bold: bool = False) -> str:
    if not color:
        return text
    code = PALETTE.get(color.lower(), "")
    if not code:
        return text
    b = Style.BRIGHT if bold else ""
    return f"{b}{code}{text}{RESET}"


def split_prefix(text: str) -> Tuple[Optional[str], str]:
    t = (text or "").strip()
    if not t.startswith("["):
        return None, t
    end = t.find("]")
    if end <= 1:
        return None, t
    prefix = t[1:end].strip()
    rest = t[end + 1 :].lstrip()
    return prefix, rest


def format_console(text: str, *, level: str = "info") -> str:
    prefix, rest = split_prefix(text)
    lvl = (level or "info").lower()
    lvl_color = LEVEL_COLORS.get(lvl, "white")

    if prefix:
        p_color = PREFIX_COLORS.get(prefix.lower(), lvl_color)
        head = c(f"[{prefix}]", p_color, bold=True)
        return f"{head} {c(rest, lvl_color)}" if rest else head

    return c(text, lvl_color)


def format_discord(text: str, *, level: str = "info") -> str:
    lvl = (level or "info").lower()
    emoji = LEVEL_EMOJIS.get(lvl, "ℹ️")
    msg = f"{emoji} {str(text or '')}"
    return msg[:1900] + "…" if len(msg) > 1900 else msg


def _console(text: str, level: str) -> None:
    raw = str(text or "")
    try:
        print(format_console(raw, level=level))
    except Exception:
        print(raw)


# ---- module-level console helpers (no Discord) ----

def log_sync(text: str) -> None:
    _console(text, "info")

def log_ok(text: str) -> None:
    _console(text, "ok")

def log_warn(text: str) -> None:
    _console(text, "warn")

def log_error(text: str) -> None:
    _console(text, "error")

def log_debug(text: str) -> None:
    if DEBUG_ENABLED:
        _console(text, "debug")


class Logger:
    """
    Logger for cogs:
      - colored console
      - plain Discord log channel (cfg.guild_id + cfg.log_channel_id)
    """

    def __init__(self, bot: Any, cfg: Any):
        self.bot = bot
        self.cfg = cfg

    async def log(self, text: str, *, level: str = "info", send: bool = True, console: bool = True) -> None:
        raw = str(text or "")

        if console:
            _console(raw, level)

        if not send:
            return

        ch_id = int(getattr(self.cfg, "log_channel_id", 0) or 0)
        if not ch_id:
            return

        guild_id = int(getattr(self.cfg, "guild_id", 0) or 0)
        guild = self.bot.get_guild(guild_id) if guild_id else None
        if not guild:
            return

        ch = guild.get_channel(ch_id)
        if not ch:
            with contextlib.suppress(Exception):
                ch = await guild.fetch_channel(ch_id)
        if not ch:
            return

        with contextlib.suppress(Exception):
            await ch.send(format_discord(raw, level=level))

    async def info(self, text: str, **kw): return await self.log(text, level="info", **kw)
    async def ok(self, text: str, **kw):   return await self.log(text, level="ok", **kw)
    async def warn(self, text: str, **kw): return await self.log(text, level="warn", **kw)
    async def error(self, text: str, **kw): return await self.log(text, level="error", **kw)


def get_logger(bot: Any, cfg: Any) -> Logger:
    return Logger(bot, cfg)
