# utils/mod_check.py
"""Who may edit archived matches."""

from typing import Optional

import discord

from .settings import BINGO


def is_mod(
    member: Optional[discord.Member],
    *,
    check_manage_messages: bool = True,
) -> bool:
    """Check if a member is a bingo mod.

    Args:
        member: The Discord member to check
        check_manage_messages: Also grant mod status to users with Manage Messages

    Returns:
        True if the member is a mod, False otherwise
    """
    if member is None:
        return False

    if int(getattr(member, "id", 0) or 0) in BINGO.mod_user_ids:
        return True

    if check_manage_messages:
        perms = getattr(member, "guild_permissions", None)
        if perms and perms.manage_messages:
            return True

    roles = getattr(member, "roles", None) or []

    if BINGO.mod_role_id:
        if any(r.id == BINGO.mod_role_id for r in roles):
            return True

    if BINGO.mod_role_name:
        if any(r.name == BINGO.mod_role_name for r in roles):
            return True

    return False
