"""User directory lookups used by reporting callers."""

from .api import DisplayNameResolver, TelegramDirectoryClient, display_name_from_chat

__all__ = ["DisplayNameResolver", "TelegramDirectoryClient", "display_name_from_chat"]
