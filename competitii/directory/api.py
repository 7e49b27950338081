import logging
import os
from typing import Any, Mapping, Optional, Protocol

import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class DisplayNameResolver(Protocol):
    def resolve_display_name(self, user_id: int) -> Optional[str]:
        ...


def display_name_from_chat(chat: Mapping[str, Any]) -> Optional[str]:
    """Pick the name to show for a Bot API ``Chat`` object.

    Prefers ``@username``, then ``first_name`` (with ``last_name`` when set).
    """
    username = chat.get("username")
    if username:
        return f"@{username}"
    first_name = (chat.get("first_name") or "").strip()
    if first_name:
        last_name = (chat.get("last_name") or "").strip()
        return f"{first_name} {last_name}" if last_name else first_name
    title = (chat.get("title") or "").strip()
    return title or None


class TelegramDirectoryClient:
    """Resolve user ids to display names through the Telegram Bot API."""

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = "https://api.telegram.org",
        timeout: int = 10,
        session: Optional[requests.Session] = None,
    ):
        load_dotenv()
        token = token or os.getenv("BOT_TOKEN")
        if not token:
            raise ValueError("Environment variable 'BOT_TOKEN' is not set")

        self.base_url = base_url.rstrip("/")
        self._token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    # -------- core request --------
    def _request(self, method_name: str, params: Optional[dict] = None) -> Any:
        # Never log the URL: it embeds the bot token.
        url = f"{self.base_url}/bot{self._token}/{method_name}"
        r = self.session.request(
            method="GET",
            url=url,
            headers={"Accept": "application/json"},
            params=params,
            timeout=self.timeout,
        )
        r.raise_for_status()
        payload = r.json() if r.content else None
        if not isinstance(payload, dict) or not payload.get("ok"):
            description = payload.get("description") if isinstance(payload, dict) else None
            raise RuntimeError(
                f"Bot API call {method_name} failed"
                + (f": {description}" if description else ".")
            )
        return payload.get("result")

    # -------- API callers --------
    def get_chat(self, chat_id: int) -> dict:
        return self._request("getChat", params={"chat_id": chat_id})

    def resolve_display_name(self, user_id: int) -> Optional[str]:
        """Return a display name for ``user_id`` or ``None`` when unknown.

        Lookup failures (unknown chat, network error, bad response) are
        reported as "not found" so reporting callers can fall back to the
        raw id.
        """
        try:
            chat = self.get_chat(user_id)
        except (requests.RequestException, RuntimeError, ValueError) as e:
            # requests errors quote the URL, which carries the token.
            reason = str(e).replace(self._token, "<token>")
            logger.warning(f"Could not resolve display name for user {user_id}: {reason}")
            return None
        if not isinstance(chat, dict):
            return None
        return display_name_from_chat(chat)
