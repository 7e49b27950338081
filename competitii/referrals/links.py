"""Referral deep-link payloads (``/start ref_<user id>``)."""

from __future__ import annotations

import re
from typing import Optional

REFERRAL_PREFIX = "ref_"

_PAYLOAD_RE = re.compile(r"^ref_(\d{1,19})$")


def build_referral_payload(user_id: int) -> str:
    if user_id <= 0:
        raise ValueError("user_id must be positive")
    return f"{REFERRAL_PREFIX}{user_id}"


def parse_referral_payload(payload: Optional[str]) -> Optional[int]:
    """Return the referrer id encoded in a start payload.

    ``None`` is returned for a missing, unrelated or malformed payload, so
    callers can pass the raw argument of a start command straight through.

    >>> parse_referral_payload("ref_42")
    42
    >>> parse_referral_payload("promo") is None
    True
    """

    if not payload:
        return None
    match = _PAYLOAD_RE.match(payload.strip())
    if match is None:
        return None
    referrer_id = int(match.group(1))
    return referrer_id or None


def referral_link(bot_username: str, user_id: int) -> str:
    """Deep link that opens the bot with ``user_id`` as the referrer."""

    username = bot_username.lstrip("@")
    if not username:
        raise ValueError("bot_username must not be empty")
    return f"https://t.me/{username}?start={build_referral_payload(user_id)}"


__all__ = [
    "REFERRAL_PREFIX",
    "build_referral_payload",
    "parse_referral_payload",
    "referral_link",
]
