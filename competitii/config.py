"""Environment-driven settings for the engine and its scripts."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .db.utils import resolve_sqlite_url
from .prize_draw.selector import DEFAULT_WINNER_COUNT
from .referrals.leaderboard import DEFAULT_LEADERBOARD_LIMIT

ROOT_DIR = Path(__file__).resolve().parents[1]
DEFAULT_DB_URL = "sqlite:///./dev.db"
DEFAULT_CHANNEL_USERNAME = "@CompetitiiChannel"


def _parse_admin_ids(raw_ids: Optional[str], raw_single: Optional[str]) -> frozenset[int]:
    """Parse ``ADMIN_IDS`` (comma separated), falling back to ``ADMIN_ID``.

    Blank items are skipped; anything else that is not an integer is an error.
    An ``ADMIN_ID`` of ``0`` means no admin is configured.
    """
    if raw_ids and raw_ids.strip():
        ids = set()
        for item in raw_ids.split(","):
            item = item.strip()
            if not item:
                continue
            try:
                ids.add(int(item))
            except ValueError as e:
                raise ValueError(f"ADMIN_IDS contains a non-numeric id: {item!r}") from e
        return frozenset(ids)

    if raw_single and raw_single.strip():
        try:
            admin_id = int(raw_single.strip())
        except ValueError as e:
            raise ValueError(f"ADMIN_ID is not numeric: {raw_single!r}") from e
        return frozenset({admin_id}) if admin_id != 0 else frozenset()

    return frozenset()


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
    if value < 1:
        raise ValueError(f"{name} must be at least 1, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    db_url: str
    bot_token: Optional[str] = None
    admin_ids: frozenset[int] = field(default_factory=frozenset)
    channel_username: str = DEFAULT_CHANNEL_USERNAME
    default_winner_count: int = DEFAULT_WINNER_COUNT
    leaderboard_limit: int = DEFAULT_LEADERBOARD_LIMIT

    def is_admin(self, user_id: Optional[int]) -> bool:
        """Admin-only operations are disabled when no admin is configured."""
        if user_id is None:
            return False
        return user_id in self.admin_ids


def load_settings(
    env: Optional[Mapping[str, str]] = None,
    project_root: Path = ROOT_DIR,
) -> Settings:
    """Build :class:`Settings` from ``env`` (``os.environ`` after ``.env``).

    Relative SQLite URLs are resolved against ``project_root``.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    return Settings(
        db_url=resolve_sqlite_url(env.get("DB_URL") or DEFAULT_DB_URL, project_root),
        bot_token=env.get("BOT_TOKEN") or None,
        admin_ids=_parse_admin_ids(env.get("ADMIN_IDS"), env.get("ADMIN_ID")),
        channel_username=env.get("CHANNEL_USERNAME") or DEFAULT_CHANNEL_USERNAME,
        default_winner_count=_positive_int(env, "DEFAULT_WINNER_COUNT", DEFAULT_WINNER_COUNT),
        leaderboard_limit=_positive_int(env, "LEADERBOARD_LIMIT", DEFAULT_LEADERBOARD_LIMIT),
    )


__all__ = ["Settings", "load_settings", "DEFAULT_DB_URL", "DEFAULT_CHANNEL_USERNAME"]
