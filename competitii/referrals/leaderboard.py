"""Top referrers ranking."""

from __future__ import annotations

from ..errors import InvalidInputError
from ..records import LeaderboardEntry
from ..storage import DrawStore

DEFAULT_LEADERBOARD_LIMIT = 10


class LeaderboardAggregator:
    def __init__(self, store: DrawStore) -> None:
        self._store = store

    def top_referrers(self, limit: int = DEFAULT_LEADERBOARD_LIMIT) -> list[LeaderboardEntry]:
        """Return at most ``limit`` referrers ranked by number of referrals.

        Ties are broken by ascending referrer id so the ranking is the same on
        every backend. An empty list means nobody has referred anyone yet.
        """

        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidInputError("limit must be a positive integer")

        entries = self._store.aggregate_referral_counts(limit)
        # Same order on every backend: count desc, then referrer id asc.
        ranked = sorted(entries, key=lambda e: (-e.count, e.referrer_id))
        return ranked[:limit]


__all__ = ["DEFAULT_LEADERBOARD_LIMIT", "LeaderboardAggregator"]
