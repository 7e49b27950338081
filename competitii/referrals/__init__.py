"""Referral ledger, leaderboard and deep-link helpers."""

from .leaderboard import DEFAULT_LEADERBOARD_LIMIT, LeaderboardAggregator
from .ledger import ReferralLedger
from .links import build_referral_payload, parse_referral_payload, referral_link

__all__ = [
    "DEFAULT_LEADERBOARD_LIMIT",
    "LeaderboardAggregator",
    "ReferralLedger",
    "build_referral_payload",
    "parse_referral_payload",
    "referral_link",
]
