"""Draw, participation and referral engine for giveaway bots."""

__version__ = "0.1.0"
