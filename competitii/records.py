"""Plain value objects exchanged between the engine, its callers and the stores."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


class DrawStatus(str, enum.Enum):
    """Lifecycle state of a draw. Transitions only move forward."""

    ACTIVE = "active"
    CLOSED = "closed"
    DRAWN = "drawn"


@dataclass(frozen=True)
class DrawRecord:
    """One giveaway, from open entry to announced winners.

    Attributes
    ----------
    id : str
        Identifier produced by :class:`~competitii.clock.DrawIdGenerator`.
    title : str
        Trimmed free-text title shown to users.
    status : DrawStatus
        Current lifecycle state.
    created_at : datetime
        UTC timestamp when the draw was opened.
    winners : tuple[int, ...]
        User ids of the winners in selection order; empty until drawn.
    closed_at : Optional[datetime]
        When entries were closed, if they have been.
    drawn_at : Optional[datetime]
        When winners were selected, if they have been.
    """

    id: str
    title: str
    status: DrawStatus
    created_at: datetime
    winners: tuple[int, ...] = ()
    closed_at: Optional[datetime] = None
    drawn_at: Optional[datetime] = None

    @property
    def is_undrawn(self) -> bool:
        return self.status is DrawStatus.CLOSED and not self.winners


@dataclass(frozen=True)
class ParticipantRecord:
    """A single user's entry into a single draw."""

    draw_id: str
    user_id: int
    created_at: datetime


@dataclass(frozen=True)
class ReferralRecord:
    """Directed edge: ``referrer_id`` invited ``referred_id``."""

    referrer_id: int
    referred_id: int
    created_at: datetime


@dataclass(frozen=True)
class JoinReceipt:
    draw_id: str
    title: str


@dataclass(frozen=True)
class LeaderboardEntry:
    referrer_id: int
    count: int


@dataclass(frozen=True)
class NamedLeaderboardEntry:
    """Leaderboard row decorated with a directory name for reporting."""

    rank: int
    referrer_id: int
    count: int
    display_name: Optional[str] = None


@dataclass(frozen=True)
class DrawStats:
    total_draws: int
    total_participants: int
    active_draw: Optional[DrawRecord] = field(default=None)


__all__ = [
    "DrawStatus",
    "DrawRecord",
    "ParticipantRecord",
    "ReferralRecord",
    "JoinReceipt",
    "LeaderboardEntry",
    "NamedLeaderboardEntry",
    "DrawStats",
]
