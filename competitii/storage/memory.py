"""In-process implementation of :class:`~competitii.storage.port.DrawStore`.

Intended for tests and single-process deployments without a database. Writes
are serialized with locks scoped to the invariant they protect: one global
lock for draw state (a single active draw), and per-key locks for participant
``(draw_id, user_id)`` and referral ``referred_id`` uniqueness. Participant
inserts also take the draw lock, so entries only land in an active draw.
"""

from __future__ import annotations

import threading
from collections import defaultdict
from dataclasses import replace
from typing import Hashable, Optional

from ..errors import (
    AlreadyJoinedError,
    ConflictError,
    DuplicateReferralError,
    InvalidInputError,
    NoActiveDrawError,
)
from ..records import (
    DrawRecord,
    DrawStatus,
    LeaderboardEntry,
    ParticipantRecord,
    ReferralRecord,
)
from .port import DrawStore


class _KeyedLocks:
    """Hand out one lock per key, created on first use."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}

    def __call__(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock


class InMemoryDrawStore(DrawStore):
    def __init__(self) -> None:
        self._draw_lock = threading.Lock()
        self._participant_locks = _KeyedLocks()
        self._referral_locks = _KeyedLocks()
        self._draws: dict[str, DrawRecord] = {}
        self._participants: dict[tuple[str, int], ParticipantRecord] = {}
        self._participants_by_draw: dict[str, list[ParticipantRecord]] = defaultdict(list)
        self._referrals_by_referred: dict[int, ReferralRecord] = {}
        self._referrals_by_referrer: dict[int, list[ReferralRecord]] = defaultdict(list)

    # -------- draws --------
    def find_active_draw(self) -> Optional[DrawRecord]:
        with self._draw_lock:
            for draw in self._draws.values():
                if draw.status is DrawStatus.ACTIVE:
                    return draw
        return None

    def find_closed_undrawn_draw(self) -> Optional[DrawRecord]:
        with self._draw_lock:
            candidates = [d for d in self._draws.values() if d.is_undrawn]
        if not candidates:
            return None
        return max(candidates, key=lambda d: (d.created_at, d.id))

    def find_draw(self, draw_id: str) -> Optional[DrawRecord]:
        with self._draw_lock:
            return self._draws.get(draw_id)

    def find_latest_drawn_draw(self) -> Optional[DrawRecord]:
        with self._draw_lock:
            drawn = [d for d in self._draws.values() if d.status is DrawStatus.DRAWN]
        if not drawn:
            return None
        return max(drawn, key=lambda d: (d.drawn_at or d.created_at, d.created_at, d.id))

    def create_draw(self, draw: DrawRecord) -> DrawRecord:
        with self._draw_lock:
            if draw.id in self._draws:
                raise ConflictError(f"Draw {draw.id} already exists")
            if draw.status is DrawStatus.ACTIVE and any(
                d.status is DrawStatus.ACTIVE for d in self._draws.values()
            ):
                raise ConflictError("Another draw is already active")
            self._draws[draw.id] = draw
        return draw

    def update_draw(self, draw: DrawRecord, expected_status: DrawStatus) -> bool:
        with self._draw_lock:
            current = self._draws.get(draw.id)
            if current is None or current.status is not expected_status:
                return False
            if draw.status is DrawStatus.ACTIVE and any(
                d.status is DrawStatus.ACTIVE and d.id != draw.id
                for d in self._draws.values()
            ):
                raise ConflictError("Another draw is already active")
            self._draws[draw.id] = replace(draw, created_at=current.created_at)
            return True

    def count_draws(self) -> int:
        with self._draw_lock:
            return len(self._draws)

    # -------- participants --------
    def find_participant(self, draw_id: str, user_id: int) -> Optional[ParticipantRecord]:
        return self._participants.get((draw_id, user_id))

    def create_participant(self, participant: ParticipantRecord) -> ParticipantRecord:
        key = (participant.draw_id, participant.user_id)
        # Lock order is participant key, then draw state. The draw lock is held
        # through the insert so a close cannot land between check and write.
        with self._participant_locks(key), self._draw_lock:
            draw = self._draws.get(participant.draw_id)
            if draw is None or draw.status is not DrawStatus.ACTIVE:
                raise NoActiveDrawError(
                    f"Draw {participant.draw_id} is not accepting entries"
                )
            if key in self._participants:
                raise AlreadyJoinedError(
                    f"User {participant.user_id} already joined draw {participant.draw_id}"
                )
            self._participants[key] = participant
            self._participants_by_draw[participant.draw_id].append(participant)
        return participant

    def list_participants(self, draw_id: str) -> list[ParticipantRecord]:
        return list(self._participants_by_draw.get(draw_id, ()))

    def count_participants(self, draw_id: Optional[str] = None) -> int:
        if draw_id is None:
            return len(self._participants)
        return len(self._participants_by_draw.get(draw_id, ()))

    # -------- referrals --------
    def find_referral(self, referrer_id: int, referred_id: int) -> Optional[ReferralRecord]:
        edge = self._referrals_by_referred.get(referred_id)
        if edge is not None and edge.referrer_id == referrer_id:
            return edge
        return None

    def find_referrer(self, referred_id: int) -> Optional[ReferralRecord]:
        return self._referrals_by_referred.get(referred_id)

    def create_referral(self, referral: ReferralRecord) -> ReferralRecord:
        if referral.referrer_id == referral.referred_id:
            raise InvalidInputError("A user cannot refer themselves")
        with self._referral_locks(referral.referred_id):
            if referral.referred_id in self._referrals_by_referred:
                raise DuplicateReferralError(
                    f"User {referral.referred_id} already has a referrer"
                )
            self._referrals_by_referred[referral.referred_id] = referral
            self._referrals_by_referrer[referral.referrer_id].append(referral)
        return referral

    def list_referrals(self, referrer_id: int) -> list[ReferralRecord]:
        return sorted(
            self._referrals_by_referrer.get(referrer_id, ()),
            key=lambda r: r.created_at,
        )

    def aggregate_referral_counts(self, limit: Optional[int] = None) -> list[LeaderboardEntry]:
        entries = [
            LeaderboardEntry(referrer_id=referrer_id, count=len(edges))
            for referrer_id, edges in list(self._referrals_by_referrer.items())
            if edges
        ]
        entries.sort(key=lambda e: (-e.count, e.referrer_id))
        return entries if limit is None else entries[:limit]

    def ping(self) -> None:
        return None


__all__ = ["InMemoryDrawStore"]
