"""Abstract persistence contract consumed by every engine component."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ..records import (
    DrawRecord,
    DrawStatus,
    LeaderboardEntry,
    ParticipantRecord,
    ReferralRecord,
)


class DrawStore(ABC):
    """Single source of truth for draws, participants and referral edges.

    Implementations enforce the uniqueness rules atomically:

    * :meth:`create_draw` raises :class:`~competitii.errors.ConflictError`
      when another draw is already active (or the identifier is taken).
    * :meth:`create_participant` raises
      :class:`~competitii.errors.AlreadyJoinedError` for a repeated
      ``(draw_id, user_id)`` pair, and
      :class:`~competitii.errors.NoActiveDrawError` unless the draw is still
      active when the entry is written.
    * :meth:`create_referral` raises
      :class:`~competitii.errors.DuplicateReferralError` when the referred
      user already has a referrer.
    * :meth:`update_draw` is a compare-and-set on the draw status.

    Any infrastructure failure surfaces as
    :class:`~competitii.errors.StorageUnavailableError`.
    """

    # -------- draws --------
    @abstractmethod
    def find_active_draw(self) -> Optional[DrawRecord]:
        ...

    @abstractmethod
    def find_closed_undrawn_draw(self) -> Optional[DrawRecord]:
        """Most recently created closed draw with no winners."""

    @abstractmethod
    def find_draw(self, draw_id: str) -> Optional[DrawRecord]:
        ...

    @abstractmethod
    def find_latest_drawn_draw(self) -> Optional[DrawRecord]:
        ...

    @abstractmethod
    def create_draw(self, draw: DrawRecord) -> DrawRecord:
        ...

    @abstractmethod
    def update_draw(self, draw: DrawRecord, expected_status: DrawStatus) -> bool:
        """Replace the stored draw only if its status is ``expected_status``.

        Returns ``False`` without writing when the stored status differs or
        the draw does not exist. Winners are written together with the status.
        """

    @abstractmethod
    def count_draws(self) -> int:
        ...

    # -------- participants --------
    @abstractmethod
    def find_participant(self, draw_id: str, user_id: int) -> Optional[ParticipantRecord]:
        ...

    @abstractmethod
    def create_participant(self, participant: ParticipantRecord) -> ParticipantRecord:
        """Insert an entry for an active draw.

        The status check and the insert are one atomic step, so an entry never
        lands in a draw that was closed or drawn after the caller read it.
        """

    @abstractmethod
    def list_participants(self, draw_id: str) -> list[ParticipantRecord]:
        """Entries for ``draw_id`` in insertion order."""

    @abstractmethod
    def count_participants(self, draw_id: Optional[str] = None) -> int:
        """Entries in ``draw_id``, or in all draws when ``draw_id`` is omitted."""

    # -------- referrals --------
    @abstractmethod
    def find_referral(self, referrer_id: int, referred_id: int) -> Optional[ReferralRecord]:
        ...

    @abstractmethod
    def find_referrer(self, referred_id: int) -> Optional[ReferralRecord]:
        """The edge that attributes ``referred_id`` to its referrer, if any."""

    @abstractmethod
    def create_referral(self, referral: ReferralRecord) -> ReferralRecord:
        ...

    @abstractmethod
    def list_referrals(self, referrer_id: int) -> list[ReferralRecord]:
        """Edges created by ``referrer_id`` in creation order."""

    @abstractmethod
    def aggregate_referral_counts(self, limit: Optional[int] = None) -> list[LeaderboardEntry]:
        """Edge counts per referrer, count descending then referrer id ascending."""

    # -------- health --------
    @abstractmethod
    def ping(self) -> None:
        """Raise :class:`~competitii.errors.StorageUnavailableError` if unreachable."""


__all__ = ["DrawStore"]
