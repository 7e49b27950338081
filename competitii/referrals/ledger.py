"""Referral edge bookkeeping."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ..clock import utcnow
from ..errors import DuplicateReferralError
from ..records import ReferralRecord
from ..storage import DrawStore

logger = logging.getLogger(__name__)


class ReferralLedger:
    """Record who invited whom.

    The first recorded referrer of a user is authoritative: later claims by a
    different referrer are ignored rather than rejected, the same way a repeat
    of an existing edge or a self-referral is.
    """

    def __init__(
        self,
        store: DrawStore,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._store = store
        self._clock = clock or utcnow

    def record_referral(self, referrer_id: int, referred_id: int) -> bool:
        """Store the edge ``referrer_id -> referred_id`` if it is new.

        Returns
        -------
        bool
            ``True`` when a new edge was created (the caller may notify the
            referrer), ``False`` when nothing was written.
        """

        if referrer_id == referred_id:
            logger.debug(f"Ignoring self-referral by {referrer_id}")
            return False
        if self._store.find_referral(referrer_id, referred_id) is not None:
            return False

        existing = self._store.find_referrer(referred_id)
        if existing is not None:
            logger.debug(
                f"User {referred_id} already referred by {existing.referrer_id}; "
                f"ignoring claim by {referrer_id}"
            )
            return False

        try:
            self._store.create_referral(
                ReferralRecord(
                    referrer_id=referrer_id,
                    referred_id=referred_id,
                    created_at=self._clock(),
                )
            )
        except DuplicateReferralError:
            # Lost a race against another arrival event for the same user.
            return False

        logger.info(f"Referral recorded: {referrer_id} -> {referred_id}")
        return True

    def list_referred_by(self, referrer_id: int) -> list[int]:
        """Users attributed to ``referrer_id``, oldest first."""

        return [r.referred_id for r in self._store.list_referrals(referrer_id)]

    def referrer_of(self, referred_id: int) -> Optional[int]:
        edge = self._store.find_referrer(referred_id)
        return edge.referrer_id if edge is not None else None


__all__ = ["ReferralLedger"]
