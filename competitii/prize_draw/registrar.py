"""One entry per user per draw."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ..clock import utcnow
from ..errors import AlreadyJoinedError, NoActiveDrawError
from ..records import DrawRecord, JoinReceipt, ParticipantRecord
from ..storage import DrawStore

logger = logging.getLogger(__name__)


class ParticipationRegistrar:
    def __init__(
        self,
        store: DrawStore,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._store = store
        self._clock = clock or utcnow

    def _active_draw(self) -> DrawRecord:
        draw = self._store.find_active_draw()
        if draw is None:
            raise NoActiveDrawError("No draw is currently active")
        return draw

    def join(self, user_id: int) -> JoinReceipt:
        """Enter ``user_id`` into the active draw.

        Raises :class:`NoActiveDrawError` when nothing is open and
        :class:`AlreadyJoinedError` on a repeated entry. Two concurrent joins
        by the same user end with one success; the store's uniqueness rule
        rejects the other. A join that races a close also raises
        :class:`NoActiveDrawError`, because the store only writes entries into
        a draw that is still active.
        """

        draw = self._active_draw()
        if self._store.find_participant(draw.id, user_id) is not None:
            raise AlreadyJoinedError(f"User {user_id} already joined draw {draw.id}")

        self._store.create_participant(
            ParticipantRecord(draw_id=draw.id, user_id=user_id, created_at=self._clock())
        )
        logger.debug(f"User {user_id} joined draw {draw.id}")
        return JoinReceipt(draw_id=draw.id, title=draw.title)

    def has_joined(self, user_id: int) -> bool:
        draw = self._active_draw()
        return self._store.find_participant(draw.id, user_id) is not None

    def list_participants(self, draw_id: str) -> list[int]:
        return [p.user_id for p in self._store.list_participants(draw_id)]

    def active_participant_count(self) -> tuple[DrawRecord, int]:
        """Return the active draw together with its number of entries."""

        draw = self._active_draw()
        return draw, self._store.count_participants(draw.id)


__all__ = ["ParticipationRegistrar"]
