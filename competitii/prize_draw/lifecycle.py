"""Draw creation, closing and the implicit drawing queue."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from ..clock import DEFAULT_ID_GENERATOR, DrawIdGenerator, utcnow
from ..errors import (
    ConflictError,
    InvalidInputError,
    NoActiveDrawError,
    NotFoundError,
)
from ..records import DrawRecord, DrawStatus
from ..storage import DrawStore

logger = logging.getLogger(__name__)


class DrawLifecycleManager:
    """Own the ``active`` -> ``closed`` -> ``drawn`` state machine.

    Only the first two transitions live here; the last one belongs to
    :class:`~competitii.prize_draw.selector.WinnerSelector`. The manager keeps
    no state between calls: every operation re-reads the store.
    """

    def __init__(
        self,
        store: DrawStore,
        *,
        id_generator: Optional[DrawIdGenerator] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Create a lifecycle manager bound to ``store``.

        Parameters
        ----------
        store : DrawStore
            Persistence port used for every read and write.
        id_generator : Optional[DrawIdGenerator], default: None
            Source of draw identifiers. The process-wide generator is used
            when omitted.
        clock : Optional[Callable[[], datetime]], default: None
            Returns the current UTC time; :func:`competitii.clock.utcnow` by
            default.
        """

        self._store = store
        self._ids = id_generator or DEFAULT_ID_GENERATOR
        self._clock = clock or utcnow

    def create_draw(self, title: str) -> DrawRecord:
        """Open a new draw for entries.

        Parameters
        ----------
        title : str
            Free-text title; surrounding whitespace is stripped.

        Returns
        -------
        DrawRecord
            The persisted active draw with no winners.

        Raises
        ------
        InvalidInputError
            If ``title`` is empty after trimming.
        ConflictError
            If another draw is still active.
        """

        if not isinstance(title, str) or not title.strip():
            raise InvalidInputError("Draw title must not be empty")

        if self._store.find_active_draw() is not None:
            raise ConflictError("Close the active draw before starting a new one")

        now = self._clock()
        draw = DrawRecord(
            id=self._ids.next_id(now),
            title=title.strip(),
            status=DrawStatus.ACTIVE,
            created_at=now,
        )
        # The store re-checks the single-active rule, so a concurrent creator
        # that slipped past the read above still gets ConflictError here.
        self._store.create_draw(draw)
        logger.info(f"Draw {draw.id} created: {draw.title!r}")
        return draw

    def active_draw(self) -> DrawRecord:
        """Return the draw accepting entries or raise :class:`NoActiveDrawError`."""

        draw = self._store.find_active_draw()
        if draw is None:
            raise NoActiveDrawError("No draw is currently active")
        return draw

    def close_draw(self) -> DrawRecord:
        """Stop accepting entries for the active draw.

        Raises
        ------
        NoActiveDrawError
            If no draw is active, including when a concurrent call closed it
            first.
        """

        draw = self.active_draw()
        closed = replace(draw, status=DrawStatus.CLOSED, closed_at=self._clock())
        if not self._store.update_draw(closed, expected_status=DrawStatus.ACTIVE):
            raise NoActiveDrawError(f"Draw {draw.id} is no longer active")
        logger.info(f"Draw {draw.id} closed")
        return closed

    def select_target_for_drawing(self) -> DrawRecord:
        """Return the most recently created closed draw that has no winners yet."""

        draw = self._store.find_closed_undrawn_draw()
        if draw is None:
            raise NotFoundError("No closed draw is waiting for winners")
        return draw

    def latest_drawn(self) -> Optional[DrawRecord]:
        """Return the draw whose winners were picked most recently, if any."""

        return self._store.find_latest_drawn_draw()


__all__ = ["DrawLifecycleManager"]
