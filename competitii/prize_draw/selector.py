"""Uniform winner selection for closed draws."""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional, Sequence, TypeVar

from ..clock import utcnow
from ..errors import (
    DrawNotFoundError,
    InvalidInputError,
    InvalidStateError,
    NoParticipantsError,
)
from ..records import DrawRecord, DrawStatus
from ..storage import DrawStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_WINNER_COUNT = 1


def sample_without_replacement(
    population: Sequence[T], k: int, rng: random.Random
) -> list[T]:
    """Pick ``k`` distinct items uniformly at random (partial Fisher-Yates).

    Every ordered ``k``-subset of ``population`` is equally likely. ``k`` is
    clamped to ``len(population)``.

    Parameters
    ----------
    population : Sequence[T]
        Items to choose from. The sequence itself is not modified.
    k : int
        Number of items wanted; must be non-negative.
    rng : random.Random
        Source of randomness.
    """

    if k < 0:
        raise ValueError("k must be non-negative")
    pool = list(population)
    n = len(pool)
    k = min(k, n)
    for i in range(k):
        j = rng.randrange(i, n)
        pool[i], pool[j] = pool[j], pool[i]
    return pool[:k]


def _normalize_count(count: Optional[int], default: int = DEFAULT_WINNER_COUNT) -> int:
    if count is None:
        return default
    if isinstance(count, bool) or not isinstance(count, int):
        raise InvalidInputError("Winner count must be an integer")
    if count < 1:
        raise InvalidInputError("Winner count must be at least 1")
    return count


class WinnerSelector:
    """Pick winners for a closed draw and move it to ``drawn``."""

    def __init__(
        self,
        store: DrawStore,
        *,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
        default_count: int = DEFAULT_WINNER_COUNT,
    ) -> None:
        """Create a selector bound to ``store``.

        Parameters
        ----------
        store : DrawStore
            Persistence port.
        rng : Optional[random.Random], default: None
            Random source. Fairness only needs uniform sampling, so a seeded
            ``random.Random`` is fine for reproducible tests.
        clock : Optional[Callable[[], datetime]], default: None
            Returns the current UTC time.
        default_count : int, default: DEFAULT_WINNER_COUNT
            Winners picked when :meth:`draw_winners` gets no ``count``,
            usually ``Settings.default_winner_count``.

        Raises
        ------
        InvalidInputError
            If ``default_count`` is not a positive integer.
        """

        self._store = store
        self._default_count = _normalize_count(default_count)
        self._rng = rng or random.Random()
        self._clock = clock or utcnow

    def draw_winners(self, draw_id: str, count: Optional[int] = None) -> DrawRecord:
        """Select winners for ``draw_id`` and persist them.

        Parameters
        ----------
        draw_id : str
            Identifier of a closed draw without winners.
        count : Optional[int], default: None
            Number of winners wanted; ``None`` means the selector's
            ``default_count``. Fewer are returned when the draw has fewer
            participants.

        Returns
        -------
        DrawRecord
            The draw in ``drawn`` status with its ``winners`` populated.

        Raises
        ------
        InvalidInputError
            If ``count`` is not a positive integer.
        DrawNotFoundError
            If the draw does not exist.
        InvalidStateError
            If the draw is not closed or already has winners, including when a
            concurrent call drew it first.
        NoParticipantsError
            If nobody joined the draw. The draw stays closed.
        """

        wanted = _normalize_count(count, self._default_count)

        draw = self._store.find_draw(draw_id)
        if draw is None:
            raise DrawNotFoundError(f"Draw {draw_id} does not exist")
        if not draw.is_undrawn:
            raise InvalidStateError(
                f"Draw {draw_id} is {draw.status.value} and cannot be drawn"
            )

        entrants = [p.user_id for p in self._store.list_participants(draw_id)]
        if not entrants:
            raise NoParticipantsError(f"Draw {draw_id} has no participants")

        winners = sample_without_replacement(entrants, wanted, self._rng)
        drawn = replace(
            draw,
            status=DrawStatus.DRAWN,
            winners=tuple(winners),
            drawn_at=self._clock(),
        )
        if not self._store.update_draw(drawn, expected_status=DrawStatus.CLOSED):
            raise InvalidStateError(f"Draw {draw_id} was drawn concurrently")

        logger.info(
            f"Draw {draw_id} drawn: {len(winners)} winner(s) from {len(entrants)} participant(s)"
        )
        return drawn


__all__ = [
    "DEFAULT_WINNER_COUNT",
    "WinnerSelector",
    "sample_without_replacement",
]
