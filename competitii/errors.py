"""Error kinds raised by the draw, participation and referral engine.

Every failure is a distinct subclass of :class:`GiveawayError` so callers can
branch on the type instead of matching messages.
"""

from __future__ import annotations


class GiveawayError(Exception):
    """Base class for all errors raised by :mod:`competitii`."""


class InvalidInputError(GiveawayError, ValueError):
    """A caller supplied a malformed argument (empty title, bad count, ...)."""


class NotFoundError(GiveawayError):
    """An expected record is absent. This is a normal negative outcome."""


class NoActiveDrawError(NotFoundError):
    """No draw is currently accepting entries."""


class NoParticipantsError(NotFoundError):
    """A draw was asked to pick winners but nobody joined it."""


class ConflictError(GiveawayError):
    """A uniqueness rule rejected the write (e.g. a second active draw)."""


class AlreadyJoinedError(ConflictError):
    """The user already holds an entry in the draw."""


class DuplicateReferralError(ConflictError):
    """The referred user is already attributed to a referrer."""


class InvalidStateError(GiveawayError):
    """The draw is not in the lifecycle state the operation requires."""


class DrawNotFoundError(NotFoundError, InvalidStateError):
    """The addressed draw does not exist."""


class StorageUnavailableError(GiveawayError):
    """The backing store failed. Retrying is the caller's decision."""


__all__ = [
    "GiveawayError",
    "InvalidInputError",
    "NotFoundError",
    "NoActiveDrawError",
    "NoParticipantsError",
    "ConflictError",
    "AlreadyJoinedError",
    "DuplicateReferralError",
    "InvalidStateError",
    "DrawNotFoundError",
    "StorageUnavailableError",
]
