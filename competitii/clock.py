"""Timestamps and draw identifier generation."""

from __future__ import annotations

import secrets
import string
import threading
from datetime import datetime, timezone
from typing import Optional

BASE62_ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class DrawIdGenerator:
    """Produce monotonic, collision-free draw identifiers.

    Identifiers look like ``0001760650000123-a9Zq``: a zero-padded epoch
    millisecond component followed by a short base62 suffix. Within one
    generator the millisecond component is strictly increasing, so sorting
    identifiers as strings reproduces creation order. The random suffix keeps
    identifiers from separate processes apart when their clocks coincide.
    """

    def __init__(self, suffix_length: int = 4) -> None:
        if suffix_length < 0:
            raise ValueError("suffix_length must be non-negative")
        self._suffix_length = suffix_length
        self._last_millis = -1
        self._lock = threading.Lock()

    def next_id(self, now: Optional[datetime] = None) -> str:
        """Return a fresh identifier for a draw created at ``now``."""

        moment = now or utcnow()
        millis = int(moment.timestamp() * 1000)
        with self._lock:
            if millis <= self._last_millis:
                millis = self._last_millis + 1
            self._last_millis = millis

        suffix = "".join(
            secrets.choice(BASE62_ALPHABET) for _ in range(self._suffix_length)
        )
        if not suffix:
            return f"{millis:016d}"
        return f"{millis:016d}-{suffix}"


DEFAULT_ID_GENERATOR = DrawIdGenerator()


__all__ = ["BASE62_ALPHABET", "DrawIdGenerator", "DEFAULT_ID_GENERATOR", "utcnow"]
