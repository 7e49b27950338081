"""Draw lifecycle, participation and winner selection."""

from .lifecycle import DrawLifecycleManager
from .registrar import ParticipationRegistrar
from .selector import (
    DEFAULT_WINNER_COUNT,
    WinnerSelector,
    sample_without_replacement,
)

__all__ = [
    "DEFAULT_WINNER_COUNT",
    "DrawLifecycleManager",
    "ParticipationRegistrar",
    "WinnerSelector",
    "sample_without_replacement",
]
