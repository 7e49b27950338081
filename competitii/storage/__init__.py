"""Persistence port and its adapters."""

from .memory import InMemoryDrawStore
from .port import DrawStore
from .sql import SqlDrawStore

__all__ = ["DrawStore", "InMemoryDrawStore", "SqlDrawStore"]
