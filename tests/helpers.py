from datetime import datetime, timedelta, timezone

from competitii.db.engine import get_sessionmaker, make_engine
from competitii.models import Base
from competitii.storage import InMemoryDrawStore, SqlDrawStore


class ManualClock:
    """Clock that advances by ``step`` on every call."""

    def __init__(self, start=None, step=timedelta(seconds=1)):
        self.now = start or datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        self.now = self.now + self.step
        return self.now


class MemoryStoreMixin:
    def make_store(self):
        return InMemoryDrawStore()


class SqlStoreMixin:
    def make_store(self):
        # In-memory SQLite keeps one connection per thread, so every session
        # opened by the store sees the same database.
        self.engine = make_engine("sqlite+pysqlite:///:memory:")
        Base.metadata.create_all(self.engine)
        self.addCleanup(self.engine.dispose)
        return SqlDrawStore(get_sessionmaker(self.engine))
