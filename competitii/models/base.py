from datetime import datetime, timezone

from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import DeclarativeBase

from competitii.db.metadata import metadata_obj

# Telegram user ids exceed 32 bits; SQLite still needs plain INTEGER for
# autoincrement primary keys.
ID_TYPE = BigInteger().with_variant(Integer, "sqlite")


def utc_default() -> datetime:
    """Column default for ``created_at`` timestamps."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    metadata = metadata_obj
