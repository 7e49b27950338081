"""Database model for referral edges."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Index,
    UniqueConstraint,
    desc,
    func,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column

from ..db.utils import as_utc
from ..records import LeaderboardEntry, ReferralRecord
from .base import ID_TYPE, Base, utc_default


class Referral(Base):
    """Records that ``referrer_id`` invited ``referred_id``.

    A referred user is attributed to exactly one referrer; the first recorded
    edge wins.
    """

    __tablename__ = "referrals"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    referrer_id: Mapped[int] = mapped_column(ID_TYPE, nullable=False)
    referred_id: Mapped[int] = mapped_column(ID_TYPE, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_default,
    )

    __table_args__ = (
        CheckConstraint("referrer_id <> referred_id", name="no_self_referral"),
        UniqueConstraint("referrer_id", "referred_id", name="uq_referrals_pair"),
        UniqueConstraint("referred_id", name="uq_referrals_referred"),
        Index("ix_referrals_referrer_created", "referrer_id", "created_at"),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<Referral(referrer_id={self.referrer_id}, referred_id={self.referred_id})>"

    @classmethod
    def from_record(cls, record: ReferralRecord) -> "Referral":
        return cls(
            referrer_id=record.referrer_id,
            referred_id=record.referred_id,
            created_at=record.created_at,
        )

    def to_record(self) -> ReferralRecord:
        return ReferralRecord(
            referrer_id=self.referrer_id,
            referred_id=self.referred_id,
            created_at=as_utc(self.created_at),  # type: ignore[arg-type]
        )

    @classmethod
    def get_pair(
        cls, session: Session, referrer_id: int, referred_id: int
    ) -> Optional["Referral"]:
        return session.scalar(
            select(cls).where(
                cls.referrer_id == referrer_id, cls.referred_id == referred_id
            )
        )

    @classmethod
    def get_for_referred(cls, session: Session, referred_id: int) -> Optional["Referral"]:
        return session.scalar(select(cls).where(cls.referred_id == referred_id))

    @classmethod
    def list_for_referrer(cls, session: Session, referrer_id: int) -> list["Referral"]:
        stmt = (
            select(cls)
            .where(cls.referrer_id == referrer_id)
            .order_by(cls.created_at.asc(), cls.id.asc())
        )
        return list(session.scalars(stmt).all())

    @classmethod
    def top_referrers(
        cls, session: Session, limit: Optional[int] = None
    ) -> list[LeaderboardEntry]:
        """Group edges by referrer, highest count first, ties by referrer id."""

        stmt = (
            select(cls.referrer_id, func.count(cls.id).label("referrals"))
            .group_by(cls.referrer_id)
            .order_by(desc("referrals"), cls.referrer_id.asc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return [
            LeaderboardEntry(referrer_id=int(referrer_id), count=int(count))
            for referrer_id, count in session.execute(stmt).all()
        ]


__all__ = ["Referral"]
