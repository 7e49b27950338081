"""Database model for draw entries."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, func, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from ..db.utils import as_utc
from ..records import ParticipantRecord
from .base import ID_TYPE, Base, utc_default

if TYPE_CHECKING:
    from .draw import Draw


class Participant(Base):
    """A user's single entry into a draw."""

    __tablename__ = "participants"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    draw_id: Mapped[str] = mapped_column(
        ForeignKey("draws.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(ID_TYPE, nullable=False, index=True)
    """Messaging-platform user id."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_default,
    )

    draw: Mapped["Draw"] = relationship(back_populates="participants")

    __table_args__ = (
        UniqueConstraint("draw_id", "user_id", name="uq_participants_draw_user"),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<Participant(draw_id={self.draw_id!r}, user_id={self.user_id})>"

    def to_record(self) -> ParticipantRecord:
        return ParticipantRecord(
            draw_id=self.draw_id,
            user_id=self.user_id,
            created_at=as_utc(self.created_at),  # type: ignore[arg-type]
        )

    @classmethod
    def get(cls, session: Session, draw_id: str, user_id: int) -> Optional["Participant"]:
        return session.scalar(
            select(cls).where(cls.draw_id == draw_id, cls.user_id == user_id)
        )

    @classmethod
    def count(cls, session: Session, draw_id: Optional[str] = None) -> int:
        """Count entries in ``draw_id``, or across every draw when omitted."""

        stmt = select(func.count(cls.id))
        if draw_id is not None:
            stmt = stmt.where(cls.draw_id == draw_id)
        return int(session.scalar(stmt) or 0)


__all__ = ["Participant"]
