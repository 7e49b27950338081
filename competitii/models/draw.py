"""Database models for draws and their selected winners."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    select,
    text,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from ..db.utils import as_utc
from ..records import DrawRecord, DrawStatus
from .base import ID_TYPE, Base, utc_default

if TYPE_CHECKING:
    from .participant import Participant


class Draw(Base):
    """A giveaway moving through ``active`` -> ``closed`` -> ``drawn``."""

    __tablename__ = "draws"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    """Identifier generated by :class:`~competitii.clock.DrawIdGenerator`."""

    title: Mapped[str] = mapped_column(Text, nullable=False)
    """Free text title, stored trimmed."""

    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=DrawStatus.ACTIVE.value
    )
    """One of ``"active"``, ``"closed"`` or ``"drawn"``."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_default,
    )
    """Timestamp when the draw was opened."""

    closed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    """Timestamp when entries were closed."""

    drawn_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    """Timestamp when the winners were selected."""

    winners: Mapped[list["DrawWinner"]] = relationship(
        back_populates="draw",
        cascade="all, delete-orphan",
        order_by="DrawWinner.position",
        lazy="selectin",
    )
    """Selected winners ordered by selection position."""

    participants: Mapped[list["Participant"]] = relationship(
        back_populates="draw",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('active','closed','drawn')", name="status_enum"
        ),
        # At most one draw may accept entries at a time.
        Index(
            "uq_draws_single_active",
            "status",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
        Index("ix_draws_status_created_at", "status", "created_at"),
    )

    def __init__(
        self,
        *,
        id: str,
        title: str,
        status: str = DrawStatus.ACTIVE.value,
        created_at: Optional[datetime] = None,
        closed_at: Optional[datetime] = None,
        drawn_at: Optional[datetime] = None,
    ) -> None:
        self.id = id
        self.title = title
        self.status = status
        if created_at is not None:
            self.created_at = created_at
        self.closed_at = closed_at
        self.drawn_at = drawn_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<Draw(id={self.id!r}, status={self.status!r}, title={self.title!r})>"

    @classmethod
    def from_record(cls, record: DrawRecord) -> "Draw":
        row = cls(
            id=record.id,
            title=record.title,
            status=record.status.value,
            created_at=record.created_at,
            closed_at=record.closed_at,
            drawn_at=record.drawn_at,
        )
        row.winners = [
            DrawWinner(position=idx, user_id=user_id)
            for idx, user_id in enumerate(record.winners)
        ]
        return row

    def to_record(self) -> DrawRecord:
        return DrawRecord(
            id=self.id,
            title=self.title,
            status=DrawStatus(self.status),
            created_at=as_utc(self.created_at),  # type: ignore[arg-type]
            winners=tuple(w.user_id for w in self.winners),
            closed_at=as_utc(self.closed_at),
            drawn_at=as_utc(self.drawn_at),
        )

    @classmethod
    def get_active(cls, session: Session) -> Optional["Draw"]:
        """Return the draw currently accepting entries, if any."""

        return session.scalar(
            select(cls).where(cls.status == DrawStatus.ACTIVE.value)
        )

    @classmethod
    def get_latest_closed_undrawn(cls, session: Session) -> Optional["Draw"]:
        """Return the most recently created closed draw without winners."""

        stmt = (
            select(cls)
            .where(
                cls.status == DrawStatus.CLOSED.value,
                ~cls.winners.any(),
            )
            .order_by(cls.created_at.desc(), cls.id.desc())
        )
        return session.scalars(stmt).first()

    @classmethod
    def get_latest_drawn(cls, session: Session) -> Optional["Draw"]:
        """Return the draw whose winners were announced most recently."""

        stmt = (
            select(cls)
            .where(cls.status == DrawStatus.DRAWN.value)
            .order_by(cls.drawn_at.desc(), cls.created_at.desc(), cls.id.desc())
        )
        return session.scalars(stmt).first()


class DrawWinner(Base):
    """One selected winner of a draw, kept in selection order."""

    __tablename__ = "draw_winners"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    draw_id: Mapped[str] = mapped_column(
        ForeignKey("draws.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[int] = mapped_column(ID_TYPE, nullable=False)

    draw: Mapped["Draw"] = relationship(back_populates="winners")

    __table_args__ = (
        UniqueConstraint("draw_id", "position", name="uq_draw_winners_position"),
        UniqueConstraint("draw_id", "user_id", name="uq_draw_winners_user"),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<DrawWinner(draw_id={self.draw_id!r}, position={self.position}, user_id={self.user_id})>"


__all__ = ["Draw", "DrawWinner"]
