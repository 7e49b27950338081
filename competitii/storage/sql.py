"""SQLAlchemy implementation of :class:`~competitii.storage.port.DrawStore`."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import DateTime, func, insert, literal, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..db.engine import get_sessionmaker, make_engine
from ..errors import (
    AlreadyJoinedError,
    ConflictError,
    DuplicateReferralError,
    InvalidInputError,
    NoActiveDrawError,
    StorageUnavailableError,
)
from ..models import Draw, DrawWinner, Participant, Referral
from ..models.base import ID_TYPE
from ..records import (
    DrawRecord,
    DrawStatus,
    LeaderboardEntry,
    ParticipantRecord,
    ReferralRecord,
)
from .port import DrawStore

logger = logging.getLogger(__name__)


class SqlDrawStore(DrawStore):
    """Persist engine state through SQLAlchemy sessions.

    Every port call runs in its own transaction opened from ``session_factory``
    so that no ORM state outlives a call. Uniqueness is delegated to the
    schema (see :mod:`competitii.models`): integrity violations are mapped to
    the engine's conflict errors and every other SQLAlchemy failure to
    :class:`~competitii.errors.StorageUnavailableError`.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @classmethod
    def from_url(
        cls, database_url: Optional[str] = None, *, echo: bool = False
    ) -> "SqlDrawStore":
        """Build a store on a new engine (``DB_URL`` when ``database_url`` is omitted)."""

        return cls(get_sessionmaker(make_engine(database_url, echo=echo)))

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[Session]:
        try:
            with self._session_factory.begin() as session:
                yield session
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            logger.error(f"Storage operation {operation} failed: {exc}")
            raise StorageUnavailableError(f"{operation} failed: {exc}") from exc

    # -------- draws --------
    def find_active_draw(self) -> Optional[DrawRecord]:
        with self._transaction("find_active_draw") as session:
            row = Draw.get_active(session)
            return row.to_record() if row is not None else None

    def find_closed_undrawn_draw(self) -> Optional[DrawRecord]:
        with self._transaction("find_closed_undrawn_draw") as session:
            row = Draw.get_latest_closed_undrawn(session)
            return row.to_record() if row is not None else None

    def find_draw(self, draw_id: str) -> Optional[DrawRecord]:
        with self._transaction("find_draw") as session:
            row = session.get(Draw, draw_id)
            return row.to_record() if row is not None else None

    def find_latest_drawn_draw(self) -> Optional[DrawRecord]:
        with self._transaction("find_latest_drawn_draw") as session:
            row = Draw.get_latest_drawn(session)
            return row.to_record() if row is not None else None

    def create_draw(self, draw: DrawRecord) -> DrawRecord:
        try:
            with self._transaction("create_draw") as session:
                session.add(Draw.from_record(draw))
                session.flush()
        except IntegrityError as exc:
            raise ConflictError(
                f"Draw {draw.id} conflicts with an existing draw"
            ) from exc
        return draw

    def update_draw(self, draw: DrawRecord, expected_status: DrawStatus) -> bool:
        try:
            with self._transaction("update_draw") as session:
                result = session.execute(
                    update(Draw)
                    .where(Draw.id == draw.id, Draw.status == expected_status.value)
                    .values(
                        title=draw.title,
                        status=draw.status.value,
                        closed_at=draw.closed_at,
                        drawn_at=draw.drawn_at,
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    return False
                session.add_all(
                    DrawWinner(draw_id=draw.id, position=idx, user_id=user_id)
                    for idx, user_id in enumerate(draw.winners)
                )
                session.flush()
                return True
        except IntegrityError as exc:
            raise ConflictError(f"Draw {draw.id} already has winners recorded") from exc

    def count_draws(self) -> int:
        with self._transaction("count_draws") as session:
            return int(session.scalar(select(func.count(Draw.id))) or 0)

    # -------- participants --------
    def find_participant(self, draw_id: str, user_id: int) -> Optional[ParticipantRecord]:
        with self._transaction("find_participant") as session:
            row = Participant.get(session, draw_id, user_id)
            return row.to_record() if row is not None else None

    def create_participant(self, participant: ParticipantRecord) -> ParticipantRecord:
        try:
            with self._transaction("create_participant") as session:
                # The row is copied out of the draw only while it is active,
                # so the status check and the insert are a single statement.
                source = (
                    select(
                        Draw.id,
                        literal(participant.user_id, ID_TYPE),
                        literal(participant.created_at, DateTime(timezone=True)),
                    )
                    .where(
                        Draw.id == participant.draw_id,
                        Draw.status == DrawStatus.ACTIVE.value,
                    )
                    .with_for_update()
                )
                result = session.execute(
                    insert(Participant).from_select(
                        ["draw_id", "user_id", "created_at"], source
                    )
                )
                if result.rowcount != 1:
                    raise NoActiveDrawError(
                        f"Draw {participant.draw_id} is not accepting entries"
                    )
        except IntegrityError as exc:
            raise AlreadyJoinedError(
                f"User {participant.user_id} already joined draw {participant.draw_id}"
            ) from exc
        return participant

    def list_participants(self, draw_id: str) -> list[ParticipantRecord]:
        with self._transaction("list_participants") as session:
            stmt = (
                select(Participant)
                .where(Participant.draw_id == draw_id)
                .order_by(Participant.id.asc())
            )
            return [row.to_record() for row in session.scalars(stmt).all()]

    def count_participants(self, draw_id: Optional[str] = None) -> int:
        with self._transaction("count_participants") as session:
            return Participant.count(session, draw_id)

    # -------- referrals --------
    def find_referral(self, referrer_id: int, referred_id: int) -> Optional[ReferralRecord]:
        with self._transaction("find_referral") as session:
            row = Referral.get_pair(session, referrer_id, referred_id)
            return row.to_record() if row is not None else None

    def find_referrer(self, referred_id: int) -> Optional[ReferralRecord]:
        with self._transaction("find_referrer") as session:
            row = Referral.get_for_referred(session, referred_id)
            return row.to_record() if row is not None else None

    def create_referral(self, referral: ReferralRecord) -> ReferralRecord:
        if referral.referrer_id == referral.referred_id:
            raise InvalidInputError("A user cannot refer themselves")
        try:
            with self._transaction("create_referral") as session:
                session.add(Referral.from_record(referral))
                session.flush()
        except IntegrityError as exc:
            raise DuplicateReferralError(
                f"User {referral.referred_id} already has a referrer"
            ) from exc
        return referral

    def list_referrals(self, referrer_id: int) -> list[ReferralRecord]:
        with self._transaction("list_referrals") as session:
            return [
                row.to_record() for row in Referral.list_for_referrer(session, referrer_id)
            ]

    def aggregate_referral_counts(self, limit: Optional[int] = None) -> list[LeaderboardEntry]:
        with self._transaction("aggregate_referral_counts") as session:
            return Referral.top_referrers(session, limit)

    # -------- health --------
    def ping(self) -> None:
        with self._transaction("ping") as session:
            session.execute(text("SELECT 1"))


__all__ = ["SqlDrawStore"]
