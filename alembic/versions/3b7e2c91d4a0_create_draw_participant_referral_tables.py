"""Create draw, participant and referral tables

Revision ID: 3b7e2c91d4a0
Revises:
Create Date: 2026-10-16 09:12:44.318207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3b7e2c91d4a0"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID_TYPE = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "draws",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("drawn_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('active','closed','drawn')", name=op.f("ck_draws_status_enum")
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_draws")),
    )
    op.create_index(
        "uq_draws_single_active",
        "draws",
        ["status"],
        unique=True,
        sqlite_where=sa.text("status = 'active'"),
        postgresql_where=sa.text("status = 'active'"),
    )
    op.create_index(
        "ix_draws_status_created_at", "draws", ["status", "created_at"], unique=False
    )

    op.create_table(
        "draw_winners",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("draw_id", sa.String(length=32), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("user_id", ID_TYPE, nullable=False),
        sa.ForeignKeyConstraint(
            ["draw_id"],
            ["draws.id"],
            name=op.f("fk_draw_winners_draw_id_draws"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_draw_winners")),
        sa.UniqueConstraint("draw_id", "position", name="uq_draw_winners_position"),
        sa.UniqueConstraint("draw_id", "user_id", name="uq_draw_winners_user"),
    )
    op.create_index(
        op.f("ix_draw_winners_draw_id"), "draw_winners", ["draw_id"], unique=False
    )

    op.create_table(
        "participants",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("draw_id", sa.String(length=32), nullable=False),
        sa.Column("user_id", ID_TYPE, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["draw_id"],
            ["draws.id"],
            name=op.f("fk_participants_draw_id_draws"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_participants")),
        sa.UniqueConstraint("draw_id", "user_id", name="uq_participants_draw_user"),
    )
    op.create_index(
        op.f("ix_participants_draw_id"), "participants", ["draw_id"], unique=False
    )
    op.create_index(
        op.f("ix_participants_user_id"), "participants", ["user_id"], unique=False
    )

    op.create_table(
        "referrals",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("referrer_id", ID_TYPE, nullable=False),
        sa.Column("referred_id", ID_TYPE, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "referrer_id <> referred_id", name=op.f("ck_referrals_no_self_referral")
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_referrals")),
        sa.UniqueConstraint("referrer_id", "referred_id", name="uq_referrals_pair"),
        sa.UniqueConstraint("referred_id", name="uq_referrals_referred"),
    )
    op.create_index(
        "ix_referrals_referrer_created",
        "referrals",
        ["referrer_id", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_referrals_referrer_created", table_name="referrals")
    op.drop_table("referrals")
    op.drop_index(op.f("ix_participants_user_id"), table_name="participants")
    op.drop_index(op.f("ix_participants_draw_id"), table_name="participants")
    op.drop_table("participants")
    op.drop_index(op.f("ix_draw_winners_draw_id"), table_name="draw_winners")
    op.drop_table("draw_winners")
    op.drop_index("ix_draws_status_created_at", table_name="draws")
    op.drop_index("uq_draws_single_active", table_name="draws")
    op.drop_table("draws")
