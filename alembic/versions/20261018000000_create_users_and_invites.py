"""Create users and invites tables for session and credential management.

Revision ID: 20261018000000
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20261018000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("username", sa.String(length=20), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="joueur"),
        sa.Column("refresh_token_hash", sa.String(length=64), nullable=True),
        sa.Column("reset_token_hash", sa.String(length=64), nullable=True),
        sa.Column("reset_token_expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("used_invite_code", sa.String(length=255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint(
            "role IN ('admin', 'moderator', 'staff', 'joueur')", name="ck_users_role"
        ),
        sa.CheckConstraint(
            "(reset_token_hash IS NULL) = (reset_token_expires IS NULL)",
            name="ck_users_reset_pair",
        ),
        sa.PrimaryKeyConstraint("username", name="pk_users"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(
        op.f("ix_users_reset_token_hash"), "users", ["reset_token_hash"], unique=False
    )
    op.create_index(
        "uq_users_bootstrap",
        "users",
        ["used_invite_code"],
        unique=True,
        postgresql_where=sa.text("used_invite_code = 'bootstrap'"),
        sqlite_where=sa.text("used_invite_code = 'bootstrap'"),
    )

    op.create_table(
        "invites",
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="joueur"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint(
            "role IN ('admin', 'moderator', 'staff', 'joueur')", name="ck_invites_role"
        ),
        sa.PrimaryKeyConstraint("code", name="pk_invites"),
    )


def downgrade() -> None:
    op.drop_table("invites")
    op.drop_index("uq_users_bootstrap", table_name="users")
    op.drop_index(op.f("ix_users_reset_token_hash"), table_name="users")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
