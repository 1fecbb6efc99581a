"""ORM model for application accounts (credentials, session and role)."""

from sqlalchemy import CheckConstraint, Column, DateTime, Index, String, func, text

from app.models.base import Base

ROLES = ("admin", "moderator", "staff", "joueur")
LOWEST_ROLE = "joueur"
BOOTSTRAP_PROVENANCE = "bootstrap"


class User(Base):
    """
    Account keyed by username.

    refresh_token_hash: SHA-256 of the single live refresh token, NULL when signed out.
    reset_token_hash / reset_token_expires: written and cleared together.
    used_invite_code: provenance only ('bootstrap' for the first admin).
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'moderator', 'staff', 'joueur')", name="role"
        ),
        CheckConstraint(
            "(reset_token_hash IS NULL) = (reset_token_expires IS NULL)",
            name="reset_pair",
        ),
        # At most one bootstrap admin, even if two first registrations race.
        Index(
            "uq_users_bootstrap",
            "used_invite_code",
            unique=True,
            postgresql_where=text("used_invite_code = 'bootstrap'"),
            sqlite_where=text("used_invite_code = 'bootstrap'"),
        ),
    )

    username = Column(String(20), primary_key=True)
    email = Column(String(255), nullable=True, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=LOWEST_ROLE)
    refresh_token_hash = Column(String(64), nullable=True)
    reset_token_hash = Column(String(64), nullable=True, index=True)
    reset_token_expires = Column(DateTime(timezone=True), nullable=True)
    used_invite_code = Column(String(255), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
