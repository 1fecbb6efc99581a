"""ORM model for outstanding invite codes."""

from sqlalchemy import CheckConstraint, Column, DateTime, String, func

from app.models.base import Base
from app.models.user import LOWEST_ROLE


class Invite(Base):
    """Single-use registration code; deleted when redeemed or revoked."""

    __tablename__ = "invites"
    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'moderator', 'staff', 'joueur')", name="role"
        ),
    )

    code = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=True)
    role = Column(String(32), nullable=False, default=LOWEST_ROLE)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
