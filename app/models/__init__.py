"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.invite import Invite
from app.models.user import User

__all__ = ["Base", "Invite", "User"]
