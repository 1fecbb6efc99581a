"""Keyed persistence operations on the invites table."""

from collections.abc import Collection

from sqlalchemy.orm import Session

from app.core.security import new_opaque_token
from app.models import Invite
from app.models.user import LOWEST_ROLE

INVITE_CODE_BYTES = 16


def create_invite(db: Session, email: str | None, role: str | None) -> Invite:
    invite = Invite(
        code=new_opaque_token(INVITE_CODE_BYTES),
        email=email or None,
        role=role or LOWEST_ROLE,
    )
    db.add(invite)
    db.flush()
    return invite


def get_invite(db: Session, code: str) -> Invite | None:
    return db.query(Invite).filter(Invite.code == code).first()


def list_invites(db: Session, roles: Collection[str] | None = None) -> list[Invite]:
    """Outstanding invites, optionally restricted to those granting one of roles."""
    query = db.query(Invite)
    if roles is not None:
        query = query.filter(Invite.role.in_(roles))
    return query.order_by(Invite.created_at, Invite.code).all()


def revoke_invite(db: Session, code: str, roles: Collection[str] | None = None) -> bool:
    query = db.query(Invite).filter(Invite.code == code)
    if roles is not None:
        query = query.filter(Invite.role.in_(roles))
    deleted = query.delete(synchronize_session=False)
    return deleted == 1


def consume_invite(db: Session, code: str) -> str | None:
    """
    Redeem an invite inside the caller's transaction and return the role it grants.

    Returns None when the code is unknown or a concurrent redemption deleted it first;
    the DELETE row count, not the preceding read, decides who wins.
    """
    invite = get_invite(db, code)
    if invite is None:
        return None
    role = invite.role or LOWEST_ROLE
    if not revoke_invite(db, code):
        return None
    db.expunge(invite)
    return role
