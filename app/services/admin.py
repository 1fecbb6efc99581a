"""Account and invite management for privileged roles, gated by the role policy."""

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.orm import Session

from app.models import Invite, User
from app.services import credential_store, invite_ledger, notifier, role_policy
from app.services.errors import NotFound

logger = logging.getLogger(__name__)

USER_NOT_FOUND_MESSAGE = "User not found."
INVITE_NOT_FOUND_MESSAGE = "Invite not found."


def _require_target(db: Session, username: str) -> User:
    target = credential_store.get_account(db, username)
    if target is None:
        raise NotFound(USER_NOT_FOUND_MESSAGE)
    return target


def list_users(db: Session) -> list[User]:
    return credential_store.list_accounts(db)


def delete_user(db: Session, actor: str, actor_role: str, username: str) -> None:
    target = _require_target(db, username)
    role_policy.check_delete(actor, actor_role, target.username, target.role)
    if not credential_store.delete_account(db, username):
        db.rollback()
        raise NotFound(USER_NOT_FOUND_MESSAGE)
    db.commit()
    logger.info("Account deleted", extra={"actor": actor, "target": username})


def change_role(db: Session, actor: str, actor_role: str, username: str, new_role: str) -> None:
    """Set a new role. Tokens already issued keep their claim; privileged checks and refresh read the store."""
    target = _require_target(db, username)
    previous_role = target.role
    role_policy.check_role_change(actor, actor_role, target.username, previous_role, new_role)
    if not credential_store.set_role(db, username, new_role):
        db.rollback()
        raise NotFound(USER_NOT_FOUND_MESSAGE)
    db.commit()
    logger.info(
        "Role changed",
        extra={"actor": actor, "target": username, "from_role": previous_role, "to_role": new_role},
    )


def create_invite(
    db: Session,
    actor: str,
    actor_role: str,
    email: str | None,
    requested_role: str | None,
    dispatch: Callable[..., Any],
) -> Invite:
    """Mint an invite; the code is emailed in the background when an address is given."""
    role = role_policy.invite_role_for(actor_role, requested_role)
    invite = invite_ledger.create_invite(db, email, role)
    db.commit()
    db.refresh(invite)
    if invite.email:
        dispatch(notifier.send_invite, invite.email, invite.code)
    logger.info(
        "Invite created",
        extra={"actor": actor, "invite_role": role, "has_email": bool(invite.email)},
    )
    return invite


def list_invites(db: Session, actor_role: str) -> list[Invite]:
    """Invites the actor could have minted; others stay hidden."""
    return invite_ledger.list_invites(db, role_policy.manageable_invite_roles(actor_role))


def revoke_invite(db: Session, actor: str, actor_role: str, code: str) -> None:
    """Invites outside the actor's reach report NotFound, as if absent."""
    if not invite_ledger.revoke_invite(db, code, role_policy.manageable_invite_roles(actor_role)):
        db.rollback()
        raise NotFound(INVITE_NOT_FOUND_MESSAGE)
    db.commit()
    logger.info("Invite revoked", extra={"actor": actor})
