"""Role hierarchy rules for privileged account and invite operations."""

from app.models.user import LOWEST_ROLE, ROLES
from app.services.errors import BadRequest, Forbidden

ELEVATED_ROLES = frozenset({"admin", "moderator"})
INVITE_CAPABLE_ROLES = frozenset({"admin", "moderator", "staff"})
# Accounts holding these roles are out of a moderator's reach.
MODERATOR_PROTECTED_ROLES = frozenset({"admin", "moderator"})

# Whether a moderator may raise a joueur/staff account to moderator.
# False restricts moderator grants to staff/joueur.
MODERATOR_MAY_GRANT_MODERATOR = True


def is_elevated(role: str | None) -> bool:
    return role in ELEVATED_ROLES


def is_invite_capable(role: str | None) -> bool:
    return role in INVITE_CAPABLE_ROLES


def check_delete(actor: str, actor_role: str, target: str, target_role: str) -> None:
    """Raise unless actor may delete target."""
    if actor == target:
        raise BadRequest("You cannot delete your own account.")
    if actor_role == "moderator" and target_role in MODERATOR_PROTECTED_ROLES:
        raise Forbidden("Moderators cannot delete admins or other moderators.")


def check_role_change(
    actor: str, actor_role: str, target: str, target_role: str, new_role: str
) -> None:
    """Raise unless actor may set target's role to new_role."""
    if actor == target:
        raise BadRequest("You cannot change your own role.")
    if actor_role != "moderator":
        return
    if target_role in MODERATOR_PROTECTED_ROLES:
        raise Forbidden("Moderators cannot modify admins or other moderators.")
    if new_role == "admin":
        raise Forbidden("Moderators cannot promote accounts to admin.")
    if new_role == "moderator" and not MODERATOR_MAY_GRANT_MODERATOR:
        raise Forbidden("Moderators cannot promote accounts to moderator.")


def invite_role_for(actor_role: str, requested: str | None) -> str:
    """
    Role an invite minted by actor_role will grant.

    Staff are always coerced to the lowest role; moderators cannot mint admin invites.
    """
    if actor_role == "staff" or not requested:
        return LOWEST_ROLE
    if actor_role == "moderator" and requested == "admin":
        raise Forbidden("Moderators cannot create admin invites.")
    return requested


def manageable_invite_roles(actor_role: str | None) -> frozenset[str]:
    """
    Invite roles actor_role may see or revoke: exactly the roles it could mint itself.

    A listed invite shows its code, which anyone holding it can redeem.
    """
    if actor_role == "admin":
        return frozenset(ROLES)
    if actor_role == "moderator":
        return frozenset(ROLES) - {"admin"}
    if actor_role == "staff":
        return frozenset({LOWEST_ROLE})
    return frozenset()

