"""User and invite management endpoints (admin/moderator; invites also staff)."""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from app.api.v1.auth import require_elevated, require_invite_capable, to_http_exception
from app.core.database import get_db
from app.core.rate_limit import api_limit
from app.schemas.auth import (
    CurrentUser,
    InviteCreateRequest,
    InviteItem,
    InvitesListResponse,
    MessageResponse,
    RoleUpdateRequest,
    UserListItem,
    UsersListResponse,
)
from app.services import admin
from app.services.errors import CredentialError

router = APIRouter()


@router.get("/users", response_model=UsersListResponse)
@api_limit
def list_users(
    request: Request,
    _actor: Annotated[CurrentUser, Depends(require_elevated)],
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    """List all accounts (admin/moderator)."""
    users = admin.list_users(db)
    return UsersListResponse(users=[UserListItem.model_validate(u) for u in users])


@router.delete("/users/{username}", response_model=MessageResponse)
@api_limit
def delete_user(
    request: Request,
    username: str,
    actor: Annotated[CurrentUser, Depends(require_elevated)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Delete an account. Moderators cannot delete admins or moderators; nobody deletes themselves."""
    try:
        admin.delete_user(db, actor.username, actor.role, username)
    except CredentialError as e:
        raise to_http_exception(e) from e
    return MessageResponse(message="User deleted.")


@router.put("/users/{username}/role", response_model=MessageResponse)
@api_limit
def update_role(
    request: Request,
    username: str,
    body: RoleUpdateRequest,
    actor: Annotated[CurrentUser, Depends(require_elevated)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """
    Change an account's role.

    Moderators cannot modify admins or moderators and cannot grant admin. Nobody changes
    their own role here.
    """
    try:
        admin.change_role(db, actor.username, actor.role, username, body.role)
    except CredentialError as e:
        raise to_http_exception(e) from e
    return MessageResponse(message="Role updated.")


@router.post("/invites", response_model=InviteItem)
@api_limit
def create_invite(
    request: Request,
    body: InviteCreateRequest,
    background_tasks: BackgroundTasks,
    actor: Annotated[CurrentUser, Depends(require_invite_capable)],
    db: Annotated[Session, Depends(get_db)],
) -> InviteItem:
    """Mint a single-use invite code. Staff invites always grant 'joueur'."""
    try:
        invite = admin.create_invite(
            db,
            actor.username,
            actor.role,
            str(body.email) if body.email else None,
            body.role,
            background_tasks.add_task,
        )
    except CredentialError as e:
        raise to_http_exception(e) from e
    return InviteItem.model_validate(invite)


@router.get("/invites", response_model=InvitesListResponse)
@api_limit
def list_invites(
    request: Request,
    actor: Annotated[CurrentUser, Depends(require_invite_capable)],
    db: Annotated[Session, Depends(get_db)],
) -> InvitesListResponse:
    """List outstanding invites granting roles the caller could mint (staff: joueur only)."""
    invites = admin.list_invites(db, actor.role)
    return InvitesListResponse(invites=[InviteItem.model_validate(i) for i in invites])


@router.delete("/invites/{code}", response_model=MessageResponse)
@api_limit
def revoke_invite(
    request: Request,
    code: str,
    actor: Annotated[CurrentUser, Depends(require_invite_capable)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Revoke an invite before it is redeemed."""
    try:
        admin.revoke_invite(db, actor.username, actor.role, code)
    except CredentialError as e:
        raise to_http_exception(e) from e
    return MessageResponse(message="Invite revoked.")
