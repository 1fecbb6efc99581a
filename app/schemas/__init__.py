"""Pydantic request/response schemas."""

from app.schemas.auth import (
    CurrentUser,
    ForgotPasswordRequest,
    InviteCreateRequest,
    InviteItem,
    InvitesListResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    Role,
    RoleUpdateRequest,
    TokenResponse,
    UpdateEmailRequest,
    UserListItem,
    UsersListResponse,
)
from app.schemas.health import HealthResponse

__all__ = [
    "CurrentUser",
    "ForgotPasswordRequest",
    "HealthResponse",
    "InviteCreateRequest",
    "InviteItem",
    "InvitesListResponse",
    "LoginRequest",
    "MessageResponse",
    "RegisterRequest",
    "ResetPasswordRequest",
    "Role",
    "RoleUpdateRequest",
    "TokenResponse",
    "UpdateEmailRequest",
    "UserListItem",
    "UsersListResponse",
]
