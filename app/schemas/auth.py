"""Request/response schemas for auth and admin endpoints."""

import re
from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator

from app.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    USERNAME_PATTERN,
)

Role = Literal["admin", "moderator", "staff", "joueur"]


def check_password_strength(v: str) -> str:
    """Shared rule: at least one uppercase letter and one digit (length is checked by Field)."""
    if not re.search(r"[A-Z]", v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[0-9]", v):
        raise ValueError("Password must contain at least one digit")
    return v


class RegisterRequest(BaseModel):
    """New account; invite_code is required except for the very first account."""

    username: str = Field(
        ...,
        min_length=USERNAME_MIN_LEN,
        max_length=USERNAME_MAX_LEN,
        pattern=USERNAME_PATTERN,
        description="Letters, digits and underscores",
    )
    email: EmailStr = Field(..., description="Used as login alternative and for password recovery")
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    invite_code: str | None = Field(
        default=None,
        max_length=64,
        validation_alias=AliasChoices("invite_code", "inviteCode"),
        description="Invite code",
    )

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class LoginRequest(BaseModel):
    """Credentials for login; username may also be the account email."""

    username: str = Field(..., min_length=1, max_length=255, description="Username or email")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")


class TokenResponse(BaseModel):
    """Access token returned after login or refresh; the refresh token travels only in a cookie."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    username: str
    role: Role
    migration_required: bool = Field(
        default=False, description="True when the account has no email yet"
    )


class MessageResponse(BaseModel):
    message: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class UpdateEmailRequest(BaseModel):
    email: EmailStr


class CurrentUser(BaseModel):
    """Authenticated user (username, role) for dependency injection."""

    username: str
    role: str

    class Config:
        from_attributes = True


class UserListItem(BaseModel):
    """User entry for admin list (no password or token material)."""

    username: str
    email: str | None = None
    role: str
    used_invite_code: str | None = None

    class Config:
        from_attributes = True


class UsersListResponse(BaseModel):
    """Response for GET /admin/users."""

    users: list[UserListItem]


class RoleUpdateRequest(BaseModel):
    role: Role


class InviteCreateRequest(BaseModel):
    """Invite to mint; role defaults to joueur and is forced to joueur for staff."""

    email: EmailStr | None = None
    role: Role | None = None


class InviteItem(BaseModel):
    code: str
    email: str | None = None
    role: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class InvitesListResponse(BaseModel):
    invites: list[InviteItem]
