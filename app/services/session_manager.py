"""
Registration, login, refresh rotation, logout, and password recovery.

Each operation runs in the caller's SQLAlchemy session and commits its own writes.
Security-sensitive failures are logged with their internal cause but surface as one
caller-visible error per operation.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.security import (
    AuthError,
    TokenPair,
    digest_token,
    hash_password,
    issue_tokens,
    new_opaque_token,
    peek_refresh_subject,
    tokens_match,
    verify_password,
    verify_refresh,
)
from app.models import User
from app.models.user import BOOTSTRAP_PROVENANCE
from app.services import credential_store, invite_ledger, notifier
from app.services.errors import (
    BadRequest,
    Conflict,
    Forbidden,
    NotFound,
    Unauthenticated,
    Unauthorized,
)

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

# Schedules a callable to run after the response (BackgroundTasks.add_task in the API).
Dispatch = Callable[..., Any]

LOGIN_FAILED_MESSAGE = "Invalid username or password."
REFRESH_FAILED_MESSAGE = "Invalid or expired session."
INVITE_INVALID_MESSAGE = "Invalid or missing invite code."
FORGOT_PASSWORD_MESSAGE = "If an account exists with this email, a reset link has been sent."
RESET_INVALID_MESSAGE = "Invalid or expired reset link."
RESET_TOKEN_BYTES = 32


@dataclass(frozen=True)
class SessionResult:
    """Outcome of login/refresh: the token pair plus what the response body reports."""

    tokens: TokenPair
    username: str
    role: str
    migration_required: bool


def _session_result(account: User, tokens: TokenPair) -> SessionResult:
    return SessionResult(
        tokens=tokens,
        username=account.username,
        role=account.role,
        migration_required=not account.email,
    )


def register(
    db: Session,
    username: str,
    email: str,
    password: str,
    invite_code: str | None = None,
) -> User:
    """
    Create an account.

    The first account in an empty store becomes admin without an invite. Every later
    account must redeem a live invite, which is deleted in the same transaction.
    """
    if credential_store.username_or_email_taken(db, username, email):
        raise Conflict(credential_store.DUPLICATE_ACCOUNT_MESSAGE)
    password_hash = hash_password(password)

    if credential_store.is_empty(db):
        role = "admin"
        provenance = BOOTSTRAP_PROVENANCE
    else:
        if not invite_code:
            logger.info("Registration rejected", extra={"reason": "missing_invite"})
            raise Forbidden(INVITE_INVALID_MESSAGE)
        granted = invite_ledger.consume_invite(db, invite_code)
        if granted is None:
            db.rollback()
            logger.info("Registration rejected", extra={"reason": "unknown_or_consumed_invite"})
            raise Forbidden(INVITE_INVALID_MESSAGE)
        role = granted
        provenance = invite_code

    account = User(
        username=username,
        email=email,
        password_hash=password_hash,
        role=role,
        used_invite_code=provenance,
    )
    credential_store.add_account(db, account)
    db.commit()
    logger.info(
        "Account registered",
        extra={"username": username, "role": role, "bootstrap": provenance == BOOTSTRAP_PROVENANCE},
    )
    return account


def _start_session(db: Session, account: User, settings: "Settings") -> SessionResult:
    tokens = issue_tokens(account.username, account.role, settings)
    result = _session_result(account, tokens)
    credential_store.set_refresh_hash(db, account.username, digest_token(tokens.refresh_token))
    db.commit()
    return result


def login(
    db: Session,
    identifier: str,
    password: str,
    settings: "Settings | None" = None,
) -> SessionResult:
    """
    Authenticate by username or email. Replaces any previous refresh token of the account,
    so at most one session per account is live.
    """
    settings = settings or get_settings()
    account = credential_store.find_by_identifier(db, identifier)
    if not verify_password(password, account.password_hash if account else None):
        logger.info(
            "Login failed",
            extra={"reason": "unknown_identifier" if account is None else "bad_password"},
        )
        raise Unauthorized(LOGIN_FAILED_MESSAGE)
    result = _start_session(db, account, settings)
    logger.info("Login succeeded", extra={"username": result.username})
    return result


def refresh(
    db: Session,
    refresh_token: str | None,
    settings: "Settings | None" = None,
) -> SessionResult:
    """
    Rotate a refresh token: verify it, check it against the stored digest, then swap in a
    new pair. A superseded token no longer matches the digest and is rejected.
    """
    settings = settings or get_settings()
    if not refresh_token:
        raise Unauthenticated("Refresh token missing.")
    try:
        claims = verify_refresh(refresh_token, settings)
    except AuthError as e:
        logger.info("Refresh rejected", extra={"reason": type(e).__name__})
        raise Forbidden(REFRESH_FAILED_MESSAGE) from e

    account = credential_store.get_account(db, claims.username)
    if account is None:
        logger.info("Refresh rejected", extra={"reason": "unknown_account"})
        raise Forbidden(REFRESH_FAILED_MESSAGE)
    stored = account.refresh_token_hash
    if not stored:
        logger.info("Refresh rejected", extra={"reason": "no_active_session", "username": account.username})
        raise Forbidden(REFRESH_FAILED_MESSAGE)
    if not tokens_match(refresh_token, stored):
        logger.warning(
            "Refresh rejected", extra={"reason": "token_mismatch", "username": account.username}
        )
        raise Forbidden(REFRESH_FAILED_MESSAGE)

    tokens = issue_tokens(account.username, account.role, settings)
    result = _session_result(account, tokens)
    if not credential_store.rotate_refresh_hash(
        db, account.username, stored, digest_token(tokens.refresh_token)
    ):
        db.rollback()
        logger.warning(
            "Refresh rejected", extra={"reason": "concurrent_rotation", "username": result.username}
        )
        raise Forbidden(REFRESH_FAILED_MESSAGE)
    db.commit()
    return result


def logout(db: Session, refresh_token: str | None) -> None:
    """Best-effort: clear the stored refresh digest of whoever the cookie names. Never fails."""
    if not refresh_token:
        return
    username = peek_refresh_subject(refresh_token)
    if username is None:
        return
    credential_store.set_refresh_hash(db, username, None)
    db.commit()
    logger.info("Logged out", extra={"username": username})


def forgot_password(
    db: Session,
    email: str,
    dispatch: Dispatch,
    settings: "Settings | None" = None,
) -> str:
    """
    Start a password reset. Returns the same message whether or not the email exists.

    Existing sessions stay valid; only the reset token pair is replaced.
    """
    settings = settings or get_settings()
    account = credential_store.find_by_email(db, email)
    if account is None:
        logger.info("Password reset requested", extra={"account_found": False})
        return FORGOT_PASSWORD_MESSAGE

    token = new_opaque_token(RESET_TOKEN_BYTES)
    expires_at = datetime.now(UTC) + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    credential_store.set_reset_token(db, account.username, digest_token(token), expires_at)
    db.commit()
    dispatch(notifier.send_reset, account.email, token, settings)
    logger.info("Password reset requested", extra={"account_found": True})
    return FORGOT_PASSWORD_MESSAGE


def reset_password(db: Session, token: str, new_password: str) -> None:
    """Complete a reset. Unknown and expired tokens fail identically; a token works once."""
    digest = digest_token(token)
    now = datetime.now(UTC)
    password_hash = hash_password(new_password)
    if not credential_store.consume_reset_token(db, digest, password_hash, now):
        db.rollback()
        reason = "unknown_token" if credential_store.find_by_reset_digest(db, digest) is None else "expired_token"
        logger.info("Password reset rejected", extra={"reason": reason})
        raise BadRequest(RESET_INVALID_MESSAGE)
    db.commit()
    logger.info("Password reset completed")


def update_email(db: Session, username: str, email: str) -> None:
    """Attach or change the email of an existing account."""
    owner = credential_store.find_by_email(db, email)
    if owner is not None and owner.username != username:
        raise Conflict("Email already in use.")
    if not credential_store.set_email(db, username, email):
        db.rollback()
        raise NotFound("User not found.")
    db.commit()
    logger.info("Email updated", extra={"username": username})
