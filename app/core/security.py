"""Password hashing, token digests, and JWT access/refresh token issuance and verification."""

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt

from app.core.config import get_settings

if TYPE_CHECKING:
    from app.core.config import Settings

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# Username/password validation bounds shared by schemas and the CLI.
USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 20
USERNAME_PATTERN = r"^[A-Za-z0-9_]+$"
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

# Compared against when the login identifier is unknown, so both failure paths pay for bcrypt.
_DUMMY_PASSWORD_HASH = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt(rounds=BCRYPT_ROUNDS))


class AuthError(Exception):
    """Raised when a token cannot be trusted."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TokenInvalid(AuthError):
    """Bad signature, wrong token type, or malformed claims."""


class TokenExpired(AuthError):
    """Signature is valid but the token is past its exp claim."""


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class AccessClaims:
    username: str
    role: str


@dataclass(frozen=True)
class RefreshClaims:
    username: str


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str | None) -> bool:
    """Verify a plain password against a stored hash; a missing hash still costs one bcrypt check."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    if hashed is None:
        bcrypt.checkpw(pw_bytes, _DUMMY_PASSWORD_HASH)
        return False
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def new_opaque_token(nbytes: int = 32) -> str:
    """Random URL-safe token for invite codes and password reset links."""
    return secrets.token_urlsafe(nbytes)


def digest_token(token: str) -> str:
    """One-way SHA-256 digest (hex) of a high-entropy token, for storage and lookup."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def tokens_match(presented: str, stored_digest: str | None) -> bool:
    """Re-hash the presented token and compare with the stored digest in constant time."""
    if not stored_digest:
        return False
    return hmac.compare_digest(digest_token(presented), stored_digest)


def _encode(payload: dict[str, Any], secret: str, algorithm: str) -> str:
    return jwt.encode(payload, secret, algorithm=algorithm)


def issue_tokens(username: str, role: str, settings: "Settings | None" = None) -> TokenPair:
    """
    Mint an access token (username, role; short-lived) and a refresh token (username; long-lived).

    Each token is signed with its own secret and carries a random jti.
    """
    settings = settings or get_settings()
    now = datetime.now(UTC)
    access_payload: dict[str, Any] = {
        "sub": username,
        "role": role,
        "type": ACCESS_TOKEN_TYPE,
        "jti": secrets.token_hex(16),
        "iat": now,
        "exp": now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    refresh_payload: dict[str, Any] = {
        "sub": username,
        "type": REFRESH_TOKEN_TYPE,
        "jti": secrets.token_hex(16),
        "iat": now,
        "exp": now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    }
    return TokenPair(
        access_token=_encode(
            access_payload, settings.JWT_SECRET.get_secret_value(), settings.JWT_ALGORITHM
        ),
        refresh_token=_encode(
            refresh_payload,
            settings.JWT_REFRESH_SECRET.get_secret_value(),
            settings.JWT_ALGORITHM,
        ),
    )


def _decode(token: str, secret: str, algorithm: str, expected_type: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpired("Token expired") from e
    except jwt.PyJWTError as e:
        raise TokenInvalid("Invalid token") from e
    if payload.get("type") != expected_type:
        raise TokenInvalid("Invalid token type")
    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub:
        raise TokenInvalid("Invalid token payload")
    return payload


def verify_access(token: str, settings: "Settings | None" = None) -> AccessClaims:
    """Verify an access token. Raises TokenExpired or TokenInvalid."""
    settings = settings or get_settings()
    payload = _decode(
        token,
        settings.JWT_SECRET.get_secret_value(),
        settings.JWT_ALGORITHM,
        ACCESS_TOKEN_TYPE,
    )
    role = payload.get("role")
    if not isinstance(role, str):
        raise TokenInvalid("Invalid token payload")
    return AccessClaims(username=payload["sub"], role=role)


def verify_refresh(token: str, settings: "Settings | None" = None) -> RefreshClaims:
    """Verify a refresh token. Raises TokenExpired or TokenInvalid."""
    settings = settings or get_settings()
    payload = _decode(
        token,
        settings.JWT_REFRESH_SECRET.get_secret_value(),
        settings.JWT_ALGORITHM,
        REFRESH_TOKEN_TYPE,
    )
    return RefreshClaims(username=payload["sub"])


def peek_refresh_subject(token: str) -> str | None:
    """Read the sub claim without verifying the signature (logout only; never for authorization)."""
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None
    sub = payload.get("sub")
    return sub if isinstance(sub, str) and sub else None
