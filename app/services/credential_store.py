"""
Keyed persistence operations on the users table.

Every write is a single statement keyed by primary key (or by a unique digest), so the
database decides races: conditional UPDATEs report their row count and the caller treats
0 as "lost". Callers own the transaction (commit/rollback).
"""

from datetime import datetime

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models import User
from app.services.errors import Conflict

DUPLICATE_ACCOUNT_MESSAGE = "Username or email already exists."


def normalize_email(email: str) -> str:
    """Stored form of an email address (domain lowercased), the same form EmailStr produces."""
    try:
        return validate_email(email, check_deliverability=False).normalized
    except EmailNotValidError:
        return email


def get_account(db: Session, username: str) -> User | None:
    return db.query(User).filter(User.username == username).first()


def get_role(db: Session, username: str) -> str | None:
    """Current role straight from the store (None if the account no longer exists)."""
    row = db.query(User.role).filter(User.username == username).first()
    return row[0] if row else None


def find_by_identifier(db: Session, identifier: str) -> User | None:
    """Match a login identifier against username or email."""
    email = normalize_email(identifier) if "@" in identifier else identifier
    return (
        db.query(User)
        .filter(or_(User.username == identifier, User.email == email))
        .first()
    )


def find_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def find_by_reset_digest(db: Session, digest: str) -> User | None:
    return db.query(User).filter(User.reset_token_hash == digest).first()


def username_or_email_taken(db: Session, username: str, email: str | None) -> bool:
    clauses = [User.username == username]
    if email:
        clauses.append(User.email == normalize_email(email))
    return db.query(User.username).filter(or_(*clauses)).first() is not None


def is_empty(db: Session) -> bool:
    return db.query(func.count(User.username)).scalar() == 0


def list_accounts(db: Session) -> list[User]:
    return db.query(User).order_by(User.username).all()


def add_account(db: Session, account: User) -> User:
    """Insert a new account; the store's unique constraints turn duplicates into Conflict."""
    if account.email:
        account.email = normalize_email(account.email)
    db.add(account)
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise Conflict(DUPLICATE_ACCOUNT_MESSAGE) from e
    return account


def set_refresh_hash(db: Session, username: str, digest: str | None) -> int:
    """Overwrite (or clear, with None) the live refresh-token digest."""
    return (
        db.query(User)
        .filter(User.username == username)
        .update({User.refresh_token_hash: digest}, synchronize_session=False)
    )


def rotate_refresh_hash(db: Session, username: str, expected: str, replacement: str) -> bool:
    """Compare-and-swap the refresh digest; False when another rotation or logout got there first."""
    updated = (
        db.query(User)
        .filter(User.username == username, User.refresh_token_hash == expected)
        .update({User.refresh_token_hash: replacement}, synchronize_session=False)
    )
    return updated == 1


def set_reset_token(db: Session, username: str, digest: str, expires_at: datetime) -> int:
    return (
        db.query(User)
        .filter(User.username == username)
        .update(
            {User.reset_token_hash: digest, User.reset_token_expires: expires_at},
            synchronize_session=False,
        )
    )


def consume_reset_token(db: Session, digest: str, password_hash: str, now: datetime) -> bool:
    """Set the new password and clear the reset pair in one statement, only if the token is live."""
    updated = (
        db.query(User)
        .filter(User.reset_token_hash == digest, User.reset_token_expires > now)
        .update(
            {
                User.password_hash: password_hash,
                User.reset_token_hash: None,
                User.reset_token_expires: None,
            },
            synchronize_session=False,
        )
    )
    return updated == 1


def purge_expired_reset_tokens(db: Session, now: datetime) -> int:
    return (
        db.query(User)
        .filter(User.reset_token_expires.is_not(None), User.reset_token_expires <= now)
        .update(
            {User.reset_token_hash: None, User.reset_token_expires: None},
            synchronize_session=False,
        )
    )


def set_email(db: Session, username: str, email: str) -> int:
    try:
        updated = (
            db.query(User)
            .filter(User.username == username)
            .update({User.email: normalize_email(email)}, synchronize_session=False)
        )
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise Conflict("Email already in use.") from e
    return updated


def set_role(db: Session, username: str, role: str) -> int:
    return (
        db.query(User)
        .filter(User.username == username)
        .update({User.role: role}, synchronize_session=False)
    )


def delete_account(db: Session, username: str) -> bool:
    deleted = (
        db.query(User)
        .filter(User.username == username)
        .delete(synchronize_session=False)
    )
    return deleted == 1
