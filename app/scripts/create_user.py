"""
Create an account from the command line (e.g. the first admin on a fresh deployment).
Run from project root:
  python -m app.scripts.create_user USERNAME PASSWORD [--email EMAIL] [--role ROLE]
Example:
  python -m app.scripts.create_user alice 'S3curePassword' --email alice@example.com --role admin

On an empty store the account always becomes the bootstrap admin, as with web registration.
"""
import argparse
import re
import sys

from app.core.database import SessionLocal
from app.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    USERNAME_PATTERN,
    hash_password,
)
from app.models.user import BOOTSTRAP_PROVENANCE, LOWEST_ROLE, ROLES, User
from app.services import credential_store
from app.services.errors import Conflict

CLI_PROVENANCE = "cli"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an OrientaVision account without an invite.")
    parser.add_argument("username", help=f"Username ({USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} chars, letters/digits/_)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("--email", default=None, help="Email (login alternative, password recovery)")
    parser.add_argument("--role", default=LOWEST_ROLE, choices=ROLES)
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN) or not re.match(
        USERNAME_PATTERN, username
    ):
        print("Invalid username.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1
    email = args.email.strip() if args.email else None
    if email is not None and "@" not in email:
        print("Invalid email.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        if credential_store.username_or_email_taken(db, username, email):
            print(f"User '{username}' or its email already exists.", file=sys.stderr)
            return 1
        bootstrap = credential_store.is_empty(db)
        role = "admin" if bootstrap else args.role
        user = User(
            username=username,
            email=email,
            password_hash=hash_password(args.password),
            role=role,
            used_invite_code=BOOTSTRAP_PROVENANCE if bootstrap else CLI_PROVENANCE,
        )
        try:
            credential_store.add_account(db, user)
        except Conflict as e:
            print(e.message, file=sys.stderr)
            return 1
        db.commit()
        print(f"Created user '{username}' with role '{role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
