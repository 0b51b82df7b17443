"""
Register a user and its role accounts from the command line. Run from project root:
  python -m authstarr.scripts.create_user USERNAME PASSWORD [ROLE ...]
Example:
  python -m authstarr.scripts.create_user alice@example.com your-secure-password admin
Generated role account passwords are printed once.
"""
import argparse
import sys

from authstarr.core.config import get_settings
from authstarr.core.database import SessionLocal
from authstarr.core.errors import AuthStarrError
from authstarr.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from authstarr.services.auth_service import AuthService


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Register an Auth-Starr user with optional role accounts.")
    parser.add_argument("username", help="Username (1-255 chars, may be an email)")
    parser.add_argument("password", help="Password (8-128 chars)")
    parser.add_argument("roles", nargs="*", help="Role accounts to derive (e.g. admin)")
    args = parser.parse_args(argv)

    settings = get_settings()
    username = args.username.strip()
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        print("Invalid username length.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1

    db = SessionLocal()
    try:
        user = AuthService(db, settings).register_user(username, args.password, args.roles)
    except AuthStarrError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()

    print(f"Created user '{user.username}' (userid {user.userid}).")
    for account in user.accounts:
        print(f"  {account.role}: {account.username} / {account.password}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
