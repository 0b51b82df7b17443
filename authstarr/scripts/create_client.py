"""
Register a client application. Run from project root:
  python -m authstarr.scripts.create_client NAME SECRET
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
    parser = argparse.ArgumentParser(description="Register an Auth-Starr client application.")
    parser.add_argument("name", help="Client name (unique)")
    parser.add_argument("secret", help="Client secret (8-128 chars)")
    args = parser.parse_args(argv)

    name = args.name.strip()
    if not (USERNAME_MIN_LEN <= len(name) <= USERNAME_MAX_LEN):
        print("Invalid client name length.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.secret) <= PASSWORD_MAX_LEN):
        print(f"Secret must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        client = AuthService(db, get_settings()).register_client(name, args.secret)
    except AuthStarrError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created client '{client.name}' (clientid {client.clientid}).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
