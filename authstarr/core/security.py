"""Secret hashing and random credential generation."""

import secrets

import bcrypt

# bcrypt only looks at the first 72 bytes of input.
BCRYPT_MAX_BYTES = 72

# Input limits shared by the request schemas and the CLI scripts; they match
# the String(255) columns in the users and clients tables.
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128


def hash_secret(plain: str, rounds: int) -> str:
    """Hash a password or client secret for storage. Do not store plain secrets."""
    pw_bytes = plain.encode("utf-8")[:BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_secret(plain: str, hashed: str) -> bool:
    """Verify a plain secret against a stored hash (constant-time comparison)."""
    pw_bytes = plain.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def generate_token(nbytes: int) -> str:
    """Opaque bearer token from the OS CSPRNG."""
    return secrets.token_urlsafe(nbytes)


def generate_password(nbytes: int) -> str:
    """Random password for a generated role account."""
    return secrets.token_urlsafe(nbytes)
