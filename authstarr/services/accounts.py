"""Registration of base accounts and the role accounts derived from them."""

import logging
import re
from collections.abc import Sequence
from typing import TYPE_CHECKING

from authstarr.core.errors import DuplicateUsername, InvalidRole
from authstarr.core.security import USERNAME_MAX_LEN, generate_password
from authstarr.schemas.auth import RegisteredUser, RoleAccount
from authstarr.services.store import BASE_ROLE, CredentialStore

if TYPE_CHECKING:
    from authstarr.core.config import Settings

logger = logging.getLogger(__name__)

ROLE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,32}$")


def local_part(username: str) -> str:
    """Part before '@' for email-shaped usernames, else the whole username."""
    if "@" in username:
        return username.split("@", 1)[0]
    return username


def derive_role_username(username: str, role: str) -> str:
    return f"{local_part(username)}_{role}"


def validate_roles(roles: Sequence[str]) -> list[str]:
    """Reject empty, malformed, duplicated or base-role names."""
    seen: set[str] = set()
    for role in roles:
        if not ROLE_NAME_PATTERN.match(role):
            raise InvalidRole(f"Invalid role name '{role}'.")
        if role == BASE_ROLE:
            raise InvalidRole(f"Role '{BASE_ROLE}' is reserved for the base account.")
        if role in seen:
            raise InvalidRole(f"Role '{role}' requested more than once.")
        seen.add(role)
    return list(roles)


class RoleAccountManager:
    """Creates a base account and one derived account per requested role."""

    def __init__(self, store: CredentialStore, settings: "Settings") -> None:
        self.store = store
        self.settings = settings

    def register_user(
        self,
        username: str,
        password: str,
        roles: Sequence[str] = (),
    ) -> RegisteredUser:
        """
        Register username with role 'client' plus a role account per entry in roles.

        Every row is written in the caller's transaction: if any account cannot be
        created the error propagates and the caller rolls back all of them.
        """
        roles = validate_roles(roles)
        for role in roles:
            derived = derive_role_username(username, role)
            if len(derived) > USERNAME_MAX_LEN:
                raise InvalidRole(
                    f"Role account name for '{role}' exceeds {USERNAME_MAX_LEN} characters."
                )
        if self.store.username_exists(username):
            raise DuplicateUsername(f"Username '{username}' already exists.")

        base = self.store.create_user(username, password, role=BASE_ROLE)
        accounts: list[RoleAccount] = []
        for role in roles:
            role_password = generate_password(self.settings.ROLE_PASSWORD_BYTES)
            record = self.store.create_user(
                derive_role_username(username, role),
                role_password,
                userid=base.userid,
                role=role,
            )
            accounts.append(
                RoleAccount(
                    userid=record.userid,
                    username=record.username,
                    role=record.role,
                    password=role_password,
                )
            )

        logger.info("Registered userid=%s with %s role account(s)", base.userid, len(accounts))
        return RegisteredUser(
            userid=base.userid,
            username=base.username,
            role=base.role,
            password=password,
            accounts=accounts,
        )
