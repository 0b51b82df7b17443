"""In-process auth service: one unit of work per public operation."""

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, TypeVar

from sqlalchemy.orm import Session

from authstarr.schemas.auth import ClientRecord, Identity, LoginResult, RegisteredUser, UserRecord
from authstarr.services.accounts import RoleAccountManager
from authstarr.services.issuer import TokenIssuer
from authstarr.services.store import CredentialStore

if TYPE_CHECKING:
    from authstarr.core.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AuthService:
    """Composes the credential store, token issuer and role account manager on one session."""

    def __init__(self, session: Session, settings: "Settings") -> None:
        self.store = CredentialStore(session, settings)
        self.issuer = TokenIssuer(self.store, settings)
        self.accounts = RoleAccountManager(self.store, settings)

    def _run(self, operation: Callable[[], T]) -> T:
        """Commit on success, roll everything back on any failure and re-raise."""
        try:
            result = operation()
            self.store.commit()
        except Exception:
            self.store.rollback()
            raise
        return result

    def register_user(self, username: str, password: str, roles: Sequence[str] = ()) -> RegisteredUser:
        return self._run(lambda: self.accounts.register_user(username, password, roles))

    def register_client(self, name: str, secret: str) -> ClientRecord:
        return self._run(lambda: self.store.create_client(name, secret))

    def authenticate_client(
        self,
        username: str,
        password: str,
        client_name: str,
        client_secret: str,
    ) -> str:
        return self._run(
            lambda: self.issuer.authenticate_client(username, password, client_name, client_secret)
        )

    def revoke_token(self, token: str) -> None:
        self._run(lambda: self.store.revoke_token(token))
        logger.info("Revoked token")

    # Read-only operations: no commit needed.

    def validate_user(self, username: str, password: str) -> UserRecord:
        return self.issuer.check_user(username, password)

    def validate_client(self, name: str, secret: str) -> ClientRecord:
        return self.issuer.check_client(name, secret)

    def validate_token(self, token: str) -> Identity:
        return self.store.validate_token(token)

    def get_token(self, userid: int, clientid: int, role: str) -> str:
        return self.store.get_token(userid, clientid, role)

    def login(
        self,
        username: str,
        password: str,
        client_name: str | None = None,
        client_secret: str | None = None,
    ) -> LoginResult:
        return self.issuer.login(username, password, client_name, client_secret)
