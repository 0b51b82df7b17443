"""Token issuance: user check, client check, then persist or look up the grant."""

import logging
from typing import TYPE_CHECKING

from authstarr.core.errors import CredentialError, NoTokenIssued, TokenNotFound, Unauthorized
from authstarr.core.security import generate_token
from authstarr.schemas.auth import ClientRecord, LoginResult, UserRecord
from authstarr.services.store import CredentialStore

if TYPE_CHECKING:
    from authstarr.core.config import Settings

logger = logging.getLogger(__name__)


class TokenIssuer:
    """Issues opaque tokens for (user, client, role) grants and looks them up on login."""

    def __init__(self, store: CredentialStore, settings: "Settings") -> None:
        self.store = store
        self.settings = settings

    def create_token(self) -> str:
        return generate_token(self.settings.TOKEN_BYTES)

    def check_user(self, username: str, password: str) -> UserRecord:
        """validate_user with the failure cause hidden from the caller."""
        try:
            return self.store.validate_user(username, password)
        except CredentialError as e:
            logger.info("User credential check failed: %s", e.message)
            raise Unauthorized(cause=e) from e

    def check_client(self, name: str, secret: str) -> ClientRecord:
        """validate_client with the failure cause hidden from the caller."""
        try:
            return self.store.validate_client(name, secret)
        except CredentialError as e:
            logger.info("Client credential check failed for client=%s: %s", name, e.message)
            raise Unauthorized(cause=e) from e

    def authenticate_client(
        self,
        username: str,
        password: str,
        client_name: str,
        client_secret: str,
    ) -> str:
        """
        Grant client_name access to the user's account and return the token.

        Returns the existing token when the grant was already issued; a
        concurrent issue losing the unique constraint fails with PersistFailure.
        """
        user = self.check_user(username, password)
        client = self.check_client(client_name, client_secret)
        try:
            return self.store.get_token(user.userid, client.clientid, user.role)
        except TokenNotFound:
            pass
        token = self.store.add_token(user.userid, client.clientid, user.role, self.create_token())
        logger.info(
            "Issued token userid=%s clientid=%s role=%s",
            user.userid,
            client.clientid,
            user.role,
        )
        return token

    def login(
        self,
        username: str,
        password: str,
        client_name: str | None = None,
        client_secret: str | None = None,
    ) -> LoginResult:
        """
        Log a user in through a client, the base client unless client_name is given.

        Only looks the token up: fails with NoTokenIssued until authenticate_client
        has been called for this user and that client.
        """
        if client_name is None:
            client_name = self.settings.BASE_CLIENT_NAME
            client_secret = self.settings.BASE_CLIENT_SECRET.get_secret_value()
        user = self.check_user(username, password)
        client = self.check_client(client_name, client_secret or "")
        try:
            token = self.store.get_token(user.userid, client.clientid, user.role)
        except TokenNotFound as e:
            raise NoTokenIssued("No token issued for this user; authenticate the client first.", e) from e
        return LoginResult(userid=user.userid, username=user.username, token=token, role=user.role)
