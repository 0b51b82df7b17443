"""Credential store: durable users, clients and tokens on a SQLAlchemy session.

Write operations flush but never commit. The calling service owns the unit of
work and finishes it with commit() or rollback(), so multi-row operations such
as registration land atomically. Database errors leave the store as
PersistFailure; nothing from sqlalchemy.exc reaches callers.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from functools import lru_cache
from typing import TYPE_CHECKING

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from authstarr.core.errors import (
    BadClientSecret,
    BadPassword,
    ClientNotFound,
    DuplicateClientName,
    DuplicateUsername,
    PersistFailure,
    TokenNotFound,
    UserNotFound,
)
from authstarr.core.security import hash_secret, verify_secret
from authstarr.models import Client, IdCounter, Token, User
from authstarr.schemas.auth import ClientRecord, Identity, UserRecord

if TYPE_CHECKING:
    from authstarr.core.config import Settings

logger = logging.getLogger(__name__)

BASE_ROLE = "client"
USERID_COUNTER = "userid"
CLIENTID_COUNTER = "clientid"


@lru_cache
def _dummy_hash(rounds: int) -> str:
    """Hash compared against when a username is unknown, so lookups cost the same."""
    return hash_secret("authstarr-dummy-password", rounds)


@contextmanager
def storage_errors(message: str) -> Iterator[None]:
    """Re-raise database errors as PersistFailure; taxonomy errors pass through unchanged."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("%s (%s)", message, type(e).__name__)
        raise PersistFailure(message, e) from e


class CredentialStore:
    """Create, find and compare users, clients and tokens."""

    def __init__(self, session: Session, settings: "Settings") -> None:
        self.session = session
        self.settings = settings

    # -- unit of work -------------------------------------------------------

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistFailure("Could not persist changes.", e) from e

    def rollback(self) -> None:
        self.session.rollback()

    # -- id allocation ------------------------------------------------------

    def _baseline(self, column, seed: int) -> int:
        """Last id considered issued: highest existing value, or one below the seed."""
        highest = self.session.query(func.max(column)).scalar()
        return seed - 1 if highest is None else highest

    def _next_id(self, name: str, column, seed: int) -> int:
        """Atomically increment the named counter and return the new value."""
        with storage_errors(f"Could not allocate {name}."):
            result = self.session.execute(
                update(IdCounter)
                .where(IdCounter.name == name)
                .values(value=IdCounter.value + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                value = self._baseline(column, seed) + 1
                self.session.add(IdCounter(name=name, value=value))
                self.session.flush()
                return value
            return self.session.query(IdCounter.value).filter(IdCounter.name == name).scalar()

    def next_userid(self) -> int:
        return self._next_id(USERID_COUNTER, User.userid, self.settings.USERID_SEED)

    def next_clientid(self) -> int:
        return self._next_id(CLIENTID_COUNTER, Client.clientid, self.settings.CLIENTID_SEED)

    def seed_counters(self) -> None:
        """Create missing counter rows from existing data; existing counters are left alone."""
        with storage_errors("Could not seed id counters."):
            for name, column, seed in (
                (USERID_COUNTER, User.userid, self.settings.USERID_SEED),
                (CLIENTID_COUNTER, Client.clientid, self.settings.CLIENTID_SEED),
            ):
                if self.session.get(IdCounter, name) is None:
                    self.session.add(IdCounter(name=name, value=self._baseline(column, seed)))
            self.session.flush()

    # -- users --------------------------------------------------------------

    def username_exists(self, username: str) -> bool:
        with storage_errors("Could not look up user."):
            return (
                self.session.query(User.id).filter(User.username == username).first()
                is not None
            )

    def create_user(
        self,
        username: str,
        password: str,
        *,
        userid: int | None = None,
        role: str = BASE_ROLE,
    ) -> UserRecord:
        """Persist an account with a bcrypt hash; allocates a userid when none is given."""
        if self.username_exists(username):
            raise DuplicateUsername(f"Username '{username}' already exists.")
        if userid is None:
            userid = self.next_userid()
        user = User(
            userid=userid,
            username=username,
            password_hash=hash_secret(password, self.settings.BCRYPT_ROUNDS),
            role=role,
        )
        with storage_errors("Could not create user."):
            self.session.add(user)
            try:
                self.session.flush()
            except IntegrityError as e:
                raise DuplicateUsername(f"Username '{username}' already exists.", e) from e
            record = UserRecord.model_validate(user)
        logger.debug("Created user userid=%s role=%s", userid, role)
        return record

    def validate_user(self, username: str, password: str) -> UserRecord:
        with storage_errors("Could not look up user."):
            user = self.session.query(User).filter(User.username == username).first()
        if user is None:
            verify_secret(password, _dummy_hash(self.settings.BCRYPT_ROUNDS))
            raise UserNotFound("No user found.")
        if not verify_secret(password, user.password_hash):
            raise BadPassword("Password mismatch.")
        return UserRecord.model_validate(user)

    # -- clients ------------------------------------------------------------

    def _find_client(self, name: str) -> Client | None:
        with storage_errors("Could not look up client."):
            return self.session.query(Client).filter(Client.name == name).first()

    def create_client(self, name: str, secret: str) -> ClientRecord:
        if self._find_client(name) is not None:
            raise DuplicateClientName(f"Client '{name}' already exists.")
        client = Client(
            clientid=self.next_clientid(),
            name=name,
            secret_hash=hash_secret(secret, self.settings.BCRYPT_ROUNDS),
        )
        with storage_errors("Could not create client."):
            self.session.add(client)
            try:
                self.session.flush()
            except IntegrityError as e:
                raise DuplicateClientName(f"Client '{name}' already exists.", e) from e
            record = ClientRecord.model_validate(client)
        logger.debug("Created client clientid=%s name=%s", record.clientid, name)
        return record

    def ensure_client(self, name: str, secret: str) -> ClientRecord:
        """Upsert by name: create the client, or refresh its secret hash if it changed."""
        client = self._find_client(name)
        if client is None:
            return self.create_client(name, secret)
        if not verify_secret(secret, client.secret_hash):
            with storage_errors("Could not update client secret."):
                client.secret_hash = hash_secret(secret, self.settings.BCRYPT_ROUNDS)
                self.session.flush()
            logger.info("Refreshed secret for client name=%s", name)
        return ClientRecord.model_validate(client)

    def validate_client(self, name: str, secret: str) -> ClientRecord:
        client = self._find_client(name)
        if client is None:
            verify_secret(secret, _dummy_hash(self.settings.BCRYPT_ROUNDS))
            raise ClientNotFound("No client found.")
        if not verify_secret(secret, client.secret_hash):
            raise BadClientSecret("Client secret mismatch.")
        return ClientRecord.model_validate(client)

    # -- tokens -------------------------------------------------------------

    def validate_token(self, token: str) -> Identity:
        with storage_errors("Could not look up token."):
            row = self.session.query(Token).filter(Token.token == token).first()
            if row is None:
                raise TokenNotFound("No token found.")
            user = (
                self.session.query(User)
                .filter(User.userid == row.userid, User.role == row.role)
                .first()
            )
        if user is None:
            raise TokenNotFound("No account for token.")
        return Identity(userid=row.userid, username=user.username, role=row.role, token=row.token)

    def get_token(self, userid: int, clientid: int, role: str) -> str:
        """Look up the grant for a tuple. Never issues."""
        with storage_errors("Could not look up token."):
            value = (
                self.session.query(Token.token)
                .filter(
                    Token.userid == userid,
                    Token.clientid == clientid,
                    Token.role == role,
                )
                .scalar()
            )
        if value is None:
            raise TokenNotFound("No token found.")
        return value

    def add_token(self, userid: int, clientid: int, role: str, token: str) -> str:
        """Unconditional insert; callers check get_token first to avoid double issuing."""
        with storage_errors("Error adding token."):
            self.session.add(Token(token=token, userid=userid, clientid=clientid, role=role))
            self.session.flush()
        return token

    def revoke_token(self, token: str) -> None:
        with storage_errors("Could not revoke token."):
            deleted = (
                self.session.query(Token)
                .filter(Token.token == token)
                .delete(synchronize_session=False)
            )
        if deleted == 0:
            raise TokenNotFound("No token found.")


def provision_store(session: Session, settings: "Settings") -> ClientRecord:
    """Seed id counters and upsert the base client. Idempotent; run once at startup."""
    store = CredentialStore(session, settings)
    try:
        store.seed_counters()
        client = store.ensure_client(
            settings.BASE_CLIENT_NAME,
            settings.BASE_CLIENT_SECRET.get_secret_value(),
        )
        store.commit()
    except Exception:
        store.rollback()
        raise
    logger.info("Provisioned base client name=%s clientid=%s", client.name, client.clientid)
    return client
