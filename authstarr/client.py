"""Consumer-side helpers for applications integrating with Auth-Starr.

AuthClient works against any object with register_user, authenticate_client and
login: the in-process AuthService, or RemoteAuthService talking to the HTTP API.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

import httpx

from authstarr.core.errors import (
    AuthStarrError,
    DuplicateUsername,
    InvalidRequest,
    InvalidRole,
    NoTokenIssued,
    PersistFailure,
    Unauthorized,
)
from authstarr.schemas.auth import LoginResult, RegisteredUser

logger = logging.getLogger(__name__)

BASE_CLIENT_NAME = "baseID"
BASE_CLIENT_SECRET = "clientSecret"

ErrorMap = Mapping[int, type[AuthStarrError]]

# Statuses each endpoint answers with on purpose. Anything else (a 404 from a
# wrong base URL, say) is raised as a plain AuthStarrError.
REGISTER_ERRORS: ErrorMap = {409: DuplicateUsername, 422: InvalidRole}
TOKEN_ERRORS: ErrorMap = {401: Unauthorized}
LOGIN_ERRORS: ErrorMap = {401: Unauthorized, 404: NoTokenIssued}


class AuthBackend(Protocol):
    def register_user(self, username: str, password: str, roles: Sequence[str] = ()) -> RegisteredUser: ...

    def authenticate_client(
        self,
        username: str,
        password: str,
        client_name: str,
        client_secret: str,
    ) -> str: ...

    def login(
        self,
        username: str,
        password: str,
        client_name: str | None = None,
        client_secret: str | None = None,
    ) -> LoginResult: ...


class RemoteAuthService:
    """AuthBackend over the HTTP API; error statuses are raised as the matching AuthStarrError."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        api_prefix: str = "/api/v1",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url.rstrip("/") + api_prefix,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RemoteAuthService":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _post(self, path: str, payload: dict[str, Any], errors: ErrorMap) -> dict[str, Any]:
        try:
            response = self._client.post(path, json=payload)
        except httpx.HTTPError as e:
            raise PersistFailure(f"Auth service unreachable: {e!s}", e) from e
        if response.is_success:
            return response.json()
        detail = _error_detail(response)
        message = detail if isinstance(detail, str) else str(detail)
        logger.debug("Auth service %s returned %s: %s", path, response.status_code, message)
        if response.status_code >= 500:
            raise PersistFailure(message)
        if response.status_code == 422 and not isinstance(detail, str):
            # Request validation errors carry a list of field errors, not a message.
            raise InvalidRequest(message)
        raise errors.get(response.status_code, AuthStarrError)(message)

    def register_user(self, username: str, password: str, roles: Sequence[str] = ()) -> RegisteredUser:
        data = self._post(
            "/users",
            {"username": username, "password": password, "roles": list(roles)},
            REGISTER_ERRORS,
        )
        return RegisteredUser.model_validate(data)

    def authenticate_client(
        self,
        username: str,
        password: str,
        client_name: str,
        client_secret: str,
    ) -> str:
        data = self._post(
            "/tokens",
            {
                "username": username,
                "password": password,
                "client_name": client_name,
                "client_secret": client_secret,
            },
            TOKEN_ERRORS,
        )
        return data["token"]

    def login(
        self,
        username: str,
        password: str,
        client_name: str | None = None,
        client_secret: str | None = None,
    ) -> LoginResult:
        payload: dict[str, Any] = {"username": username, "password": password}
        if client_name is not None:
            payload["client_name"] = client_name
            payload["client_secret"] = client_secret
        data = self._post("/login", payload, LOGIN_ERRORS)
        return LoginResult.model_validate(data)


def _error_detail(response: httpx.Response) -> Any:
    """FastAPI puts the message in 'detail'; validation errors carry a list there."""
    try:
        return response.json().get("detail")
    except ValueError:
        return response.text or f"HTTP {response.status_code}"


class AuthClient:
    """Registers and logs users in on behalf of one client application."""

    def __init__(
        self,
        service: AuthBackend,
        client_name: str = BASE_CLIENT_NAME,
        client_secret: str = BASE_CLIENT_SECRET,
    ) -> None:
        self.service = service
        self.client_name = client_name
        self.client_secret = client_secret

    def register_user(
        self,
        username: str,
        password: str,
        roles: Sequence[str] = (),
    ) -> tuple[RegisteredUser, str]:
        """Register the user, then authenticate this client for it. Returns the user and token."""
        user = self.service.register_user(username, password, roles)
        token = self.service.authenticate_client(username, password, self.client_name, self.client_secret)
        return user, token

    def login(self, username: str, password: str) -> LoginResult:
        """Validate the user and this client, then return the token issued for that pair."""
        return self.service.login(username, password, self.client_name, self.client_secret)
