"""Registration, client authentication, login and token endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from authstarr.api.v1.gate import get_auth_service, require_admin, validate
from authstarr.core.errors import AuthStarrError
from authstarr.schemas.auth import (
    AuthenticateClientRequest,
    ClientRequest,
    ClientResponse,
    Identity,
    LoginRequest,
    LoginResult,
    RegisteredUser,
    RegisterRequest,
    TokenResponse,
)
from authstarr.services.auth_service import AuthService

router = APIRouter()


def _http_error(e: AuthStarrError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/users", response_model=RegisteredUser, status_code=status.HTTP_201_CREATED)
def register_user(
    body: RegisterRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> RegisteredUser:
    """
    Register a base account plus one role account per entry in `roles`.
    Generated role account passwords are returned once, in this response only.
    """
    try:
        return service.register_user(body.username, body.password, body.roles)
    except AuthStarrError as e:
        raise _http_error(e) from e


@router.post("/clients", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
def register_client(
    body: ClientRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
    _admin: Annotated[Identity, Depends(require_admin)],
) -> ClientResponse:
    """Register a client application (admin role accounts only)."""
    try:
        client = service.register_client(body.name, body.secret)
    except AuthStarrError as e:
        raise _http_error(e) from e
    return ClientResponse(clientid=client.clientid, name=client.name)


@router.post("/tokens", response_model=TokenResponse)
def authenticate_client(
    body: AuthenticateClientRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> TokenResponse:
    """
    Authorize a client to act for the user; returns the grant's token.
    Calling again for the same user, client and role returns the same token.
    """
    try:
        token = service.authenticate_client(
            body.username,
            body.password,
            body.client_name,
            body.client_secret,
        )
    except AuthStarrError as e:
        raise _http_error(e) from e
    return TokenResponse(token=token)


@router.post("/login", response_model=LoginResult)
def login(
    body: LoginRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> LoginResult:
    """
    Log in through the base client, or through client_name when given.
    Answers 404 until that client has been authenticated for the user.
    """
    try:
        return service.login(body.username, body.password, body.client_name, body.client_secret)
    except AuthStarrError as e:
        raise _http_error(e) from e


@router.get("/me", response_model=Identity)
def read_identity(identity: Annotated[Identity, Depends(validate)]) -> Identity:
    """Return the identity the presented token resolves to."""
    return identity


@router.delete("/tokens/current", status_code=status.HTTP_204_NO_CONTENT)
def revoke_current_token(
    identity: Annotated[Identity, Depends(validate)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> Response:
    """Revoke the presented token."""
    try:
        service.revoke_token(identity.token)
    except AuthStarrError as e:
        raise _http_error(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
