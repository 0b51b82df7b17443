"""Request-time token checks (validate, validate_role) as FastAPI dependencies."""

from collections.abc import Callable, Iterable
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from authstarr.core.config import get_settings
from authstarr.core.database import get_db
from authstarr.core.errors import TokenNotFound
from authstarr.schemas.auth import Identity
from authstarr.services.auth_service import AuthService

MISSING_TOKEN_DETAIL = "Authentication failure, missing token"
INVALID_TOKEN_DETAIL = "Authentication failure"
ROLE_NOT_PERMITTED_DETAIL = "Role not permitted"


def get_auth_service(db: Annotated[Session, Depends(get_db)]) -> AuthService:
    """Dependency: auth service bound to the request's DB session."""
    return AuthService(db, get_settings())


def validate(
    request: Request,
    service: Annotated[AuthService, Depends(get_auth_service)],
    token: Annotated[str | None, Query()] = None,
    x_auth_token: Annotated[str | None, Header()] = None,
) -> Identity:
    """
    Dependency: resolve the presented token to an identity.

    The token is read from the `token` query parameter, else the X-Auth-Token header.
    Raises 400 if it is missing and 401 if it is unknown.
    """
    presented = token or x_auth_token
    if not presented:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=MISSING_TOKEN_DETAIL,
        )
    try:
        identity = service.validate_token(presented)
    except TokenNotFound:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_TOKEN_DETAIL,
        )
    request.state.identity = identity
    return identity


def validate_role(allowed_roles: Iterable[str]) -> Callable[..., Identity]:
    """Build a dependency that runs validate and then requires one of allowed_roles (403 otherwise)."""
    allowed = frozenset(allowed_roles)

    def require_role(identity: Annotated[Identity, Depends(validate)]) -> Identity:
        if identity.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=ROLE_NOT_PERMITTED_DETAIL,
            )
        return identity

    return require_role


require_admin = validate_role({"admin"})
