"""Pydantic request/response schemas."""

from authstarr.schemas.auth import (
    AuthenticateClientRequest,
    ClientRecord,
    ClientRequest,
    ClientResponse,
    Identity,
    LoginRequest,
    LoginResult,
    RegisteredUser,
    RegisterRequest,
    RoleAccount,
    TokenResponse,
    UserRecord,
)
from authstarr.schemas.health import HealthResponse

__all__ = [
    "AuthenticateClientRequest",
    "ClientRecord",
    "ClientRequest",
    "ClientResponse",
    "HealthResponse",
    "Identity",
    "LoginRequest",
    "LoginResult",
    "RegisterRequest",
    "RegisteredUser",
    "RoleAccount",
    "TokenResponse",
    "UserRecord",
]
