"""Records returned by the credential store and request/response schemas for auth endpoints."""

from pydantic import BaseModel, ConfigDict, Field

from authstarr.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)


class UserRecord(BaseModel):
    """Stored account without its password hash."""

    model_config = ConfigDict(from_attributes=True)

    userid: int
    username: str
    role: str


class ClientRecord(BaseModel):
    """Stored client application without its secret hash."""

    model_config = ConfigDict(from_attributes=True)

    clientid: int
    name: str


class Identity(BaseModel):
    """Identity resolved from a presented token."""

    userid: int
    username: str
    role: str
    token: str


class RoleAccount(BaseModel):
    """Derived role account; password is the generated plaintext, shown once."""

    userid: int
    username: str
    role: str
    password: str


class RegisteredUser(BaseModel):
    """Base account returned by registration, with its derived role accounts."""

    userid: int
    username: str
    role: str = "client"
    password: str
    accounts: list[RoleAccount] = Field(default_factory=list)


class LoginResult(BaseModel):
    """Result of logging a user in through the base client."""

    userid: int
    username: str
    token: str
    role: str


class RegisterRequest(BaseModel):
    """Credentials for a new base account and the role accounts to derive from it."""

    username: str = Field(
        ...,
        min_length=USERNAME_MIN_LEN,
        max_length=USERNAME_MAX_LEN,
        description="Username (may be an email)",
    )
    password: str = Field(
        ...,
        min_length=PASSWORD_MIN_LEN,
        max_length=PASSWORD_MAX_LEN,
        description="Password",
    )
    roles: list[str] = Field(default_factory=list, description="Role accounts to derive")


class ClientRequest(BaseModel):
    """Credentials for a new client application."""

    name: str = Field(
        ...,
        min_length=USERNAME_MIN_LEN,
        max_length=USERNAME_MAX_LEN,
        description="Client name",
    )
    secret: str = Field(
        ...,
        min_length=PASSWORD_MIN_LEN,
        max_length=PASSWORD_MAX_LEN,
        description="Client secret",
    )


class ClientResponse(BaseModel):
    """Registered client (secret is never echoed)."""

    clientid: int
    name: str


class AuthenticateClientRequest(BaseModel):
    """User and client credentials for issuing a token."""

    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    client_name: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    client_secret: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)


class LoginRequest(BaseModel):
    """Credentials for login, optionally through a client other than the base client."""

    username: str = Field(
        ...,
        min_length=USERNAME_MIN_LEN,
        max_length=USERNAME_MAX_LEN,
        description="Username",
    )
    password: str = Field(
        ...,
        min_length=1,
        max_length=PASSWORD_MAX_LEN,
        description="Password",
    )
    client_name: str | None = Field(
        default=None,
        min_length=USERNAME_MIN_LEN,
        max_length=USERNAME_MAX_LEN,
        description="Client to log in through (defaults to the base client)",
    )
    client_secret: str | None = Field(default=None, min_length=1, max_length=PASSWORD_MAX_LEN)


class TokenResponse(BaseModel):
    """Opaque bearer token issued for a client."""

    token: str = Field(..., description="Opaque bearer token")
    token_type: str = Field(default="bearer", description="Token type")
