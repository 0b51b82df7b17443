"""Error taxonomy shared by the store, the services and the HTTP layer."""

# Single message for every credential failure so callers cannot tell an
# unknown identity from a wrong secret.
INVALID_CREDENTIALS = "Invalid credentials."


class AuthStarrError(Exception):
    """Base class; status_code is the HTTP status the API answers with."""

    status_code = 500

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class DuplicateUsername(AuthStarrError):
    status_code = 409


class DuplicateClientName(AuthStarrError):
    status_code = 409


class InvalidRole(AuthStarrError):
    status_code = 422


class InvalidRequest(AuthStarrError):
    """Request body rejected by schema validation (field lengths, types)."""

    status_code = 422


class CredentialError(AuthStarrError):
    """Raised by the store when a user or client credential check fails."""

    status_code = 401


class UserNotFound(CredentialError):
    pass


class BadPassword(CredentialError):
    pass


class ClientNotFound(CredentialError):
    pass


class BadClientSecret(CredentialError):
    pass


class Unauthorized(AuthStarrError):
    """Uniform credential failure surfaced to callers."""

    status_code = 401

    def __init__(self, message: str = INVALID_CREDENTIALS, cause: Exception | None = None) -> None:
        super().__init__(message, cause)


class TokenNotFound(AuthStarrError):
    status_code = 401


class NoTokenIssued(AuthStarrError):
    """Login attempted before the client was authenticated for the user."""

    status_code = 404


class PersistFailure(AuthStarrError):
    status_code = 503


class MissingToken(AuthStarrError):
    status_code = 400


class RoleNotPermitted(AuthStarrError):
    status_code = 403
