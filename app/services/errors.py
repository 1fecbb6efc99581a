"""Error taxonomy for credential and session operations; routers map these to HTTP status codes."""


class CredentialError(Exception):
    """Base class: carries a stable, caller-safe message and the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class BadRequest(CredentialError):
    """Malformed input, self-targeted admin action, or unusable reset token."""

    status_code = 400


class Unauthenticated(CredentialError):
    """No credentials were presented."""

    status_code = 401


class Unauthorized(CredentialError):
    """Login failed (unknown identifier or wrong password; never says which)."""

    status_code = 401


class Forbidden(CredentialError):
    """Bad, expired or reused token, insufficient role, or invalid invite."""

    status_code = 403


class NotFound(CredentialError):
    """Target account or invite does not exist."""

    status_code = 404


class Conflict(CredentialError):
    """Username or email already taken."""

    status_code = 409
