"""
Typed outcomes for identity operations.

Every error here is recoverable and meant to be mapped to a response by the
caller. ConfigurationError is the exception: it is raised while wiring the
core at startup and should stop the process.
"""

from typing import Optional


class IdentityError(Exception):
    """Base class for identity failures reported to callers."""

    code = "identity_error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.__class__.__doc__ or self.code)


class BadCredentials(IdentityError):
    """Invalid username/email or password."""

    code = "bad_credentials"


class InvalidSignature(IdentityError):
    """Token signature does not match."""

    code = "invalid_signature"


class TokenExpired(IdentityError):
    """Token has expired."""

    code = "token_expired"


class MalformedToken(IdentityError):
    """Token claims could not be decoded."""

    code = "malformed_token"


class TokenRevoked(IdentityError):
    """Refresh token is no longer the active one for this user."""

    code = "token_revoked"


class NotFound(IdentityError):
    """User not found."""

    code = "not_found"


class DuplicateField(IdentityError):
    """A unique field is already taken."""

    code = "duplicate_field"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} is already in use")


class ConfigurationError(Exception):
    """Identity core cannot start with the given configuration."""


class StaleRecordError(Exception):
    """Stored record changed between read and write."""

    def __init__(self, record_id):
        self.record_id = record_id
        super().__init__(f"Record {record_id} was modified concurrently")
