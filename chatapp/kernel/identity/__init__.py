"""
Identity Core - credentials, sessions and verification secrets.
"""

from chatapp.kernel.identity.config import IdentityConfig
from chatapp.kernel.identity.password import PasswordHasher
from chatapp.kernel.identity.jwt import (
    JWTManager,
    TokenPair,
    AccessTokenClaims,
    RefreshTokenClaims,
)
from chatapp.kernel.identity.ephemeral import EphemeralSecret, EphemeralSecretGenerator, hash_secret
from chatapp.kernel.identity.record import Avatar, IdentityRecord, VerificationPurpose
from chatapp.kernel.identity.identity_service import IdentityService

__all__ = [
    "IdentityConfig",
    "PasswordHasher",
    "JWTManager",
    "TokenPair",
    "AccessTokenClaims",
    "RefreshTokenClaims",
    "EphemeralSecret",
    "EphemeralSecretGenerator",
    "hash_secret",
    "Avatar",
    "IdentityRecord",
    "VerificationPurpose",
    "IdentityService",
]
