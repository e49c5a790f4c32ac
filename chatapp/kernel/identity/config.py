"""
Explicit configuration for the identity core.

The hasher, token signer and secret generator receive an IdentityConfig at
construction; none of them read process settings on their own.
"""

from dataclasses import dataclass
from datetime import timedelta

from chatapp.config import Settings
from chatapp.kernel.identity.errors import ConfigurationError
from chatapp.kernel.identity.password import DEFAULT_ROUNDS

MIN_SECRET_LENGTH = 32
MIN_HASH_ROUNDS = 4
MAX_HASH_ROUNDS = 31


@dataclass(frozen=True)
class IdentityConfig:
    """Secrets, lifetimes and work factor used by the identity core."""

    access_token_secret: str
    refresh_token_secret: str
    access_token_expire_minutes: int = 60
    refresh_token_expire_minutes: int = 60 * 24 * 10
    verification_token_expire_minutes: int = 20
    otp_expire_minutes: int = 10
    password_hash_rounds: int = DEFAULT_ROUNDS
    algorithm: str = "HS256"

    def __post_init__(self) -> None:
        self.validate()

    @classmethod
    def from_settings(cls, settings: Settings) -> "IdentityConfig":
        return cls(
            access_token_secret=settings.access_token_secret,
            refresh_token_secret=settings.refresh_token_secret,
            access_token_expire_minutes=settings.access_token_expire_minutes,
            refresh_token_expire_minutes=settings.refresh_token_expire_minutes,
            verification_token_expire_minutes=settings.verification_token_expire_minutes,
            otp_expire_minutes=settings.otp_expire_minutes,
            password_hash_rounds=settings.password_hash_rounds,
            algorithm=settings.algorithm,
        )

    def validate(self) -> None:
        """
        Reject configurations the core cannot run with.

        Raises:
            ConfigurationError: On a missing or short signing secret, a
                shared access/refresh secret, non-positive lifetimes, a
                refresh lifetime not longer than the access lifetime, or a
                work factor bcrypt does not accept.
        """
        for name in ("access_token_secret", "refresh_token_secret"):
            secret = getattr(self, name)
            if not secret or len(secret) < MIN_SECRET_LENGTH:
                raise ConfigurationError(
                    f"{name} must be at least {MIN_SECRET_LENGTH} characters"
                )
        if self.access_token_secret == self.refresh_token_secret:
            raise ConfigurationError("access and refresh tokens need distinct secrets")

        for name in (
            "access_token_expire_minutes",
            "refresh_token_expire_minutes",
            "verification_token_expire_minutes",
            "otp_expire_minutes",
        ):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")

        if self.refresh_token_expire_minutes <= self.access_token_expire_minutes:
            raise ConfigurationError(
                "refresh token lifetime must be longer than access token lifetime"
            )
        if not MIN_HASH_ROUNDS <= self.password_hash_rounds <= MAX_HASH_ROUNDS:
            raise ConfigurationError(
                f"password_hash_rounds must be within {MIN_HASH_ROUNDS}..{MAX_HASH_ROUNDS}"
            )
        if not self.algorithm.startswith("HS"):
            raise ConfigurationError("only symmetric HS* signing algorithms are supported")

    @property
    def access_token_lifetime(self) -> timedelta:
        return timedelta(minutes=self.access_token_expire_minutes)

    @property
    def refresh_token_lifetime(self) -> timedelta:
        return timedelta(minutes=self.refresh_token_expire_minutes)

    @property
    def verification_token_lifetime(self) -> timedelta:
        return timedelta(minutes=self.verification_token_expire_minutes)

    @property
    def otp_lifetime(self) -> timedelta:
        return timedelta(minutes=self.otp_expire_minutes)
