"""
Identity service for user management operations.
"""

import asyncio
import hmac
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, TypeVar

from chatapp.kernel.identity.config import IdentityConfig
from chatapp.kernel.identity.ephemeral import EphemeralSecretGenerator, hash_secret
from chatapp.kernel.identity.errors import (
    BadCredentials,
    NotFound,
    StaleRecordError,
    TokenRevoked,
)
from chatapp.kernel.identity.jwt import AccessTokenClaims, JWTManager, TokenPair
from chatapp.kernel.identity.password import PasswordHasher
from chatapp.kernel.identity.record import (
    Avatar,
    IdentityRecord,
    VerificationPurpose,
)
from chatapp.kernel.models.user import UserRole
from chatapp.kernel.stores.base import UserStore
from chatapp.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Read-check-write attempts before giving up on a contended record
MAX_WRITE_ATTEMPTS = 3


class IdentityService:
    """
    Service for user identity operations.

    Handles registration, authentication, session rotation, verification
    flows and password changes. Every mutation is a read-check-write on a
    single record, retried from a fresh read when the store reports a
    concurrent write.
    """

    def __init__(
        self,
        store: UserStore,
        config: IdentityConfig,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.config = config
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.hasher = PasswordHasher(rounds=config.password_hash_rounds)
        self.jwt_manager = JWTManager(config, clock=self.clock)
        self.secrets = EphemeralSecretGenerator(config, clock=self.clock)

    # -- helpers -----------------------------------------------------------

    async def _hash_password(self, password: str) -> str:
        return await asyncio.to_thread(self.hasher.hash, password)

    async def _verify_password(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(self.hasher.verify, password, password_hash)

    async def _issue_tokens(self, record: IdentityRecord) -> TokenPair:
        token_pair = await asyncio.to_thread(self.jwt_manager.create_token_pair, record)
        record.refresh_token = hash_secret(token_pair.refresh_token)
        return token_pair

    async def _mutate(
        self,
        user_id: uuid.UUID,
        change: Callable[[IdentityRecord], Awaitable[tuple[bool, T]]],
    ) -> tuple[IdentityRecord, T]:
        """
        Apply ``change`` to a fresh copy of the record and persist it.

        ``change`` returns (write, result). When write is False nothing is
        stored. A concurrent write restarts the sequence from a new read.
        """
        for attempt in range(MAX_WRITE_ATTEMPTS):
            record = await self.store.get(user_id)
            if record is None:
                raise NotFound()
            write, result = await change(record)
            if not write:
                return record, result
            try:
                stored = await self.store.update(record)
            except StaleRecordError:
                logger.debug(
                    "Concurrent write, retrying",
                    extra={"user_id": str(user_id), "attempt": attempt + 1},
                )
                continue
            return stored, result
        raise StaleRecordError(user_id)

    # -- registration and lookup ------------------------------------------

    async def register(
        self,
        username: str,
        email: str,
        phone_number: str,
        password: str,
        role: UserRole = UserRole.USER,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        about: Optional[str] = None,
        avatar: Optional[Avatar] = None,
    ) -> IdentityRecord:
        """
        Register a new user.

        Args:
            username: Unique handle, stored lowercased
            email: Unique email, stored lowercased
            phone_number: 10-digit string
            password: Plain text password, hashed before storage
            role: User role (default: user)

        Returns:
            The stored IdentityRecord

        Raises:
            DuplicateField: If username, email or phone number is taken
        """
        record = IdentityRecord(
            username=username,
            email=email,
            phone_number=phone_number,
            password_hash=await self._hash_password(password),
            role=role,
            first_name=first_name,
            last_name=last_name,
            about=about,
            avatar=avatar or Avatar(),
        )
        stored = await self.store.insert(record)
        logger.info("User registered", extra={"user_id": str(stored.id)})
        return stored

    async def get_user(self, user_id: uuid.UUID) -> IdentityRecord:
        record = await self.store.get(user_id)
        if record is None:
            raise NotFound()
        return record

    async def get_user_by_identifier(self, identifier: str) -> IdentityRecord:
        """Get a user by username or email."""
        record = await self.store.find_by_identifier(identifier)
        if record is None:
            raise NotFound()
        return record

    # -- sessions -----------------------------------------------------------

    async def authenticate(
        self,
        identifier: str,
        password: str,
    ) -> tuple[IdentityRecord, TokenPair]:
        """
        Authenticate a user by username or email and issue tokens.

        A hash made with a different cost factor is replaced while the
        plaintext is at hand.

        Raises:
            BadCredentials: Unknown identifier or wrong password; the two
                are not distinguished
        """
        record = await self.store.find_by_identifier(identifier)
        if record is None:
            raise BadCredentials()
        if not await self._verify_password(password, record.password_hash):
            raise BadCredentials()

        async def start_session(current: IdentityRecord):
            if self.hasher.needs_rehash(current.password_hash):
                current.password_hash = await self._hash_password(password)
            return True, await self._issue_tokens(current)

        stored, token_pair = await self._mutate(record.id, start_session)
        logger.info("User logged in", extra={"user_id": str(stored.id)})
        return stored, token_pair

    async def refresh_session(self, refresh_token: str) -> tuple[IdentityRecord, TokenPair]:
        """
        Exchange a refresh token for a new pair, rotating the stored reference.

        Raises:
            InvalidSignature, TokenExpired, MalformedToken: From parsing
            TokenRevoked: The token is not the user's active refresh token
            NotFound: The token's subject no longer exists
        """
        claims = await asyncio.to_thread(self.jwt_manager.parse_refresh_token, refresh_token)
        presented = hash_secret(refresh_token)

        async def rotate(current: IdentityRecord):
            if not current.refresh_token or not hmac.compare_digest(
                current.refresh_token, presented
            ):
                raise TokenRevoked()
            return True, await self._issue_tokens(current)

        return await self._mutate(claims.user_id, rotate)

    async def logout(self, user_id: uuid.UUID) -> None:
        """Revoke the active refresh token."""

        async def revoke(current: IdentityRecord):
            if current.refresh_token is None:
                return False, None
            current.refresh_token = None
            return True, None

        await self._mutate(user_id, revoke)

    async def current_user(self, access_token: str) -> tuple[IdentityRecord, AccessTokenClaims]:
        """
        Resolve an access token to its user.

        Raises:
            InvalidSignature, TokenExpired, MalformedToken: From parsing
            NotFound: The subject no longer exists
        """
        claims = await asyncio.to_thread(self.jwt_manager.parse_access_token, access_token)
        return await self.get_user(claims.user_id), claims

    # -- verification -------------------------------------------------------

    async def begin_verification(
        self,
        user_id: uuid.UUID,
        purpose: VerificationPurpose,
    ) -> str:
        """
        Issue a verification secret and store its digest and expiry.

        Email gets an opaque token, phone number a 6-digit OTP. Any earlier
        secret for the same purpose is overwritten.

        Returns:
            The plaintext secret, for out-of-band delivery
        """
        if purpose is VerificationPurpose.EMAIL:
            secret = self.secrets.generate_token()
        else:
            secret = self.secrets.generate_otp()

        async def store_secret(current: IdentityRecord):
            hash_field, expiry_field = current.secret_fields(purpose)
            setattr(current, hash_field, secret.hash)
            setattr(current, expiry_field, secret.expires_at)
            return True, None

        await self._mutate(user_id, store_secret)
        return secret.plaintext

    async def complete_verification(
        self,
        user_id: uuid.UUID,
        purpose: VerificationPurpose,
        plaintext: str,
    ) -> bool:
        """
        Consume a verification secret.

        Returns:
            True when the secret matched and had not expired. The stored
            digest is cleared on success, so a second attempt returns False.
        """

        async def consume(current: IdentityRecord):
            hash_field, expiry_field = current.secret_fields(purpose)
            if not self.secrets.matches(
                plaintext,
                getattr(current, hash_field),
                getattr(current, expiry_field),
            ):
                return False, False
            setattr(current, current.verified_flag(purpose), True)
            setattr(current, hash_field, None)
            setattr(current, expiry_field, None)
            return True, True

        _, verified = await self._mutate(user_id, consume)
        return verified

    # -- passwords ----------------------------------------------------------

    async def begin_password_reset(self, identifier: str) -> str:
        """
        Issue a password reset token for the user with this username/email.

        Returns:
            The plaintext token, for out-of-band delivery

        Raises:
            NotFound: No such user
        """
        record = await self.get_user_by_identifier(identifier)
        secret = self.secrets.generate_token()

        async def store_secret(current: IdentityRecord):
            current.forgot_password_token_hash = secret.hash
            current.forgot_password_expiry = secret.expires_at
            return True, None

        await self._mutate(record.id, store_secret)
        return secret.plaintext

    async def reset_password(self, plaintext: str, new_password: str) -> bool:
        """
        Replace the password of the user holding this reset token.

        On success the reset token is cleared and the session revoked.
        """
        if not plaintext:
            return False
        record = await self.store.find_by_field(
            "forgot_password_token_hash", hash_secret(plaintext)
        )
        if record is None:
            return False

        async def apply(current: IdentityRecord):
            if not self.secrets.matches(
                plaintext,
                current.forgot_password_token_hash,
                current.forgot_password_expiry,
            ):
                return False, False
            current.password_hash = await self._hash_password(new_password)
            current.forgot_password_token_hash = None
            current.forgot_password_expiry = None
            current.refresh_token = None
            return True, True

        _, changed = await self._mutate(record.id, apply)
        if changed:
            logger.info("Password reset", extra={"user_id": str(record.id)})
        return changed

    async def change_password(
        self,
        user_id: uuid.UUID,
        current_password: str,
        new_password: str,
    ) -> bool:
        """
        Change user's password.

        Returns:
            True if successful, False if current password is wrong. The
            refresh token is revoked on success.
        """

        async def apply(current: IdentityRecord):
            if not await self._verify_password(current_password, current.password_hash):
                return False, False
            current.password_hash = await self._hash_password(new_password)
            current.forgot_password_token_hash = None
            current.forgot_password_expiry = None
            current.refresh_token = None
            return True, True

        _, changed = await self._mutate(user_id, apply)
        return changed

    # -- profile ------------------------------------------------------------

    async def update_profile(
        self,
        user_id: uuid.UUID,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        about: Optional[str] = None,
        avatar: Optional[Avatar] = None,
    ) -> IdentityRecord:
        """Update profile fields; None leaves a field unchanged."""
        changes: dict[str, Any] = {
            "first_name": first_name,
            "last_name": last_name,
            "about": about,
            "avatar": avatar,
        }
        changes = {k: v for k, v in changes.items() if v is not None}

        async def apply(current: IdentityRecord):
            if not changes:
                return False, None
            for name, value in changes.items():
                setattr(current, name, value)
            return True, None

        stored, _ = await self._mutate(user_id, apply)
        return stored
