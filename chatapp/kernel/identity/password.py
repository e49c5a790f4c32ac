"""
Password hashing utilities using bcrypt.
"""

import base64
import hashlib

import bcrypt

# Matches IdentityConfig.password_hash_rounds
DEFAULT_ROUNDS = 10


class PasswordHasher:
    """
    Password hashing service.

    Passwords are pre-hashed with SHA-256 so that bcrypt's 72-byte input
    limit never makes two different passwords collide.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self.rounds = rounds

    @staticmethod
    def _prehash(password: str) -> bytes:
        digest = hashlib.sha256(password.encode("utf-8")).digest()
        return base64.b64encode(digest)

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password string ($2b$...)
        """
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(self._prehash(password), salt).decode("utf-8")

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Args:
            plain_password: Plain text password to verify
            hashed_password: Stored hashed password

        Returns:
            True if password matches. A malformed stored hash is a
            mismatch, not an error.
        """
        if not hashed_password:
            return False
        try:
            return bcrypt.checkpw(
                self._prehash(plain_password),
                hashed_password.encode("utf-8"),
            )
        except ValueError:
            return False

    def needs_rehash(self, hashed_password: str) -> bool:
        """
        Check if a password hash was produced with a different cost factor.

        Format: $2b$XX$... where XX is the rounds.
        """
        parts = hashed_password.split("$")
        if len(parts) < 4 or not parts[2].isdigit():
            return True
        return int(parts[2]) != self.rounds

