"""
Out-of-band delivery of verification secrets.

The identity core hands plaintext secrets to a notifier exactly once. Real
deployments plug in email/SMS senders; the default only records that a
delivery happened.
"""

from typing import Protocol

from chatapp.kernel.identity.record import IdentityRecord
from chatapp.logging_config import get_logger

logger = get_logger(__name__)


class SecretNotifier(Protocol):
    async def send_email_verification(self, record: IdentityRecord, token: str) -> None:
        ...

    async def send_phone_verification(self, record: IdentityRecord, otp: str) -> None:
        ...

    async def send_password_reset(self, record: IdentityRecord, token: str) -> None:
        ...


class LoggingNotifier:
    """Notifier that logs the delivery without the secret itself."""

    async def send_email_verification(self, record: IdentityRecord, token: str) -> None:
        logger.info("Email verification dispatched", extra={"user_id": str(record.id)})

    async def send_phone_verification(self, record: IdentityRecord, otp: str) -> None:
        logger.info("Phone verification dispatched", extra={"user_id": str(record.id)})

    async def send_password_reset(self, record: IdentityRecord, token: str) -> None:
        logger.info("Password reset dispatched", extra={"user_id": str(record.id)})
