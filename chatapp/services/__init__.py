"""
Application services built on the kernel.
"""

from chatapp.services.chat_service import ChatService
from chatapp.services.notifier import LoggingNotifier, SecretNotifier

__all__ = ["ChatService", "LoggingNotifier", "SecretNotifier"]
