"""Notification transports for reminder delivery."""

from typing import assert_never

from src.enums import NotifierKind
from src.notifications.base import Notifier, SendResult
from src.notifications.config import (
    EmailConfig,
    TelegramNotifierConfig,
    get_email_config,
    get_telegram_notifier_config,
)
from src.notifications.smtp import EmailNotifier
from src.notifications.telegram import TelegramNotifier


def get_notifier(kind: NotifierKind) -> Notifier:
    """Build the notifier for a transport from its environment configuration.

    :param kind: Transport to build.
    :returns: Configured notifier.
    """
    match kind:
        case NotifierKind.EMAIL:
            return EmailNotifier(get_email_config())
        case NotifierKind.TELEGRAM:
            config = get_telegram_notifier_config()
            return TelegramNotifier(bot_token=config.bot_token, chat_id=config.chat_id)
        case _:
            assert_never(kind)


__all__ = [
    "EmailConfig",
    "EmailNotifier",
    "Notifier",
    "SendResult",
    "TelegramNotifier",
    "TelegramNotifierConfig",
    "get_notifier",
]
