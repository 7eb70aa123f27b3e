"""Telegram notifier posting reminders through the Bot API."""

import html
import logging

import requests

from src.notifications.base import SendResult

logger = logging.getLogger(__name__)

# Default API timeout in seconds
DEFAULT_REQUEST_TIMEOUT = 15


class TelegramNotifier:
    """Notifier that posts reminders to a single Telegram chat.

    The recipient's address is included in the message, since the chat is
    fixed by configuration.
    """

    def __init__(
        self,
        *,
        bot_token: str,
        chat_id: str,
        request_timeout: int = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        """Initialise the notifier.

        :param bot_token: Telegram bot token from @BotFather.
        :param chat_id: Chat that reminders are posted to.
        :param request_timeout: HTTP timeout in seconds.
        """
        self._chat_id = chat_id
        self._request_timeout = request_timeout
        self._base_url = f"https://api.telegram.org/bot{bot_token}"

    def send(self, recipient: str, subject: str, body: str) -> SendResult:
        """Post a reminder to the configured chat.

        :param recipient: Person the reminder is for.
        :param subject: Message subject, rendered bold.
        :param body: Plain-text body.
        :returns: Result carrying the Telegram message ID on success.
        """
        text = (
            f"<b>{html.escape(subject)}</b>\n"
            f"<i>For: {html.escape(recipient)}</i>\n\n"
            f"{html.escape(body)}"
        )
        payload = {
            "chat_id": self._chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }

        logger.info(f"Sending reminder to chat_id={self._chat_id} for {recipient}")

        try:
            response = requests.post(
                f"{self._base_url}/sendMessage",
                json=payload,
                timeout=self._request_timeout,
            )
            response.raise_for_status()
            result = response.json()
        except requests.exceptions.Timeout:
            error = f"Telegram API request timed out after {self._request_timeout}s"
            logger.warning(error)
            return SendResult(success=False, error=error)
        except requests.exceptions.RequestException as e:
            logger.warning(f"Telegram API request failed: {e}")
            return SendResult(success=False, error=f"Telegram API request failed: {e}")

        if not result.get("ok"):
            error = f"Telegram API returned error: {result.get('description', 'Unknown error')}"
            logger.warning(error)
            return SendResult(success=False, error=error)

        message_id = result.get("result", {}).get("message_id")
        logger.info(f"Reminder sent: message_id={message_id}, chat_id={self._chat_id}")
        return SendResult(
            success=True,
            message_id=str(message_id) if message_id is not None else None,
        )
