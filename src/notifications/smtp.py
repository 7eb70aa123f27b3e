"""E-mail notifier delivering reminders over SMTP."""

import logging
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid

from src.notifications.base import SendResult
from src.notifications.config import EmailConfig

logger = logging.getLogger(__name__)


class EmailNotifier:
    """Notifier that sends plain-text e-mail through an SMTP server."""

    def __init__(self, config: EmailConfig) -> None:
        """Initialise the notifier.

        :param config: SMTP connection settings.
        """
        self._config = config

    def send(self, recipient: str, subject: str, body: str) -> SendResult:
        """Send a reminder e-mail.

        :param recipient: Recipient e-mail address.
        :param subject: E-mail subject.
        :param body: Plain-text body.
        :returns: Result carrying the Message-ID on success.
        """
        message = EmailMessage()
        message["From"] = self._config.from_address
        message["To"] = recipient
        message["Subject"] = subject
        message["Message-ID"] = make_msgid()
        message.set_content(body)

        logger.info(f"Sending reminder e-mail to {recipient}: subject={subject!r}")

        try:
            with self._connect() as smtp:
                if self._config.smtp_username:
                    smtp.login(self._config.smtp_username, self._config.smtp_password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(f"Failed to send e-mail to {recipient}: {e}")
            return SendResult(success=False, error=str(e))

        logger.info(f"E-mail sent to {recipient}: message_id={message['Message-ID']}")
        return SendResult(success=True, message_id=message["Message-ID"])

    def _connect(self) -> smtplib.SMTP:
        """Open an SMTP connection, with TLS established.

        :returns: Connected SMTP client.
        """
        host = self._config.smtp_host
        port = self._config.smtp_port
        timeout = self._config.timeout_seconds

        if self._config.use_ssl:
            return smtplib.SMTP_SSL(host, port, timeout=timeout)

        smtp = smtplib.SMTP(host, port, timeout=timeout)
        try:
            smtp.starttls()
        except smtplib.SMTPException:
            smtp.close()
            raise
        return smtp
