"""Configuration for notification transports using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Port on which SMTP servers expect implicit TLS
SMTP_SSL_PORT = 465


class EmailConfig(BaseSettings):
    """Configuration for SMTP e-mail delivery.

    All settings are loaded from environment variables with the EMAIL_ prefix.

    :param smtp_host: SMTP server host.
    :param smtp_port: SMTP server port. 465 uses implicit TLS, others STARTTLS.
    :param smtp_username: Login user, if the server requires authentication.
    :param smtp_password: Login password.
    :param from_address: Sender address.
    :param timeout_seconds: Socket timeout for the SMTP connection.
    """

    model_config = SettingsConfigDict(
        env_prefix="EMAIL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    smtp_host: str = Field(..., description="SMTP server host")
    smtp_port: int = Field(default=587, ge=1, le=65535, description="SMTP server port")
    smtp_username: str | None = Field(default=None, description="SMTP login user")
    smtp_password: str | None = Field(default=None, description="SMTP login password")
    from_address: str = Field(..., description="Sender address")
    timeout_seconds: int = Field(default=15, ge=1, le=60, description="SMTP socket timeout")

    @property
    def use_ssl(self) -> bool:
        """Whether to connect with implicit TLS."""
        return self.smtp_port == SMTP_SSL_PORT


class TelegramNotifierConfig(BaseSettings):
    """Configuration for Telegram delivery.

    All settings are loaded from environment variables with the TELEGRAM_ prefix.

    :param bot_token: Telegram bot token from @BotFather.
    :param chat_id: Chat that reminders are posted to.
    """

    model_config = SettingsConfigDict(
        env_prefix="TELEGRAM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    bot_token: str = Field(..., description="Bot token from @BotFather")
    chat_id: str = Field(..., description="Chat ID reminders are posted to")


@lru_cache
def get_email_config() -> EmailConfig:
    """Get cached e-mail settings.

    :returns: Configured EmailConfig instance.
    """
    return EmailConfig()  # type: ignore[call-arg]


@lru_cache
def get_telegram_notifier_config() -> TelegramNotifierConfig:
    """Get cached Telegram settings.

    :returns: Configured TelegramNotifierConfig instance.
    """
    return TelegramNotifierConfig()  # type: ignore[call-arg]
