"""Base protocol and result model for reminder notifiers."""

from typing import Protocol

from pydantic import BaseModel, Field


class SendResult(BaseModel):
    """Result of sending one notification."""

    success: bool = Field(..., description="Whether the transport accepted the message")
    message_id: str | None = Field(None, description="Transport message ID, if any")
    error: str | None = Field(None, description="Error message on failure")


class Notifier(Protocol):
    """Protocol for notification transports.

    Implementations report transport failures through ``SendResult.success``
    rather than raising.
    """

    def send(self, recipient: str, subject: str, body: str) -> SendResult:
        """Deliver a message.

        :param recipient: Recipient address for the transport.
        :param subject: Message subject.
        :param body: Plain-text message body.
        :returns: Result of the send.
        """
        ...
