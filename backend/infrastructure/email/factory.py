"""Email sender factory: picks the delivery adapter from configuration."""

from __future__ import annotations

import logging
from typing import Literal

from application.ports.email_sender_port import EmailSenderPort
from infrastructure.config.settings import (
    EMAIL_PROVIDER,
    RESEND_API_KEY,
    RESEND_BASE_URL,
    RESEND_FROM_EMAIL,
    RESEND_TIMEOUT_S,
)

logger = logging.getLogger(__name__)

ProviderType = Literal["resend", "log", ""]


class EmailSenderFactory:
    @staticmethod
    def create(provider: ProviderType | None = None) -> EmailSenderPort:
        """Create an email sender for `provider` (defaults to EMAIL_PROVIDER).

        Raises:
            ValueError: If an unsupported provider is specified.
        """
        if provider is None:
            provider = EMAIL_PROVIDER  # type: ignore[assignment]

        provider = (provider or "").strip().lower()

        match provider:
            case "resend":
                from infrastructure.email.resend_email_sender import ResendEmailSender

                if not RESEND_API_KEY or not RESEND_FROM_EMAIL:
                    logger.warning(
                        "EMAIL_PROVIDER=resend but RESEND_API_KEY/RESEND_FROM_EMAIL is not set; "
                        "falling back to LoggingEmailSender"
                    )
                    from infrastructure.email.logging_email_sender import LoggingEmailSender

                    return LoggingEmailSender()

                return ResendEmailSender(
                    api_key=RESEND_API_KEY,
                    from_email=RESEND_FROM_EMAIL,
                    base_url=RESEND_BASE_URL,
                    timeout_s=RESEND_TIMEOUT_S,
                )

            case "log" | "":
                from infrastructure.email.logging_email_sender import LoggingEmailSender

                return LoggingEmailSender()

            case _:
                raise ValueError(
                    f"Unsupported EMAIL_PROVIDER: {provider!r}. Supported values: 'resend', 'log'"
                )


def create_email_sender(provider: ProviderType | None = None) -> EmailSenderPort:
    return EmailSenderFactory.create(provider)
