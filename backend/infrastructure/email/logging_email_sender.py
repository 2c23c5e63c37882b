from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from application.ports.email_sender_port import EmailSenderPort

logger = logging.getLogger(__name__)


class LoggingEmailSender(EmailSenderPort):
    """Local/dev sender: records the reminder in the log instead of mailing it."""

    async def send_movie_reminder(
        self,
        *,
        to: str,
        movie_title: str,
        release_date: date,
        idempotency_key: Optional[str] = None,
    ) -> None:
        logger.info(
            "reminder email (log only) to=%s title=%r release_date=%s key=%s",
            to,
            movie_title,
            release_date.isoformat(),
            idempotency_key,
        )

    async def close(self) -> None:
        return None
