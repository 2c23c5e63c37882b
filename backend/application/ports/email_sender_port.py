from __future__ import annotations

from datetime import date
from typing import Optional, Protocol


class EmailDeliveryError(RuntimeError):
    """The provider rejected or never acknowledged a message."""


class EmailSenderPort(Protocol):
    async def send_movie_reminder(
        self,
        *,
        to: str,
        movie_title: str,
        release_date: date,
        idempotency_key: Optional[str] = None,
    ) -> None:
        """Send one release-day reminder. Raises EmailDeliveryError on failure."""
        ...

    async def close(self) -> None:
        ...
