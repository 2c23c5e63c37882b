from __future__ import annotations

import asyncio
import html
import logging
from datetime import date
from typing import Any, Optional
from urllib.parse import urljoin

import aiohttp

from application.ports.email_sender_port import EmailDeliveryError, EmailSenderPort
from infrastructure.config.settings import (
    RESEND_API_KEY,
    RESEND_BASE_URL,
    RESEND_FROM_EMAIL,
    RESEND_TIMEOUT_S,
)

logger = logging.getLogger(__name__)


def _join(base: str, path: str) -> str:
    base = (base or "").rstrip("/") + "/"
    path = (path or "").lstrip("/")
    return urljoin(base, path)


def render_reminder_email(*, movie_title: str, release_date: date) -> tuple[str, str]:
    """Return (subject, html) for a release-day reminder."""
    title = html.escape(movie_title or "")
    formatted = release_date.strftime("%d/%m/%Y")
    subject = f"🎬 {movie_title} premieres today!"
    body = (
        '<div style="font-family:Arial, sans-serif;line-height:1.6">'
        "<h1>It's movie day! 🍿</h1>"
        f"<p><strong>{title}</strong> premieres today ({formatted}).</p>"
        "<p>Don't forget to update it in your catalog after watching.</p>"
        '<p style="margin-top:24px">Enjoy the movie!</p>'
        "</div>"
    )
    return subject, body


class ResendEmailSender(EmailSenderPort):
    """Resend HTTP API client (POST /emails)."""

    def __init__(
        self,
        *,
        api_key: str = RESEND_API_KEY,
        from_email: str = RESEND_FROM_EMAIL,
        base_url: str = RESEND_BASE_URL,
        timeout_s: float = RESEND_TIMEOUT_S,
    ) -> None:
        self._api_key = (api_key or "").strip()
        self._from_email = (from_email or "").strip()
        self._emails_url = _join(base_url or "https://api.resend.com", "/emails")
        self._timeout_s = float(timeout_s or 10.0)
        self._session: aiohttp.ClientSession | None = None
        self._lock = asyncio.Lock()

    def _headers(self, *, idempotency_key: Optional[str] = None) -> dict[str, str]:
        headers = {
            "content-type": "application/json",
            "authorization": f"Bearer {self._api_key}",
        }
        if idempotency_key:
            headers["idempotency-key"] = idempotency_key
        return headers

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is not None and not self._session.closed:
            return self._session
        async with self._lock:
            if self._session is not None and not self._session.closed:
                return self._session
            timeout = aiohttp.ClientTimeout(total=self._timeout_s)
            self._session = aiohttp.ClientSession(timeout=timeout)
            return self._session

    async def send_movie_reminder(
        self,
        *,
        to: str,
        movie_title: str,
        release_date: date,
        idempotency_key: Optional[str] = None,
    ) -> None:
        if not self._api_key or not self._from_email:
            raise EmailDeliveryError("Resend is not configured (RESEND_API_KEY / RESEND_FROM_EMAIL)")
        subject, body = render_reminder_email(movie_title=movie_title, release_date=release_date)
        payload: dict[str, Any] = {
            "from": self._from_email,
            "to": [to],
            "subject": subject,
            "html": body,
        }
        session = await self._get_session()
        try:
            async with session.post(
                self._emails_url,
                json=payload,
                headers=self._headers(idempotency_key=idempotency_key),
            ) as resp:
                if resp.status >= 400:
                    text = await resp.text()
                    raise EmailDeliveryError(f"resend send failed ({resp.status}): {text[:200]}")
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise EmailDeliveryError(f"resend request failed: {e!r}") from e
        message_id = data.get("id") if isinstance(data, dict) else None
        logger.info("reminder email accepted by resend (to=%s, message_id=%s)", to, message_id)

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
