from __future__ import annotations

from infrastructure.config.settings import (  # noqa: F401
    APP_TIMEZONE,
    EMAIL_PROVIDER,
    RESEND_API_KEY,
    RESEND_BASE_URL,
    RESEND_FROM_EMAIL,
    RESEND_TIMEOUT_S,
)

__all__ = [
    "APP_TIMEZONE",
    "EMAIL_PROVIDER",
    "RESEND_API_KEY",
    "RESEND_BASE_URL",
    "RESEND_FROM_EMAIL",
    "RESEND_TIMEOUT_S",
]
