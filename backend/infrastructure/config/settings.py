import os
from typing import Optional

from dotenv import load_dotenv

# Infrastructure-side settings. The project root `.env` takes priority over the
# shell environment so local edits are always picked up.
load_dotenv(override=True)


def _get_env_float(key: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {key} expects a float, got {raw}") from exc


# ===== Local calendar =====

# IANA zone name for the "server local day" used by filters and reminders.
# Empty means the host's local zone.
APP_TIMEZONE = (os.getenv("APP_TIMEZONE") or "").strip()


# ===== Email delivery (Resend) =====

RESEND_API_KEY = (os.getenv("RESEND_API_KEY") or "").strip()
RESEND_FROM_EMAIL = (os.getenv("RESEND_FROM_EMAIL") or "").strip()
RESEND_BASE_URL = (os.getenv("RESEND_BASE_URL") or "https://api.resend.com").strip()
RESEND_TIMEOUT_S = _get_env_float("RESEND_TIMEOUT_S", 10.0) or 10.0

# resend | log. Defaults to resend only when credentials are present.
EMAIL_PROVIDER = (os.getenv("EMAIL_PROVIDER") or ("resend" if RESEND_API_KEY else "log")).strip().lower()
