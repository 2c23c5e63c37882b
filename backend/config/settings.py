import os

from dotenv import load_dotenv

# Service-side settings: focus on HTTP/runtime switches.
# Infrastructure env settings (email provider, timezone) live under `backend/infrastructure/config/`.
load_dotenv(override=True)


def _get_env_int(key: str, default: int) -> int:
    """Read an integer env var; unset/empty returns the default."""
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {key} expects an integer, got {raw}") from exc


def _get_env_bool(key: str, default: bool) -> bool:
    """Read a boolean env var (true/false/1/0/yes/no/on)."""
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    return raw.lower() in {"1", "true", "y", "yes", "on"}


def _get_env_float(key: str, default: float) -> float:
    """Read a float env var; unset/empty returns the default."""
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {key} expects a float, got {raw}") from exc


# ===== FastAPI / Uvicorn =====

SERVER_HOST = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT = _get_env_int("SERVER_PORT", 3333)
SERVER_RELOAD = _get_env_bool("SERVER_RELOAD", False)
SERVER_LOG_LEVEL = os.getenv("SERVER_LOG_LEVEL", "info")

# A single worker keeps the reminder scheduler process-wide; extra workers would
# each start their own timer.
SERVER_WORKERS = _get_env_int("SERVER_WORKERS", 1) or 1

UVICORN_CONFIG = {
    "host": SERVER_HOST,
    "port": SERVER_PORT,
    "reload": SERVER_RELOAD,
    "log_level": SERVER_LOG_LEVEL,
    "workers": SERVER_WORKERS,
}

# ===== Catalog listing =====

CATALOG_DEFAULT_PER_PAGE = _get_env_int("CATALOG_DEFAULT_PER_PAGE", 10) or 10
CATALOG_MAX_PER_PAGE = _get_env_int("CATALOG_MAX_PER_PAGE", 50) or 50

# ===== Release-day reminders =====

REMINDER_ENABLE = _get_env_bool("REMINDER_ENABLE", True)
# Fire once at boot to catch anything that came due while the process was down.
REMINDER_RUN_ON_STARTUP = _get_env_bool("REMINDER_RUN_ON_STARTUP", True)
REMINDER_SEND_TIMEOUT_S = _get_env_float("REMINDER_SEND_TIMEOUT_S", 10.0) or 10.0
