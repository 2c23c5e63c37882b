from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from application.ports.clock_port import ClockPort
from infrastructure.config.settings import APP_TIMEZONE


class SystemClock(ClockPort):
    """Wall clock in the configured zone (APP_TIMEZONE) or the host's local zone."""

    def __init__(self, *, timezone_name: Optional[str] = APP_TIMEZONE) -> None:
        name = (timezone_name or "").strip()
        if name:
            self._tz: tzinfo = ZoneInfo(name)
        else:
            local = datetime.now().astimezone().tzinfo
            assert local is not None
            self._tz = local

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        return datetime.now(self._tz)
