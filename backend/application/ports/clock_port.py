from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Protocol


class ClockPort(Protocol):
    @property
    def tz(self) -> tzinfo:
        ...

    def now(self) -> datetime:
        """Timezone-aware current instant in the server's local zone."""
        ...
