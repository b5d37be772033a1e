from datetime import datetime

from ...application.ports.clock import Clock
from ...core.timezones import utc_now


class SystemClock(Clock):
    def now(self) -> datetime:
        # Aware UTC, matching how the datetime columns are stored
        return utc_now()
