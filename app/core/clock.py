"""Wall-clock access for the services.

Quota rollover compares calendar dates, so the clock decides which timezone
"today" belongs to. Tests swap in a fixed clock through the ``get_clock``
dependency.
"""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from app.core.config import settings


class Clock:
    """Source of the current time."""

    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def __init__(self, timezone: str = "UTC"):
        self.tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz)


_system_clock = SystemClock(settings.quota_timezone)


def get_clock() -> Clock:
    return _system_clock
