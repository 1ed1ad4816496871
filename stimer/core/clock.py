"""Wall-clock sources. Engines never call datetime.now() directly, they ask a clock."""

import threading
from datetime import datetime, timedelta


# Real local time, timezone aware.
class SystemClock:

    def now(self) -> datetime:
        return datetime.now().astimezone()


# A clock that only moves when told to. Used to drive engines deterministically, and safe to read from a ticker
# thread while another thread advances it.
class ManualClock:

    def __init__(self, start: datetime | None = None):
        self._lock = threading.Lock()
        self._now = start or datetime.now().astimezone()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def set(self, value: datetime):
        with self._lock:
            self._now = value

    def advance(self, seconds: float = 0.0, **kwargs) -> datetime:
        with self._lock:
            self._now = self._now + timedelta(seconds=seconds, **kwargs)
            return self._now
