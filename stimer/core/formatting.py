from datetime import datetime, timedelta
from enum import Enum


# How a duration gets rendered on a timer face. Values are what settings.json stores.
class DisplayMode(Enum):
    HOUR_MIN_SEC = "HourMinSec"
    MIN_SEC = "MinSec"
    SEC_ONLY = "SecOnly"

    @classmethod
    def parse(cls, value, default=None):
        if isinstance(value, cls):
            return value
        for mode in cls:
            if mode.value == value or mode.name == value:
                return mode
        if default is not None:
            return default
        raise ValueError(f"Unknown display mode: {value!r}")


# Formats a duration (timedelta or seconds) for display. Fractions of a second are truncated, never rounded,
# and negative values clamp to zero. Hours are never wrapped at 24.
def format_duration(duration, mode=DisplayMode.HOUR_MIN_SEC):
    if isinstance(duration, timedelta):
        seconds = duration // timedelta(seconds=1)
    else:
        seconds = int(duration)
    seconds = max(0, seconds)

    if mode == DisplayMode.SEC_ONLY:
        return f"{seconds:02d}"
    if mode == DisplayMode.MIN_SEC:
        m, s = divmod(seconds, 60)
        return f"{m:02d}:{s:02d}"
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


# Short human label for how long ago something started, used by the history list.
def relative_time(start: datetime, now: datetime | None = None):
    now = now or datetime.now().astimezone()
    days = (now - start).total_seconds() / 86400
    if days < 1:
        return "Today"
    if days < 2:
        return "Yesterday"
    if days < 7:
        return f"{int(days)} days ago"
    if days < 30:
        return f"{int(days / 7)} weeks ago"
    if days < 365:
        return f"{int(days / 30)} months ago"
    return f"{int(days / 365)} years ago"
