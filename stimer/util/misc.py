import os
import re
from datetime import datetime, timedelta
from pathlib import Path


#region === Timestamps and time spans ===

# .NET writes 7 fractional digits, Python only understands up to 6.
_EXTRA_FRACTION = re.compile(r"(\.\d{6})\d+")
_TIMESPAN = re.compile(r"^(-)?(?:(\d+)\.)?(\d{1,2}):(\d{2}):(\d{2})(?:\.(\d{1,7}))?$")

# Parses an ISO8601 timestamp into an aware datetime. Naive timestamps (like the ones the old app wrote) are read
# as local time.
def parse_timestamp(text):
    if not isinstance(text, str):
        raise ValueError(f"Expected an ISO8601 string, got {type(text).__name__}")
    cleaned = _EXTRA_FRACTION.sub(r"\1", text.strip())
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(cleaned)
        if parsed.tzinfo is None:
            parsed = parsed.astimezone()
    except OverflowError:
        raise ValueError(f"Out of range timestamp: {text!r}") from None
    return parsed

def format_timestamp(value: datetime):
    return value.isoformat()

# Formats a timedelta the way .NET's TimeSpan "c" format does, [-][d.]hh:mm:ss[.fffffff], so history files stay
# readable by either app.
def format_timespan(value: timedelta):
    total_us = (value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds
    sign = "-" if total_us < 0 else ""
    total_us = abs(total_us)
    total_seconds, us = divmod(total_us, 1_000_000)
    days, rem = divmod(total_seconds, 86400)
    h, rem = divmod(rem, 3600)
    m, s = divmod(rem, 60)
    text = f"{sign}{days}.{h:02d}:{m:02d}:{s:02d}" if days else f"{sign}{h:02d}:{m:02d}:{s:02d}"
    if us:
        text += f".{us:06d}0"
    return text

def parse_timespan(text):
    if not isinstance(text, str):
        raise ValueError(f"Expected a time span string, got {type(text).__name__}")
    match = _TIMESPAN.match(text.strip())
    if match is None:
        raise ValueError(f"Malformed time span: {text!r}")
    negative, days, h, m, s, fraction = match.groups()
    if int(m) > 59 or int(s) > 59 or int(h) > 23:
        raise ValueError(f"Out of range time span: {text!r}")
    us = int((fraction or "").ljust(7, "0")[:6])
    try:
        span = timedelta(days=int(days or 0), hours=int(h), minutes=int(m), seconds=int(s), microseconds=us)
    except OverflowError:
        raise ValueError(f"Out of range time span: {text!r}") from None
    return -span if negative else span

#endregion === Timestamps and time spans ===

#region === Files ===

# Writes text to a sibling temp file first and then swaps it over the target in one os.replace, so a crash never
# leaves a half-written target behind. If anything fails, the temp file is cleaned up (best-effort) and the original
# error is re-raised.
def atomic_write_text(path: Path, text: str):
    path = Path(path)
    temp_path = path.with_name(path.name + ".tmp")
    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except OSError:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise

#endregion === Files ===
