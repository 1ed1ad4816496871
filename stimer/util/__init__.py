from .misc import (
    parse_timestamp,
    format_timestamp,
    parse_timespan,
    format_timespan,
    atomic_write_text,
)
