"""Date manipulation utilities"""

import re
from datetime import datetime, timezone

# Wire pattern for record timestamps (yyyy-MM-ddTHH:mm:ss, no zone)
RECORD_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"
RECORD_TIMESTAMP_SHAPE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def isoformat_utc(moment: datetime) -> str:
    """Render an aware datetime as ISO-8601 with a trailing Z"""
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_record_timestamp(value: str) -> datetime:
    """Parse a local record timestamp; raises ValueError on any other pattern"""
    # strptime alone accepts unpadded fields such as 2024-1-5T9:5:7
    if not RECORD_TIMESTAMP_SHAPE.fullmatch(value):
        raise ValueError(f"{value!r} is not zero-padded yyyy-MM-ddTHH:mm:ss")
    return datetime.strptime(value, RECORD_TIMESTAMP_FORMAT)


def format_record_timestamp(moment: datetime) -> str:
    return moment.strftime(RECORD_TIMESTAMP_FORMAT)
