import re
from datetime import datetime, timedelta, timezone

from quakekml.errors import MalformedRecordError

SOURCE_TIMESTAMP_FORMAT = "%Y.%m.%d %H:%M:%S"

_TIMESTAMP_RE = re.compile(r"^\d{4}\.\d{2}\.\d{2} \d{2}:\d{2}:\d{2}$")
_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")

def now_utc() -> datetime:
    return datetime.now(timezone.utc)

def parse_utc_offset(value: str) -> timezone:
    """
    Parse a fixed offset such as "+03:00", "-0530", "Z" or "UTC".
    Named zones are rejected; only fixed arithmetic is supported.
    """
    s = (value or "").strip()
    if s.upper() in ("Z", "UTC", "+00:00", "-00:00"):
        return timezone.utc

    m = _OFFSET_RE.match(s)
    if not m:
        raise ValueError(f"Invalid UTC offset: {value!r} (expected e.g. +03:00)")

    sign, hh, mm = m.group(1), int(m.group(2)), int(m.group(3))
    if hh > 23 or mm > 59:
        raise ValueError(f"Invalid UTC offset: {value!r}")

    delta = timedelta(hours=hh, minutes=mm)
    return timezone(-delta if sign == "-" else delta)

def normalize(timestamp_raw: str, source_offset: timezone) -> datetime:
    """
    Convert a feed timestamp ("YYYY.MM.DD HH:MM:SS", local time at
    source_offset) into an aware UTC datetime.
    """
    s = timestamp_raw.strip() if isinstance(timestamp_raw, str) else ""
    if not _TIMESTAMP_RE.match(s):
        raise MalformedRecordError(f"Unexpected timestamp format: {timestamp_raw!r}")
    try:
        local = datetime.strptime(s, SOURCE_TIMESTAMP_FORMAT)
    except ValueError as ex:
        raise MalformedRecordError(f"Invalid timestamp {timestamp_raw!r}: {ex}") from ex
    return local.replace(tzinfo=source_offset).astimezone(timezone.utc)
