import os
from dataclasses import dataclass
from datetime import timedelta, timezone
from pathlib import Path

from dotenv import load_dotenv

from quakekml.providers.kandilli import KANDILLI_LIVE_URL
from quakekml.services.render import DEFAULT_DOCUMENT_NAME
from quakekml.utils.timeutil import parse_utc_offset

def _get_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")

def _get_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    return int(v)

def _get_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    return float(v)

@dataclass(frozen=True)
class Settings:
    feed_url: str
    user_agent: str
    http_timeout_seconds: float

    archive_path: Path
    kml_path: Path
    kml_document_name: str

    # Fixed offset of the feed's local timestamps
    source_offset: timezone
    retention: timedelta

    # What gets persisted vs. what gets drawn on the map
    archive_min_magnitude: float
    display_min_magnitude: float

    watch_interval_minutes: int
    log_level: str
    dry_run: bool

def load_settings() -> Settings:
    load_dotenv()

    data_dir = Path(os.getenv("DATA_DIR", "./data")).expanduser()
    archive_path = Path(os.getenv("ARCHIVE_PATH", "").strip() or data_dir / "archive.json").expanduser()
    kml_path = Path(os.getenv("KML_PATH", "").strip() or data_dir / "earthquake.kml").expanduser()

    retention_days = _get_int("RETENTION_DAYS", 7)
    if retention_days < 0:
        raise RuntimeError("RETENTION_DAYS must be >= 0")

    watch = _get_int("WATCH_INTERVAL_MINUTES", 0)
    if watch < 0:
        raise RuntimeError("WATCH_INTERVAL_MINUTES must be >= 0")

    return Settings(
        feed_url=os.getenv("FEED_URL", "").strip() or KANDILLI_LIVE_URL,
        user_agent=os.getenv("USER_AGENT", "quake-kml/1.0"),
        http_timeout_seconds=_get_float("HTTP_TIMEOUT_SECONDS", 20.0),
        archive_path=archive_path,
        kml_path=kml_path,
        kml_document_name=os.getenv("KML_DOCUMENT_NAME", DEFAULT_DOCUMENT_NAME),
        source_offset=parse_utc_offset(os.getenv("SOURCE_UTC_OFFSET", "+03:00")),
        retention=timedelta(days=retention_days),
        archive_min_magnitude=_get_float("ARCHIVE_MIN_MAGNITUDE", 3.8),
        display_min_magnitude=_get_float("DISPLAY_MIN_MAGNITUDE", 2.0),
        watch_interval_minutes=watch,
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        dry_run=_get_bool("DRY_RUN", False),
    )
