import json
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from quakekml.errors import CorruptArchiveError, PersistError
from quakekml.models import Event
from quakekml.utils.timeutil import now_utc

log = logging.getLogger("archive")

ARCHIVE_FORMAT_VERSION = 1

class ArchiveStore(ABC):
    @abstractmethod
    def load(self) -> list[Event]:
        """Return the persisted archive, or [] when none exists yet."""
        raise NotImplementedError

    @abstractmethod
    def save(self, events: Iterable[Event]) -> None:
        """Overwrite the persisted archive with events."""
        raise NotImplementedError

def _dt_to_str(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None

def _dt_from_str(s: str | None) -> datetime | None:
    if not s:
        return None
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        raise ValueError(f"naive timestamp_utc {s!r}")
    return dt

def event_to_dict(e: Event) -> dict[str, Any]:
    d = asdict(e)
    d["coordinates"] = list(e.coordinates) if e.coordinates else None
    d["timestamp_utc"] = _dt_to_str(e.timestamp_utc)
    return d

def event_from_dict(d: dict[str, Any]) -> Event:
    coords = d.get("coordinates")
    props = d.get("location_properties") or {}
    if not isinstance(props, dict):
        raise ValueError("location_properties must be an object")
    return Event(
        id=str(d["id"]),
        timestamp_raw=str(d["timestamp_raw"]),
        magnitude=d.get("magnitude"),
        depth=d.get("depth"),
        title=d.get("title") or "",
        provider=d.get("provider") or "",
        coordinates=(float(coords[0]), float(coords[1])) if coords else None,
        location_properties=props,
        timestamp_utc=_dt_from_str(d.get("timestamp_utc")),
    )

class JsonArchiveStore(ArchiveStore):
    """
    Archive persisted as a single JSON document.

    Writes go to a sibling temp file which is fsynced and then renamed over
    the target, so a reader never observes a partially written archive.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> list[Event]:
        if not self.path.exists():
            log.info("No archive at %s; starting empty", self.path)
            return []

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as ex:
            raise CorruptArchiveError(f"Cannot read archive {self.path}: {ex}") from ex

        # Accepts the versioned document or a bare JSON list of events
        entries = raw.get("events") if isinstance(raw, dict) else raw
        if not isinstance(entries, list):
            raise CorruptArchiveError(f"Archive {self.path} has no event list")

        events: list[Event] = []
        for i, d in enumerate(entries):
            try:
                if not isinstance(d, dict):
                    raise TypeError(f"expected object, got {type(d).__name__}")
                events.append(event_from_dict(d))
            except (KeyError, TypeError, ValueError, IndexError) as ex:
                raise CorruptArchiveError(f"Archive {self.path} entry #{i} is invalid: {ex}") from ex

        log.info("Loaded %d archived events from %s", len(events), self.path)
        return events

    def save(self, events: Iterable[Event]) -> None:
        events = list(events)
        payload = {
            "version": ARCHIVE_FORMAT_VERSION,
            "saved_at": now_utc().isoformat(),
            "events": [event_to_dict(e) for e in events],
        }
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except (OSError, TypeError, ValueError) as ex:
            try:
                tmp.unlink(missing_ok=True)
            except OSError:
                log.warning("Could not remove temp file %s", tmp)
            raise PersistError(f"Failed to save archive to {self.path}: {ex}") from ex

        log.info("Saved %d events to %s", len(events), self.path)

class MemoryArchiveStore(ArchiveStore):
    def __init__(self, events: Iterable[Event] | None = None):
        self.events: list[Event] = list(events or [])
        self.saves = 0

    def load(self) -> list[Event]:
        return list(self.events)

    def save(self, events: Iterable[Event]) -> None:
        self.events = list(events)
        self.saves += 1
