import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Iterable

from quakekml.errors import MalformedRecordError
from quakekml.models import Event
from quakekml.utils.timeutil import normalize

log = logging.getLogger("merge")

DEFAULT_RETENTION = timedelta(days=7)

@dataclass
class MergeResult:
    events: list[Event]
    changed: bool
    # Records dropped because their timestamp could not be normalized
    rejected: list[tuple[Event, MalformedRecordError]] = field(default_factory=list)

def meets_floor(event: Event, magnitude_floor: float) -> bool:
    # A missing magnitude never satisfies a threshold
    return event.magnitude is not None and event.magnitude >= magnitude_floor

def _canonical(event: Event, source_offset: timezone) -> Event:
    if event.timestamp_utc is not None:
        return event
    try:
        ts = normalize(event.timestamp_raw, source_offset)
    except MalformedRecordError as ex:
        ex.event_id = event.id
        raise
    return replace(event, timestamp_utc=ts)

def merge(
    existing: Iterable[Event],
    incoming: Iterable[Event],
    *,
    now: datetime,
    retention: timedelta = DEFAULT_RETENTION,
    magnitude_floor: float = 0.0,
    source_offset: timezone = timezone.utc,
) -> MergeResult:
    """
    Fold incoming events into the archive.

    Incoming events below magnitude_floor are ignored. The first event seen
    for a non-empty id wins, so archived entries are never overwritten by a
    later copy. Entries older than now - retention are dropped (the boundary
    itself is kept). Survivors keep insertion order: archive first, then new
    events in feed order.

    Entries that already carry timestamp_utc are not re-normalized, so
    changing source_offset only affects records seen for the first time.
    """
    existing = list(existing)
    candidates = [(e, True) for e in existing]
    candidates += [(e, False) for e in incoming if meets_floor(e, magnitude_floor)]

    seen_ids: set[str] = set()
    survivors: list[Event] = []
    rejected: list[tuple[Event, MalformedRecordError]] = []
    kept_existing = 0
    added = 0
    pruned = 0
    duplicates = 0

    for event, from_archive in candidates:
        if event.has_id and event.id in seen_ids:
            duplicates += 1
            continue

        try:
            event = _canonical(event, source_offset)
        except MalformedRecordError as ex:
            rejected.append((event, ex))
            continue

        # A record that failed to parse does not claim its id
        if event.has_id:
            seen_ids.add(event.id)

        if now - event.timestamp_utc > retention:
            pruned += 1
            continue

        survivors.append(event)
        if from_archive:
            kept_existing += 1
        else:
            added += 1

    changed = added > 0 or kept_existing != len(existing)

    log.debug(
        "Merged %d archived + %d candidates: kept=%d added=%d pruned=%d duplicates=%d rejected=%d",
        len(existing), len(candidates) - len(existing), kept_existing, added, pruned, duplicates, len(rejected),
    )
    return MergeResult(events=survivors, changed=changed, rejected=rejected)
