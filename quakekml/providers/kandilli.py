import logging
from typing import Any

import requests

from quakekml.errors import FetchError
from quakekml.models import Event
from quakekml.providers.base import EventSource
from quakekml.utils.http import HttpClient

log = logging.getLogger("provider.kandilli")

KANDILLI_LIVE_URL = "https://api.orhanaydogdu.com.tr/deprem/kandilli/live"

def _to_float(v: Any) -> float | None:
    if v is None or isinstance(v, bool):
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None

def _coordinates(raw: dict) -> tuple[float, float] | None:
    geo = raw.get("geojson") or {}
    coords = geo.get("coordinates") if isinstance(geo, dict) else None
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return None
    lon, lat = _to_float(coords[0]), _to_float(coords[1])
    if lon is None or lat is None:
        return None
    return (lon, lat)

def parse_record(raw: dict) -> Event:
    """Map one feed record onto an Event. Missing fields stay empty/None."""
    props = raw.get("location_properties")
    return Event(
        id=str(raw.get("earthquake_id") or "").strip(),
        timestamp_raw=str(raw.get("date") or ""),
        magnitude=_to_float(raw.get("mag")),
        depth=_to_float(raw.get("depth")),
        title=str(raw.get("title") or ""),
        provider=str(raw.get("provider") or ""),
        coordinates=_coordinates(raw),
        location_properties=props if isinstance(props, dict) else {},
    )

class KandilliProvider(EventSource):
    name = "kandilli"

    def __init__(self, http: HttpClient, url: str = KANDILLI_LIVE_URL):
        self.http = http
        self.url = url

    def fetch_events(self) -> list[Event]:
        try:
            data = self.http.get_json(self.url)
        except (requests.RequestException, ValueError) as ex:
            raise FetchError(f"Failed to fetch {self.url}: {ex}") from ex

        records = data.get("result") if isinstance(data, dict) else None
        if not isinstance(records, list):
            raise FetchError(f"Unexpected payload from {self.url}: missing 'result' list")

        events: list[Event] = []
        for i, raw in enumerate(records):
            if not isinstance(raw, dict):
                log.warning("Skipping non-object record #%d (%s)", i, type(raw).__name__)
                continue
            events.append(parse_record(raw))

        log.info("Kandilli: fetched %d events", len(events))
        return events
