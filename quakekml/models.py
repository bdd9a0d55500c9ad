from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

@dataclass(frozen=True)
class Event:
    # Feed identifier; empty ids are never deduplicated
    id: str

    # Local time as published, "YYYY.MM.DD HH:MM:SS"
    timestamp_raw: str

    magnitude: float | None = None
    depth: float | None = None  # km

    title: str = ""
    provider: str = ""

    # (longitude, latitude)
    coordinates: tuple[float, float] | None = None

    # Passed through untouched: closestCity, closestCities, airports, ...
    location_properties: dict[str, Any] = field(default_factory=dict, hash=False)

    # Canonical UTC instant, filled by the merge engine
    timestamp_utc: datetime | None = None

    @property
    def has_id(self) -> bool:
        return bool(self.id and self.id.strip())
