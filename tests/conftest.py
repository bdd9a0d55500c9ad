from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from quakekml.models import Event

TRT = timezone(timedelta(hours=3))

# 2025-07-28 09:07:03 local (+03:00) == 06:07:03 UTC
NOW = datetime(2025, 7, 28, 9, 7, 3, tzinfo=TRT)

SAMPLE_FEED = {
    "status": True,
    "result": [
        {
            "earthquake_id": "xG4p1",
            "provider": "kandilli",
            "title": "SINDIRGI (BALIKESIR)",
            "date": "2025.07.28 09:07:03",
            "mag": 4.1,
            "depth": 7.3,
            "geojson": {"type": "Point", "coordinates": [28.1805, 39.2133]},
            "location_properties": {
                "closestCity": {"name": "Balıkesir", "cityCode": 10},
                "closestCities": [{"name": "Manisa"}, {"name": "Kütahya"}],
                "airports": [
                    {"name": "Balıkesir Koca Seyit Havalimanı", "code": "EDO"},
                    {"name": "Zafer Havalimanı", "code": "KZR"},
                ],
            },
        },
        {
            "earthquake_id": "xG4p2",
            "provider": "kandilli",
            "title": "AKDENIZ",
            "date": "2025.07.28 08:40:11",
            "mag": 2.4,
            "depth": 10.0,
            "geojson": {"type": "Point", "coordinates": [30.9, 35.8]},
            "location_properties": {"closestCity": {"name": "Antalya"}},
        },
        {
            "earthquake_id": "xG4p3",
            "provider": "kandilli",
            "title": "MARMARA DENIZI",
            "date": "2025.07.27 23:12:45",
            "mag": 1.6,
            "depth": 5.1,
            "geojson": {"type": "Point", "coordinates": [28.0, 40.7]},
            "location_properties": {},
        },
    ],
}

def build_event(
    id: str = "A",
    timestamp_raw: str = "2025.07.28 09:07:03",
    magnitude: float | None = 4.0,
    **kwargs,
) -> Event:
    return Event(id=id, timestamp_raw=timestamp_raw, magnitude=magnitude, **kwargs)

@pytest.fixture
def now() -> datetime:
    return NOW

@pytest.fixture
def make_event():
    return build_event
