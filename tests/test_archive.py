from __future__ import annotations

import json
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from quakekml.errors import CorruptArchiveError, PersistError
from quakekml.models import Event
from quakekml.storage.archive import JsonArchiveStore, MemoryArchiveStore
from tests.conftest import build_event


@pytest.fixture
def events() -> list[Event]:
    return [
        build_event(
            "xG4p1",
            "2025.07.28 09:07:03",
            4.1,
            depth=7.3,
            title="SINDIRGI (BALIKESIR)",
            provider="kandilli",
            coordinates=(28.1805, 39.2133),
            location_properties={
                "closestCity": {"name": "Balıkesir"},
                "airports": [{"name": "Zafer Havalimanı", "code": "KZR"}],
            },
            timestamp_utc=datetime(2025, 7, 28, 6, 7, 3, tzinfo=timezone.utc),
        ),
        build_event("", "2025.07.27 10:00:00", None),
    ]


class TestJsonArchiveStore:
    def test_missing_file_loads_empty(self, tmp_path) -> None:
        assert JsonArchiveStore(tmp_path / "nope.json").load() == []

    def test_round_trip(self, tmp_path, events) -> None:
        store = JsonArchiveStore(tmp_path / "archive.json")
        store.save(events)
        assert store.load() == events

    def test_save_creates_parent_dirs(self, tmp_path, events) -> None:
        path = tmp_path / "a" / "b" / "archive.json"
        JsonArchiveStore(path).save(events)
        assert path.exists()

    def test_save_overwrites(self, tmp_path, events) -> None:
        store = JsonArchiveStore(tmp_path / "archive.json")
        store.save(events)
        store.save(events[:1])
        assert [e.id for e in store.load()] == ["xG4p1"]

    def test_file_layout(self, tmp_path, events) -> None:
        path = tmp_path / "archive.json"
        JsonArchiveStore(path).save(events)
        raw = json.loads(path.read_text(encoding="utf-8"))

        assert raw["version"] == 1
        assert raw["events"][0]["timestamp_utc"] == "2025-07-28T06:07:03+00:00"
        assert raw["events"][0]["coordinates"] == [28.1805, 39.2133]
        assert not (tmp_path / "archive.json.tmp").exists()

    def test_bare_list_is_accepted(self, tmp_path) -> None:
        path = tmp_path / "archive.json"
        path.write_text(json.dumps([{"id": "A", "timestamp_raw": "2025.07.28 09:07:03", "magnitude": 4.0}]))
        loaded = JsonArchiveStore(path).load()

        assert loaded == [Event(id="A", timestamp_raw="2025.07.28 09:07:03", magnitude=4.0)]

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            '{"events": 5}',
            '"just a string"',
            '[{"timestamp_raw": "2025.07.28 09:07:03"}]',
            '[{"id": "A", "timestamp_raw": "x", "timestamp_utc": "yesterday"}]',
            '[{"id": "A", "timestamp_raw": "x", "timestamp_utc": "2025-07-28T06:07:03"}]',
            '[{"id": "A", "timestamp_raw": "x", "coordinates": [1]}]',
            '[42]',
        ],
    )
    def test_corrupt_archive_is_fatal(self, tmp_path, content: str) -> None:
        path = tmp_path / "archive.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(CorruptArchiveError):
            JsonArchiveStore(path).load()

    def test_failed_save_leaves_previous_archive_intact(self, tmp_path, events) -> None:
        path = tmp_path / "archive.json"
        store = JsonArchiveStore(path)
        store.save(events)
        before = path.read_bytes()

        with patch("quakekml.storage.archive.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(PersistError):
                store.save(events[:1])

        assert path.read_bytes() == before
        assert not (tmp_path / "archive.json.tmp").exists()
        assert store.load() == events


class TestMemoryArchiveStore:
    def test_round_trip(self, events) -> None:
        store = MemoryArchiveStore()
        assert store.load() == []
        store.save(events)
        assert store.load() == events
        assert store.saves == 1

    def test_load_returns_a_copy(self, events) -> None:
        store = MemoryArchiveStore(events)
        store.load().clear()
        assert len(store.load()) == 2
