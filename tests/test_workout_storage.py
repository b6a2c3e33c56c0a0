"""
Unit tests for workout persistence.
Run with: python -m pytest tests/test_workout_storage.py -v
"""
import json
import logging
from datetime import datetime

import pytest

from workout_storage import JsonFileStorage, WorkoutStore, SCHEMA_VERSION, deserialize_workouts, serialize_workouts
from workouts import build_workout


def sample_workouts():
    return [
        build_workout("running", (39, -12), 5.2, 24, {"cadence": 178}, created_at=datetime(2024, 4, 14)),
        build_workout("cycling", (39.5, -12.5), 27, 95, {"elevation_gain": -30}, created_at=datetime(2024, 4, 15)),
        build_workout("running", (40, -11), 10, 52, {"cadence": 165}, created_at=datetime(2024, 5, 2)),
    ]


class TestJsonFileStorage:

    def test_missing_key(self, tmp_path):
        storage = JsonFileStorage(str(tmp_path / "data"))
        assert storage.get_item("workouts") is None

    def test_set_get_remove(self, tmp_path):
        storage = JsonFileStorage(str(tmp_path / "data"))
        storage.set_item("workouts", "[]")

        assert (tmp_path / "data" / "workouts.json").read_text() == "[]"
        assert storage.get_item("workouts") == "[]"

        storage.remove_item("workouts")
        assert storage.get_item("workouts") is None
        # Removing again is fine
        storage.remove_item("workouts")

    def test_failed_write_keeps_previous_value(self, tmp_path, monkeypatch):
        storage = JsonFileStorage(str(tmp_path))
        storage.set_item("workouts", "[1]")

        def broken_replace(src, dst):
            raise OSError("No space left on device")

        monkeypatch.setattr("workout_storage.os.replace", broken_replace)
        with pytest.raises(OSError):
            storage.set_item("workouts", "[2]")

        assert storage.get_item("workouts") == "[1]"
        # No temp files left behind
        assert [p.name for p in tmp_path.iterdir()] == ["workouts.json"]

    def test_overwrite_replaces_content(self, tmp_path):
        storage = JsonFileStorage(str(tmp_path))
        storage.set_item("workouts", "[1, 2, 3]")
        storage.set_item("workouts", "[]")
        assert storage.get_item("workouts") == "[]"


class TestWorkoutStore:
    """Saving overwrites; loading never raises on bad content."""

    def test_round_trip(self, store):
        workouts = sample_workouts()
        store.save(workouts)
        loaded = store.load()

        assert [w.to_record() for w in loaded] == [w.to_record() for w in workouts]
        assert [type(w) for w in loaded] == [type(w) for w in workouts]

    def test_save_overwrites(self, store):
        store.save(sample_workouts())
        store.save([])
        assert store.load() == []

    def test_nothing_stored(self, store):
        assert store.load() == []

    def test_payload_shape(self, store):
        store.save(sample_workouts()[:1])
        data = json.loads(store.storage.get_item("workouts"))

        assert data["schema_version"] == SCHEMA_VERSION
        assert "last_updated" in data
        assert data["workouts"][0]["description"] == "Running on April 14"
        assert "markerRef" not in data["workouts"][0]

    @pytest.mark.parametrize("content", [
        "not json",
        "",
        "null",
        "42",
        '{"schema_version": 99, "workouts": []}',
        '{"schema_version": 1}',
        '[{"id": "x"}]',
        '["oops"]',
    ])
    def test_malformed_content_loads_empty(self, store, content, caplog):
        store.storage.set_item("workouts", content)
        with caplog.at_level(logging.WARNING):
            assert store.load() == []
        assert "Ignoring stored workouts" in caplog.text

    def test_accepts_bare_record_array(self, store):
        records = [w.to_record() for w in sample_workouts()]
        store.storage.set_item("workouts", json.dumps(records))

        loaded = store.load()
        assert [w.id for w in loaded] == [r["id"] for r in records]

    @pytest.mark.parametrize("field, value", [
        ("distance", "NaN"),
        ("duration", "-Infinity"),
        ("cadence", "-5"),
        ("cadence", "Infinity"),
        ("pace", "Infinity"),
        ("coords", "[NaN, 2]"),
    ])
    def test_invalid_stored_values_load_empty(self, store, field, value, caplog):
        """json accepts NaN/Infinity, so a hand-edited store can carry them."""
        record = sample_workouts()[0].to_record()
        text = json.dumps([record]).replace(json.dumps(record[field]), value, 1)
        store.storage.set_item("workouts", text)

        with caplog.at_level(logging.WARNING):
            assert store.load() == []
        assert "Ignoring stored workouts" in caplog.text

    def test_invalid_cycling_values_load_empty(self, store):
        record = sample_workouts()[1].to_record()
        record["speed"] = float("nan")
        record["elevationGain"] = float("inf")
        store.storage.set_item("workouts", json.dumps([record]))
        assert store.load() == []

    def test_duplicate_ids_rejected(self, store):
        record = sample_workouts()[0].to_record()
        store.storage.set_item("workouts", json.dumps([record, record]))
        assert store.load() == []

    def test_clear(self, store):
        store.save(sample_workouts())
        store.clear()
        assert store.storage.get_item("workouts") is None
        assert store.load() == []

    def test_save_failure_is_logged(self, caplog):
        class BrokenStorage(JsonFileStorage):
            def set_item(self, key, text):
                raise OSError("No space left on device")

        store = WorkoutStore(BrokenStorage("unused"), key="workouts")
        with caplog.at_level(logging.WARNING):
            store.save(sample_workouts())
        assert "Could not save workouts" in caplog.text

    def test_read_failure_loads_empty(self, caplog):
        class BrokenStorage(JsonFileStorage):
            def get_item(self, key):
                raise PermissionError("denied")

        store = WorkoutStore(BrokenStorage("unused"), key="workouts")
        with caplog.at_level(logging.WARNING):
            assert store.load() == []
        assert "Could not read workouts" in caplog.text


class TestSerialization:

    def test_serialize_keeps_order(self):
        workouts = sample_workouts()
        restored = deserialize_workouts(serialize_workouts(workouts))
        assert [w.id for w in restored] == [w.id for w in workouts]

    def test_unexpected_payload(self):
        with pytest.raises(ValueError):
            deserialize_workouts('"just a string"')
