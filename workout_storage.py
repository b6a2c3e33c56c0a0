"""
Workout persistence layer.
Uses simple file-based storage: one JSON file per key under DATA_DIR.

Storage Model:
- JsonFileStorage is a small key-value store (set_item / get_item / remove_item)
- WorkoutStore serializes the full ordered collection under a single key
- Writes overwrite the previous value; failures are logged, never raised
- Unreadable or unknown content loads as an empty collection
"""

import os
import json
import logging
import tempfile
from datetime import datetime
from typing import Optional, List

from config import DATA_DIR, STORAGE_KEY, DEV_MODE
from workouts.models import Workout, workout_from_record

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


def _log(level, message):
    if DEV_MODE:
        logger.log(level, message)


class JsonFileStorage:
    """Durable key-value store backed by files in a directory."""

    def __init__(self, data_dir: str = DATA_DIR):
        self.data_dir = data_dir

    def ensure_data_dir(self):
        """Ensure the data directory exists."""
        os.makedirs(self.data_dir, exist_ok=True)

    def path_for(self, key: str) -> str:
        return os.path.join(self.data_dir, f"{key}.json")

    def set_item(self, key: str, text: str):
        """Write to a temp file and swap it in, so a failed write keeps the previous value."""
        self.ensure_data_dir()
        fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{key}-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(text)
            os.replace(tmp_path, self.path_for(key))
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get_item(self, key: str) -> Optional[str]:
        filepath = self.path_for(key)
        if not os.path.exists(filepath):
            return None
        with open(filepath, "r") as f:
            return f.read()

    def remove_item(self, key: str):
        filepath = self.path_for(key)
        if os.path.exists(filepath):
            os.remove(filepath)


# --- Serialization ---

def serialize_workouts(workouts: List[Workout]) -> str:
    """Serialize the ordered collection, derived fields included."""
    data = {
        "schema_version": SCHEMA_VERSION,
        "last_updated": datetime.now().isoformat(),
        "workouts": [workout.to_record() for workout in workouts],
    }
    return json.dumps(data, indent=2, ensure_ascii=False)


def deserialize_workouts(text: str) -> List[Workout]:
    """
    Parse a stored collection.

    Accepts the versioned payload written by serialize_workouts and a bare
    array of records. Raises ValueError on anything else.
    """
    data = json.loads(text)

    if isinstance(data, list):
        records = data
    elif isinstance(data, dict):
        version = data.get("schema_version")
        if version != SCHEMA_VERSION:
            raise ValueError(f"Unsupported schema version: {version!r}")
        records = data.get("workouts")
        if not isinstance(records, list):
            raise ValueError("Payload has no workouts list")
    else:
        raise ValueError(f"Unexpected payload type: {type(data).__name__}")

    workouts = []
    seen = set()
    for record in records:
        if not isinstance(record, dict):
            raise ValueError("Workout record is not an object")
        try:
            workout = workout_from_record(record)
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed workout record: {e}") from e
        if workout.id in seen:
            raise ValueError(f"Duplicate workout id: {workout.id}")
        seen.add(workout.id)
        workouts.append(workout)
    return workouts


# --- Workout Storage ---

class WorkoutStore:
    """Saves and loads the workout collection through a key-value storage."""

    def __init__(self, storage: Optional[JsonFileStorage] = None, key: str = STORAGE_KEY):
        self.storage = storage or JsonFileStorage()
        self.key = key

    def save(self, workouts: List[Workout]):
        """Overwrite the stored collection. Storage errors are logged and swallowed."""
        try:
            self.storage.set_item(self.key, serialize_workouts(workouts))
            _log(logging.INFO, f"💾 Saved {len(workouts)} workout(s)")
        except OSError as e:
            logger.warning(f"❌ Could not save workouts: {e}")

    def load(self) -> List[Workout]:
        """Load the stored collection, or [] if nothing usable is stored."""
        try:
            text = self.storage.get_item(self.key)
        except OSError as e:
            logger.warning(f"❌ Could not read workouts: {e}")
            return []

        if text is None:
            return []

        try:
            workouts = deserialize_workouts(text)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError too
            logger.warning(f"⚠️ Ignoring stored workouts: {e}")
            return []

        _log(logging.INFO, f"📂 Loaded {len(workouts)} workout(s)")
        return workouts

    def clear(self):
        try:
            self.storage.remove_item(self.key)
        except OSError as e:
            logger.warning(f"❌ Could not clear workouts: {e}")
