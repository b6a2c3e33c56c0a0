"""Workout value entities and their persisted record shape.

A workout is a tagged union over ``running`` and ``cycling``. Both variants
share the base fields; the variant adds one input field and one derived
metric. Derived values (description, pace/speed) are computed once when the
workout is built and read back as-is from storage.
"""

import math
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar, Optional, Tuple

from .errors import ValidationError

RUNNING = "running"
CYCLING = "cycling"
WORKOUT_TYPES = (RUNNING, CYCLING)

MONTHS = [
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
]

# Inline messages shown next to the form, one per variant
ERROR_MESSAGES = {
    RUNNING: "Inputs must be positive numbers!",
    CYCLING: "Distance and duration must be positive numbers!",
}


@dataclass(slots=True, frozen=True, eq=False)
class Workout:
    """Fields shared by every workout variant."""

    type: ClassVar[str] = ""

    id: str
    coords: Tuple[float, float]
    distance: float
    duration: float
    created_at: datetime
    description: str

    def __eq__(self, other):
        if not isinstance(other, Workout):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)

    # --- Display helpers (list entry and popup) ---

    @property
    def icon(self):
        return "🏃" if self.type == RUNNING else "🚴"

    @property
    def popup_text(self):
        return f"{self.icon} {self.description}"

    @property
    def metric_value(self) -> float:
        return self.pace if self.type == RUNNING else self.speed

    @property
    def metric_unit(self):
        return "min/km" if self.type == RUNNING else "km/h"

    @property
    def extra_value(self) -> float:
        return self.cadence if self.type == RUNNING else self.elevation_gain

    @property
    def extra_unit(self):
        return "spm" if self.type == RUNNING else "m"

    def to_record(self) -> dict:
        """Convert to the persisted record shape."""
        record = {
            "id": self.id,
            "type": self.type,
            "coords": [self.coords[0], self.coords[1]],
            "distance": self.distance,
            "duration": self.duration,
            "createdAt": self.created_at.isoformat(),
            "description": self.description,
        }
        if self.type == RUNNING:
            record["cadence"] = self.cadence
            record["pace"] = self.pace
        else:
            record["elevationGain"] = self.elevation_gain
            record["speed"] = self.speed
        return record


@dataclass(slots=True, frozen=True, eq=False)
class Running(Workout):
    type: ClassVar[str] = RUNNING

    cadence: float
    pace: float


@dataclass(slots=True, frozen=True, eq=False)
class Cycling(Workout):
    type: ClassVar[str] = CYCLING

    elevation_gain: float
    speed: float


def new_workout_id() -> str:
    """Opaque identifier, unique and never reused."""
    return uuid.uuid4().hex


def describe(workout_type: str, created_at: datetime) -> str:
    """Build the label shown on the list entry, e.g. 'Running on April 14'."""
    return f"{workout_type.capitalize()} on {MONTHS[created_at.month - 1]} {created_at.day}"


def to_number(value) -> float:
    """
    Coerce a form value to float.
    Anything that cannot be coerced comes back as NaN so it fails the finiteness check.
    """
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, str) and not value.strip():
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _extra_field(workout_type):
    return "cadence" if workout_type == RUNNING else "elevation_gain"


def pick_extra(extra, workout_type):
    """
    Pull the variant field out of the ``extra`` mapping.
    Accepts both the python name and the record name (``elevationGain``).
    """
    if extra is None:
        return None
    if not isinstance(extra, dict):
        return extra
    if workout_type == RUNNING:
        return extra.get("cadence")
    if "elevation_gain" in extra:
        return extra["elevation_gain"]
    return extra.get("elevationGain")


def validate_inputs(workout_type, distance, duration, extra):
    """
    Validate raw inputs for a workout of the given type.

    Returns:
        (distance, duration, extra) as floats

    Raises:
        ValidationError: naming every offending field
    """
    if workout_type not in WORKOUT_TYPES:
        raise ValidationError(["type"], f"Unknown workout type: {workout_type!r}")

    distance = to_number(distance)
    duration = to_number(duration)
    extra = to_number(pick_extra(extra, workout_type))

    bad = []
    for name, value in (("distance", distance), ("duration", duration)):
        if not math.isfinite(value) or value <= 0:
            bad.append(name)

    # Elevation only has to be finite; elevation loss is a valid input
    if workout_type == RUNNING:
        if not math.isfinite(extra) or extra <= 0:
            bad.append("cadence")
    elif not math.isfinite(extra):
        bad.append("elevation_gain")

    if bad:
        raise ValidationError(bad, ERROR_MESSAGES[workout_type])
    return distance, duration, extra


def validate_coords(coords) -> Tuple[float, float]:
    try:
        lat, lng = coords
    except (TypeError, ValueError):
        raise ValidationError(["coords"], "Pick a location on the map first.")
    lat, lng = to_number(lat), to_number(lng)
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise ValidationError(["coords"], "Pick a location on the map first.")
    return lat, lng


def build_workout(workout_type, coords, distance, duration, extra,
                  created_at: Optional[datetime] = None,
                  workout_id: Optional[str] = None) -> Workout:
    """
    Construct a Running or Cycling workout from raw inputs.

    Validates every field, then derives the description and pace/speed once.
    """
    distance, duration, extra = validate_inputs(workout_type, distance, duration, extra)
    coords = validate_coords(coords)
    created_at = created_at or datetime.now()
    common = dict(
        id=workout_id or new_workout_id(),
        coords=coords,
        distance=distance,
        duration=duration,
        created_at=created_at,
        description=describe(workout_type, created_at),
    )

    if workout_type == RUNNING:
        # min/km
        return Running(cadence=extra, pace=duration / distance, **common)
    return Cycling(elevation_gain=extra, speed=distance / (duration / 60), **common)


def workout_from_record(record: dict) -> Workout:
    """
    Rebuild a workout from its persisted record.

    Stored description and pace/speed are kept as-is. Raises ValueError,
    KeyError or TypeError on malformed records.
    """
    workout_type = record["type"]
    if workout_type not in WORKOUT_TYPES:
        raise ValueError(f"Unknown workout type: {workout_type!r}")

    lat, lng = record["coords"]
    common = dict(
        id=str(record["id"]),
        coords=(float(lat), float(lng)),
        distance=float(record["distance"]),
        duration=float(record["duration"]),
        created_at=datetime.fromisoformat(record["createdAt"]),
        description=str(record["description"]),
    )
    if not common["id"]:
        raise ValueError("Workout record without id")
    if not all(math.isfinite(value) for value in common["coords"]):
        raise ValueError(f"Workout {common['id']} has invalid coords")
    extra = record["cadence"] if workout_type == RUNNING else record["elevationGain"]
    try:
        distance, duration, extra = validate_inputs(workout_type, record["distance"], record["duration"], extra)
    except ValidationError as e:
        raise ValueError(f"Workout {common['id']} has invalid {', '.join(e.fields)}") from e
    common.update(distance=distance, duration=duration)

    metric = float(record["pace"] if workout_type == RUNNING else record["speed"])
    if not math.isfinite(metric) or metric <= 0:
        raise ValueError(f"Workout {common['id']} has invalid pace/speed")

    if workout_type == RUNNING:
        return Running(cadence=extra, pace=metric, **common)
    return Cycling(elevation_gain=extra, speed=metric, **common)


def snapshot(workout: Workout) -> dict:
    """Current values for pre-filling the edit form."""
    return {
        "id": workout.id,
        "type": workout.type,
        "distance": workout.distance,
        "duration": workout.duration,
        _extra_field(workout.type): workout.extra_value,
    }
