"""
Configuration and constants for the Workout Map Log.
"""

import os

# Dev mode - verbose progress logging
DEV_MODE = os.getenv("DEV_MODE", "false").lower() == "true"

# Where the workout collection is stored, one JSON file per key
DATA_DIR = os.getenv("DATA_DIR", "user_data")
STORAGE_KEY = os.getenv("STORAGE_KEY", "workouts")

# Seconds between pressing "Remove" and the workout actually being deleted
DELETE_DELAY_SECONDS = float(os.getenv("DELETE_DELAY_SECONDS", "1.2"))

MAP_ZOOM = int(os.getenv("MAP_ZOOM", "16"))
MAPTILER_KEY = os.getenv("MAPTILER_KEY", "")
MAPTILER_URL = "https://api.maptiler.com/maps/streets-v2/{z}/{x}/{y}.png?key={key}"
MAPTILER_ATTRIBUTION = (
    '<a href="https://www.maptiler.com/copyright/" target="_blank">&copy; MapTiler</a> '
    '<a href="https://www.openstreetmap.org/copyright" target="_blank">&copy; OpenStreetMap contributors</a>'
)

FILTERS = ["all", "running", "cycling"]
FILTER_LABELS = {
    "all": "Filter by type",
    "running": "Running",
    "cycling": "Cycling",
}
SORT_FIELDS = ("distance", "duration")


def get_home_position():
    """
    Position source for the map.
    Returns (lat, lng) from HOME_LAT/HOME_LNG, or None if unset or invalid.
    """
    lat = os.getenv("HOME_LAT")
    lng = os.getenv("HOME_LNG")
    if not lat or not lng:
        return None
    try:
        return float(lat), float(lng)
    except ValueError:
        return None
