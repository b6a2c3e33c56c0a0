"""UI helpers for the Workout Map Log."""
from collections import namedtuple
from itertools import count

import folium
import streamlit as st

from config import MAP_ZOOM, MAPTILER_ATTRIBUTION, MAPTILER_KEY, MAPTILER_URL, SORT_FIELDS
from workouts import RUNNING, WorkoutError, ValidationError, NotFoundError, EditInProgressError

DRAFT_POPUP = "✏️ New workout here..."
HOME_POPUP = "You are here"

# Matches the list entry accents: green for running, orange for cycling
MARKER_COLORS = {"running": "green", "cycling": "orange", "draft": "blue"}

Marker = namedtuple("Marker", ["coords", "popup", "kind"])


def friendly_error(error):
    """Map errors to short, user-facing messages."""
    if isinstance(error, ValidationError):
        return str(error)
    if isinstance(error, NotFoundError):
        return "That workout no longer exists."
    if isinstance(error, EditInProgressError):
        return "Finish or cancel the current edit first."
    if isinstance(error, WorkoutError):
        return str(error)

    error_str = str(error).lower()
    if "permission" in error_str:
        return "Could not access the data folder. Check its permissions."
    if "no space" in error_str or "quota" in error_str:
        return "Storage is full. Older workouts may not be saved."
    first_line = str(error).split('\n')[0]
    if len(first_line) > 100:
        return first_line[:100] + "..."
    return first_line


class ViewPort:
    """
    Rendering surface driven by the WorkoutManager.
    Never changes the collection itself.
    """

    def render_entry(self, workout):
        """Insert or replace the list entry for a workout (idempotent per id)."""
        raise NotImplementedError

    def render_marker(self, workout):
        """Place a marker at the workout's coords and return its handle."""
        raise NotImplementedError

    def render_draft(self, coords):
        """Place the 'new workout here' marker and return its handle."""
        raise NotImplementedError

    def remove_marker(self, marker_ref):
        raise NotImplementedError

    def clear_entries(self):
        raise NotImplementedError

    def focus_view(self, coords):
        raise NotImplementedError


class MapViewPort(ViewPort):
    """
    In-memory list + marker surface.

    Keeps list entries in render order and markers keyed by an incrementing
    handle. The page draws it with ``build_map`` and ``render_workout_entry``
    on every rerun.
    """

    def __init__(self, center=None, zoom=MAP_ZOOM):
        self.entries = {}
        self.markers = {}
        self.center = center
        self.zoom = zoom
        self._marker_ids = count(1)

    def render_entry(self, workout):
        self.entries[workout.id] = workout

    def render_marker(self, workout):
        marker_ref = next(self._marker_ids)
        self.markers[marker_ref] = Marker(workout.coords, workout.popup_text, workout.type)
        return marker_ref

    def render_draft(self, coords):
        marker_ref = next(self._marker_ids)
        self.markers[marker_ref] = Marker(tuple(coords), DRAFT_POPUP, "draft")
        return marker_ref

    def remove_marker(self, marker_ref):
        # Unknown handles are ignored, like removing a layer that is not on the map
        self.markers.pop(marker_ref, None)

    def clear_entries(self):
        self.entries.clear()

    def focus_view(self, coords):
        self.center = tuple(coords)

    @property
    def ordered_entries(self):
        return list(self.entries.values())


# --- Map ---

def build_map(view, home=None):
    """Draw the view's markers on a folium map centered on the view."""
    center = view.center or home
    if MAPTILER_KEY:
        m = folium.Map(location=list(center), zoom_start=view.zoom, tiles=None)
        folium.TileLayer(
            tiles=MAPTILER_URL.replace("{key}", MAPTILER_KEY),
            attr=MAPTILER_ATTRIBUTION,
            tile_size=512,
            zoom_offset=-1,
            min_zoom=1,
        ).add_to(m)
    else:
        m = folium.Map(location=list(center), zoom_start=view.zoom, tiles="OpenStreetMap")

    if home:
        folium.Marker(list(home), tooltip=HOME_POPUP).add_to(m)

    for marker in view.markers.values():
        folium.Marker(
            list(marker.coords),
            popup=folium.Popup(marker.popup, max_width=250, show=True),
            icon=folium.Icon(color=MARKER_COLORS.get(marker.kind, "blue")),
        ).add_to(m)
    return m


# --- Sidebar list ---

def format_value(value):
    """Show whole numbers without a trailing .0, like the form inputs."""
    return f"{value:g}" if float(value).is_integer() else f"{value}"


def render_workout_entry(workout, on_edit, on_delete, on_focus, deleting=False):
    """Render one workout as a list entry with Edit/Remove buttons."""
    with st.container(border=True):
        accent = "🟢" if workout.type == RUNNING else "🟠"
        if st.button(f"{accent} **{workout.description}**", key=f"focus-{workout.id}",
                     use_container_width=True):
            on_focus(workout.id)

        cols = st.columns(4)
        cols[0].metric(f"{workout.icon} km", format_value(workout.distance))
        cols[1].metric("⏱️ min", format_value(workout.duration))
        cols[2].metric(f"⚡️ {workout.metric_unit}", f"{workout.metric_value:.1f}")
        extra_icon = "🦶🏼" if workout.type == RUNNING else "⛰️"
        cols[3].metric(f"{extra_icon} {workout.extra_unit}", format_value(workout.extra_value))

        col_a, col_b = st.columns(2)
        with col_a:
            if st.button("✏️ Edit", key=f"edit-{workout.id}", use_container_width=True,
                         disabled=deleting):
                on_edit(workout.id)
        with col_b:
            label = "Deleting..." if deleting else "❌ Remove"
            if st.button(label, key=f"delete-{workout.id}", use_container_width=True,
                         disabled=deleting):
                on_delete(workout.id)


def sort_label(field, direction):
    label = field.capitalize()
    if direction == "ascending":
        return f"{label} ⬆️"
    if direction == "descending":
        return f"{label} ⬇️"
    return label


def render_list_controls(manager, on_sort, on_filter, on_delete_all):
    """Filter, sort and delete-all buttons above the list."""
    cols = st.columns(len(SORT_FIELDS) + 2)
    with cols[0]:
        if st.button(manager.filter_label, key="filter", use_container_width=True):
            on_filter()

    if not manager.show_bulk_actions:
        return

    for col, field in zip(cols[1:], SORT_FIELDS):
        with col:
            if st.button(sort_label(field, manager.sort_direction(field)), key=f"sort-{field}",
                         use_container_width=True):
                on_sort(field)
    with cols[-1]:
        if st.button("🗑️ Delete all", key="delete-all", use_container_width=True):
            on_delete_all()
