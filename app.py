import logging
import os
import shutil
import time

import streamlit as st
from dotenv import load_dotenv
from streamlit_folium import st_folium

# Load environment variables before config reads them
if not os.path.exists(".env") and os.path.exists("env.example"):
    shutil.copy("env.example", ".env")
load_dotenv()

from config import DEV_MODE, get_home_position
from ui_helpers import (
    MapViewPort,
    build_map,
    friendly_error,
    render_list_controls,
    render_workout_entry,
)
from workout_manager import WorkoutManager
from workout_storage import WorkoutStore
from workouts import CYCLING, RUNNING, WorkoutError

logging.basicConfig(level=logging.INFO if DEV_MODE else logging.WARNING)

# Page Config
st.set_page_config(page_title="Workout Map Log", page_icon="🗺️", layout="wide")
st.title("🗺️ Workout Map Log")


def init_session_state(home):
    """Build the manager once per browser session and load stored workouts."""
    if "manager" not in st.session_state:
        view = MapViewPort(center=home)
        manager = WorkoutManager(view=view, store=WorkoutStore())
        manager.load()
        st.session_state.manager = manager
        st.session_state.view = view
        st.session_state.last_click = None
        st.session_state.form_error = None


def show_error(error):
    st.session_state.form_error = friendly_error(error)


def run_action(action, *args):
    """Run a manager action, turning workout errors into an inline message."""
    try:
        result = action(*args)
        st.session_state.form_error = None
        return result
    except WorkoutError as e:
        show_error(e)
        return None


def render_form(manager):
    """New-workout form, or the edit form when an edit session is open."""
    editing_id = manager.editing_id
    if editing_id:
        workout = manager.get(editing_id)
        st.markdown(f"#### ✏️ Editing {workout.description}")
        defaults = {
            "type": workout.type,
            "distance": workout.distance,
            "duration": workout.duration,
            "extra": workout.extra_value,
        }
        form_key = f"edit-form-{editing_id}"
    elif manager.draft_coords:
        lat, lng = manager.draft_coords
        st.markdown(f"#### ➕ New workout at {lat:.4f}, {lng:.4f}")
        defaults = {"type": RUNNING, "distance": None, "duration": None, "extra": None}
        form_key = "new-form"
    else:
        st.info("👉 Click on the map to log a workout there.")
        return

    workout_type = st.selectbox(
        "Type", [RUNNING, CYCLING],
        index=[RUNNING, CYCLING].index(defaults["type"]),
        format_func=str.capitalize,
        key=f"{form_key}-type",
    )
    with st.form(form_key, clear_on_submit=not editing_id):
        distance = st.number_input("Distance (km)", value=defaults["distance"], step=0.1,
                                   format="%.2f", placeholder="km")
        duration = st.number_input("Duration (min)", value=defaults["duration"], step=1.0,
                                   placeholder="min")
        if workout_type == RUNNING:
            extra_value = st.number_input("Cadence (step/min)", value=defaults["extra"],
                                          step=1.0, placeholder="step/min")
            extra = {"cadence": extra_value}
        else:
            extra_value = st.number_input("Elev Gain (meters)", value=defaults["extra"],
                                          step=1.0, placeholder="meters")
            extra = {"elevation_gain": extra_value}

        col_a, col_b = st.columns(2)
        submitted = col_a.form_submit_button("OK", type="primary", use_container_width=True)
        cancelled = col_b.form_submit_button("Cancel", use_container_width=True)

    if st.session_state.form_error:
        st.error(f"❌ {st.session_state.form_error}")

    if cancelled:
        st.session_state.form_error = None
        if editing_id:
            manager.cancel_edit()
        else:
            manager.clear_draft()
        st.rerun()

    if submitted:
        if editing_id:
            result = run_action(manager.commit_edit, distance, duration, extra, workout_type)
        else:
            result = run_action(manager.create, workout_type, distance, duration, extra)
        if result is not None:
            st.rerun()


def main():
    home = get_home_position()
    if home is None:
        # Degraded mode: no map, no new workouts
        st.error("Could not fetch position")
        st.caption("Set HOME_LAT and HOME_LNG in your .env file and reload.")
        return

    init_session_state(home)
    manager = st.session_state.manager
    view = st.session_state.view

    # Delayed deletes that came due since the last rerun
    manager.run_pending()

    map_col, list_col = st.columns([3, 2])

    with map_col:
        if st.button("📍 Center", key="center"):
            view.focus_view(home)
        result = st_folium(
            build_map(view, home),
            key="map",
            height=560,
            use_container_width=True,
            returned_objects=["last_clicked"],
        )
        clicked = (result or {}).get("last_clicked")
        if clicked and clicked != st.session_state.last_click:
            st.session_state.last_click = clicked
            if not manager.editing_id:
                manager.set_draft_location((clicked["lat"], clicked["lng"]))
                st.rerun()

    with list_col:
        render_form(manager)

        def on_edit(workout_id):
            snapshot = run_action(manager.begin_edit, workout_id)
            if snapshot is not None:
                manager.clear_draft()
            st.rerun()

        def on_delete(workout_id):
            run_action(manager.request_delete, workout_id)
            st.rerun()

        def on_focus(workout_id):
            run_action(manager.focus, workout_id)
            st.rerun()

        def on_sort(field):
            manager.sort(field)
            st.rerun()

        def on_filter():
            manager.cycle_filter()
            st.rerun()

        def on_delete_all():
            manager.delete_all()
            st.rerun()

        render_list_controls(manager, on_sort, on_filter, on_delete_all)

        pending = set(manager.pending_deletes)
        for workout in view.ordered_entries:
            if workout.id == manager.editing_id:
                continue
            render_workout_entry(workout, on_edit, on_delete, on_focus,
                                 deleting=workout.id in pending)

    if pending:
        time.sleep(manager.next_due_in() or 0)
        st.rerun()


main()
