import logging
from operator import attrgetter

from config import DELETE_DELAY_SECONDS, DEV_MODE, FILTERS, FILTER_LABELS, SORT_FIELDS
from workouts import EditSession, EditInProgressError, NotFoundError, TaskScheduler
from workouts.models import build_workout, snapshot, validate_coords

logger = logging.getLogger(__name__)

ASCENDING = "ascending"
DESCENDING = "descending"


def _log(level, message):
    if DEV_MODE:
        logger.log(level, message)


class WorkoutManager:
    """
    Owns the canonical ordered list of workouts.

    Every mutation goes through here: validate, mutate the list, persist the
    whole collection through the store, then tell the view which entries and
    markers to (re)draw. The view and the store never change the list.

    Sorting and filtering only change what is displayed. The view always
    shows the workouts matching the active filter; markers exist only for
    those workouts.
    """

    def __init__(self, view, store, scheduler=None, delete_delay=DELETE_DELAY_SECONDS):
        self.view = view
        self.store = store
        self.scheduler = scheduler or TaskScheduler()
        self.delete_delay = delete_delay

        self._workouts = []
        self._visible = []
        self._markers = {}  # workout id -> marker ref
        self._pending = {}  # workout id -> DeferredTask
        self._edit = EditSession()

        self._draft_coords = None
        self._draft_marker = None

        self.filter_index = 0
        self._next_descending = {field: False for field in SORT_FIELDS}
        self._last_direction = {field: None for field in SORT_FIELDS}

    # --- Read-only state ---

    @property
    def workouts(self):
        """Workouts in canonical (collection) order."""
        return tuple(self._workouts)

    @property
    def visible(self):
        """Workouts in the order they are currently displayed."""
        return tuple(self._visible)

    @property
    def filter_name(self):
        return FILTERS[self.filter_index]

    @property
    def filter_label(self):
        return FILTER_LABELS[self.filter_name]

    @property
    def editing_id(self):
        return self._edit.target_id

    @property
    def draft_coords(self):
        return self._draft_coords

    @property
    def pending_deletes(self):
        """Ids of workouts waiting on a delayed delete."""
        return [workout_id for workout_id, task in self._pending.items() if task.pending]

    @property
    def show_bulk_actions(self):
        """Delete-all and sort buttons are only offered with two or more workouts."""
        return len(self._workouts) >= 2

    def sort_direction(self, field):
        """Direction of the last sort on ``field``, or None if never sorted."""
        return self._last_direction[field]

    def marker_ref(self, workout_id):
        return self._markers.get(workout_id)

    def get(self, workout_id):
        return self._workouts[self._index_of(workout_id)]

    # --- Startup ---

    def load(self):
        """
        Hydrate the collection from the store and render it.
        Missing or unreadable data leaves the collection empty.
        """
        workouts = self.store.load()
        for workout_id in list(self._markers):
            self._hide_marker(workout_id)
        self._edit.close()
        self._workouts = list(workouts)
        self._refresh()
        _log(logging.INFO, f"Loaded {len(self._workouts)} workout(s)")
        return len(self._workouts)

    # --- Create ---

    def set_draft_location(self, coords):
        """Place the 'new workout here' marker where the map was clicked."""
        coords = validate_coords(coords)
        self.clear_draft()
        self._draft_coords = coords
        self._draft_marker = self.view.render_draft(coords)

    def clear_draft(self):
        if self._draft_marker is not None:
            self.view.remove_marker(self._draft_marker)
        self._draft_coords = None
        self._draft_marker = None

    def create(self, workout_type, distance, duration, extra=None, coords=None):
        """
        Add a new workout at ``coords`` (or at the draft location).

        Raises:
            EditInProgressError: while a workout is being edited
            ValidationError: naming the offending field(s); nothing is changed
        """
        if self._edit.is_open:
            raise EditInProgressError(self._edit.target_id)

        if coords is None:
            coords = self._draft_coords
        workout = build_workout(workout_type, coords, distance, duration, extra)

        self._workouts.append(workout)
        self.clear_draft()
        if self._matches_filter(workout):
            self._show_marker(workout)
            self.view.render_entry(workout)
            self._visible.append(workout)
        self._persist()

        _log(logging.INFO, f"➕ Created {workout.description} ({workout.id})")
        return workout

    # --- Edit in place ---

    def begin_edit(self, workout_id):
        """
        Open the edit session on a workout.

        Returns:
            Snapshot dict of the workout's current values for the edit form

        Raises:
            NotFoundError: if the workout is not in the collection
            EditInProgressError: if another workout is already being edited
        """
        index = self._index_of(workout_id)
        self._edit.open(workout_id, index)
        return snapshot(self._workouts[index])

    def commit_edit(self, distance, duration, extra=None, workout_type=None):
        """
        Replace the workout being edited, keeping its position in the list.

        The replacement keeps the original coordinates and gets a new id and
        timestamp. On ValidationError the session stays open and nothing changes.
        """
        if not self._edit.is_open:
            raise NotFoundError(None, "No workout is being edited.")

        target_id = self._edit.target_id
        try:
            index = self._index_of(target_id)
        except NotFoundError:
            self._edit.close()
            raise

        original = self._workouts[index]
        replacement = build_workout(workout_type or original.type, original.coords,
                                    distance, duration, extra)

        self._hide_marker(original.id)
        self._workouts[index] = replacement
        self._edit.close()
        self._persist()
        self._refresh()

        _log(logging.INFO, f"✏️ Replaced {original.id} with {replacement.id} at index {index}")
        return replacement

    def cancel_edit(self):
        self._edit.close()

    # --- Delete ---

    def delete_one(self, workout_id):
        """
        Remove a workout and its marker, then center the view where it was.

        Raises:
            NotFoundError: if the workout is not in the collection
        """
        index = self._index_of(workout_id)
        workout = self._workouts.pop(index)
        self._hide_marker(workout_id)

        task = self._pending.pop(workout_id, None)
        if task is not None:
            task.cancel()
        if self._edit.target_id == workout_id:
            self._edit.close()

        self._persist()
        self._refresh()
        self.view.focus_view(workout.coords)

        _log(logging.INFO, f"🗑️ Deleted {workout.description} ({workout_id})")
        return workout

    def request_delete(self, workout_id):
        """
        Schedule a delete after ``delete_delay`` seconds.

        The collection is untouched until the task runs; the task checks the
        workout still exists before deleting it.
        """
        self._index_of(workout_id)

        task = self._pending.get(workout_id)
        if task is not None and task.pending:
            return task

        task = self.scheduler.schedule(self.delete_delay, self._finish_delete, workout_id)
        self._pending[workout_id] = task
        return task

    def _finish_delete(self, workout_id):
        self._pending.pop(workout_id, None)
        try:
            return self.delete_one(workout_id)
        except NotFoundError:
            logger.warning(f"⚠️ Workout {workout_id} already removed, skipping delayed delete")
            return None

    def run_pending(self):
        """Run delayed deletes that are due. Returns how many ran."""
        return self.scheduler.run_due()

    def next_due_in(self):
        return self.scheduler.next_due_in()

    def delete_all(self):
        """
        Remove every workout.

        Markers visible under the active filter are removed; the whole
        collection is cleared either way. No-op on an empty collection.
        """
        if not self._workouts:
            return 0

        for workout in self._filtered():
            self._hide_marker(workout.id)

        removed = len(self._workouts)
        self._workouts = []
        self._edit.close()
        self._cancel_pending()
        self._persist()
        self._render_view([])

        _log(logging.INFO, f"🗑️ Deleted all {removed} workout(s)")
        return removed

    def reset(self):
        """Forget the stored collection entirely and empty the view."""
        self._cancel_pending()
        self.store.clear()
        for workout_id in list(self._markers):
            self._hide_marker(workout_id)
        self._workouts = []
        self._edit.close()
        self.clear_draft()
        self._render_view([])

    # --- Sort & filter (display only) ---

    def sort(self, field, direction=None):
        """
        Reorder the displayed workouts by ``field``.

        Without an explicit direction each call on the same field flips
        between ascending and descending, starting ascending. The sort is
        stable from collection order.
        """
        if field not in SORT_FIELDS:
            raise ValueError(f"Cannot sort by {field!r}")

        if direction is None:
            descending = self._next_descending[field]
        elif direction in (ASCENDING, DESCENDING):
            descending = direction == DESCENDING
        else:
            raise ValueError(f"Unknown sort direction: {direction!r}")

        ordered = sorted(self._filtered(), key=attrgetter(field), reverse=descending)
        self._next_descending[field] = not descending
        self._last_direction[field] = DESCENDING if descending else ASCENDING
        self._render_view(ordered)
        return ordered

    def cycle_filter(self):
        """Advance the filter: all -> running -> cycling -> all."""
        self.filter_index = (self.filter_index + 1) % len(FILTERS)
        self._refresh()
        return self.filter_name

    def focus(self, workout_id):
        """Center the view on a workout."""
        workout = self.get(workout_id)
        self.view.focus_view(workout.coords)
        return workout

    # --- Internals ---

    def _index_of(self, workout_id):
        for index, workout in enumerate(self._workouts):
            if workout.id == workout_id:
                return index
        raise NotFoundError(workout_id)

    def _matches_filter(self, workout):
        return self.filter_name == "all" or workout.type == self.filter_name

    def _filtered(self):
        return [workout for workout in self._workouts if self._matches_filter(workout)]

    def _show_marker(self, workout):
        if workout.id not in self._markers:
            self._markers[workout.id] = self.view.render_marker(workout)

    def _hide_marker(self, workout_id):
        marker_ref = self._markers.pop(workout_id, None)
        if marker_ref is not None:
            self.view.remove_marker(marker_ref)

    def _render_view(self, workouts):
        self.view.clear_entries()
        for workout in workouts:
            self.view.render_entry(workout)
        self._visible = list(workouts)

    def _refresh(self):
        """Bring markers and list entries in line with the active filter."""
        shown = self._filtered()
        shown_ids = {workout.id for workout in shown}
        for workout_id in list(self._markers):
            if workout_id not in shown_ids:
                self._hide_marker(workout_id)
        for workout in shown:
            self._show_marker(workout)
        self._render_view(shown)

    def _cancel_pending(self):
        # The scheduler only carries delayed deletes
        self.scheduler.cancel_all()
        self._pending = {}

    def _persist(self):
        self.store.save(self._workouts)
