import folium

from ui_helpers import MapViewPort, ViewPort, build_map, format_value, friendly_error, sort_label
from workouts import EditInProgressError, NotFoundError, ValidationError, build_workout


def make_run(distance=5, coords=(39, -12)):
    return build_workout("running", coords, distance, 25, {"cadence": 170})


class TestMapViewPort:

    def setup_method(self):
        self.view = MapViewPort(center=(39.0, -12.0), zoom=13)

    def test_render_entry_is_idempotent(self):
        workout = make_run()
        self.view.render_entry(workout)
        self.view.render_entry(workout)
        assert self.view.ordered_entries == [workout]

    def test_entries_keep_render_order(self):
        a, b = make_run(5), make_run(6)
        self.view.render_entry(b)
        self.view.render_entry(a)
        assert self.view.ordered_entries == [b, a]

    def test_marker_handles_are_unique(self):
        workout = make_run()
        first = self.view.render_marker(workout)
        second = self.view.render_marker(workout)

        assert first != second
        assert self.view.markers[first].popup == workout.popup_text
        assert self.view.markers[first].kind == "running"

    def test_remove_marker(self):
        ref = self.view.render_marker(make_run())
        self.view.remove_marker(ref)
        # Unknown handles are ignored
        self.view.remove_marker(ref)
        self.view.remove_marker(None)
        assert self.view.markers == {}

    def test_draft_marker(self):
        ref = self.view.render_draft((1.5, 2.5))
        assert self.view.markers[ref].kind == "draft"
        assert self.view.markers[ref].coords == (1.5, 2.5)

    def test_clear_and_focus(self):
        self.view.render_entry(make_run())
        self.view.clear_entries()
        self.view.focus_view([10, 20])

        assert self.view.entries == {}
        assert self.view.center == (10, 20)

    def test_is_a_view_port(self):
        assert isinstance(self.view, ViewPort)


class TestBuildMap:

    def test_draws_markers(self):
        view = MapViewPort(center=(39.0, -12.0))
        view.render_marker(make_run(coords=(39, -12)))
        view.render_draft((39.1, -12.1))

        m = build_map(view, home=(39.0, -12.0))

        assert isinstance(m, folium.Map)
        markers = [child for child in m._children.values() if isinstance(child, folium.Marker)]
        # Home marker plus two view markers
        assert len(markers) == 3

    def test_centers_on_home_without_view_center(self):
        m = build_map(MapViewPort(), home=(10.0, 20.0))
        assert list(m.location) == [10.0, 20.0]


class TestFriendlyError:

    def test_workout_errors(self):
        assert friendly_error(ValidationError(["distance"])) == "Inputs must be positive numbers!"
        assert friendly_error(NotFoundError("x")) == "That workout no longer exists."
        assert friendly_error(EditInProgressError("x")) == "Finish or cancel the current edit first."

    def test_storage_errors(self):
        assert "permissions" in friendly_error(PermissionError("Permission denied: 'user_data'"))
        assert "Storage is full" in friendly_error(OSError("No space left on device"))

    def test_long_messages_are_truncated(self):
        message = friendly_error(RuntimeError("x" * 150 + "\nsecond line"))
        assert message == "x" * 100 + "..."


class TestFormatting:

    def test_format_value(self):
        assert format_value(5.0) == "5"
        assert format_value(5.25) == "5.25"
        assert format_value(-30.0) == "-30"

    def test_sort_label(self):
        assert sort_label("distance", None) == "Distance"
        assert sort_label("distance", "ascending") == "Distance ⬆️"
        assert sort_label("duration", "descending") == "Duration ⬇️"
