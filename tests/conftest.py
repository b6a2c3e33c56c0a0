import pytest

from ui_helpers import MapViewPort
from workout_manager import WorkoutManager
from workout_storage import JsonFileStorage, WorkoutStore
from workouts import TaskScheduler


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    return WorkoutStore(JsonFileStorage(str(tmp_path)), key="workouts")


@pytest.fixture
def view():
    return MapViewPort(center=(39.0, -12.0))


@pytest.fixture
def manager(view, store, clock):
    return WorkoutManager(view=view, store=store, scheduler=TaskScheduler(clock=clock), delete_delay=1.2)
