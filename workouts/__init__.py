"""
Workout domain module.
Value entities, errors, the edit session and deferred tasks used by the collection manager.
"""

from .errors import WorkoutError, ValidationError, NotFoundError, EditInProgressError
from .models import RUNNING, CYCLING, WORKOUT_TYPES, Workout, Running, Cycling, build_workout, workout_from_record
from .edit_session import EditSession
from .scheduler import DeferredTask, TaskScheduler

__all__ = [
    'WorkoutError', 'ValidationError', 'NotFoundError', 'EditInProgressError',
    'RUNNING', 'CYCLING', 'WORKOUT_TYPES', 'Workout', 'Running', 'Cycling',
    'build_workout', 'workout_from_record',
    'EditSession', 'DeferredTask', 'TaskScheduler',
]
