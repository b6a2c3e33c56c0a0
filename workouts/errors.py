"""Errors raised by the workout collection."""


class WorkoutError(Exception):
    """Base class for recoverable workout errors shown to the user."""
    pass


class ValidationError(WorkoutError):
    """Raised when a required numeric field is missing, non-finite or non-positive."""

    def __init__(self, fields, message="Inputs must be positive numbers!"):
        self.fields = tuple(fields)
        super().__init__(message)


class NotFoundError(WorkoutError):
    """Raised when an operation targets a workout that is no longer in the collection."""

    def __init__(self, workout_id, message=None):
        self.workout_id = workout_id
        super().__init__(message or f"Workout {workout_id} not found")


class EditInProgressError(WorkoutError):
    """Raised when another workout is already being edited."""

    def __init__(self, editing_id):
        self.editing_id = editing_id
        super().__init__("Finish or cancel the current edit first.")
