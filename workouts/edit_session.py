from typing import Optional

from .errors import EditInProgressError


class EditSession:
    """
    Tracks which workout, if any, is being edited in place.

    Closed until ``open`` is called; ``close`` returns it to Closed. There is
    no terminal state, the same session object cycles for the app's lifetime.
    """

    def __init__(self):
        self.target_id: Optional[str] = None
        self.target_index: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.target_id is not None

    def open(self, workout_id: str, index: int):
        """
        Open the session on a workout.

        Raises:
            EditInProgressError: if another workout is already being edited
        """
        if self.is_open and self.target_id != workout_id:
            raise EditInProgressError(self.target_id)
        self.target_id = workout_id
        self.target_index = index

    def close(self):
        self.target_id = None
        self.target_index = None

    def __repr__(self):
        if not self.is_open:
            return "EditSession(Closed)"
        return f"EditSession(Open({self.target_id!r}, {self.target_index}))"
