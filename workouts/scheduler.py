"""
Deferred tasks for the single-threaded app loop.

Nothing runs on its own: the page calls ``run_due()`` on every rerun and
tasks whose deadline has passed are executed in the order they were
scheduled.
"""

import logging
import time
from itertools import count

logger = logging.getLogger(__name__)


class DeferredTask:
    """A callable scheduled to run once after a delay. Cancellable until it runs."""

    _ids = count(1)

    def __init__(self, due_at, fn, *args):
        self.id = next(self._ids)
        self.due_at = due_at
        self._fn = fn
        self._args = args
        self.cancelled = False
        self.done = False

    @property
    def pending(self):
        return not (self.cancelled or self.done)

    def cancel(self):
        self.cancelled = True

    def run(self):
        if not self.pending:
            return None
        self.done = True
        return self._fn(*self._args)

    def __repr__(self):
        state = "cancelled" if self.cancelled else "done" if self.done else "pending"
        return f"DeferredTask(id={self.id}, due_at={self.due_at:.3f}, {state})"


class TaskScheduler:
    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._tasks = []

    def schedule(self, delay, fn, *args) -> DeferredTask:
        """Schedule ``fn(*args)`` to run once ``delay`` seconds from now."""
        task = DeferredTask(self._clock() + max(delay, 0), fn, *args)
        self._tasks.append(task)
        return task

    @property
    def pending(self):
        return [task for task in self._tasks if task.pending]

    def next_due_in(self):
        """Seconds until the next pending task is due, or None if nothing is pending."""
        pending = self.pending
        if not pending:
            return None
        return max(min(task.due_at for task in pending) - self._clock(), 0)

    def run_due(self):
        """Run every pending task whose deadline has passed. Returns how many ran."""
        now = self._clock()
        due = [task for task in self._tasks if task.pending and task.due_at <= now]
        for task in due:
            task.run()
        self._tasks = [task for task in self._tasks if task.pending]
        return len(due)

    def cancel_all(self):
        pending = self.pending
        for task in pending:
            task.cancel()
        if pending:
            logger.info(f"Cancelled {len(pending)} deferred task(s)")
        self._tasks = []
