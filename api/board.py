"""
Status board — the hand-off point between the scheduler and the API.

The scheduler thread calls publish() after every dispatch cycle; the
uvicorn thread calls latest() when a request comes in. Snapshots are
frozen dataclasses, so after the swap under the lock nothing is shared
mutably between the two threads.

What the board shows can be one cycle behind the engine. It is a view,
not a source of truth.
"""

import threading
from typing import Optional

from scheduler.engine import SchedulerSnapshot


class StatusBoard:

    def __init__(self):
        self._lock = threading.Lock()
        self._snapshot: Optional[SchedulerSnapshot] = None
        self._updates = 0

    def publish(self, snapshot: SchedulerSnapshot) -> None:
        with self._lock:
            self._snapshot = snapshot
            self._updates += 1

    def latest(self) -> Optional[SchedulerSnapshot]:
        with self._lock:
            return self._snapshot

    @property
    def updates(self) -> int:
        with self._lock:
            return self._updates
