"""
Signal coordinator — turns asynchronous events into one blocking channel.

Three producers feed a single queue.SimpleQueue:

    threading.Timer ──── QUANTUM_EXPIRED(token) ──┐
    SIGCHLD handler ──── CHILD_CHANGED ───────────┼──> channel ──> wait_for_event()
    SIGTERM handler ──── SHUTDOWN ────────────────┘

The scheduler only ever blocks in wait_for_event(), which does a
blocking get() with a deadline. An event that fires before the scheduler
starts waiting is already in the channel, so it cannot be missed, and
each event is consumed exactly once.

SimpleQueue is used instead of queue.Queue because its put() is
reentrant: it is safe to call from a signal handler that interrupted the
main thread in the middle of a get().

Two kinds of noise are filtered here:
- Timer events carry the token of the arm() call that created them. An
  event from an earlier quantum (timer fired just as it was cancelled)
  does not match the current token and is dropped.
- SIGCHLD is also raised when a child stops or continues, and when a
  child other than the running one exits. A CHILD_CHANGED event only
  wakes the scheduler if the running task itself has exited.

The coordinator never touches PCBs. It only reports what happened.
"""

import itertools
import logging
import queue
import signal
import threading
import time
from dataclasses import dataclass
from typing import Optional

from models.enums import EventKind
from models.pcb import Task
from scheduler.errors import ResourceError

logger = logging.getLogger(__name__)

# Extra time the blocking get() waits past the quantum before assuming the
# timer thread was starved and treating the quantum as expired anyway.
DEADLINE_SLACK_SEC = 0.05


@dataclass(frozen=True)
class SignalEvent:
    kind: EventKind
    token: Optional[int] = None


class SignalCoordinator:

    def __init__(self):
        self._channel: queue.SimpleQueue[SignalEvent] = queue.SimpleQueue()
        self._tokens = itertools.count(1)
        self._token: Optional[int] = None
        self._timer: Optional[threading.Timer] = None
        self._deadline: Optional[float] = None
        self._previous_handlers: dict[int, object] = {}

    # ── Handler installation ───────────────────────────────────

    def install(self) -> None:
        """
        Route SIGCHLD and SIGTERM into the channel.

        Must run on the main thread (Python only delivers signals there).
        """
        for signum, handler in (
            (signal.SIGCHLD, self._on_sigchld),
            (signal.SIGTERM, self._on_sigterm),
        ):
            self._previous_handlers[signum] = signal.signal(signum, handler)
        logger.debug("Signal handlers installed")

    def uninstall(self) -> None:
        """Restore whatever handlers were in place before install()."""
        self.disarm()
        for signum, previous in self._previous_handlers.items():
            signal.signal(signum, previous)
        self._previous_handlers.clear()

    def __enter__(self) -> "SignalCoordinator":
        self.install()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.uninstall()

    def _on_sigchld(self, signum, frame) -> None:
        self.notify_child_changed()

    def _on_sigterm(self, signum, frame) -> None:
        self.request_shutdown()

    # ── Producers ──────────────────────────────────────────────

    def notify_child_changed(self) -> None:
        self._channel.put(SignalEvent(EventKind.CHILD_CHANGED))

    def request_shutdown(self) -> None:
        self._channel.put(SignalEvent(EventKind.SHUTDOWN))

    def _on_timer(self, token: int) -> None:
        self._channel.put(SignalEvent(EventKind.QUANTUM_EXPIRED, token))

    # ── Quantum timer ──────────────────────────────────────────

    def arm(self, quantum_ms: int) -> int:
        """
        Start a one-shot timer for quantum_ms and return its token.

        Any timer still pending from a previous arm() is cancelled first.
        Raises ResourceError if the timer thread cannot be started.
        """
        self.disarm()
        token = next(self._tokens)
        timer = threading.Timer(quantum_ms / 1000, self._on_timer, args=(token,))
        timer.daemon = True
        try:
            timer.start()
        except RuntimeError as e:
            raise ResourceError(f"Could not start quantum timer: {e}") from e
        self._timer = timer
        self._token = token
        self._deadline = time.monotonic() + quantum_ms / 1000 + DEADLINE_SLACK_SEC
        return token

    def disarm(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._token = None
        self._deadline = None

    # ── Consumer ───────────────────────────────────────────────

    def shutdown_pending(self) -> bool:
        """
        Drain the channel without blocking and report whether SIGTERM arrived.

        Used between launches, when nothing is running: child and timer
        events seen here carry no information the scheduler needs later.
        """
        pending = False
        while True:
            try:
                event = self._channel.get_nowait()
            except queue.Empty:
                return pending
            if event.kind is EventKind.SHUTDOWN:
                pending = True

    def wait_for_event(self, task: Task) -> EventKind:
        """
        Block until the armed quantum expires or `task` exits.

        Returns QUANTUM_EXPIRED, CHILD_EXITED or SHUTDOWN. If the task has
        already exited when called, returns CHILD_EXITED without blocking.
        try_reap() may raise ControlError; that propagates to the caller.
        """
        if self._deadline is None:
            raise RuntimeError("wait_for_event() called without an armed quantum")

        if task.try_reap() is not None:
            return EventKind.CHILD_EXITED

        while True:
            remaining = self._deadline - time.monotonic()
            if remaining <= 0:
                logger.debug(f"Quantum deadline passed without timer event (pid {task.pid})")
                return EventKind.QUANTUM_EXPIRED
            try:
                event = self._channel.get(timeout=remaining)
            except queue.Empty:
                logger.debug(f"Quantum deadline passed without timer event (pid {task.pid})")
                return EventKind.QUANTUM_EXPIRED

            if event.kind is EventKind.SHUTDOWN:
                return EventKind.SHUTDOWN

            if event.kind is EventKind.QUANTUM_EXPIRED:
                if event.token == self._token:
                    return EventKind.QUANTUM_EXPIRED
                logger.debug(f"Dropped stale timer event (token {event.token})")
                continue

            # CHILD_CHANGED: only interesting if it was the running task
            if task.try_reap() is not None:
                return EventKind.CHILD_EXITED
