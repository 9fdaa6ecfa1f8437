"""
Scheduler Engine — the round-robin dispatch loop.

The engine owns every PCB and the ready queue. It runs on the main
thread as an explicit state machine:

                 queue empty
    DISPATCHING ─────────────> DONE
        │  ▲
  resume│  │ finalize, or pause + requeue
  + arm │  │
        ▼  │
    RUNNING_QUANTUM ──> REAPING
       (block until quantum expiry
        or the running task's exit)

Only one PCB is RUNNING at a time: a task is resumed in DISPATCHING and
either reaped or paused again in REAPING before the next one is resumed.

If a task exits at the same moment its quantum expires, REAPING sees the
exit first and the task is finalized, never paused or requeued.

A ControlError on one task (resume/pause/reap failed) finalizes that PCB
as lost and the loop carries on with the rest. ResourceError (timer could
not be armed) and shutdown requests end the run: every live task is
killed and reaped before the exception leaves run().
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from models.enums import EventKind, ProcessState, SchedulerPhase
from models.pcb import PCBSnapshot, ProcessControlBlock, Task
from scheduler.errors import ConfigurationError, ControlError, ShutdownRequested
from scheduler.round_robin import ReadyQueue
from scheduler.signals import SignalCoordinator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchedulerSnapshot:
    """Read-only view of the engine after a dispatch cycle, for observers."""
    phase: SchedulerPhase
    quantum_ms: int
    running_pid: Optional[int]
    ready_pids: list[int]
    completion_order: list[int]
    quanta_granted: int
    elapsed_sec: float
    processes: list[PCBSnapshot]


@dataclass
class RunSummary:
    completion_order: list[int] = field(default_factory=list)
    dispatch_order: list[int] = field(default_factory=list)
    quanta_granted: int = 0
    elapsed_sec: float = 0.0
    processes: list[PCBSnapshot] = field(default_factory=list)


Observer = Callable[[SchedulerSnapshot], None]


class Scheduler:

    def __init__(
        self,
        quantum_ms: int,
        coordinator: SignalCoordinator,
        observer: Optional[Observer] = None,
    ):
        if quantum_ms <= 0:
            raise ConfigurationError(f"Quantum must be positive, got {quantum_ms}")
        self._quantum_ms = quantum_ms
        self._coordinator = coordinator
        self._observer = observer
        self._ready = ReadyQueue()
        self._pcbs: list[ProcessControlBlock] = []
        self._current: Optional[ProcessControlBlock] = None
        self._wake: Optional[EventKind] = None
        self._slice_started = 0.0
        self._started_at: Optional[float] = None
        self._completion_order: list[int] = []
        self._dispatch_order: list[int] = []
        self.phase = SchedulerPhase.DISPATCHING

    @property
    def quantum_ms(self) -> int:
        return self._quantum_ms

    @property
    def pcbs(self) -> list[ProcessControlBlock]:
        return list(self._pcbs)

    def set_observer(self, observer: Optional[Observer]) -> None:
        self._observer = observer

    def admit(self, task: Task) -> ProcessControlBlock:
        """Wrap a freshly launched (stopped) task in a PCB and queue it."""
        pcb = ProcessControlBlock(task)
        self._pcbs.append(pcb)
        self._ready.enqueue(pcb)
        logger.debug(f"Admitted pid {pcb.pid}: {pcb.command}")
        return pcb

    # ── Main loop ──────────────────────────────────────────────

    def run(self) -> RunSummary:
        """
        Drain the ready queue. Returns when every PCB is FINISHED.

        Fatal errors (ResourceError, ShutdownRequested, KeyboardInterrupt)
        propagate after all remaining tasks have been killed.
        """
        self._started_at = time.monotonic()
        self.phase = SchedulerPhase.DISPATCHING
        logger.info(
            f"Scheduling {len(self._pcbs)} processes with a {self._quantum_ms}ms quantum"
        )
        try:
            while self.phase is not SchedulerPhase.DONE:
                self._step()
        except BaseException:
            self.terminate_all()
            raise
        finally:
            self._coordinator.disarm()

        summary = RunSummary(
            completion_order=list(self._completion_order),
            dispatch_order=list(self._dispatch_order),
            quanta_granted=len(self._dispatch_order),
            elapsed_sec=self._elapsed(),
            processes=[pcb.snapshot() for pcb in self._pcbs],
        )
        logger.info(
            f"All processes finished in {summary.elapsed_sec:.3f}s "
            f"after {summary.quanta_granted} quanta; "
            f"completion order: {summary.completion_order}"
        )
        return summary

    def _step(self) -> None:
        if self.phase is SchedulerPhase.DISPATCHING:
            self._dispatch()
        elif self.phase is SchedulerPhase.RUNNING_QUANTUM:
            self._await_quantum()
        elif self.phase is SchedulerPhase.REAPING:
            self._reap()

    def _dispatch(self) -> None:
        if self._ready.is_empty():
            self.phase = SchedulerPhase.DONE
            self._publish()
            return

        pcb = self._ready.dequeue()
        try:
            # Tasks can end while waiting (exec failure, external kill)
            exit_code = pcb.task.try_reap()
            if exit_code is None:
                pcb.task.resume()
        except ControlError as e:
            logger.error(f"{e}; treating pid {pcb.pid} as lost")
            self._finalize(pcb, exit_code=None, lost=True)
            self._publish()
            return
        if exit_code is not None:
            self._finalize(pcb, exit_code=exit_code)
            self._publish()
            return

        pcb.mark_running()
        self._current = pcb
        self._dispatch_order.append(pcb.pid)
        self._slice_started = time.monotonic()
        # ResourceError here is fatal and propagates out of run()
        self._coordinator.arm(self._quantum_ms)
        self.phase = SchedulerPhase.RUNNING_QUANTUM

    def _await_quantum(self) -> None:
        try:
            self._wake = self._coordinator.wait_for_event(self._current.task)
        except ControlError as e:
            # try_reap failed while waiting; REAPING will hit the same error
            logger.debug(f"Wait interrupted by control failure: {e}")
            self._wake = EventKind.CHILD_EXITED
        self._coordinator.disarm()
        self._current.last_slice_ms = (time.monotonic() - self._slice_started) * 1000

        if self._wake is EventKind.SHUTDOWN:
            raise ShutdownRequested("Shutdown requested while scheduling")
        self.phase = SchedulerPhase.REAPING

    def _reap(self) -> None:
        pcb = self._current
        self._current = None
        self.phase = SchedulerPhase.DISPATCHING

        try:
            exit_code = pcb.task.try_reap()
        except ControlError as e:
            logger.error(f"{e}; treating pid {pcb.pid} as lost")
            self._finalize(pcb, exit_code=None, lost=True)
            self._publish()
            return

        if exit_code is not None:
            self._finalize(pcb, exit_code=exit_code)
        else:
            try:
                pcb.task.pause()
            except ControlError as e:
                logger.error(f"{e}; treating pid {pcb.pid} as lost")
                self._finalize(pcb, exit_code=None, lost=True)
            else:
                pcb.mark_preempted(self._quantum_ms)
                self._ready.requeue(pcb)
                logger.debug(
                    f"Preempted pid {pcb.pid} after {pcb.last_slice_ms:.1f}ms "
                    f"(total {pcb.cumulative_run_ms}ms)"
                )
        self._publish()

    def _finalize(self, pcb: ProcessControlBlock, exit_code: Optional[int], lost: bool = False) -> None:
        pcb.mark_finished(exit_code, lost=lost)
        self._completion_order.append(pcb.pid)
        if lost:
            return
        if exit_code == 0:
            logger.info(f"pid {pcb.pid} finished ({pcb.command})")
        elif exit_code < 0:
            logger.warning(f"pid {pcb.pid} killed by signal {-exit_code} ({pcb.command})")
        else:
            logger.warning(f"pid {pcb.pid} exited with status {exit_code} ({pcb.command})")

    # ── Shutdown ───────────────────────────────────────────────

    def terminate_all(self) -> None:
        """
        Kill and reap every task that has not finished yet.

        Used on fatal errors so no stopped children are left orphaned.
        """
        live = [pcb for pcb in self._pcbs if pcb.state is not ProcessState.FINISHED]
        while not self._ready.is_empty():
            self._ready.dequeue()
        self._current = None
        for pcb in live:
            try:
                pcb.task.kill()
            except ControlError as e:
                logger.error(str(e))
            pcb.mark_finished(None, lost=True)
            self._completion_order.append(pcb.pid)
        if live:
            logger.warning(f"Terminated {len(live)} unfinished processes")
        self.phase = SchedulerPhase.DONE

    # ── Reporting ──────────────────────────────────────────────

    def snapshot(self) -> SchedulerSnapshot:
        return SchedulerSnapshot(
            phase=self.phase,
            quantum_ms=self._quantum_ms,
            running_pid=self._current.pid if self._current else None,
            ready_pids=[pcb.pid for pcb in self._ready],
            completion_order=list(self._completion_order),
            quanta_granted=len(self._dispatch_order),
            elapsed_sec=self._elapsed(),
            processes=[pcb.snapshot() for pcb in self._pcbs],
        )

    def _elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return time.monotonic() - self._started_at

    def _publish(self) -> None:
        if self._observer is None:
            return
        try:
            self._observer(self.snapshot())
        except Exception as e:
            # Reporting is non-authoritative; it must not stop the scheduler
            logger.error(f"Status observer failed: {e}", exc_info=True)
