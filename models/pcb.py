"""
Process Control Block — the scheduler's record for one schedulable task.

Lifecycle:

    READY ⇄ RUNNING → FINISHED

Each transition method checks the source state first, so a PCB can never
be dispatched twice, finalized twice, or put back after it finished.

PCBSnapshot is a frozen copy handed to observers (the status API).
Observers never see the live PCB, only what it looked like at the end of
a dispatch cycle.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

from models.enums import ProcessState


class Task(Protocol):
    """
    What the scheduler needs from a schedulable unit.

    worker/control.py implements this for real OS processes. Tests use
    in-memory fakes with the same four operations.
    """

    pid: int
    argv: list[str]

    def resume(self) -> None:
        """Let the task run (SIGCONT)."""
        ...

    def pause(self) -> None:
        """Stop the task where it is (SIGSTOP)."""
        ...

    def try_reap(self) -> Optional[int]:
        """Exit code if the task has exited, None while it is still alive. Never blocks."""
        ...

    def kill(self) -> None:
        """Terminate and reap the task."""
        ...


@dataclass(frozen=True)
class PCBSnapshot:
    pid: int
    command: str
    state: ProcessState
    cumulative_run_ms: int
    dispatch_count: int
    exit_code: Optional[int]
    lost: bool
    last_slice_ms: float


class ProcessControlBlock:

    def __init__(self, task: Task):
        self.task = task
        self.state = ProcessState.READY
        self.cumulative_run_ms = 0
        self.dispatch_count = 0
        self.exit_code: Optional[int] = None
        self.lost = False
        self.last_slice_ms = 0.0

    @property
    def pid(self) -> int:
        return self.task.pid

    @property
    def command(self) -> str:
        return " ".join(self.task.argv)

    @property
    def failed(self) -> bool:
        """True when the workload finished with a non-zero status or was lost."""
        return self.lost or (self.exit_code is not None and self.exit_code != 0)

    def mark_running(self) -> None:
        self._require(ProcessState.READY, "dispatch")
        self.state = ProcessState.RUNNING
        self.dispatch_count += 1

    def mark_preempted(self, quantum_ms: int) -> None:
        """Quantum used up: charge it and go back to READY."""
        self._require(ProcessState.RUNNING, "preempt")
        self.cumulative_run_ms += quantum_ms
        self.state = ProcessState.READY

    def mark_finished(self, exit_code: Optional[int], lost: bool = False) -> None:
        if self.state is ProcessState.FINISHED:
            raise ValueError(f"PCB {self.pid} is already FINISHED")
        self.state = ProcessState.FINISHED
        self.exit_code = exit_code
        self.lost = lost

    def snapshot(self) -> PCBSnapshot:
        return PCBSnapshot(
            pid=self.pid,
            command=self.command,
            state=self.state,
            cumulative_run_ms=self.cumulative_run_ms,
            dispatch_count=self.dispatch_count,
            exit_code=self.exit_code,
            lost=self.lost,
            last_slice_ms=self.last_slice_ms,
        )

    def _require(self, expected: ProcessState, action: str) -> None:
        if self.state is not expected:
            raise ValueError(
                f"Cannot {action} PCB {self.pid}: state is {self.state.value}, "
                f"expected {expected.value}"
            )

    def __repr__(self) -> str:
        return f"<PCB pid={self.pid} state={self.state.value} run={self.cumulative_run_ms}ms>"
