"""
Shared enumerations used across the entire project.

Using Python enums (inheriting from str) means:
- They serialize to JSON automatically ("READY", not "ProcessState.READY")
- They work as FastAPI response fields
- Typos become immediate errors instead of silent bugs
"""

import enum


class ProcessState(str, enum.Enum):
    READY = "READY"          # in the ready queue, stopped, waiting for a quantum
    RUNNING = "RUNNING"      # resumed and holding the CPU for the current quantum
    FINISHED = "FINISHED"    # reaped (or lost), removed from every container


class SchedulerPhase(str, enum.Enum):
    DISPATCHING = "DISPATCHING"          # pick the next PCB or stop
    RUNNING_QUANTUM = "RUNNING_QUANTUM"  # blocked until expiry or exit
    REAPING = "REAPING"                  # collect exit status, finalize or requeue
    DONE = "DONE"                        # ready queue drained


class EventKind(str, enum.Enum):
    QUANTUM_EXPIRED = "QUANTUM_EXPIRED"  # the armed timer fired
    CHILD_CHANGED = "CHILD_CHANGED"      # SIGCHLD: some child exited, stopped or continued
    CHILD_EXITED = "CHILD_EXITED"        # the running task has exited
    SHUTDOWN = "SHUTDOWN"                # SIGTERM received
