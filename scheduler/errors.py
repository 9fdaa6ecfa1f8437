"""
Error taxonomy for the scheduler.

Fatal (abort the whole run, after killing any live children):
    ConfigurationError  no usable quantum
    InputSourceError    command file cannot be opened or decoded
    ResourceError       fork or timer creation failed

Recoverable (handled per PCB, the run continues):
    ControlError        resume/pause/reap failed on a handle we thought was alive

A command that fails to exec or exits non-zero is not an error here at
all. It is a normal completion, recorded as the PCB's exit code.
"""


class SchedulerError(Exception):
    """Base class for every error raised by the scheduler and its collaborators."""


class ConfigurationError(SchedulerError):
    pass


class InputSourceError(SchedulerError):
    pass


class ResourceError(SchedulerError):
    pass


class ControlError(SchedulerError):
    """A process-control call failed for a specific task."""

    def __init__(self, pid: int, operation: str, reason: str):
        self.pid = pid
        self.operation = operation
        super().__init__(f"{operation} failed for pid {pid}: {reason}")


class ShutdownRequested(SchedulerError):
    """SIGTERM arrived while commands were being launched or run."""
