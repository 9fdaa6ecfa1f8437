"""
Process control — the Task capability for real OS processes.

    resume()    SIGCONT
    pause()     SIGSTOP
    try_reap()  waitpid(pid, WNOHANG)
    kill()      SIGKILL + blocking waitpid

try_reap() waits on this handle's own pid only. Using waitpid(-1) would
steal the exit status of some other child that the scheduler has not
asked about yet.

Once a process has been reaped its pid belongs to the kernel again and
may be handed to an unrelated process, so the handle caches the exit
code and refuses to send any further signals (ControlError).
"""

import logging
import os
import signal
from typing import Optional

from scheduler.errors import ControlError

logger = logging.getLogger(__name__)


class ProcessHandle:

    def __init__(self, pid: int, argv: list[str], returncode: Optional[int] = None):
        self.pid = pid
        self.argv = list(argv)
        self.returncode = returncode

    @property
    def reaped(self) -> bool:
        return self.returncode is not None

    def resume(self) -> None:
        self._send(signal.SIGCONT, "resume")

    def pause(self) -> None:
        self._send(signal.SIGSTOP, "pause")

    def try_reap(self) -> Optional[int]:
        """
        Collect the exit status if the process has terminated.

        Returns the exit code (negative signal number if it was killed by a
        signal) or None while it is still alive. Stopped processes count as
        alive. Repeated calls after the reap return the cached code.
        """
        if self.reaped:
            return self.returncode
        try:
            pid, status = os.waitpid(self.pid, os.WNOHANG)
        except ChildProcessError as e:
            raise ControlError(self.pid, "reap", "not a child of this process or already reaped") from e
        if pid == 0:
            return None
        self.returncode = os.waitstatus_to_exitcode(status)
        logger.debug(f"Reaped pid {self.pid} with status {self.returncode}")
        return self.returncode

    def kill(self) -> None:
        """Terminate the process (even while stopped) and reap it."""
        if self.reaped:
            return
        try:
            os.kill(self.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        except OSError as e:
            raise ControlError(self.pid, "kill", e.strerror or str(e)) from e
        try:
            _, status = os.waitpid(self.pid, 0)
        except ChildProcessError as e:
            raise ControlError(self.pid, "kill", "process vanished before it could be reaped") from e
        self.returncode = os.waitstatus_to_exitcode(status)

    def _send(self, signum: int, operation: str) -> None:
        if self.reaped:
            raise ControlError(self.pid, operation, "process has already been reaped")
        try:
            os.kill(self.pid, signum)
        except OSError as e:
            raise ControlError(self.pid, operation, e.strerror or str(e)) from e

    def __repr__(self) -> str:
        return f"<ProcessHandle pid={self.pid} argv={self.argv!r} returncode={self.returncode}>"
