"""
Process launcher — starts one OS process per command, frozen before exec.

subprocess.Popen cannot be used here: it blocks until the child has
exec'd (or failed to), so a child that stops itself first would never
let Popen return. Instead:

    parent                          child
    ──────                          ─────
    fork() ───────────────────────> kill(self, SIGSTOP)   ← frozen here
    waitpid(pid, WUNTRACED)  <───── (stop reported)
    return ProcessHandle
        ...
    scheduler resumes (SIGCONT) ──> execvp(argv)          ← program starts

The parent does not return until the stop has been observed, so the
target program has provably not started when the handle is admitted.

If execvp fails (command not found, not executable) the child prints a
diagnostic and exits with 127, just like a shell. The scheduler sees that
as an ordinary non-zero exit of that one command.
"""

import logging
import os
import signal
import sys

from scheduler.errors import ResourceError
from worker.control import ProcessHandle

logger = logging.getLogger(__name__)

EXEC_FAILED_STATUS = 127


class ProcessLauncher:

    def launch_suspended(self, argv: list[str]) -> ProcessHandle:
        """
        Create a process for argv that will not run until resumed.

        Raises ValueError for an empty argv and ResourceError if the OS
        refuses to create another process.
        """
        if not argv:
            raise ValueError("Cannot launch an empty command")

        # Anything still buffered would otherwise be written twice
        sys.stdout.flush()
        sys.stderr.flush()

        try:
            pid = os.fork()
        except OSError as e:
            raise ResourceError(f"Could not create process for {argv[0]!r}: {e.strerror}") from e

        if pid == 0:
            _exec_child(argv)  # never returns

        _, status = os.waitpid(pid, os.WUNTRACED)
        if os.WIFSTOPPED(status):
            logger.debug(f"Launched pid {pid} (stopped): {' '.join(argv)}")
            return ProcessHandle(pid, argv)

        # Died before reaching the stop (e.g. killed from outside).
        # Already reaped, so hand back a finished handle.
        returncode = os.waitstatus_to_exitcode(status)
        logger.warning(f"pid {pid} terminated before it could be suspended ({returncode})")
        return ProcessHandle(pid, argv, returncode=returncode)


def _exec_child(argv: list[str]) -> None:
    """Runs in the forked child. Always ends in exec or os._exit."""
    status = EXEC_FAILED_STATUS
    try:
        # Python ignores SIGPIPE; the target program should get the default
        signal.signal(signal.SIGPIPE, signal.SIG_DFL)
        os.kill(os.getpid(), signal.SIGSTOP)
        os.execvp(argv[0], argv)
    except OSError as e:
        os.write(2, f"{argv[0]}: {e.strerror}\n".encode())
    except BaseException:
        status = 1
    finally:
        os._exit(status)
