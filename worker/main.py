"""
Scheduler entry point.

Reads one command per line from FILE (or stdin), launches each one
stopped, then runs them round robin with a fixed quantum:

    python -m worker.main -q 250 commands.txt
    USPS_QUANTUM_MSEC=100 usps < commands.txt
    usps -q 50 -v --status-port 8000 commands.txt

Order of operations matters:

    1. Resolve the quantum        → ConfigurationError before anything is launched
    2. Open the command source    → InputSourceError
    3. Install signal handlers    (SIGCHLD, SIGTERM → scheduler channel)
    4. Launch every command       → ResourceError, unreadable input or SIGTERM
                                    kills the ones already launched
    5. Start the status API       (optional, after the last fork)
    6. Run the dispatch loop

Exit status: 0 when every process has finished (whatever their own exit
codes were), 1 on a fatal error, 130 when interrupted.
"""

import argparse
import logging
import sys
from typing import Optional

from api.board import StatusBoard
from api.server import StatusServer
from commands.parser import open_command_source, read_commands
from config.settings import load_settings, resolve_quantum
from scheduler.engine import Scheduler
from scheduler.errors import (
    ConfigurationError,
    InputSourceError,
    ResourceError,
    ShutdownRequested,
)
from scheduler.signals import SignalCoordinator
from worker.launcher import ProcessLauncher

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="usps",
        description="Run commands as OS processes under a round-robin scheduler",
    )
    parser.add_argument(
        "-q", "--quantum", type=int, default=None,
        help="Time quantum in milliseconds (overrides USPS_QUANTUM_MSEC)",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Log scheduling decisions (-v info, -vv debug)",
    )
    parser.add_argument(
        "--status-port", type=int, default=None,
        help="Serve a read-only status API on this port (overrides STATUS_PORT)",
    )
    parser.add_argument(
        "file", nargs="?", default=None,
        help="Command file, one command per line (default: stdin)",
    )
    return parser


def configure_logging(verbose: int, default_level: str = "WARNING") -> None:
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = getattr(logging, default_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        force=True,
    )


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = load_settings()
        configure_logging(args.verbose, settings.LOG_LEVEL)
        quantum_ms = resolve_quantum(args.quantum, settings.USPS_QUANTUM_MSEC)
        source = open_command_source(args.file)
    except (ConfigurationError, InputSourceError) as e:
        logger.error(str(e))
        return EXIT_FATAL

    status_port = args.status_port if args.status_port is not None else settings.STATUS_PORT
    board = StatusBoard() if status_port is not None else None
    server: Optional[StatusServer] = None

    with SignalCoordinator() as coordinator:
        scheduler = Scheduler(
            quantum_ms, coordinator, observer=board.publish if board else None
        )
        launcher = ProcessLauncher()

        try:
            try:
                for command in read_commands(source):
                    scheduler.admit(launcher.launch_suspended(command))
                    # SIGTERM while launching: stop before launching anything else
                    if coordinator.shutdown_pending():
                        raise ShutdownRequested("Shutdown requested while launching")
            finally:
                if source is not sys.stdin:
                    source.close()
        except (ResourceError, InputSourceError) as e:
            logger.error(str(e))
            scheduler.terminate_all()
            return EXIT_FATAL
        except (ShutdownRequested, KeyboardInterrupt):
            logger.warning("Interrupted; launched processes were terminated")
            scheduler.terminate_all()
            return EXIT_INTERRUPTED
        except BaseException:
            scheduler.terminate_all()
            raise

        if board is not None:
            board.publish(scheduler.snapshot())
            server = StatusServer(board, settings.STATUS_HOST, status_port)
            server.start()

        try:
            scheduler.run()
        except ResourceError as e:
            logger.error(str(e))
            return EXIT_FATAL
        except (ShutdownRequested, KeyboardInterrupt):
            logger.warning("Interrupted; remaining processes were terminated")
            return EXIT_INTERRUPTED
        finally:
            if server is not None:
                server.stop()

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
