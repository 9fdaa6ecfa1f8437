"""
Runs the status API inside the scheduler process.

uvicorn.Server.run() is started on a daemon thread so the scheduler keeps
the main thread (it needs it for signal handling). uvicorn only installs
its own signal handlers on the main thread, so it leaves SIGCHLD and
SIGTERM to the scheduler.

The server is started after every command has been launched: forking
while the server thread is running is avoided.
"""

import logging
import threading
from typing import Optional

import uvicorn

from api.board import StatusBoard
from api.main import create_app

logger = logging.getLogger(__name__)


class StatusServer:

    def __init__(self, board: StatusBoard, host: str, port: int):
        config = uvicorn.Config(
            create_app(board),
            host=host,
            port=port,
            log_level="warning",
            lifespan="off",
        )
        self._server = uvicorn.Server(config)
        self._thread: Optional[threading.Thread] = None
        self.host = host
        self.port = port

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self._server.run, name="status-api", daemon=True
        )
        self._thread.start()
        logger.info(f"Status API listening on http://{self.host}:{self.port}")

    def stop(self, timeout: float = 2.0) -> None:
        """Ask uvicorn to exit and wait briefly for the thread."""
        self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout)
        self._thread = None
