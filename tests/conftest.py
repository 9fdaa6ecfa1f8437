"""
Shared test fixtures.

These replace real infrastructure with lightweight in-memory alternatives:
- OS processes → FakeTask (same resume/pause/try_reap/kill surface)
- A running status server → httpx.AsyncClient with ASGI transport (no network)

FakeTask "needs" a number of quanta. On the resume that grants its last
quantum it exits immediately and raises a child-changed event on the
coordinator, the way SIGCHLD would. A shared FakeCPU records which task
holds the CPU so tests can check that two tasks never run at once.
"""

import itertools
from typing import Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from api.board import StatusBoard
from api.main import create_app
from scheduler.errors import ControlError
from scheduler.signals import SignalCoordinator


class FakeCPU:

    def __init__(self):
        self.running: Optional[int] = None
        self.history: list[int] = []
        self.overlaps = 0

    def take(self, pid: int) -> None:
        if self.running is not None:
            self.overlaps += 1
        self.running = pid
        self.history.append(pid)

    def release(self, pid: int) -> None:
        if self.running == pid:
            self.running = None


class FakeTask:

    _pids = itertools.count(1000)

    def __init__(
        self,
        coordinator: SignalCoordinator,
        cpu: FakeCPU,
        quanta_needed: int = 1,
        exit_code: int = 0,
        fail_on: Optional[str] = None,
        notify_exit: bool = True,
    ):
        self.pid = next(self._pids)
        self.argv = [f"fake-{self.pid}"]
        self.coordinator = coordinator
        self.cpu = cpu
        self.quanta_needed = quanta_needed
        self.exit_code = exit_code
        self.fail_on = fail_on
        self.notify_exit = notify_exit
        self.returncode: Optional[int] = None
        self.resumes = 0
        self.pauses = 0
        self.killed = False

    def resume(self) -> None:
        if self.fail_on == "resume":
            raise ControlError(self.pid, "resume", "injected failure")
        self.resumes += 1
        self.cpu.take(self.pid)
        if self.resumes >= self.quanta_needed:
            self.returncode = self.exit_code
            self.cpu.release(self.pid)
            if self.notify_exit:
                self.coordinator.notify_child_changed()

    def pause(self) -> None:
        if self.fail_on == "pause":
            raise ControlError(self.pid, "pause", "injected failure")
        self.pauses += 1
        self.cpu.release(self.pid)

    def try_reap(self) -> Optional[int]:
        if self.fail_on == "reap":
            raise ControlError(self.pid, "reap", "injected failure")
        return self.returncode

    def kill(self) -> None:
        self.killed = True
        self.cpu.release(self.pid)
        if self.returncode is None:
            self.returncode = -9


@pytest.fixture
def coordinator():
    """A SignalCoordinator with its handlers installed for the test's duration."""
    coord = SignalCoordinator()
    coord.install()
    yield coord
    coord.uninstall()


@pytest.fixture
def cpu():
    return FakeCPU()


@pytest.fixture
def make_task(coordinator, cpu):
    """Factory for FakeTasks bound to the test's coordinator and CPU."""
    def _make(**kwargs) -> FakeTask:
        return FakeTask(coordinator, cpu, **kwargs)
    return _make


@pytest.fixture
def board():
    return StatusBoard()


@pytest_asyncio.fixture
async def client(board):
    """
    Test HTTP client that talks directly to the status app.

    ASGITransport means requests go directly to the app in-process,
    no HTTP server or network involved.
    """
    app = create_app(board)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
