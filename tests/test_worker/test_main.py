"""
End-to-end tests for the `usps` entry point.

Each test writes a command file, runs main() in-process, and checks the
exit status and what the commands left behind. Configuration tests run
from an empty tmp directory so no stray .env file is picked up.
"""

import os
import signal
import sys

import pytest

from worker import main as entry
from worker.launcher import ProcessLauncher
from scheduler.errors import ResourceError

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX process control")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("USPS_QUANTUM_MSEC", raising=False)
    monkeypatch.delenv("STATUS_PORT", raising=False)


def _append_command(out, text: str) -> str:
    return f'{sys.executable} -c "open(\'{out}\', \'a\').write(\'{text}\\n\')"'


def _write_commands(tmp_path, lines) -> str:
    path = tmp_path / "commands.txt"
    path.write_text("\n".join(lines) + "\n")
    return str(path)


def test_quick_commands_complete_in_order(tmp_path):
    out = tmp_path / "out.txt"
    commands = _write_commands(tmp_path, [
        "# three short jobs",
        _append_command(out, "a"),
        "",
        _append_command(out, "b"),
        _append_command(out, "c"),
    ])

    assert entry.main(["-q", "1000", commands]) == entry.EXIT_OK
    assert out.read_text().splitlines() == ["a", "b", "c"]


def test_long_commands_are_time_sliced(tmp_path):
    script = "import time; time.sleep(0.3)"
    commands = _write_commands(tmp_path, [
        f'{sys.executable} -c "{script}"',
        f'{sys.executable} -c "{script}"',
    ])

    assert entry.main(["-q", "50", commands]) == entry.EXIT_OK


def test_failing_command_does_not_fail_the_run(tmp_path):
    commands = _write_commands(tmp_path, [
        f'{sys.executable} -c "raise SystemExit(4)"',
        "/nonexistent/usps-no-such-program",
    ])

    assert entry.main(["-q", "500", commands]) == entry.EXIT_OK


def test_environment_quantum_is_used_without_override(tmp_path, monkeypatch):
    monkeypatch.setenv("USPS_QUANTUM_MSEC", "200")
    commands = _write_commands(tmp_path, [f'{sys.executable} -c "pass"'])

    assert entry.main([commands]) == entry.EXIT_OK


def test_missing_quantum_fails_before_launching(tmp_path, monkeypatch):
    launched = []
    monkeypatch.setattr(ProcessLauncher, "launch_suspended", lambda self, argv: launched.append(argv))
    commands = _write_commands(tmp_path, ["true"])

    assert entry.main([commands]) == entry.EXIT_FATAL
    assert launched == []


def test_invalid_environment_quantum_is_fatal(tmp_path, monkeypatch):
    monkeypatch.setenv("USPS_QUANTUM_MSEC", "soon")
    commands = _write_commands(tmp_path, ["true"])

    assert entry.main([commands]) == entry.EXIT_FATAL


def test_non_positive_override_is_fatal(tmp_path):
    commands = _write_commands(tmp_path, ["true"])
    assert entry.main(["-q", "0", commands]) == entry.EXIT_FATAL


def test_missing_command_file_is_fatal(tmp_path):
    assert entry.main(["-q", "100", str(tmp_path / "nope.txt")]) == entry.EXIT_FATAL


def test_launch_failure_kills_already_launched(tmp_path, monkeypatch):
    launched = []
    real_launch = ProcessLauncher.launch_suspended

    def _launch_once_then_fail(self, argv):
        if launched:
            raise ResourceError("Could not create process: out of pids")
        handle = real_launch(self, argv)
        launched.append(handle)
        return handle

    monkeypatch.setattr(ProcessLauncher, "launch_suspended", _launch_once_then_fail)
    commands = _write_commands(tmp_path, [
        f'{sys.executable} -c "import time; time.sleep(60)"',
        f'{sys.executable} -c "pass"',
    ])

    assert entry.main(["-q", "100", commands]) == entry.EXIT_FATAL
    assert len(launched) == 1
    assert launched[0].returncode == -9


def _recording_launch(monkeypatch, after_launch=None) -> list:
    launched = []
    real_launch = ProcessLauncher.launch_suspended

    def _launch(self, argv):
        handle = real_launch(self, argv)
        launched.append(handle)
        if after_launch is not None:
            after_launch()
        return handle

    monkeypatch.setattr(ProcessLauncher, "launch_suspended", _launch)
    return launched


def test_undecodable_input_kills_already_launched(tmp_path, monkeypatch):
    launched = _recording_launch(monkeypatch)
    path = tmp_path / "commands.txt"
    # the bad bytes sit past the first read chunk, after a valid command
    path.write_bytes(
        f'{sys.executable} -c "import time; time.sleep(60)"\n'.encode()
        + b"#" + b"x" * 9000 + b"\n"
        + b"\xff\xfe\n"
    )

    assert entry.main(["-q", "100", str(path)]) == entry.EXIT_FATAL
    assert len(launched) == 1
    assert launched[0].returncode == -9


def test_sigterm_while_launching_stops_launching(tmp_path, monkeypatch):
    launched = _recording_launch(
        monkeypatch, after_launch=lambda: os.kill(os.getpid(), signal.SIGTERM)
    )
    commands = _write_commands(tmp_path, [
        f'{sys.executable} -c "import time; time.sleep(60)"',
        f'{sys.executable} -c "pass"',
        f'{sys.executable} -c "pass"',
    ])

    assert entry.main(["-q", "100", commands]) == entry.EXIT_INTERRUPTED
    assert len(launched) == 1
    assert launched[0].returncode == -9


def test_usage_error_exits_with_argparse_status():
    with pytest.raises(SystemExit) as exc:
        entry.main(["-q", "fast"])
    assert exc.value.code == 2
