"""
Command source — turns the input script into argument vectors.

One command per line:

    # comments and blank lines are skipped
    sleep 2
    grep -c "hello world" notes.txt

Lines are split with shell-like quoting rules (shlex), but nothing is
expanded: no globs, variables or pipes. Each argv is yielded as soon as
its line is read, so commands can be streamed from stdin.
"""

import logging
import shlex
import sys
from typing import Iterator, Optional, TextIO

from scheduler.errors import InputSourceError

logger = logging.getLogger(__name__)


def open_command_source(path: Optional[str]) -> TextIO:
    """Open the named command file, or return stdin when no path is given."""
    if path is None or path == "-":
        return sys.stdin
    try:
        return open(path, encoding="utf-8")
    except OSError as e:
        raise InputSourceError(f"Cannot open command file {path!r}: {e.strerror}") from e


def parse_command(line: str) -> list[str]:
    """Split one line into an argv. Empty list for blank/comment lines."""
    return shlex.split(line, comments=True)


def _numbered_lines(stream: TextIO) -> Iterator[tuple[int, str]]:
    lineno = 0
    lines = iter(stream)
    while True:
        try:
            line = next(lines)
        except StopIteration:
            return
        except (UnicodeDecodeError, OSError) as e:
            raise InputSourceError(f"Cannot read command input after line {lineno}: {e}") from e
        lineno += 1
        yield lineno, line


def read_commands(stream: TextIO) -> Iterator[list[str]]:
    """Yield one argv per command line. Unreadable input raises InputSourceError."""
    for lineno, line in _numbered_lines(stream):
        try:
            argv = parse_command(line)
        except ValueError as e:
            logger.warning(f"Skipping line {lineno}: {e}")
            continue
        if argv:
            yield argv
