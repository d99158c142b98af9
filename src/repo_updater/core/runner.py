"""External command execution for repo-updater.

Commands are run through the shell, one at a time, with their standard error
merged into standard output. The exit status handed back follows the POSIX
wait-status convention so callers can tell signals from exit codes:

- ``-1``: the command could not be started
- ``status & 127``: number of the signal that terminated the command
- ``status >> 8``: exit code of the command
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import sys
import threading
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Protocol, TextIO, Tuple

logger = logging.getLogger(__name__)

LAUNCH_FAILURE_STATUS = -1


class CommandOutcome(Enum):
    """Classification of a command's exit status."""

    SUCCESS = "success"
    LAUNCH_FAILURE = "launch_failure"
    INTERRUPTED = "interrupted"
    SIGNALED = "signaled"
    NONZERO_EXIT = "nonzero_exit"


def to_wait_status(returncode: int) -> int:
    """Convert a `subprocess` return code to a wait status."""
    if returncode < 0:
        return -returncode & 127
    return (returncode & 0xFF) << 8


def status_signal(status: int) -> int:
    """Get the number of the signal encoded in a wait status."""
    return status & 127


def status_exit_code(status: int) -> int:
    """Get the exit code encoded in a wait status."""
    return status >> 8


def classify_status(status: int) -> CommandOutcome:
    """Classify a wait status."""
    if status == 0:
        return CommandOutcome.SUCCESS
    if status == LAUNCH_FAILURE_STATUS:
        return CommandOutcome.LAUNCH_FAILURE
    sig = status_signal(status)
    if sig == int(signal.SIGINT):
        return CommandOutcome.INTERRUPTED
    if sig:
        return CommandOutcome.SIGNALED
    return CommandOutcome.NONZERO_EXIT


class CommandRunner(Protocol):
    """Runs a single command line."""

    def run(self, command: str) -> Tuple[str, int]:
        """Run a command and return its combined output and wait status."""
        ...


def _restore_sigint() -> None:
    signal.signal(signal.SIGINT, signal.SIG_DFL)


@contextmanager
def _sigint_ignored() -> Iterator[None]:
    """Ignore SIGINT in this process while a child command runs.

    An interrupt then stops the command instead of the whole run.
    """
    if os.name != "posix" or threading.current_thread() is not threading.main_thread():
        yield
        return

    previous = signal.signal(signal.SIGINT, signal.SIG_IGN)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


class ShellCommandRunner:
    """Runs commands through the shell.

    Attributes:
        passthrough (bool): Whether command output is copied to `stream` while
            it is captured.
        stream (Optional[TextIO]): Where passed-through output goes (default:
            standard output at the time the command runs).
    """

    def __init__(self, passthrough: bool = True, stream: Optional[TextIO] = None):
        """Initialize runner."""
        self.passthrough = passthrough
        self.stream = stream

    def run(self, command: str) -> Tuple[str, int]:
        """Run a command in the current working directory.

        Args:
            command: Command line, interpreted by the shell.

        Returns:
            Tuple[str, int]: Combined standard output and error, and the wait
                status. A command that cannot be started yields the error
                message and ``-1``.
        """
        logger.debug("Running %s in %s", command, os.getcwd())
        try:
            with _sigint_ignored():
                if self.passthrough:
                    return self._run_tee(command)
                return self._run_captured(command)
        except OSError as e:
            logger.debug("Could not start %s: %s", command, e)
            return str(e), LAUNCH_FAILURE_STATUS

    def _popen_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "shell": True,
            "stdout": subprocess.PIPE,
            "stderr": subprocess.STDOUT,
            "text": True,
            "errors": "replace",
        }
        if os.name == "posix":
            kwargs["preexec_fn"] = _restore_sigint
        return kwargs

    def _run_captured(self, command: str) -> Tuple[str, int]:
        result = subprocess.run(command, **self._popen_kwargs())
        return result.stdout, to_wait_status(result.returncode)

    def _run_tee(self, command: str) -> Tuple[str, int]:
        stream = self.stream or sys.stdout
        captured: List[str] = []
        with subprocess.Popen(command, **self._popen_kwargs()) as process:
            if process.stdout is not None:
                for line in process.stdout:
                    captured.append(line)
                    stream.write(line)
                    stream.flush()
        return "".join(captured), to_wait_status(process.returncode)
