"""Lifecycle hooks called while repositories are updated.

For every repository the updater calls, in order:

1. ``pre_update`` with the repository path and the tool's display name
2. ``pre_command`` before each command
3. ``post_command`` after each command, with the command's output and wait
   status; returning True skips the remaining commands of the repository
4. ``post_update`` once the repository is done

Any object with these four methods can be handed to the updater.
`DefaultHooks` reports progress and failures on the console;
`CallbackHooks` replaces single hooks with plain functions.

Example:
    ```python
    def log_command(data: PreCommandData) -> None:
        print("running", data["command"])

    hooks = CallbackHooks(DefaultHooks(), pre_command=log_command)
    RepoUpdater(hooks=hooks).run_all()
    ```
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Optional, Protocol, TypedDict

from rich.console import Console
from rich.markup import escape

from .runner import CommandOutcome, classify_status, status_exit_code, status_signal

logger = logging.getLogger(__name__)

# Seconds to wait after a command was interrupted, so a second interrupt can
# stop the whole run.
INTERRUPT_GRACE = 1.0


class PreUpdateData(TypedDict):
    """Data passed to the pre-update hook."""

    path: str
    tool_name: str


class PreCommandData(TypedDict):
    """Data passed to the pre-command hook."""

    command: str


class PostCommandData(TypedDict):
    """Data passed to the post-command hook."""

    command: str
    output: str
    exit_status: int


class PostUpdateData(TypedDict):
    """Data passed to the post-update hook. Carries nothing yet."""


class UpdateHooks(Protocol):
    """Hooks called by the updater around every repository and command."""

    def pre_update(self, data: PreUpdateData) -> None:
        """Called before a repository is updated."""
        ...

    def pre_command(self, data: PreCommandData) -> None:
        """Called before each command."""
        ...

    def post_command(self, data: PostCommandData) -> bool:
        """Called after each command; return True to skip the rest."""
        ...

    def post_update(self, data: PostUpdateData) -> None:
        """Called after a repository is updated."""
        ...


def describe_failure(command: str, exit_status: int, output: str = "") -> str:
    """Describe why a command failed.

    Args:
        command: The command that ran.
        exit_status: Its nonzero wait status.
        output: Its output; for commands that could not be started this is
            the error message.

    Returns:
        str: A one-line description of the failure.
    """
    outcome = classify_status(exit_status)
    if outcome is CommandOutcome.LAUNCH_FAILURE:
        reason = output.strip()
        return f"Command '{command}' failed to execute: {reason}".rstrip()
    if outcome is CommandOutcome.INTERRUPTED:
        return f"Command '{command}' interrupted by user - interrupt again to abort."
    if outcome is CommandOutcome.SIGNALED:
        return f"Command '{command}' interrupted with signal {status_signal(exit_status)}"
    return f"Command '{command}' exited with value {status_exit_code(exit_status)}"


class DefaultHooks:
    """Default hooks reporting on a rich console.

    Attributes:
        console (Console): Console messages are printed to.
        silent (bool): Suppress all messages. Failed commands still skip the
            rest of their repository.
        interrupt_grace (float): Seconds to pause after an interrupted command.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        silent: bool = False,
        interrupt_grace: float = INTERRUPT_GRACE,
    ):
        """Initialize hooks."""
        self.console = console or Console()
        self.silent = silent
        self.interrupt_grace = interrupt_grace

    def pre_update(self, data: PreUpdateData) -> None:
        """Announce the repository about to be updated."""
        if self.silent:
            return
        project = Path(data["path"]).name
        self.console.print(
            f"[bold]updating {escape(project)} using {escape(data['tool_name'])}:[/bold]",
            soft_wrap=True,
        )

    def pre_command(self, data: PreCommandData) -> None:
        """Do nothing; commands are not announced."""

    def post_command(self, data: PostCommandData) -> bool:
        """Report a failed command and skip the rest of the repository.

        Returns:
            bool: False if the command succeeded, True otherwise.
        """
        exit_status = data["exit_status"]
        outcome = classify_status(exit_status)
        if outcome is CommandOutcome.SUCCESS:
            return False

        message = describe_failure(data["command"], exit_status, data["output"])
        logger.debug("%s (%s)", message, outcome.value)
        if not self.silent:
            self.console.print(escape(message), style="bold", soft_wrap=True)

        if outcome is CommandOutcome.INTERRUPTED:
            time.sleep(self.interrupt_grace)
        return True

    def post_update(self, data: PostUpdateData) -> None:
        """Do nothing."""


class CallbackHooks:
    """Hooks built from plain functions.

    Every function that is not given falls back to the matching method of
    `base`.
    """

    def __init__(
        self,
        base: Optional[UpdateHooks] = None,
        pre_update: Optional[Callable[[PreUpdateData], object]] = None,
        pre_command: Optional[Callable[[PreCommandData], object]] = None,
        post_command: Optional[Callable[[PostCommandData], object]] = None,
        post_update: Optional[Callable[[PostUpdateData], object]] = None,
    ):
        """Initialize hooks."""
        self.base: UpdateHooks = base if base is not None else DefaultHooks()
        self._pre_update = pre_update
        self._pre_command = pre_command
        self._post_command = post_command
        self._post_update = post_update

    def pre_update(self, data: PreUpdateData) -> None:
        if self._pre_update is None:
            self.base.pre_update(data)
        else:
            self._pre_update(data)

    def pre_command(self, data: PreCommandData) -> None:
        if self._pre_command is None:
            self.base.pre_command(data)
        else:
            self._pre_command(data)

    def post_command(self, data: PostCommandData) -> bool:
        if self._post_command is None:
            return self.base.post_command(data)
        return bool(self._post_command(data))

    def post_update(self, data: PostUpdateData) -> None:
        if self._post_update is None:
            self.base.post_update(data)
        else:
            self._post_update(data)
