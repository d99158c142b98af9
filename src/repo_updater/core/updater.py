"""Sequential repository updates.

`RepoUpdater` walks the discovered repositories one at a time. Its cursor
remembers how far the walk got, so updates can be spread over several calls,
repeated or started over:

```python
updater = RepoUpdater()
print(f"{updater.repo_count()} repositories")
while updater.remaining_count():
    print("next:", updater.current_path())
    updater.step()
```
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Mapping, Optional, Tuple, Union

from .config import Config, load_config
from .config_file import load_config_file
from .hooks import (
    CallbackHooks,
    DefaultHooks,
    PostCommandData,
    PostUpdateData,
    PreCommandData,
    PreUpdateData,
    UpdateHooks,
)
from .repository import find_tool
from .runner import CommandRunner, ShellCommandRunner

logger = logging.getLogger(__name__)


@contextmanager
def working_directory(path: str) -> Iterator[None]:
    """Change the working directory for the duration of a block.

    The previous working directory is restored however the block exits.
    """
    previous = os.getcwd()
    os.chdir(path)
    try:
        yield
    finally:
        os.chdir(previous)


class RepoUpdater:
    """Updates repositories one after another.

    The cursor points at the repository the next `step` updates. It moves
    from 0 to `repo_count`; a step taken at the end starts over from the
    first repository.

    Attributes:
        config (Config): The prepared configuration.
        hooks (UpdateHooks): Hooks called around every repository and command.
        runner (CommandRunner): Runs the update commands.
    """

    def __init__(
        self,
        config: Optional[Union[Config, Mapping[str, Any]]] = None,
        hooks: Optional[UpdateHooks] = None,
        runner: Optional[CommandRunner] = None,
        print_output: bool = True,
        pre_update: Optional[Callable[[PreUpdateData], object]] = None,
        pre_command: Optional[Callable[[PreCommandData], object]] = None,
        post_command: Optional[Callable[[PostCommandData], object]] = None,
        post_update: Optional[Callable[[PostUpdateData], object]] = None,
    ):
        """Initialize updater.

        Args:
            config: A prepared `Config`, a raw configuration mapping, or None
                to load the user's configuration file.
            hooks: Hooks to call (default: `DefaultHooks`).
            runner: Command runner (default: `ShellCommandRunner`).
            print_output: Whether the default runner copies command output to
                standard output.
            pre_update: Replaces the ``pre_update`` hook.
            pre_command: Replaces the ``pre_command`` hook.
            post_command: Replaces the ``post_command`` hook.
            post_update: Replaces the ``post_update`` hook.

        Raises:
            ConfigError: If the configuration is invalid or cannot be found.
        """
        if config is None:
            config = load_config_file()
        elif not isinstance(config, Config):
            config = load_config(config)
        self.config = config
        self._paths: Tuple[str, ...] = tuple(config.root_paths)

        if hooks is None:
            hooks = DefaultHooks()
        if any(hook is not None for hook in (pre_update, pre_command, post_command, post_update)):
            hooks = CallbackHooks(
                hooks,
                pre_update=pre_update,
                pre_command=pre_command,
                post_command=post_command,
                post_update=post_update,
            )
        self.hooks = hooks

        self.runner = runner if runner is not None else ShellCommandRunner(print_output)
        self._position = 0
        logger.debug(
            "Updater ready: %d repositories, tools %s",
            len(self._paths),
            ", ".join(config.tool_ids),
        )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"RepoUpdater({self._position}/{len(self._paths)})"

    @property
    def position(self) -> int:
        """Index of the repository the next step updates."""
        return self._position

    def repo_count(self) -> int:
        """Get the number of repositories."""
        return len(self._paths)

    def updated_count(self) -> int:
        """Get the number of repositories updated in the current cycle."""
        return self._position

    def remaining_count(self) -> int:
        """Get the number of repositories still to update in this cycle."""
        return self.repo_count() - self._position

    def rewind_one(self) -> None:
        """Mark the last updated repository as not updated."""
        if self._position:
            self._position -= 1

    def rewind_all(self) -> None:
        """Mark all repositories as not updated."""
        self._position = 0

    def current_path(self) -> Optional[str]:
        """Get the repository the next step updates, or None if there are none."""
        if not self._paths:
            return None
        return self._paths[self._position % len(self._paths)]

    def all_paths(self) -> Tuple[str, ...]:
        """Get all repository paths."""
        return self._paths

    def step(self) -> Optional[str]:
        """Update the repository at the cursor and advance the cursor.

        When every repository has been updated, the cursor first starts over
        at the first one.

        Returns:
            Optional[str]: The repository path, or None if there are no
                repositories.
        """
        if not self._paths:
            return None
        if self._position == len(self._paths):
            self._position = 0
        path = self._paths[self._position]
        self._position += 1
        self._update(path)
        return path

    def run_all(self) -> None:
        """Update every repository not yet updated in the current cycle.

        Does nothing when the cycle is already complete; call `rewind_all`
        first to update everything again.
        """
        for _ in range(self.remaining_count()):
            self.step()

    def _update(self, path: str) -> None:
        tool = find_tool(path, self.config.tools)
        if tool is None:
            logger.warning("%s is no longer managed by any configured tool, skipping", path)
            return

        self.hooks.pre_update({"path": path, "tool_name": tool.display_name})
        with working_directory(path):
            for command in tool.commands:
                self.hooks.pre_command({"command": command})
                output, exit_status = self.runner.run(command)
                skip = self.hooks.post_command(
                    {"command": command, "output": output, "exit_status": exit_status}
                )
                if skip:
                    logger.debug("Skipping remaining %s commands in %s", tool.display_name, path)
                    break
            self.hooks.post_update({})
