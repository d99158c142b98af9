"""Repository discovery for repo-updater.

A directory is a repository when it holds the marker directory of one of the
configured tools (``.git`` for git, ``.hg`` for mercurial, ...). Root paths
that are not repositories themselves are searched breadth-first; the search
stops descending at every repository it finds.
"""

from __future__ import annotations

import logging
import os
from collections import deque
from pathlib import Path
from typing import (
    TYPE_CHECKING,
    Deque,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
)

from .paths import is_directory

if TYPE_CHECKING:
    from .config import ToolSpec

logger = logging.getLogger(__name__)


def find_tool(path: str, tools: Sequence[ToolSpec]) -> Optional[ToolSpec]:
    """Find the first configured tool managing a directory.

    Args:
        path: Directory to test.
        tools: Configured tools, tested in order.

    Returns:
        Optional[ToolSpec]: The first tool whose marker directory exists in
            `path`, or None.
    """
    for tool in tools:
        if is_directory(os.path.join(path, tool.directory_marker)):
            return tool
    return None


def get_subdirectories(path: str) -> List[str]:
    """List the immediate subdirectories of a directory, sorted by name.

    A directory that cannot be read has no subdirectories.
    """
    try:
        entries = sorted(Path(path).iterdir())
    except OSError as e:
        logger.debug("Cannot list %s: %s", path, e)
        return []
    return [str(entry) for entry in entries if is_directory(entry)]


def expand_root(root: str, tools: Sequence[ToolSpec]) -> List[str]:
    """Find the repositories under one root path, breadth-first."""
    leaves: List[str] = []
    # each entry carries the real paths of the directories above it
    queue: Deque[Tuple[str, FrozenSet[str]]] = deque([(root, frozenset())])

    while queue:
        path, ancestors = queue.popleft()
        tool = find_tool(path, tools)
        if tool is not None:
            logger.debug("Found %s repository %s", tool.display_name, path)
            leaves.append(path)
            continue

        # a symlink back to an ancestor would never end
        real = os.path.realpath(path)
        if real in ancestors:
            logger.debug("Not descending into %s: symlink cycle", path)
            continue
        below = ancestors | {real}
        queue.extend((subdir, below) for subdir in get_subdirectories(path))

    return leaves


def expand_repositories(roots: Iterable[str], tools: Sequence[ToolSpec]) -> List[str]:
    """Expand root paths to the repositories beneath them.

    Roots are expanded one after another, so all repositories of the first
    root come before those of the second. The result may contain duplicates
    when roots overlap; see `unique_paths`.
    """
    leaves: List[str] = []
    for root in roots:
        leaves.extend(expand_root(root, tools))
    return leaves


def unique_paths(paths: Iterable[str]) -> List[str]:
    """Remove duplicate paths, keeping the first occurrence."""
    seen: Set[str] = set()
    result = []
    for path in paths:
        if path not in seen:
            seen.add(path)
            result.append(path)
    return result
