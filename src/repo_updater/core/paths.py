"""Root path resolution for repo-updater."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Union

logger = logging.getLogger(__name__)


def is_directory(path: Union[str, Path]) -> bool:
    """Check whether a path is a directory; unreadable paths are not."""
    return os.path.isdir(path)


def clean_path(path: str) -> Path:
    """Canonicalize a path string.

    Duplicate separators, ``.`` components and trailing separators are
    removed; ``..`` components are kept as written.
    """
    return Path(path)


def home_directory() -> Path:
    """Get the current user's home directory.

    Raises:
        RuntimeError: If the home directory cannot be determined.
    """
    home = Path.home()
    if not home.is_absolute():
        raise RuntimeError("Could not determine home directory")
    return home


def resolve_root_paths(paths: Iterable[str], home: Optional[Path] = None) -> List[str]:
    """Resolve configured root paths to existing absolute directories.

    Relative paths are taken relative to the user's home directory, not to
    the current working directory. Paths that do not exist as directories are
    dropped without error.

    Args:
        paths: Root paths as written in the configuration.
        home: Base for relative paths (default: the current user's home).

    Returns:
        List[str]: Absolute paths of existing directories, in the given order.

    Raises:
        RuntimeError: If the home directory cannot be determined.
    """
    resolved = []
    for raw_path in paths:
        path = clean_path(raw_path).expanduser()
        if not path.is_absolute():
            if home is None:
                home = home_directory()
            path = home / path
        if not is_directory(path):
            logger.debug("Skipping %s: not a directory", path)
            continue
        resolved.append(str(path))
    return resolved
