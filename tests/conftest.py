"""Test configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from repo_updater.core.config import Config, ToolSpec

TOOL_A = ToolSpec(id="a", directory_marker=".a", display_name="ToolA", commands=("a pull",))
TOOL_B = ToolSpec(
    id="b", directory_marker=".b", display_name="ToolB", commands=("b pull", "b update")
)


def make_repo(path: Path, marker: str) -> Path:
    """Create a repository directory holding a tool marker."""
    (path / marker).mkdir(parents=True, exist_ok=True)
    return path


class RecordingHooks:
    """Hooks recording every call; post_command returns `abort`."""

    def __init__(self, abort: bool = False) -> None:
        self.abort = abort
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    def pre_update(self, data: Any) -> None:
        self.calls.append(("pre_update", dict(data)))

    def pre_command(self, data: Any) -> None:
        self.calls.append(("pre_command", dict(data)))

    def post_command(self, data: Any) -> bool:
        self.calls.append(("post_command", dict(data)))
        return self.abort

    def post_update(self, data: Any) -> None:
        self.calls.append(("post_update", dict(data)))

    def names(self) -> List[str]:
        return [name for name, _ in self.calls]


class FakeRunner:
    """Runner recording commands and the directory they ran in."""

    def __init__(self, statuses: Optional[Sequence[int]] = None) -> None:
        self.statuses = list(statuses or [])
        self.runs: List[Tuple[str, str]] = []

    def run(self, command: str) -> Tuple[str, int]:
        self.runs.append((command, os.getcwd()))
        status = self.statuses.pop(0) if self.statuses else 0
        return f"output of {command}\n", status

    @property
    def commands(self) -> List[str]:
        return [command for command, _ in self.runs]


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Use a temporary directory as the user's home directory."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    return home_dir


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a directory tree with repositories of both test tools.

    Layout::

        r/proj1/.a
        r/proj2/sub/.b
        r/plain/notes/
    """
    root = tmp_path / "r"
    make_repo(root / "proj1", ".a")
    make_repo(root / "proj2" / "sub", ".b")
    (root / "plain" / "notes").mkdir(parents=True)
    (root / "README").write_text("not a directory")
    return root


@pytest.fixture
def raw_config(workspace: Path) -> Dict[str, Any]:
    """Create a raw configuration for the test workspace."""
    return {
        "paths": [str(workspace)],
        "tools": ["a", "b"],
        "a-dir": ".a",
        "a-name": "ToolA",
        "a-commands": ['"a', 'pull"'],
        "b-dir": ".b",
        "b-name": "ToolB",
        "b-commands": ['"b', 'pull"', '"b', 'update"'],
    }


@pytest.fixture
def config(workspace: Path) -> Config:
    """Create a prepared configuration for the test workspace."""
    return Config(
        tools=(TOOL_A, TOOL_B),
        root_paths=(str(workspace / "proj1"), str(workspace / "proj2" / "sub")),
    )


@pytest.fixture
def hooks() -> RecordingHooks:
    """Create recording hooks."""
    return RecordingHooks()


@pytest.fixture
def runner() -> FakeRunner:
    """Create a fake command runner."""
    return FakeRunner()
