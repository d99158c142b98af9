"""Tests for configuration files."""

from pathlib import Path

import pytest
import yaml

from repo_updater.core.config import normalize_config
from repo_updater.core.config_file import (
    SAMPLE_CONFIG,
    find_config_file,
    load_config_file,
    parse_rc,
    read_config_file,
    write_sample_config,
)
from repo_updater.core.errors import ConfigFileError, InvalidShapeError, MissingKeyError


def write_rc(path: Path, workspace: Path) -> Path:
    """Write an rc configuration for the test workspace."""
    path.write_text(
        "# test configuration\n"
        f"paths = {workspace}\n"
        "tools = a b\n"
        "\n"
        "a-dir = .a\n"
        "a-name = ToolA\n"
        'a-commands = "tool pull" "tool update"\n'
        "b-dir = .b\n"
        "b-name = ToolB\n"
        "b-commands = b-sync\n"
    )
    return path


def test_parse_rc() -> None:
    """Test splitting rc values into tokens."""
    data = parse_rc(
        "# comment\n"
        "\n"
        "  tools = git   hg  \n"
        "git-dir=.git\n"
        'git-commands = "git pull"\n'
        "empty =\n"
    )

    assert data == {
        "tools": ["git", "hg"],
        "git-dir": ".git",
        "git-commands": ['"git', 'pull"'],
        "empty": "",
    }


def test_parse_rc_rejects_garbage() -> None:
    """Test that lines without an assignment are reported with their number."""
    with pytest.raises(ConfigFileError, match="rc:2: expected 'key = value'"):
        parse_rc("paths = a\nthis is not valid\n", "rc")


def test_quoted_commands_from_file(tmp_path: Path, workspace: Path) -> None:
    """Test that quoted multi-word commands survive the rc format."""
    config = load_config_file(write_rc(tmp_path / "rc", workspace))

    tool_a = config.get_tool("a")
    tool_b = config.get_tool("b")
    assert tool_a is not None and tool_b is not None
    assert tool_a.commands == ("tool pull", "tool update")
    assert tool_b.commands == ("b-sync",)
    assert config.root_paths == (
        str(workspace / "proj1"),
        str(workspace / "proj2" / "sub"),
    )


def test_yaml_file(tmp_path: Path, workspace: Path) -> None:
    """Test reading a YAML configuration."""
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "paths": [str(workspace)],
                "tools": ["b"],
                "b-dir": ".b",
                "b-name": "ToolB",
                "b-commands": ["b pull", "b update"],
            }
        )
    )

    config = load_config_file(path)

    assert config.root_paths == (str(workspace / "proj2" / "sub"),)
    assert config.tools[0].commands == ("b pull", "b update")


def test_yaml_must_be_a_mapping(tmp_path: Path) -> None:
    """Test that a YAML list is rejected."""
    path = tmp_path / "config.yml"
    path.write_text("- paths\n- tools\n")
    with pytest.raises(ConfigFileError, match="must be a mapping"):
        read_config_file(path)


def test_invalid_yaml(tmp_path: Path) -> None:
    """Test that YAML syntax errors are reported."""
    path = tmp_path / "config.yaml"
    path.write_text("paths: [unclosed\n")
    with pytest.raises(ConfigFileError, match="invalid YAML"):
        read_config_file(path)


def test_unreadable_file(tmp_path: Path) -> None:
    """Test that a missing file is reported."""
    with pytest.raises(ConfigFileError, match="cannot read file"):
        read_config_file(tmp_path / "missing")


def test_force_no_check_ignored_in_files(tmp_path: Path) -> None:
    """Test that files cannot skip validation."""
    path = tmp_path / "rc"
    path.write_text("paths = /tmp\ntools = a\nforce-no-check = 1\n")
    with pytest.raises(MissingKeyError):
        load_config_file(path)


def test_find_config_file(home: Path) -> None:
    """Test the configuration file search order."""
    with pytest.raises(ConfigFileError, match="no configuration file found"):
        find_config_file()

    yaml_file = home / ".config" / "repoupdater" / "config.yaml"
    yaml_file.parent.mkdir(parents=True)
    yaml_file.write_text("{}")
    assert find_config_file() == yaml_file

    rc_file = home / ".repoupdaterrc"
    rc_file.write_text("")
    assert find_config_file() == rc_file


def test_write_sample_config(home: Path) -> None:
    """Test writing the sample configuration."""
    path = write_sample_config()

    assert path == home / ".repoupdaterrc"
    assert path.read_text() == SAMPLE_CONFIG

    path.write_text("changed")
    with pytest.raises(ConfigFileError, match="already exists"):
        write_sample_config()
    assert path.read_text() == "changed"

    write_sample_config(force=True)
    assert path.read_text() == SAMPLE_CONFIG


def test_sample_config_is_valid() -> None:
    """Test that the sample configuration passes validation."""
    config = normalize_config(parse_rc(SAMPLE_CONFIG))

    assert config.tool_ids == ["git", "hg", "svn", "cvs"]
    hg = config.get_tool("hg")
    assert hg is not None
    assert hg.display_name == "mercurial"
    assert hg.commands == ("hg pull", "hg update")
    assert config.root_paths == ("projects/repos",)


def test_empty_marker_in_file(tmp_path: Path, workspace: Path) -> None:
    """Test that an empty marker in an rc file is rejected before expansion."""
    path = tmp_path / "rc"
    path.write_text(f"paths = {workspace}\ntools = a\na-dir =\na-name = A\na-commands = true\n")
    with pytest.raises(InvalidShapeError, match="a-dir must not be empty"):
        load_config_file(path)
