"""Configuration files for repo-updater.

Two formats are understood. Files ending in ``.yaml`` or ``.yml`` are YAML
mappings. Every other file uses the rc format, one ``key = value`` per line:

```
paths = projects/repos "/srv/with space/repos"
tools = git hg

git-dir = .git
git-name = git
git-commands = "git pull"
```

Values are split on whitespace; quoted values are put back together by the
configuration normalizer.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import yaml

from .config import Config, load_config
from .errors import ConfigFileError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "~/.repoupdaterrc"

CONFIG_SEARCH_PATHS = [
    DEFAULT_CONFIG_FILE,
    "~/.repoupdater.yaml",
    "~/.config/repoupdater/config.yaml",
]

YAML_SUFFIXES = (".yaml", ".yml")

SAMPLE_CONFIG = """\
# repo-updater configuration.
#
# paths: directories searched for repositories. Relative paths are relative
# to your home directory. Put paths containing spaces in double quotes.
paths = projects/repos
# tools: names used as prefixes of the keys below.
tools = git hg svn cvs

# git setup
git-dir = .git
git-name = git
git-commands = "git pull"

# mercurial setup
hg-dir = .hg
hg-name = mercurial
hg-commands = "hg pull" "hg update"

# subversion setup
svn-dir = .svn
svn-name = subversion
svn-commands = "svn update"

# CVS setup
cvs-dir = CVS
cvs-name = CVS
cvs-commands = "cvs update -d"
"""

RawValue = Union[str, List[str]]


def parse_rc(text: str, path: str = "") -> Dict[str, RawValue]:
    """Parse the rc configuration format.

    Args:
        text: File contents.
        path: File name, used in errors.

    Returns:
        Dict[str, RawValue]: Keys mapped to a single token, or to a list of
            tokens when the value has several.

    Raises:
        ConfigFileError: If a line is neither blank, a comment nor an
            assignment.
    """
    data: Dict[str, RawValue] = {}
    for number, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConfigFileError(f"expected 'key = value', got {line!r}", path, number)

        tokens = value.split()
        if not tokens:
            data[key] = ""
        elif len(tokens) == 1:
            data[key] = tokens[0]
        else:
            data[key] = tokens
    return data


def read_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a configuration file into a raw mapping."""
    path = Path(path).expanduser()
    try:
        text = path.read_text()
    except OSError as e:
        raise ConfigFileError(f"cannot read file: {e.strerror or e}", str(path))

    if path.suffix in YAML_SUFFIXES:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigFileError(f"invalid YAML: {e}", str(path))
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigFileError("configuration must be a mapping", str(path))
        return data

    return dict(parse_rc(text, str(path)))


def find_config_file(search_paths: Optional[Sequence[str]] = None) -> Path:
    """Find the first existing configuration file.

    Raises:
        ConfigFileError: If none of the search paths exists.
    """
    candidates = CONFIG_SEARCH_PATHS if search_paths is None else search_paths
    for candidate in candidates:
        path = Path(candidate).expanduser()
        if path.is_file():
            logger.debug("Using configuration file %s", path)
            return path
    raise ConfigFileError(
        "no configuration file found (looked for: "
        + ", ".join(candidates)
        + "); create one with --gen-conf"
    )


def load_config_file(path: Optional[Union[str, Path]] = None) -> Config:
    """Load and prepare the configuration from a file.

    Args:
        path: Configuration file (default: the first file found in
            `CONFIG_SEARCH_PATHS`).

    Returns:
        Config: The prepared configuration. ``force-no-check`` has no effect
            in files.
    """
    if path is None:
        path = find_config_file()
    return load_config(read_config_file(path), allow_unchecked=False)


def write_sample_config(path: Optional[Union[str, Path]] = None, force: bool = False) -> Path:
    """Write the sample configuration file.

    Args:
        path: Target file (default: `DEFAULT_CONFIG_FILE`).
        force: Overwrite an existing file.

    Returns:
        Path: The written file.

    Raises:
        ConfigFileError: If the file exists and `force` is not set.
    """
    target = Path(path if path is not None else DEFAULT_CONFIG_FILE).expanduser()
    if target.exists() and not force:
        raise ConfigFileError("file already exists, use --force to overwrite", str(target))
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(SAMPLE_CONFIG)
    logger.debug("Wrote sample configuration to %s", target)
    return target
