"""Configuration management for repo-updater.

A configuration arrives as a loosely-typed mapping, usually read from a
configuration file, where every value is either a single string or a list of
strings:

```python
raw = {
    "paths": ["/home/user/projects", "work"],
    "tools": ["git", "hg"],
    "git-dir": ".git",
    "git-name": "git",
    "git-commands": ['"git', 'pull"'],
    "hg-dir": ".hg",
    "hg-name": "mercurial",
    "hg-commands": ['"hg', 'pull"', '"hg', 'update"'],
}
config = load_config(raw)
```

`load_config` validates the mapping, resolves the root paths and expands them
to the repositories found beneath them.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .errors import InvalidShapeError, MissingKeyError
from .paths import resolve_root_paths
from .repository import expand_repositories, unique_paths

logger = logging.getLogger(__name__)

PATHS_KEY = "paths"
TOOLS_KEY = "tools"
DIR_SUFFIX = "-dir"
NAME_SUFFIX = "-name"
COMMANDS_SUFFIX = "-commands"
FORCE_NO_CHECK_KEY = "force-no-check"

_ESCAPED_CHAR = re.compile(r"\\(.)", re.DOTALL)


@dataclass(frozen=True)
class ToolSpec:
    """A configured update tool.

    Attributes:
        id: Short identifier used to build the tool's configuration keys.
        directory_marker: Name of the subdirectory marking a repository of
            this tool (e.g. ``.git``).
        display_name: Human-readable name used for reporting.
        commands: Commands run, in order, in every matching repository.
    """

    id: str
    directory_marker: str
    display_name: str
    commands: Tuple[str, ...]


@dataclass(frozen=True)
class Config:
    """Normalized configuration handed to the updater."""

    tools: Tuple[ToolSpec, ...] = ()
    root_paths: Tuple[str, ...] = ()

    def get_tool(self, tool_id: str) -> Optional[ToolSpec]:
        """Get a configured tool by its identifier."""
        for tool in self.tools:
            if tool.id == tool_id:
                return tool
        return None

    @property
    def tool_ids(self) -> List[str]:
        """Identifiers of all configured tools, in configured order."""
        return [tool.id for tool in self.tools]


def _unescape(value: str) -> str:
    return _ESCAPED_CHAR.sub(r"\1", value)


def _ends_with_quote(token: str) -> bool:
    """Check whether a token ends with a closing, unescaped double quote."""
    if not token.endswith('"'):
        return False
    body = token[:-1]
    backslashes = len(body) - len(body.rstrip("\\"))
    return backslashes % 2 == 0


def unquote_values(values: Sequence[str], key: str = "") -> List[str]:
    """Join double-quoted tokens back into single values.

    Configuration files split values on whitespace, so ``"git pull"`` arrives
    as the two tokens ``"git`` and ``pull"``. Tokens between an opening and a
    closing double quote are joined with a single space, the quotes are
    stripped and backslash escapes are resolved.

    Args:
        values: Whitespace-delimited tokens, or whole lines.
        key: Configuration key the values belong to, used in errors.

    Returns:
        List[str]: The reconstructed values.

    Raises:
        InvalidShapeError: If a quoted value is never closed.

    Example:
        ```python
        unquote_values(['"hg', 'pull"', '"hg', 'update"'])
        # ['hg pull', 'hg update']
        ```
    """
    result: List[str] = []
    pending: Optional[List[str]] = None
    for token in values:
        if pending is None:
            if token.startswith('"'):
                body = token[1:]
                if _ends_with_quote(body):
                    result.append(_unescape(body[:-1]))
                else:
                    pending = [body]
            else:
                result.append(_unescape(token))
        elif _ends_with_quote(token):
            pending.append(token[:-1])
            result.append(_unescape(" ".join(pending)))
            pending = None
        else:
            pending.append(token)

    if pending is not None:
        raise InvalidShapeError(f"unterminated quote in {key}.", key)
    return result


def _as_list(raw: Mapping[str, Any], key: str) -> List[str]:
    """Get a list-valued key, splitting a single string into values."""
    if key not in raw:
        raise MissingKeyError(key)
    value = raw[key]
    if value is None:
        return []
    if isinstance(value, Mapping):
        raise InvalidShapeError(f"{key} is not a list.", key)
    if isinstance(value, (list, tuple)):
        items = []
        for item in value:
            if isinstance(item, (Mapping, list, tuple)):
                raise InvalidShapeError(f"{key} contains a nested value.", key)
            items.append(str(item))
        return unquote_values(items, key)
    return unquote_values(str(value).split(), key)


def _as_one(raw: Mapping[str, Any], key: str) -> str:
    """Get a key that must carry exactly one value."""
    if key not in raw:
        raise MissingKeyError(key)
    value = raw[key]
    if isinstance(value, (list, tuple)):
        if len(value) != 1:
            raise InvalidShapeError(f"more than one {key} specified.", key)
        value = value[0]
    if value is None or isinstance(value, (Mapping, list, tuple)):
        raise InvalidShapeError(f"{key} must be a single value.", key)
    if not str(value).strip():
        raise InvalidShapeError(f"{key} must not be empty.", key)
    return str(value)


def normalize_config(raw: Any) -> Config:
    """Validate a raw configuration mapping.

    The returned configuration still carries the root paths exactly as they
    were given; see `load_config` for the complete preparation.

    Raises:
        InvalidShapeError: If `raw` is not a mapping or a value has the wrong
            shape.
        MissingKeyError: If a required key is absent.
    """
    if not isinstance(raw, Mapping):
        raise InvalidShapeError("given configuration is not a mapping.")

    paths = _as_list(raw, PATHS_KEY)
    tool_ids = _as_list(raw, TOOLS_KEY)

    tools: List[ToolSpec] = []
    seen = set()
    for tool_id in tool_ids:
        if tool_id in seen:
            logger.debug("Ignoring duplicate tool %s", tool_id)
            continue
        seen.add(tool_id)

        marker = _as_one(raw, tool_id + DIR_SUFFIX)
        name = _as_one(raw, tool_id + NAME_SUFFIX)
        commands = _as_list(raw, tool_id + COMMANDS_SUFFIX)
        if not commands:
            raise InvalidShapeError(
                f"no commands in {tool_id}{COMMANDS_SUFFIX}.", tool_id + COMMANDS_SUFFIX
            )
        tools.append(
            ToolSpec(
                id=tool_id,
                directory_marker=marker,
                display_name=name,
                commands=tuple(commands),
            )
        )

    return Config(tools=tuple(tools), root_paths=tuple(paths))


def prepare_config(raw: Any) -> Config:
    """Normalize a raw configuration and expand its paths to repositories."""
    config = normalize_config(raw)
    roots = resolve_root_paths(config.root_paths)
    leaves = unique_paths(expand_repositories(roots, config.tools))
    logger.debug("Found %d repositories under %d root paths", len(leaves), len(roots))
    return replace(config, root_paths=tuple(leaves))


def config_from_canonical(raw: Mapping[str, Any]) -> Config:
    """Build a configuration from a mapping that is already canonical.

    No validation happens here: the caller vouches for the mapping by setting
    ``force-no-check`` to 1.
    """

    def listify(value: Any) -> Tuple[str, ...]:
        if isinstance(value, str):
            return (value,)
        return tuple(value)

    tools: List[ToolSpec] = []
    for tool_id in listify(raw[TOOLS_KEY]):
        tools.append(
            ToolSpec(
                id=tool_id,
                directory_marker=raw[tool_id + DIR_SUFFIX],
                display_name=raw[tool_id + NAME_SUFFIX],
                commands=listify(raw[tool_id + COMMANDS_SUFFIX]),
            )
        )
    return Config(tools=tuple(tools), root_paths=listify(raw[PATHS_KEY]))


def is_unchecked(raw: Any) -> bool:
    """Check whether a mapping asks to skip validation."""
    if not isinstance(raw, Mapping):
        return False
    value = raw.get(FORCE_NO_CHECK_KEY)
    return value is not True and value in (1, "1")


def load_config(raw: Any, allow_unchecked: bool = True) -> Config:
    """Turn a raw configuration mapping into a `Config`.

    Args:
        raw: Mapping of configuration keys to strings or lists of strings.
        allow_unchecked: Whether ``force-no-check`` is honored. Mappings read
            from configuration files are always checked.

    Returns:
        Config: The configuration with its root paths expanded to repositories.

    Raises:
        ConfigError: If the mapping is invalid.
    """
    if allow_unchecked and is_unchecked(raw):
        logger.debug("Configuration marked %s, skipping checks", FORCE_NO_CHECK_KEY)
        return config_from_canonical(raw)
    return prepare_config(raw)
