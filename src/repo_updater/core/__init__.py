"""Core functionality for repo-updater."""

from .config import Config, ToolSpec, load_config
from .errors import ConfigError, ConfigFileError, InvalidShapeError, MissingKeyError
from .hooks import CallbackHooks, DefaultHooks, UpdateHooks
from .runner import CommandOutcome, CommandRunner, ShellCommandRunner
from .updater import RepoUpdater

__all__ = [
    "CallbackHooks",
    "CommandOutcome",
    "CommandRunner",
    "Config",
    "ConfigError",
    "ConfigFileError",
    "DefaultHooks",
    "InvalidShapeError",
    "MissingKeyError",
    "RepoUpdater",
    "ShellCommandRunner",
    "ToolSpec",
    "UpdateHooks",
    "load_config",
]
