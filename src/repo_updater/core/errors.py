"""Exceptions raised while loading and validating configuration."""


class ConfigError(Exception):
    """Base class for configuration errors."""


class MissingKeyError(ConfigError):
    """A required configuration key is absent."""

    def __init__(self, key: str) -> None:
        """Initialize error."""
        super().__init__(f"no {key} specified.")
        self.key = key


class InvalidShapeError(ConfigError):
    """A configuration value does not have the expected shape."""

    def __init__(self, message: str, key: str = "") -> None:
        """Initialize error."""
        super().__init__(message)
        self.key = key


class ConfigFileError(ConfigError):
    """A configuration file could not be found or parsed."""

    def __init__(self, message: str, path: str = "", line: int = 0) -> None:
        """Initialize error."""
        if path and line:
            message = f"{path}:{line}: {message}"
        elif path:
            message = f"{path}: {message}"
        super().__init__(message)
        self.path = path
        self.line = line
