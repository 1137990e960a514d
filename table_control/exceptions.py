"""Exception hierarchy for table-control."""

from pathlib import Path


class TableControlError(Exception):
    """Base exception for all table-control errors.

    All exceptions in this package inherit from this class,
    allowing callers to catch all table-control errors with
    a single except clause.
    """

    pass


# Configuration Errors
class ConfigError(TableControlError):
    """Configuration-related errors."""

    pass


class ConfigParseError(ConfigError):
    """Configuration file has invalid syntax."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid config at {path}: {detail}")


class ConfigValidationError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: object, reason: str) -> None:
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid config value for '{key}': {reason}")


# Table Source Errors
class SourceError(TableControlError):
    """Errors loading table rows from a file or database."""

    pass


class SourceNotFoundError(SourceError):
    """Source file doesn't exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Table source not found: {path}")


class UnsupportedSourceError(SourceError):
    """Source format could not be determined or is not supported."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Unsupported table source {path}: {detail}")


class SourceReadError(SourceError):
    """Source exists but could not be read as a table."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Cannot read table from {path}: {detail}")
