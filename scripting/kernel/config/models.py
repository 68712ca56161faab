"""Configuration data models for the scripting engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from scripting.kernel.exceptions import ValidationError


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Logging configuration.

    Attributes
    ----------
    level : str, default="WARNING"
        Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    format : str, default="structured"
        Output format (console, json, structured, rich)
    output_file : str | None, default=None
        Optional file path to write logs to
    use_color : bool, default=True
        Use ANSI color codes (auto-disabled for non-TTY)
    include_timestamp : bool, default=True
        Include timestamp in log output
    use_rich : bool, default=False
        Use Rich library for console output
    enable_stdlib_bridge : bool, default=False
        Route stdlib logging through Loguru
    backtrace : bool, default=True
        Enable extended backtraces
    diagnose : bool, default=True
        Show variable values in tracebacks

    Examples
    --------
    TOML configuration:

    ```toml
    [tool.scripting.logging]
    level = "DEBUG"
    format = "rich"
    ```

    Environment variable overrides:

    ```bash
    export SCRIPTING_LOG_LEVEL=DEBUG
    export SCRIPTING_LOG_FORMAT=json
    export SCRIPTING_LOG_FILE=/var/log/scripting.log
    ```
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: Literal["console", "json", "structured", "rich"] = "structured"
    output_file: str | None = None
    use_color: bool = True
    include_timestamp: bool = True
    use_rich: bool = False
    enable_stdlib_bridge: bool = False
    backtrace: bool = True
    diagnose: bool = True


@dataclass(frozen=True, slots=True)
class ExecutionConfig:
    """Stream and process execution defaults.

    Attributes
    ----------
    read_chunk_size : int, default=65536
        Maximum number of bytes read from a pipe or file per handler call
    encoding : str, default="utf-8"
        Encoding used by the string conversion helpers
    io_workers : int, default=4
        Size of the worker pool running blocking file I/O and sync handlers
    inherit_environment : bool, default=True
        When False, commands without an explicit environment get an empty one
    """

    read_chunk_size: int = 65536
    encoding: str = "utf-8"
    io_workers: int = 4
    inherit_environment: bool = True

    def __post_init__(self) -> None:
        """Validate execution settings.

        Raises
        ------
        ValidationError
            If a size is not positive or the encoding is empty
        """
        if self.read_chunk_size <= 0:
            raise ValidationError("read_chunk_size", "must be positive", self.read_chunk_size)
        if self.io_workers <= 0:
            raise ValidationError("io_workers", "must be positive", self.io_workers)
        if not self.encoding:
            raise ValidationError("encoding", "cannot be empty")


@dataclass(slots=True)
class ScriptingConfig:
    """Complete engine configuration.

    Attributes
    ----------
    logging : LoggingConfig
        Logging configuration
    execution : ExecutionConfig
        Stream and process execution defaults
    settings : dict[str, Any]
        Additional custom settings

    Examples
    --------
    TOML configuration in pyproject.toml:

    ```toml
    [tool.scripting.logging]
    level = "INFO"

    [tool.scripting.execution]
    read_chunk_size = 4096
    io_workers = 2
    ```
    """

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    settings: dict[str, Any] = field(default_factory=dict)


__all__ = ["ExecutionConfig", "LoggingConfig", "ScriptingConfig"]
