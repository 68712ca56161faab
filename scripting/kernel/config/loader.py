"""Configuration loader for the scripting engine.

Supports two config sources:

1. **kind: Config YAML**: loaded via explicit path or the
   ``SCRIPTING_CONFIG_PATH`` env var.
2. **pyproject.toml [tool.scripting]**: auto-discovery fallback.

``${VAR}`` placeholders in string values are replaced from the process
environment, and a handful of ``SCRIPTING_*`` variables override file values.
"""

from __future__ import annotations

import os
import re
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

import yaml

from scripting.kernel.config.models import ExecutionConfig, LoggingConfig, ScriptingConfig
from scripting.kernel.exceptions import ConfigurationError
from scripting.kernel.logging import configure_logging, get_logger

# Constants for boolean environment variable parsing
_TRUTHY_VALUES = frozenset({"true", "1", "yes", "on", "enabled"})
_FALSY_VALUES = frozenset({"false", "0", "no", "off", "disabled"})

logger = get_logger(__name__)


def _parse_bool_env(value: str) -> bool:
    """Parse boolean from environment variable value.

    Parameters
    ----------
    value : str
        Environment variable value

    Returns
    -------
    bool
        Parsed boolean value

    Raises
    ------
    ValueError
        If value is not a recognized boolean string
    """
    normalized = value.lower().strip()
    if normalized in _TRUTHY_VALUES:
        return True
    if normalized in _FALSY_VALUES:
        return False
    expected = _TRUTHY_VALUES | _FALSY_VALUES
    raise ValueError(f"Invalid boolean value: {value!r}. Expected one of: {expected}")


@lru_cache(maxsize=32)
def _load_and_parse_cached(path_str: str) -> ScriptingConfig:
    """Cached configuration loader."""
    loader = ConfigLoader()
    return loader._load_and_parse(Path(path_str))


class ConfigLoader:
    """Loads and processes scripting configuration files."""

    ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

    def load_config_file(self, path: str | Path | None = None) -> ScriptingConfig:
        """Load configuration from YAML or pyproject.toml.

        Parameters
        ----------
        path : str | Path | None
            Path to config file. If None, searches using discovery order.

        Returns
        -------
        ScriptingConfig
            Parsed configuration with environment variables substituted
        """
        config_path = self._find_config_file(path)
        return _load_and_parse_cached(str(config_path.absolute()))

    def _load_and_parse(self, config_path: Path) -> ScriptingConfig:
        logger.debug("Loading configuration from {path}", path=config_path)

        if config_path.suffix in (".yaml", ".yml"):
            return self._load_yaml_config(config_path)
        return self._load_toml_config(config_path)

    def _load_yaml_config(self, config_path: Path) -> ScriptingConfig:
        """Load and parse a kind: Config YAML file.

        Raises
        ------
        ConfigurationError
            If the YAML file is not a valid kind: Config manifest
        """
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ConfigurationError(
                config_path.name, f"expected a mapping, got {type(data).__name__}"
            )

        kind = data.get("kind")
        if kind != "Config":
            raise ConfigurationError(
                config_path.name, f"must use 'kind: Config' manifest format, got 'kind: {kind}'"
            )

        spec = data.get("spec", {})
        if not isinstance(spec, dict):
            raise ConfigurationError(config_path.name, "'spec' field must be a mapping")

        spec = self._substitute_env_vars(spec)
        return self._parse_config(spec)

    def _load_toml_config(self, config_path: Path) -> ScriptingConfig:
        with config_path.open("rb") as f:
            data = tomllib.load(f)

        if config_path.name == "pyproject.toml":
            section = data.get("tool", {}).get("scripting", {})
            if not section:
                logger.debug("No [tool.scripting] section found in pyproject.toml, using defaults")
                return self._parse_config({})
        elif "tool" in data and "scripting" in data.get("tool", {}):
            section = data["tool"]["scripting"]
        else:
            section = data

        section = self._substitute_env_vars(section)
        return self._parse_config(section)

    def _find_config_file(self, path: str | Path | None) -> Path:
        """Find configuration file.

        Discovery order:
        1. Explicit path argument
        2. ``SCRIPTING_CONFIG_PATH`` env var
        3. ``pyproject.toml`` in CWD
        4. ``pyproject.toml`` in parent directories (with ``[tool.scripting]``)

        Raises
        ------
        FileNotFoundError
            If no configuration file is found
        """
        if path:
            config_path = Path(path)
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return config_path

        if env_path := os.getenv("SCRIPTING_CONFIG_PATH"):
            config_path = Path(env_path)
            if config_path.exists():
                logger.debug("Using config from SCRIPTING_CONFIG_PATH: {}", config_path)
                return config_path
            logger.warning("SCRIPTING_CONFIG_PATH set but file not found: {}", config_path)

        if Path("pyproject.toml").exists():
            return Path("pyproject.toml")

        current = Path.cwd()
        while current != current.parent:
            pyproject = current / "pyproject.toml"
            if pyproject.exists():
                with pyproject.open("rb") as f:
                    data = tomllib.load(f)
                    if "tool" in data and "scripting" in data["tool"]:
                        return pyproject
            current = current.parent

        raise FileNotFoundError(
            "No configuration file found. Provide a kind: Config YAML path, "
            "set SCRIPTING_CONFIG_PATH, or add [tool.scripting] to pyproject.toml"
        )

    def _substitute_env_vars(self, data: Any) -> Any:
        """Recursively replace ``${VAR}`` placeholders; unknown names are kept."""
        if isinstance(data, str):

            def replacer(match: re.Match[str]) -> str:
                value = os.environ.get(match.group(1))
                return match.group(0) if value is None else value

            return self.ENV_VAR_PATTERN.sub(replacer, data)

        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}

        if isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]

        return data

    def _parse_config(self, data: dict[str, Any]) -> ScriptingConfig:
        """Parse configuration data into ScriptingConfig."""
        config = ScriptingConfig()
        config.logging = self._parse_logging_config(data.get("logging", {}))
        config.execution = self._parse_execution_config(data.get("execution", {}))
        if "settings" in data:
            config.settings = data["settings"]
        return config

    def _parse_logging_config(self, logging_data: dict[str, Any]) -> LoggingConfig:
        """Parse logging configuration with environment variable overrides.

        Environment variables take precedence over config file values:
        - SCRIPTING_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        - SCRIPTING_LOG_FORMAT: Output format (console, json, structured, rich)
        - SCRIPTING_LOG_FILE: Optional file path for log output
        - SCRIPTING_LOG_COLOR: Use color output (true/false)
        - SCRIPTING_LOG_RICH: Use Rich console output (true/false)
        """
        level = logging_data.get("level", "WARNING")
        format_type = logging_data.get("format", "structured")
        output_file = logging_data.get("output_file")
        use_color = logging_data.get("use_color", True)
        use_rich = logging_data.get("use_rich", False)

        if env_level := os.getenv("SCRIPTING_LOG_LEVEL"):
            level = env_level.upper()

        if env_format := os.getenv("SCRIPTING_LOG_FORMAT"):
            format_type = env_format.lower()

        if env_file := os.getenv("SCRIPTING_LOG_FILE"):
            output_file = env_file

        if env_color := os.getenv("SCRIPTING_LOG_COLOR"):
            try:
                use_color = _parse_bool_env(env_color)
            except ValueError as e:
                logger.warning("Invalid SCRIPTING_LOG_COLOR value: {}", e)

        if env_rich := os.getenv("SCRIPTING_LOG_RICH"):
            try:
                use_rich = _parse_bool_env(env_rich)
            except ValueError as e:
                logger.warning("Invalid SCRIPTING_LOG_RICH value: {}", e)

        return LoggingConfig(
            level=cast("Any", level),
            format=cast("Any", format_type),
            output_file=output_file,
            use_color=use_color,
            include_timestamp=logging_data.get("include_timestamp", True),
            use_rich=use_rich,
            enable_stdlib_bridge=logging_data.get("enable_stdlib_bridge", False),
            backtrace=logging_data.get("backtrace", True),
            diagnose=logging_data.get("diagnose", True),
        )

    def _parse_execution_config(self, execution_data: dict[str, Any]) -> ExecutionConfig:
        """Parse execution configuration with environment variable overrides.

        Environment variables take precedence over config file values:
        - SCRIPTING_READ_CHUNK_SIZE: Bytes read per handler call
        - SCRIPTING_ENCODING: Encoding for string conversions
        """
        read_chunk_size = execution_data.get("read_chunk_size", 65536)
        encoding = execution_data.get("encoding", "utf-8")

        if env_chunk := os.getenv("SCRIPTING_READ_CHUNK_SIZE"):
            try:
                read_chunk_size = int(env_chunk)
            except ValueError:
                logger.warning("Invalid SCRIPTING_READ_CHUNK_SIZE value: {}", env_chunk)

        if env_encoding := os.getenv("SCRIPTING_ENCODING"):
            encoding = env_encoding

        return ExecutionConfig(
            read_chunk_size=read_chunk_size,
            encoding=encoding,
            io_workers=execution_data.get("io_workers", 4),
            inherit_environment=execution_data.get("inherit_environment", True),
        )


def load_config(path: str | Path | None = None) -> ScriptingConfig:
    """Load configuration from file or return defaults.

    Parameters
    ----------
    path : str | Path | None
        Path to configuration file or None to search

    Returns
    -------
    ScriptingConfig
        Loaded configuration or defaults if no file found
    """
    try:
        return ConfigLoader().load_config_file(path)
    except FileNotFoundError:
        logger.debug("No configuration file found, using defaults")
        return get_default_config()


def get_default_config() -> ScriptingConfig:
    """Get default configuration."""
    return ScriptingConfig()


def apply_logging_config(config: ScriptingConfig) -> None:
    """Configure the global logger from a loaded configuration."""
    log = config.logging
    configure_logging(
        level=log.level,
        format=log.format,
        output_file=log.output_file,
        use_color=log.use_color,
        include_timestamp=log.include_timestamp,
        use_rich=log.use_rich,
        enable_stdlib_bridge=log.enable_stdlib_bridge,
        backtrace=log.backtrace,
        diagnose=log.diagnose,
    )


def clear_config_cache() -> None:
    """Clear configuration caches.

    Useful for testing or when configuration files have been modified.
    """
    _load_and_parse_cached.cache_clear()


__all__ = [
    "ConfigLoader",
    "apply_logging_config",
    "clear_config_cache",
    "get_default_config",
    "load_config",
]
