"""Engine configuration: models, loading and the process-wide active config."""

from __future__ import annotations

from scripting.kernel.config.loader import (
    ConfigLoader,
    apply_logging_config,
    clear_config_cache,
    get_default_config,
    load_config,
)
from scripting.kernel.config.models import ExecutionConfig, LoggingConfig, ScriptingConfig

_active_config: ScriptingConfig | None = None


def get_config() -> ScriptingConfig:
    """Return the active configuration, loading it on first access.

    A configuration loaded here also configures logging from its
    ``logging`` section.
    """
    global _active_config
    if _active_config is None:
        _active_config = load_config()
        apply_logging_config(_active_config)
    return _active_config


def set_config(config: ScriptingConfig | None) -> None:
    """Replace the active configuration (``None`` reloads on next access)."""
    global _active_config
    _active_config = config


__all__ = [
    "ConfigLoader",
    "ExecutionConfig",
    "LoggingConfig",
    "ScriptingConfig",
    "apply_logging_config",
    "clear_config_cache",
    "get_config",
    "get_default_config",
    "load_config",
    "set_config",
]
