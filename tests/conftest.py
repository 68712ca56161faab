"""Shared pytest fixtures.

Every test starts from the default configuration with no ``SCRIPTING_*``
overrides, and the shared I/O worker pool is torn down at the end of the
session.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable, Iterator

import pytest

from scripting.kernel.config import ScriptingConfig, clear_config_cache, set_config
from scripting.kernel.utils.handlers import shutdown_io_executor

_ENV_OVERRIDES = (
    "SCRIPTING_CONFIG_PATH",
    "SCRIPTING_LOG_LEVEL",
    "SCRIPTING_LOG_FORMAT",
    "SCRIPTING_LOG_FILE",
    "SCRIPTING_LOG_COLOR",
    "SCRIPTING_LOG_RICH",
    "SCRIPTING_READ_CHUNK_SIZE",
    "SCRIPTING_ENCODING",
)


@pytest.fixture(autouse=True)
def default_config(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate each test from configuration files and environment overrides."""
    for name in _ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    clear_config_cache()
    set_config(ScriptingConfig())
    yield
    set_config(None)
    clear_config_cache()


@pytest.fixture(scope="session", autouse=True)
def io_executor() -> Iterator[None]:
    yield
    shutdown_io_executor()


@pytest.fixture
def require_tool() -> Callable[[str], str]:
    """Resolve a POSIX tool to its full path, skipping the test when it is missing."""

    def resolve(name: str) -> str:
        path = shutil.which(name)
        if path is None:
            pytest.skip(f"{name} not available")
        return path

    return resolve
