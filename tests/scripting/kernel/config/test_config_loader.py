"""Tests for the configuration loader.

Covers kind: Config YAML manifests, pyproject.toml [tool.scripting]
sections, ``${VAR}`` substitution and ``SCRIPTING_*`` overrides.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from scripting.kernel.config import get_config, set_config
from scripting.kernel.config.loader import (
    ConfigLoader,
    _parse_bool_env,
    clear_config_cache,
    get_default_config,
    load_config,
)
from scripting.kernel.config.models import ScriptingConfig
from scripting.kernel.exceptions import ConfigurationError

if TYPE_CHECKING:
    from pathlib import Path


class TestParseBoolEnv:
    def test_truthy_values(self) -> None:
        for value in ["true", "True", "1", "yes", "on", "enabled"]:
            assert _parse_bool_env(value) is True

    def test_falsy_values(self) -> None:
        for value in ["false", "FALSE", "0", "no", "off", "disabled"]:
            assert _parse_bool_env(value) is False

    def test_invalid_value_raises_error(self) -> None:
        with pytest.raises(ValueError, match="Invalid boolean value"):
            _parse_bool_env("maybe")


class TestYamlConfig:
    def test_loads_kind_config_manifest(self, tmp_path: Path) -> None:
        path = tmp_path / "scripting.yaml"
        path.write_text(
            "kind: Config\n"
            "spec:\n"
            "  logging:\n"
            "    level: DEBUG\n"
            "    format: json\n"
            "  execution:\n"
            "    read_chunk_size: 1024\n"
            "    io_workers: 2\n"
            "    inherit_environment: false\n"
            "  settings:\n"
            "    team: infra\n"
        )

        config = load_config(path)

        assert config.logging.level == "DEBUG"
        assert config.logging.format == "json"
        assert config.execution.read_chunk_size == 1024
        assert config.execution.io_workers == 2
        assert config.execution.inherit_environment is False
        assert config.settings == {"team": "infra"}

    def test_rejects_other_kinds(self, tmp_path: Path) -> None:
        path = tmp_path / "pipeline.yaml"
        path.write_text("kind: Pipeline\nspec: {}\n")
        with pytest.raises(ConfigurationError, match="kind: Config"):
            load_config(path)

    def test_rejects_non_mapping_document(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="expected a mapping"):
            load_config(path)

    def test_substitutes_environment_variables(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SCRIPTING_TEST_ENCODING", "latin-1")
        path = tmp_path / "scripting.yml"
        path.write_text(
            "kind: Config\n"
            "spec:\n"
            "  execution:\n"
            "    encoding: ${SCRIPTING_TEST_ENCODING}\n"
            "  settings:\n"
            "    missing: ${SCRIPTING_TEST_UNSET}\n"
        )

        config = load_config(path)

        assert config.execution.encoding == "latin-1"
        assert config.settings == {"missing": "${SCRIPTING_TEST_UNSET}"}

    def test_explicit_missing_path_falls_back_to_defaults(self, tmp_path: Path) -> None:
        assert load_config(tmp_path / "absent.yaml") == get_default_config()


class TestTomlConfig:
    def test_reads_tool_section_of_pyproject(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "pyproject.toml").write_text(
            "[project]\nname = 'demo'\n\n"
            "[tool.scripting.execution]\nread_chunk_size = 4096\n\n"
            "[tool.scripting.logging]\nlevel = 'ERROR'\n"
        )
        monkeypatch.chdir(tmp_path)

        config = load_config()

        assert config.execution.read_chunk_size == 4096
        assert config.logging.level == "ERROR"

    def test_pyproject_without_section_gives_defaults(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "pyproject.toml").write_text("[project]\nname = 'demo'\n")
        monkeypatch.chdir(tmp_path)
        assert load_config() == get_default_config()

    def test_config_path_env_var(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "custom.yaml"
        path.write_text("kind: Config\nspec:\n  execution:\n    io_workers: 8\n")
        monkeypatch.setenv("SCRIPTING_CONFIG_PATH", str(path))

        assert ConfigLoader().load_config_file().execution.io_workers == 8


class TestEnvironmentOverrides:
    def test_overrides_win_over_file_values(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "scripting.yaml"
        path.write_text(
            "kind: Config\nspec:\n  logging:\n    level: INFO\n  execution:\n    read_chunk_size: 10\n"
        )
        monkeypatch.setenv("SCRIPTING_LOG_LEVEL", "debug")
        monkeypatch.setenv("SCRIPTING_LOG_RICH", "yes")
        monkeypatch.setenv("SCRIPTING_READ_CHUNK_SIZE", "512")
        monkeypatch.setenv("SCRIPTING_ENCODING", "utf-16")

        config = load_config(path)

        assert config.logging.level == "DEBUG"
        assert config.logging.use_rich is True
        assert config.execution.read_chunk_size == 512
        assert config.execution.encoding == "utf-16"

    def test_invalid_override_is_ignored(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "scripting.yaml"
        path.write_text("kind: Config\nspec:\n  execution:\n    read_chunk_size: 10\n")
        monkeypatch.setenv("SCRIPTING_READ_CHUNK_SIZE", "lots")

        assert load_config(path).execution.read_chunk_size == 10


class TestCaching:
    def test_results_are_cached_until_cleared(self, tmp_path: Path) -> None:
        path = tmp_path / "scripting.yaml"
        path.write_text("kind: Config\nspec:\n  execution:\n    io_workers: 3\n")
        first = load_config(path)

        path.write_text("kind: Config\nspec:\n  execution:\n    io_workers: 5\n")
        assert load_config(path) is first

        clear_config_cache()
        assert load_config(path).execution.io_workers == 5


class TestActiveConfig:
    def test_set_config_replaces_active_config(self) -> None:
        config = ScriptingConfig()
        set_config(config)
        assert get_config() is config

    def test_reset_loads_on_next_access(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.scripting.execution]\nio_workers = 7\n")
        monkeypatch.chdir(tmp_path)
        set_config(None)
        assert get_config().execution.io_workers == 7
