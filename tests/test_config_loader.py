"""Tests for the config loader module."""

import logging
from pathlib import Path

import pytest
import yaml

from chatbridge.config_loader import (
    load_config,
    resolve_config_path,
    resolve_env_path,
    substitute_env_vars,
)
from chatbridge.core.exceptions import ConfigurationError


def _write(path: Path, data) -> Path:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestLoadConfig:
    """Tests for loading configuration from YAML files."""

    def test_loads_simple_config(self, tmp_path):
        path = _write(tmp_path / "config.yaml", {"server": {"port": 9000}})
        assert load_config(str(path))["server"]["port"] == 9000

    def test_uses_env_var_path(self, tmp_path, monkeypatch):
        path = _write(tmp_path / "config.yaml", {"prompt_caching_header": "x-cache"})
        monkeypatch.setenv("CHATBRIDGE_CONFIG", str(path))
        assert load_config()["prompt_caching_header"] == "x-cache"

    def test_default_config_ships_with_the_project(self, monkeypatch):
        monkeypatch.delenv("CHATBRIDGE_CONFIG", raising=False)
        config = load_config()
        assert set(config["platforms"]) == {"openai", "claude", "gemini", "groq", "openrouter"}

    def test_raises_error_for_missing_config(self):
        with pytest.raises(ConfigurationError, match="Config file not found"):
            load_config("/nonexistent/path/config.yaml")

    def test_raises_error_for_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("platforms: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(str(path))

    def test_raises_error_for_non_mapping(self, tmp_path):
        path = _write(tmp_path / "config.yaml", ["a", "b"])
        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            load_config(str(path))

    def test_empty_file_is_an_empty_config(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(str(path)) == {}


class TestEnvironmentSubstitution:
    def test_substitutes_environment_variables(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TEST_GROQ_URL", "http://groq.test")
        path = _write(tmp_path / "config.yaml", {"platforms": {"groq": {"base_url": "${TEST_GROQ_URL}"}}})
        assert load_config(str(path))["platforms"]["groq"]["base_url"] == "http://groq.test"

    def test_env_file_next_to_config_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TEST_HOST", "from-process")
        (tmp_path / ".env_local").write_text("TEST_HOST=from-dotenv\n", encoding="utf-8")
        path = _write(tmp_path / "config_local.yaml", {"server": {"host": "$TEST_HOST"}})
        assert load_config(str(path))["server"]["host"] == "from-dotenv"

    def test_substitution_can_be_disabled(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TEST_HOST", "value")
        path = _write(tmp_path / "config.yaml", {"server": {"host": "${TEST_HOST}"}})
        assert load_config(str(path), substitute_env=False)["server"]["host"] == "${TEST_HOST}"

    def test_missing_variable_keeps_placeholder(self, monkeypatch, caplog):
        monkeypatch.delenv("CHATBRIDGE_TEST_UNSET", raising=False)
        with caplog.at_level(logging.WARNING, logger="chatbridge"):
            result = substitute_env_vars({"key": "${CHATBRIDGE_TEST_UNSET}"})
        assert result == {"key": "${CHATBRIDGE_TEST_UNSET}"}
        assert "CHATBRIDGE_TEST_UNSET" in caplog.text

    def test_nested_lists_and_non_strings(self, monkeypatch):
        monkeypatch.setenv("TEST_ITEM", "x")
        assert substitute_env_vars({"a": ["$TEST_ITEM", 3, None]}) == {"a": ["x", 3, None]}


class TestPathResolution:
    def test_relative_paths_resolve_against_project_root(self):
        path = resolve_config_path("configs/config_default.yaml")
        assert path.is_absolute()
        assert path.exists()

    def test_absolute_paths_are_kept(self, tmp_path):
        assert resolve_config_path(str(tmp_path / "c.yaml")) == tmp_path / "c.yaml"

    @pytest.mark.parametrize(
        "name,expected",
        [("config_default.yaml", ".env_default"), ("config_prod.yml", ".env_prod"), ("gateway.yaml", ".env")],
    )
    def test_env_file_pairing(self, tmp_path, name, expected):
        assert resolve_env_path(tmp_path / name) == tmp_path / expected
