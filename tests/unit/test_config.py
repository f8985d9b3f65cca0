#!/usr/bin/env python
"""
Configuration tests

Defaults, validation, environment variables and config files.
"""

import json

import pytest

import sparqlmeta.config as config_module
from sparqlmeta.config import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_INPUT_LENGTH,
    DEFAULT_MAX_TOKENS,
    MAX_SUPPORTED_DEPTH,
    AnalyzerConfig,
    ParserLimits,
    get_config,
    init_config,
)


class TestParserLimits:
    """Limit validation."""

    def test_defaults(self):
        limits = ParserLimits()
        assert limits.max_depth == DEFAULT_MAX_DEPTH == 200
        assert limits.max_input_length == DEFAULT_MAX_INPUT_LENGTH
        assert limits.max_tokens == DEFAULT_MAX_TOKENS

    @pytest.mark.parametrize("kwargs", [
        {"max_depth": 0},
        {"max_depth": True},
        {"max_tokens": -1},
        {"max_input_length": "100"},
        {"max_depth": MAX_SUPPORTED_DEPTH + 1},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            ParserLimits(**kwargs)

    def test_supported_maximum(self):
        assert ParserLimits(max_depth=MAX_SUPPORTED_DEPTH).max_depth == MAX_SUPPORTED_DEPTH


class TestAnalyzerConfig:
    """Environment and file loading."""

    def test_defaults(self):
        config = AnalyzerConfig()
        assert config.limits == ParserLimits()
        assert config.operational.log_level == "WARNING"

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("SPARQLMETA_MAX_DEPTH", "50")
        monkeypatch.setenv("SPARQLMETA_MAX_TOKENS", "1000")
        monkeypatch.setenv("SPARQLMETA_LOG_LEVEL", "DEBUG")
        config = AnalyzerConfig()
        assert config.limits.max_depth == 50
        assert config.limits.max_tokens == 1000
        assert config.operational.log_level == "DEBUG"

    def test_environment_not_integer(self, monkeypatch):
        monkeypatch.setenv("SPARQLMETA_MAX_DEPTH", "deep")
        with pytest.raises(ValueError):
            AnalyzerConfig()

    def test_environment_skipped(self, monkeypatch):
        monkeypatch.setenv("SPARQLMETA_MAX_DEPTH", "50")
        assert AnalyzerConfig(load_environment=False).limits.max_depth == DEFAULT_MAX_DEPTH

    def test_config_file_from_environment(self, monkeypatch, tmp_path):
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({"limits": {"max_depth": 30}, "operational": {"log_level": "INFO"}}))
        monkeypatch.setenv("SPARQLMETA_CONFIG_FILE", str(path))
        config = AnalyzerConfig()
        assert config.limits.max_depth == 30
        assert config.operational.log_level == "INFO"

    def test_working_directory_file(self, tmp_path):
        (tmp_path / "sparqlmeta.json").write_text(json.dumps({"limits": {"max_tokens": 99}}))
        assert AnalyzerConfig().limits.max_tokens == 99

    def test_unreadable_file_logged(self, tmp_path, caplog):
        (tmp_path / "sparqlmeta.json").write_text("{not json")
        config = AnalyzerConfig()
        assert config.limits == ParserLimits()
        assert "Failed to load config" in caplog.text

    def test_invalid_limit_in_file(self, tmp_path):
        (tmp_path / "sparqlmeta.json").write_text(json.dumps({"limits": {"max_depth": 1000}}))
        with pytest.raises(ValueError):
            AnalyzerConfig()

    def test_save_and_reload(self, tmp_path, monkeypatch):
        config = AnalyzerConfig(limits=ParserLimits(max_depth=42), load_environment=False)
        path = tmp_path / "saved" / "config.json"
        config.save_to_file(path)
        assert json.loads(path.read_text())["limits"]["max_depth"] == 42

        monkeypatch.setenv("SPARQLMETA_CONFIG_FILE", str(path))
        assert AnalyzerConfig().limits.max_depth == 42

    def test_to_dict(self):
        assert AnalyzerConfig(load_environment=False).to_dict() == {
            "limits": {
                "max_depth": DEFAULT_MAX_DEPTH,
                "max_input_length": DEFAULT_MAX_INPUT_LENGTH,
                "max_tokens": DEFAULT_MAX_TOKENS,
            },
            "operational": {"log_level": "WARNING"},
        }


class TestGlobalConfig:
    """Module-level configuration instance."""

    def test_get_config_cached(self):
        assert get_config() is get_config()

    def test_init_config_from_file(self, tmp_path):
        path = tmp_path / "explicit.json"
        path.write_text(json.dumps({"limits": {"max_depth": 12}}))
        config = init_config(str(path))
        assert config.limits.max_depth == 12
        assert get_config() is config
        assert config_module._config is config
