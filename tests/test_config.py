"""
Tests for engine settings and logger setup
"""

import json
import logging

import pytest

from event_graph import config
from event_graph.config import EngineSettings, get_settings, load_settings
from event_graph.logging_utils import setup_logger


@pytest.fixture
def settings_file(tmp_path):
    """Write a settings file and return its path."""
    def _write(data):
        path = tmp_path / "engine.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path
    return _write


class TestEngineSettings:
    """Tests for the settings dataclass."""

    def test_defaults(self):
        settings = EngineSettings()
        assert settings.max_probability_change == 50.0
        assert settings.strict_updates is False
        assert settings.log_level == "INFO"

    @pytest.mark.parametrize("value", [-1.0, 100.5])
    def test_max_change_range(self, value):
        with pytest.raises(ValueError, match="max_probability_change"):
            EngineSettings(max_probability_change=value)

    def test_unknown_log_level(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            EngineSettings(log_level="CHATTY")

    def test_to_dict(self):
        assert EngineSettings().to_dict() == {
            "max_probability_change": 50.0,
            "strict_updates": False,
            "log_level": "INFO",
        }


class TestLoadSettings:
    """Tests for loading settings from file and environment."""

    def test_file_values(self, settings_file):
        path = settings_file({"max_probability_change": 25, "strict_updates": True})

        settings = load_settings(str(path), environ={})

        assert settings.max_probability_change == 25.0
        assert settings.strict_updates is True
        assert settings.log_level == "INFO"

    def test_environment_overrides_file(self, settings_file):
        path = settings_file({"max_probability_change": 25, "log_level": "WARNING"})
        environ = {
            "EVENT_GRAPH_MAX_PROBABILITY_CHANGE": "10",
            "EVENT_GRAPH_STRICT_UPDATES": "yes",
        }

        settings = load_settings(str(path), environ=environ)

        assert settings.max_probability_change == 10.0
        assert settings.strict_updates is True
        assert settings.log_level == "WARNING"

    @pytest.mark.parametrize("raw,expected", [
        ("1", True), ("true", True), ("ON", True),
        ("0", False), ("no", False), ("", False),
    ])
    def test_boolean_spellings(self, settings_file, raw, expected):
        path = settings_file({})
        settings = load_settings(str(path), environ={"EVENT_GRAPH_STRICT_UPDATES": raw})
        assert settings.strict_updates is expected

    def test_invalid_boolean(self, settings_file):
        path = settings_file({"strict_updates": "sometimes"})
        with pytest.raises(ValueError, match="boolean"):
            load_settings(str(path), environ={})

    def test_invalid_number(self, settings_file):
        path = settings_file({})
        with pytest.raises(ValueError, match="must be a number"):
            load_settings(str(path), environ={"EVENT_GRAPH_MAX_PROBABILITY_CHANGE": "lots"})

    def test_unknown_keys_ignored(self, settings_file, caplog):
        path = settings_file({"evidence_floor": 0.01})

        settings = load_settings(str(path), environ={})

        assert settings == EngineSettings()
        assert "evidence_floor" in caplog.text

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(str(tmp_path / "missing.json"), environ={})

    def test_default_file(self):
        settings = load_settings(environ={})
        assert settings.max_probability_change == 50.0

    def test_singleton(self, settings_file, monkeypatch):
        monkeypatch.setattr(config, "_settings", None)
        path = settings_file({"max_probability_change": 30})

        first = get_settings(str(path))
        assert first.max_probability_change == 30.0
        assert get_settings() is first

        reloaded = get_settings(force_reload=True)
        assert reloaded is not first


class TestSetupLogger:
    """Tests for setup_logger."""

    def test_console_handler(self):
        logger = setup_logger("event_graph.tests.console", level="debug")

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_no_duplicate_handlers(self):
        setup_logger("event_graph.tests.repeat")
        logger = setup_logger("event_graph.tests.repeat")
        assert len(logger.handlers) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "engine.log"
        logger = setup_logger("event_graph.tests.file", level=logging.INFO, log_file=log_file)

        logger.info("graph loaded")
        for handler in logger.handlers:
            handler.flush()

        assert len(logger.handlers) == 2
        assert "[INFO] event_graph.tests.file: graph loaded" in log_file.read_text()

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="Unknown log level: loud"):
            setup_logger("event_graph.tests.bad", level="loud")
