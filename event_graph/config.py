"""
Engine Configuration

Settings for the update orchestration layer, loaded from config/engine.json
with environment-variable overrides:

    EVENT_GRAPH_MAX_PROBABILITY_CHANGE   float, percentage points
    EVENT_GRAPH_STRICT_UPDATES           "1"/"true"/"yes" to reject large jumps
    EVENT_GRAPH_LOG_LEVEL                logging level name
"""

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "engine.json"

ENV_PREFIX = "EVENT_GRAPH_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass
class EngineSettings:
    """Tunable limits for probability updates."""
    max_probability_change: float = 50.0
    strict_updates: bool = False
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate fields after initialization."""
        if not 0.0 <= self.max_probability_change <= 100.0:
            raise ValueError(
                f"max_probability_change must be between 0 and 100, got {self.max_probability_change}"
            )
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log level: {self.log_level}")

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _coerce(name: str, raw, target_type):
    """Convert a raw config or environment value to the field's type."""
    if target_type is bool:
        if isinstance(raw, bool):
            return raw
        text = str(raw).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ValueError(f"{name} must be a boolean, got {raw!r}")

    if target_type is float:
        try:
            return float(raw)
        except (TypeError, ValueError):
            raise ValueError(f"{name} must be a number, got {raw!r}") from None

    return str(raw)


def load_settings(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None
) -> EngineSettings:
    """
    Load engine settings.

    Precedence: environment variables > config file > dataclass defaults.
    The default config file is optional; an explicitly given path must exist.

    Args:
        config_path: Path to a JSON settings file
        environ: Environment mapping (defaults to os.environ)

    Returns:
        EngineSettings instance
    """
    environ = os.environ if environ is None else environ
    field_types = {f.name: f.type for f in fields(EngineSettings)}
    values = {}

    if config_path is None:
        path = DEFAULT_CONFIG_PATH
    else:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Engine configuration not found: {path}")

    if path.exists():
        logger.debug(f"Loading engine settings from: {path}")
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        for key, raw in data.items():
            if key not in field_types:
                logger.warning(f"Ignoring unknown engine setting: {key}")
                continue
            values[key] = _coerce(key, raw, field_types[key])

    for name, target_type in field_types.items():
        env_key = ENV_PREFIX + name.upper()
        if env_key in environ:
            values[name] = _coerce(env_key, environ[env_key], target_type)
            logger.debug(f"Engine setting {name} overridden by {env_key}")

    return EngineSettings(**values)


# Module-level singleton for convenience
_settings: Optional[EngineSettings] = None


def get_settings(config_path: Optional[str] = None, force_reload: bool = False) -> EngineSettings:
    """
    Get the engine settings singleton.

    Args:
        config_path: Optional path to a settings file
        force_reload: If True, reload even if already loaded

    Returns:
        EngineSettings instance
    """
    global _settings
    if _settings is None or force_reload:
        _settings = load_settings(config_path)
    return _settings
