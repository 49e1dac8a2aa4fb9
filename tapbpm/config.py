"""
Configuration for Tap BPM.

Loads a TOML file and validates numeric parameters against fixed bounds.
Missing sections and parameters fall back to DEFAULT_CONFIG.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import toml

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when config loading or validation fails."""
    pass


class Config:
    """Configuration loader and validator."""

    PARAM_BOUNDS = {
        "tap": {
            "window_size": (2, 32),
            "reset_timeout_ms": (250, 60000),
        },
        "keys": {
            "tap": None,
            "reset": None,
            "ignore_auto_repeat": None,
        },
        "remote": {
            "enabled": None,
            "host": None,
            "port": (0, 65535),
        },
        "logging": {
            "level": None,
        },
    }

    DEFAULT_CONFIG = {
        "tap": {
            "window_size": 8,
            "reset_timeout_ms": 3000,
        },
        "keys": {
            "tap": ["Space"],
            "reset": ["Escape"],
            "ignore_auto_repeat": False,
        },
        "remote": {
            "enabled": False,
            "host": "127.0.0.1",
            "port": 45834,
        },
        "logging": {
            "level": "INFO",
        },
    }

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        self.data = copy.deepcopy(config_dict) if config_dict is not None else {}
        self._validate()

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """
        Load config from a TOML file.

        Args:
            config_path: Path to tapbpm.toml. If None, uses TAPBPM_CONFIG_PATH
                        or defaults to tapbpm.toml in the working directory.

        Raises:
            ConfigError: If the file cannot be parsed or a value is out of bounds.
        """
        if config_path is None:
            config_path = os.getenv("TAPBPM_CONFIG_PATH", "tapbpm.toml")

        config_path = Path(config_path)

        if not config_path.exists():
            logger.warning(f"Config file not found: {config_path}. Using defaults.")
            return cls()

        try:
            config_dict = toml.load(config_path)
        except (toml.TomlDecodeError, OSError) as e:
            raise ConfigError(f"Failed to load config from {config_path}: {e}") from e
        logger.info(f"Loaded config from {config_path}")
        return cls(config_dict)

    def _validate(self) -> None:
        for section, params in self.PARAM_BOUNDS.items():
            defaults = self.DEFAULT_CONFIG[section]
            section_data = self.data.setdefault(section, {})
            if not isinstance(section_data, dict):
                raise ConfigError(f"Config section [{section}] must be a table")

            for param, bounds in params.items():
                if param not in section_data:
                    section_data[param] = copy.deepcopy(defaults[param])
                    continue

                value = section_data[param]
                expected = type(defaults[param])
                if expected is int and isinstance(value, bool) or not isinstance(value, expected):
                    raise ConfigError(
                        f"Parameter {section}.{param}={value!r} must be {expected.__name__}"
                    )

                if bounds is None:
                    continue

                min_val, max_val = bounds
                if not (min_val <= value <= max_val):
                    raise ConfigError(
                        f"Parameter {section}.{param}={value} out of bounds "
                        f"[{min_val}, {max_val}]"
                    )

        level = self.data["logging"]["level"]
        if not isinstance(logging.getLevelName(str(level).upper()), int):
            raise ConfigError(f"Unknown log level: {level}")

    def get(self, section: str, param: str, default: Any = None) -> Any:
        return self.data.get(section, {}).get(param, default)

    def set(self, section: str, param: str, value: Any) -> None:
        """Override a value (e.g. from the command line) and revalidate."""
        previous = copy.deepcopy(self.data)
        self.data.setdefault(section, {})[param] = value
        try:
            self._validate()
        except ConfigError:
            self.data = previous
            raise

    def __getitem__(self, section: str) -> Dict[str, Any]:
        return self.data.get(section, {})

    def __repr__(self) -> str:
        return f"Config(tap={self.data.get('tap')})"
