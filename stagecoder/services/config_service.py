"""
Configuration Service

Service class for configuration management.
Holds a nested dictionary loaded from a JSON file and exposes dotted-key
access ("providers.anthropic.api_key").
"""

import copy
import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger("StageCoder.ConfigService")


def deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Return a new dict with overrides merged recursively into base."""
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ConfigService:
    """
    Service class for configuration management.

    Provides:
    - Configuration loading
    - Configuration saving
    - Dotted-key lookup with defaults
    """

    def __init__(self, config_path: Optional[Path] = None, defaults: Optional[Dict[str, Any]] = None):
        """
        Initialize config service.

        Args:
            config_path: Path to config file
            defaults: Values used for keys the file does not set
        """
        if config_path is None:
            config_path = Path.home() / ".stagecoder" / "config.json"

        self.config_path = Path(config_path)
        self._defaults: Dict[str, Any] = copy.deepcopy(defaults or {})
        self._config: Dict[str, Any] = copy.deepcopy(self._defaults)

    def load(self, required: bool = False) -> Dict[str, Any]:
        """
        Load configuration from file, layered over the defaults.

        Args:
            required: Raise if the file does not exist

        Returns:
            Configuration dictionary

        Raises:
            FileNotFoundError: If required and the config file doesn't exist
            ValueError: If config file is invalid JSON
        """
        if not self.config_path.exists():
            if required:
                logger.error(f"Config file not found at: {self.config_path}")
                raise FileNotFoundError(f"Config file not found at: {self.config_path}")
            logger.debug(f"No config file at {self.config_path}, using defaults")
            self._config = copy.deepcopy(self._defaults)
            return self.get_all()

        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Error parsing {self.config_path}: {e}")
            raise ValueError(
                f"Error parsing {self.config_path}: {e}\n"
                "Please ensure the config file is valid JSON."
            ) from e

        if not isinstance(data, dict):
            raise ValueError(f"Config file {self.config_path} must contain a JSON object")

        self._config = deep_merge(self._defaults, data)
        logger.info(f"Configuration loaded from {self.config_path}")
        return self.get_all()

    def save(self, data: Optional[Dict[str, Any]] = None) -> bool:
        """
        Save configuration to file.

        Args:
            data: Optional data to save (uses internal config if None)

        Returns:
            True if successful
        """
        if data is not None:
            self._config = data
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with self.config_path.open("w", encoding="utf-8") as f:
                json.dump(self._config, f, indent=4)
        except OSError as e:
            logger.error(f"Failed to save config: {e}")
            return False
        logger.info(f"Configuration saved to {self.config_path}")
        return True

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value.

        Args:
            key: Configuration key (supports dot notation: "git.remote")
            default: Default value if key not found
        """
        value: Any = self._config
        for k in key.split("."):
            if not isinstance(value, dict):
                return default
            value = value.get(k)
            if value is None:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value (supports dot notation)."""
        keys = key.split(".")
        config = self._config
        for k in keys[:-1]:
            if not isinstance(config.get(k), dict):
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value

    def update(self, updates: Dict[str, Any]) -> None:
        """Merge a nested dictionary of updates into the configuration."""
        self._config = deep_merge(self._config, updates)

    def get_all(self) -> Dict[str, Any]:
        """Get a deep copy of the complete configuration."""
        return copy.deepcopy(self._config)
