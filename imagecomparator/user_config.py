"""
User configuration management for Image Comparator.

Supports configuration from multiple sources (in order of priority):
1. Runtime parameters (highest priority)
2. Environment variables
3. User config file (~/.imagecomparator/config.json)
4. Default values from config.py (lowest priority)

Example config.json:
{
    "default_tolerance": 0.0,
    "batch_size": 128,
    "device": "cpu",
    "confirm_image_count": 4000,
    "report_file": null
}
"""

import json
import os
from pathlib import Path
from typing import Any, Optional
import logging

from .config import (
    DEFAULT_TOLERANCE,
    DEFAULT_BATCH_SIZE,
    DEFAULT_DEVICE,
    CONFIRM_IMAGE_COUNT,
    DEFAULT_REPORT_FILE,
    STORE_CACHE_SIZE,
)

logger = logging.getLogger(__name__)


class UserConfig:
    """
    Manages user configuration from file and environment variables.

    Attributes are lazy-loaded and cached for performance.
    """

    _instance: Optional['UserConfig'] = None
    _config_data: Optional[dict] = None

    def __new__(cls):
        """Singleton pattern to ensure one config instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def config_dir(self) -> Path:
        """Get the configuration directory path."""
        env_dir = os.getenv('IMAGECOMPARATOR_CONFIG_DIR')
        if env_dir:
            return Path(env_dir)
        return Path.home() / '.imagecomparator'

    @property
    def config_file_path(self) -> Path:
        """Get the configuration file path."""
        return self.config_dir / 'config.json'

    def _load_config_file(self) -> dict:
        """Load configuration from JSON file."""
        if not self.config_file_path.exists():
            return {}

        try:
            with open(self.config_file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
                logger.debug(f"Loaded configuration from {self.config_file_path}")
                return data
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load config file {self.config_file_path}: {e}")
            return {}

    def _get_config_data(self) -> dict:
        """Get cached config data (lazy loading)."""
        if self._config_data is None:
            self._config_data = self._load_config_file()
        return self._config_data

    def reload(self):
        """Reload configuration from file."""
        self._config_data = None

    def get(self, key: str, default: Any = None, env_var: Optional[str] = None) -> Any:
        """
        Get a configuration value with priority:
        1. Environment variable (if env_var specified)
        2. Config file
        3. Default value
        """
        if env_var:
            env_value = os.getenv(env_var)
            if env_value is not None:
                # Try to parse as JSON for numbers and null
                try:
                    return json.loads(env_value)
                except (json.JSONDecodeError, TypeError):
                    return env_value

        config_data = self._get_config_data()
        if key in config_data:
            return config_data[key]

        return default

    @property
    def default_tolerance(self) -> float:
        """Accepted difference percentage (0.0 - 1.0)."""
        return self.get(
            'default_tolerance',
            default=DEFAULT_TOLERANCE,
            env_var='IMAGECOMPARATOR_TOLERANCE'
        )

    @property
    def batch_size(self) -> int:
        """Comparison units per batch (0 = single batch)."""
        return self.get(
            'batch_size',
            default=DEFAULT_BATCH_SIZE,
            env_var='IMAGECOMPARATOR_BATCH_SIZE'
        )

    @property
    def device(self) -> str:
        """Kernel array backend ('cpu' or 'cuda')."""
        return self.get(
            'device',
            default=DEFAULT_DEVICE,
            env_var='IMAGECOMPARATOR_DEVICE'
        )

    @property
    def confirm_image_count(self) -> int:
        """Ask before comparing at least this many images."""
        return self.get(
            'confirm_image_count',
            default=CONFIRM_IMAGE_COUNT,
            env_var='IMAGECOMPARATOR_CONFIRM_COUNT'
        )

    @property
    def store_cache_size(self) -> int:
        """Decoded images kept in memory while comparing."""
        return self.get(
            'store_cache_size',
            default=STORE_CACHE_SIZE,
            env_var='IMAGECOMPARATOR_CACHE_SIZE'
        )

    @property
    def report_file(self) -> str:
        """Path of the JSON report."""
        custom = self.get('report_file', env_var='IMAGECOMPARATOR_REPORT_FILE')
        if custom:
            return custom
        return DEFAULT_REPORT_FILE

    def create_example_config(self) -> bool:
        """Create an example configuration file."""
        example_config = {
            "_comment": "Image Comparator User Configuration",
            "default_tolerance": DEFAULT_TOLERANCE,
            "batch_size": DEFAULT_BATCH_SIZE,
            "device": DEFAULT_DEVICE,
            "confirm_image_count": CONFIRM_IMAGE_COUNT,
            "store_cache_size": STORE_CACHE_SIZE,
            "report_file": None,
        }

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, 'w', encoding='utf-8') as f:
                json.dump(example_config, f, indent=2)
            logger.info(f"Created example config file at {self.config_file_path}")
            return True
        except OSError as e:
            logger.error(f"Failed to create example config: {e}")
            return False


# Global instance
_user_config = UserConfig()


def get_user_config() -> UserConfig:
    """Get the global UserConfig instance."""
    return _user_config
