"""Simple YAML configuration loader for CallScribe."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from ..errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "callscribe.yaml"

DEFAULTS: Dict[str, Any] = {
    "transcription": {
        "backend": "http",
        "endpoint": "http://localhost:3000/api/transcribe",
        "timeout_seconds": 120.0,
        "num_speakers": 2,
    },
    "google_cloud": {
        "language": "en-US",
        "use_enhanced_model": True,
        "enable_automatic_punctuation": True,
    },
    "storage": {
        "backend": "file",
        "data_directory": "data",
    },
    "supabase": {
        "table": "call_transcripts",
        "max_retries": 2,
        "retry_delay_seconds": 1.5,
    },
    "analysis": {
        "sentiment_margin": 1.0,
    },
    "logging": {
        "level": "INFO",
        "file_path": "data/logs/callscribe.log",
        "console_output": True,
    },
}

# Environment variables that override a config key when set
ENV_OVERRIDES = {
    "SUPABASE_URL": "supabase.url",
    "SUPABASE_KEY": "supabase.key",
    "TRANSCRIPTION_API_KEY": "transcription.api_key",
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class CallScribeConfig:
    """CallScribe configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, uses callscribe.yaml
                        in the current directory when present, otherwise defaults.
        """
        if config_path is None:
            candidate = Path.cwd() / DEFAULT_CONFIG_NAME
            self.config_file = candidate if candidate.exists() else None
        else:
            self.config_file = Path(config_path)
            if not self.config_file.exists():
                raise ConfigError(f"Configuration file not found: {self.config_file}")

        if self.config_file is None:
            logger.info("No configuration file found, using defaults")
            self.config = copy.deepcopy(DEFAULTS)
        else:
            logger.info(f"Loading configuration from: {self.config_file}")
            self.config = self._load_config()

        self._apply_env_overrides()

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "CallScribeConfig":
        """Build a configuration from an in-memory dict layered over the defaults."""
        instance = cls.__new__(cls)
        instance.config_file = None
        instance.config = _merge(DEFAULTS, values)
        return instance

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in configuration file: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to load configuration: {e}") from e

        if not config:
            raise ConfigError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ConfigError("Configuration file must contain a mapping")

        config = _merge(DEFAULTS, config)
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        for section, key in (
            ("google_cloud", "credentials_path"),
            ("storage", "data_directory"),
            ("logging", "file_path"),
        ):
            value = config.get(section, {}).get(key)
            if value and not os.path.isabs(value):
                config[section][key] = str(config_dir / value)

    def _apply_env_overrides(self) -> None:
        for env_name, key_path in ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value:
                self.set(key_path, value)
                logger.debug(f"Configuration key '{key_path}' taken from ${env_name}")

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'storage.backend').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation."""
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set")

    def require(self, key_path: str) -> Any:
        """Get a configuration value that must be present."""
        value = self.get(key_path)
        if value in (None, ""):
            raise ConfigError(f"'{key_path}' is not configured")
        return value

    def get_google_credentials_path(self) -> str:
        """Get Google credentials path - fails if not found."""
        creds_path = self.require('google_cloud.credentials_path')

        creds_file = Path(creds_path)
        if not creds_file.exists():
            raise ConfigError(f"Google credentials file not found: {creds_path}")

        return str(creds_file.absolute())

    def get_data_directory(self) -> str:
        """Get data directory path."""
        data_dir = self.get('storage.data_directory', 'data')
        return str(Path(data_dir).absolute())
