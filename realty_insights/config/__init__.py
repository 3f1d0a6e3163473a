"""Simple YAML configuration loader for Realty Insights."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from ..exceptions import ConfigurationError
from ..models.audio import CaptureConstraints

logger = logging.getLogger(__name__)

DEFAULT_API_KEY_ENV = "GOOGLE_API_KEY"

# Keys holding paths that are resolved against the config file's directory
_PATH_KEYS = (
    ('google_cloud', 'credentials_path'),
    ('transcription', 'temp_directory'),
    ('analytics', 'snapshot_path'),
    ('logging', 'file_path'),
)


class RealtyInsightsConfig:
    """Realty Insights configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, built-in defaults
                        are used and relative paths resolve against the
                        current directory.
        """
        if config_path is None:
            self.config_file = None
            self.config: Dict[str, Any] = {}
            logger.info("No configuration file given, using defaults")
            return

        self.config_file = Path(config_path)

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        if not config:
            raise ConfigurationError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ConfigurationError("Configuration file must contain a mapping")

        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        for section, key in _PATH_KEYS:
            value = (config.get(section) or {}).get(key)
            if value and not os.path.isabs(value):
                config[section][key] = str(config_dir / value)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'gemini.model').

        Args:
            key_path: Dot-separated key path (e.g., 'audio.sample_rate')
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
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'chat.auto_submit')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        # Set the final value
        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_api_key(self) -> Optional[str]:
        """Gemini API key from the environment; None if unset."""
        env_name = self.get('gemini.api_key_env', DEFAULT_API_KEY_ENV)
        api_key = os.environ.get(env_name, "").strip()
        return api_key or None

    def require_api_key(self) -> str:
        """Get Gemini API key - CRASHES if not found."""
        api_key = self.get_api_key()
        if not api_key:
            env_name = self.get('gemini.api_key_env', DEFAULT_API_KEY_ENV)
            raise ConfigurationError(f"Gemini API key not configured: set {env_name}")
        return api_key

    def get_google_credentials_path(self) -> str:
        """Get Google credentials path - CRASHES if not found."""
        creds_path = self.get('google_cloud.credentials_path') or os.environ.get('GOOGLE_APPLICATION_CREDENTIALS')
        if not creds_path:
            raise ConfigurationError("Google credentials path not configured")

        creds_file = Path(creds_path)
        if not creds_file.exists():
            raise FileNotFoundError(f"Google credentials file not found: {creds_path}")

        return str(creds_file.absolute())

    def get_temp_directory(self) -> str:
        """Get transient audio directory path."""
        temp_dir = self.get('transcription.temp_directory', 'temp')
        return str(Path(temp_dir).absolute())

    def get_snapshot_path(self) -> Optional[str]:
        snapshot_path = self.get('analytics.snapshot_path')
        return str(Path(snapshot_path).absolute()) if snapshot_path else None

    def get_capture_constraints(self) -> CaptureConstraints:
        """Microphone constraints from the audio section."""
        return CaptureConstraints(
            channels=int(self.get('audio.channels', 1)),
            sample_rate=int(self.get('audio.sample_rate', 16000)),
            echo_cancellation=bool(self.get('audio.echo_cancellation', True)),
            noise_suppression=bool(self.get('audio.noise_suppression', True)),
            chunk_interval_seconds=float(self.get('audio.chunk_interval_seconds', 1.0)),
            input_device_index=self.get('audio.input_device_index'),
        )
