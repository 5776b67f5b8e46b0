"""Simple YAML configuration loader for MediaScribe."""

import copy
import os
import tempfile
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

MIB = 1024 * 1024

DEFAULT_CONFIG: Dict[str, Any] = {
    "media": {
        "max_duration_seconds": 40 * 60,
        "max_payload_bytes": 25 * MIB,
        "target_chunk_bytes": 20 * MIB,
        "shrink_factor": 0.8,
        "max_shrink_iterations": 20,
        "settle_delay_seconds": 0.5,
        "probe_timeout_seconds": 30,
        "transcode_timeout_seconds": 300,
    },
    "transcription": {
        "model": "whisper-1",
        "retry_count": 3,
        "retry_delay_seconds": 5,
        "request_timeout_seconds": 600,
    },
    "openai": {
        "api_key": "",
        "base_url": "https://api.openai.com/v1",
    },
    "sources": {
        "download_timeout_seconds": 600,
        "linkedin_cookies_path": "cookies.txt",
    },
    "storage": {
        "temp_dir": os.path.join(tempfile.gettempdir(), "media-transcriber"),
        "delete_retry_count": 5,
        "delete_retry_delay_seconds": 1,
    },
    "server": {
        "host": "0.0.0.0",
        "port": 3000,
    },
    "logging": {
        "level": "INFO",
        "console_output": True,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class MediaScribeConfig:
    """MediaScribe configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, built-in defaults
                        are used.
        """
        self.config_file = Path(config_path) if config_path else None

        if self.config_file is None:
            logger.info("No configuration file given, using defaults")
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            return

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ValueError(f"Failed to load configuration: {e}")

        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping")

        # Resolve relative paths before defaults fill in absolute ones
        self._resolve_paths(loaded)
        config = _merge(DEFAULT_CONFIG, loaded)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        for section, key in (("storage", "temp_dir"),
                             ("logging", "file_path"),
                             ("sources", "linkedin_cookies_path")):
            value = config.get(section, {}).get(key) if isinstance(config.get(section), dict) else None
            if value and not os.path.isabs(value):
                config[section][key] = str(config_dir / value)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'media.max_payload_bytes').

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
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'transcription.retry_count')
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

    def get_openai_api_key(self) -> str:
        """Get OpenAI API key from config or OPENAI_API_KEY - CRASHES if not found."""
        api_key = self.get('openai.api_key') or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("OpenAI API key not configured (set openai.api_key or OPENAI_API_KEY)")
        return api_key

    def get_temp_dir(self) -> str:
        """Get root directory for session working directories."""
        temp_dir = self.get('storage.temp_dir', DEFAULT_CONFIG["storage"]["temp_dir"])
        return str(Path(temp_dir).absolute())

    def get_log_file_path(self) -> str:
        """Get log file path, defaulting to a logs directory under the temp dir."""
        log_path = self.get('logging.file_path')
        if not log_path:
            log_path = os.path.join(self.get_temp_dir(), "logs", "mediascribe.log")
        return str(log_path)
