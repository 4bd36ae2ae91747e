"""Simple YAML configuration loader for Transcriber."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "transcriber.yaml"


class TranscriberConfig:
    """Transcriber configuration loader."""

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file.
        """
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
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        if not config:
            raise ValueError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping")

        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        google_cloud = config.get('google_cloud') or {}
        creds_path = google_cloud.get('credentials_path')
        if creds_path and not os.path.isabs(creds_path):
            google_cloud['credentials_path'] = str(config_dir / creds_path)

        logging_config = config.get('logging') or {}
        log_path = logging_config.get('file_path')
        if log_path and not os.path.isabs(log_path):
            logging_config['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'google_cloud.language').

        Args:
            key_path: Dot-separated key path (e.g., 'google_cloud.credentials_path')
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

