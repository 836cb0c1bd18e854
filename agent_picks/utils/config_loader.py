"""Configuration loader utility."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv


DEFAULT_CONFIG_PATH = "config/config.yaml"


class ConfigLoader:
    """Load and manage configuration from YAML and environment variables."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize the config loader.

        Args:
            config_path: Path to the YAML config file. Defaults to the
                AGENT_PICKS_CONFIG environment variable, then config/config.yaml.
                An explicitly given path must exist; a missing default file
                leaves the config empty so every lookup falls back to its default.
        """
        self._load_env()
        explicit = config_path or self.get_env('AGENT_PICKS_CONFIG')
        self.config_path = Path(explicit or DEFAULT_CONFIG_PATH)
        self._config: Dict[str, Any] = {}
        self._load_yaml(required=bool(explicit))

    def _load_env(self):
        """Load environment variables from .env file."""
        load_dotenv()

    def _load_yaml(self, required: bool):
        """Load configuration from YAML file."""
        if self.config_path.exists():
            with open(self.config_path, 'r') as f:
                self._config = yaml.safe_load(f) or {}
        elif required:
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by key (supports nested keys with dots).

        Args:
            key: Configuration key (e.g., 'edges.badge_threshold')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value = self._config
        for k in key.split('.'):
            if not isinstance(value, dict):
                return default
            value = value.get(k)
            if value is None:
                return default
        return value

    def get_env(self, key: str, default: Any = None) -> Any:
        return os.getenv(key, default)

    @property
    def anthropic_api_key(self) -> str:
        """Get Anthropic API key from environment."""
        key = self.get_env('ANTHROPIC_API_KEY')
        if not key:
            raise ValueError("ANTHROPIC_API_KEY not found in environment variables")
        return key

    @property
    def picks_path(self) -> str:
        return self.get_env('AGENT_PICKS_STORE') or self.get('storage.picks_path', 'data/picks.json')

    @property
    def config(self) -> Dict[str, Any]:
        """Get the full configuration dictionary."""
        return self._config


# Global config instance
_config_instance = None


def get_config() -> ConfigLoader:
    """Get the global configuration instance."""
    global _config_instance
    if _config_instance is None:
        _config_instance = ConfigLoader()
    return _config_instance
