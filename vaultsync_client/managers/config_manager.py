"""
VaultSync Client - Configuration Manager

Handles loading and saving client configuration from/to config.json.

Author: VaultSync Project
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional, Dict, Any

# Configure logging
logger = logging.getLogger(__name__)


# Default configuration values
DEFAULT_CONFIG = {
    "server_url": "http://localhost",
    "server_port": 8000,
    "verify_ssl": True,
    "cache_path": "vaultsync-cache.db",  # relative paths resolve against the config directory
    "request_timeout_seconds": 10,
    "drain_interval_seconds": 30,
    "log_level": "INFO",
    "log_retention_days": 30,
    "restrictions": {}  # same rule format as the server's restrictions block
}


class ConfigManager:
    """
    Manages client configuration.

    Responsibilities:
    - Load/save config.json in the config directory
    - Fill in defaults for keys an older config file lacks
    - Resolve the local cache location
    """

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_dir: Directory holding config.json. Defaults to the
                        executable's folder when frozen, else the working directory.
        """
        if config_dir is not None:
            base_dir = Path(config_dir)
        elif getattr(sys, 'frozen', False):
            # Running as compiled executable
            base_dir = Path(sys.executable).parent
        else:
            # Running as script
            base_dir = Path.cwd()

        self.base_dir = base_dir
        self.config_file = base_dir / "config.json"
        self.config: Dict[str, Any] = {}

    def load_config(self) -> Dict[str, Any]:
        """
        Load configuration from config.json.
        Creates default config if file doesn't exist.

        Returns:
            Configuration dictionary

        Raises:
            ValueError: If config.json is not valid JSON
        """
        if self.config_file.exists():
            logger.debug(f"Loading configuration from {self.config_file}")
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    self.config = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid configuration file {self.config_file}: {e}") from e
            # Merge with defaults for any missing keys
            for key, value in DEFAULT_CONFIG.items():
                if key not in self.config:
                    self.config[key] = value
            logger.info("Configuration loaded successfully")
        else:
            logger.info(f"Configuration file not found, creating default at {self.config_file}")
            self.config = json.loads(json.dumps(DEFAULT_CONFIG))
            self.save_config()

        return self.config

    def save_config(self):
        """Save current configuration to config.json."""
        logger.debug(f"Saving configuration to {self.config_file}")
        self.base_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self.config, f, indent=2)
        logger.debug("Configuration saved successfully")

    def get(self, key: str, default=None) -> Any:
        """
        Get configuration value.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value
        """
        return self.config.get(key, default)

    def set(self, key: str, value: Any):
        """
        Set configuration value and save to file.

        Args:
            key: Configuration key
            value: Configuration value
        """
        self.config[key] = value
        self.save_config()

    def get_cache_path(self) -> Path:
        """
        Get the local cache database location.

        Returns:
            Absolute path of the cache database
        """
        cache_path = Path(self.get("cache_path") or DEFAULT_CONFIG["cache_path"])
        if not cache_path.is_absolute():
            cache_path = self.base_dir / cache_path
        return cache_path
