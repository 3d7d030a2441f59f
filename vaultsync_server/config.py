"""
VaultSync Server - Configuration

Loads the server configuration from a JSON file and merges it over the
built-in defaults. Missing keys always fall back to the defaults so an old
config file keeps working after new settings are added.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


# ==================== Defaults ====================

DEFAULT_CONFIG_FILENAME = "vaultsync-server.json"

DEFAULT_RESTRICTIONS: Dict[str, Any] = {
    "read_only_prefixes": [],
    "no_create_prefixes": [],
    "no_rename_prefixes": [],
    "no_delete_prefixes": [],
    "max_length_by_prefix": {},
}

DEFAULT_SERVER_CONFIG: Dict[str, Any] = {
    "vault_path": "vault",
    "database_path": "database/vaultsync.db",
    "host": "0.0.0.0",
    "port": 8000,
    "log_level": "INFO",
    "log_dir": "logs",
    "cors_origins": ["*"],
    "restrictions": DEFAULT_RESTRICTIONS,
}


# ==================== Loading ====================

def MergeConfig(overrides: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Merge user settings over the defaults

    The restrictions block is merged key by key so a config that only sets
    read_only_prefixes keeps the other default rule lists.

    Args:
        overrides: Settings read from a config file (or None)

    Returns:
        dict: Complete configuration
    """
    config = copy.deepcopy(DEFAULT_SERVER_CONFIG)
    if not overrides:
        return config

    for key, value in overrides.items():
        if key == "restrictions" and isinstance(value, dict):
            config["restrictions"].update(value)
        else:
            config[key] = value

    return config


def LoadServerConfig(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load server configuration from a JSON file

    Args:
        config_path: Path to the config file. Defaults to vaultsync-server.json
                     in the working directory.

    Returns:
        dict: Configuration merged over DEFAULT_SERVER_CONFIG

    Raises:
        ValueError: If the file exists but is not valid JSON
    """
    path = Path(config_path or DEFAULT_CONFIG_FILENAME)

    if not path.exists():
        logger.warning(f"Config file {path} not found, using default settings")
        return MergeConfig(None)

    try:
        with open(path, 'r', encoding='utf-8') as f:
            loaded = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid server config {path}: {e}") from e

    logger.info(f"Loaded server configuration from {path}")
    return MergeConfig(loaded)
