"""
VaultSync Client - Managers Package

Contains manager classes for configuration and local persistence.

Author: VaultSync Project
"""

from .config_manager import ConfigManager, DEFAULT_CONFIG
from .local_database import LocalDatabase, open_local_database
from .cache_store import CacheStore
from .sync_queue import SyncQueue

__all__ = [
    'ConfigManager',
    'DEFAULT_CONFIG',
    'LocalDatabase',
    'open_local_database',
    'CacheStore',
    'SyncQueue'
]
