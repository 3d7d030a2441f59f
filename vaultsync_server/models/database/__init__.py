"""
VaultSync Server - Database Models Package

SQLAlchemy models for vault metadata.
"""

from vaultsync_server.models.database.base import Base
from vaultsync_server.models.database.vault_file import VaultFile

__all__ = [
    'Base',
    'VaultFile',
]
