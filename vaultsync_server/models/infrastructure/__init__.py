"""
VaultSync Server - Infrastructure Models Package

Dataclass models passed between the vault store and the routes.
"""

from vaultsync_server.models.infrastructure.stored_file import StoredFile

__all__ = [
    'StoredFile',
]
