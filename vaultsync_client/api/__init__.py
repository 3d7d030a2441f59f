"""
VaultSync Client - API Package

Contains API communication modules for the VaultSync client.

Author: VaultSync Project
"""

from .vaultsync_api import VaultSyncAPI

__all__ = ['VaultSyncAPI']
