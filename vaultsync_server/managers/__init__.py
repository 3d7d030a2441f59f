"""
VaultSync Server - Managers Package

This package contains manager classes for database and other operations.
"""

from vaultsync_server.managers.database_manager import DatabaseManager

__all__ = ['DatabaseManager']
