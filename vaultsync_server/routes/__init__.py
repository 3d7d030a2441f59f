"""
VaultSync Server - Routes Package

API routers for file operations and server status.
"""

from vaultsync_server.routes import files, status

__all__ = ['files', 'status']
