"""
VaultSync Client - Not Found Error Exception

Author: VaultSync Project
"""

from .request_error import VaultSyncRequestError


class VaultSyncNotFoundError(VaultSyncRequestError):
    """Exception for 404 responses."""

    def __init__(self, message: str):
        super().__init__(message, 404, "NOT_FOUND")
