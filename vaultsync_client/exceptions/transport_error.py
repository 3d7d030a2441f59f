"""
VaultSync Client - Transport Error Exception

Exception raised when the server cannot be reached: connection refused,
DNS failure, or timeout.

Author: VaultSync Project
"""

from .api_error import VaultSyncAPIError


class VaultSyncTransportError(VaultSyncAPIError):
    """Exception for network failures. Never means a conflict."""
    pass
