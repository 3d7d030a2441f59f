"""
VaultSync Client - API Error Exception

Base exception class for all API-related errors.

Author: VaultSync Project
"""


class VaultSyncAPIError(Exception):
    """Base exception for API errors."""
    pass
