"""
VaultSync Client - Server Error Exception

Exception raised for 5xx responses.

Author: VaultSync Project
"""

from typing import Optional

from .api_error import VaultSyncAPIError


class VaultSyncServerError(VaultSyncAPIError):
    """Exception for server errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
