"""
VaultSync Client - File Exists Error Exception

Exception raised when creating a file that already exists (409 FILE_EXISTS).

Author: VaultSync Project
"""

from .request_error import VaultSyncRequestError


class VaultSyncFileExistsError(VaultSyncRequestError):
    """Exception for create requests on an existing path."""

    def __init__(self, message: str):
        super().__init__(message, 409, "FILE_EXISTS")
