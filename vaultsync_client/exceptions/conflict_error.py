"""
VaultSync Client - Conflict Error Exception

Exception raised when the server rejects a write because the client's
baseline is stale (409 CONFLICT).

Author: VaultSync Project
"""

from typing import Optional

from .request_error import VaultSyncRequestError


class VaultSyncConflictError(VaultSyncRequestError):
    """
    Exception for version conflicts.

    Attributes:
        server_content: Content the server currently holds
        server_modified: Version token the server currently holds
    """

    def __init__(self, message: str, server_content: Optional[str], server_modified: Optional[int]):
        super().__init__(message, 409, "CONFLICT")
        self.server_content = server_content
        self.server_modified = server_modified
