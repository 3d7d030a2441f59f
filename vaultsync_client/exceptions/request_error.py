"""
VaultSync Client - Request Error Exception

Exception raised for 4xx responses. Retrying the same request will not help.

Author: VaultSync Project
"""

from typing import Any, Dict, Optional

from .api_error import VaultSyncAPIError


class VaultSyncRequestError(VaultSyncAPIError):
    """
    Exception for rejected requests.

    Attributes:
        status_code: HTTP status code
        code: Machine readable error code from the server, if any
        policy: Policy the server attached to a POLICY_VIOLATION
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        code: Optional[str] = None,
        policy: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.policy = policy
