"""
VaultSync Client - Policy Violation Error Exception

Raised before any network call when an edit breaks the path's restriction
policy (read-only path, create/delete not allowed, content too long).

Author: VaultSync Project
"""

from typing import Optional

from .api_error import VaultSyncAPIError


class PolicyViolationError(VaultSyncAPIError):
    """
    Exception for operations blocked by the restriction policy.

    Attributes:
        path: Vault-relative path
        reason: Why the operation was refused
        policy: Effective Policy for the path
    """

    def __init__(self, path: str, reason: str, policy: Optional[object] = None):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason
        self.policy = policy
