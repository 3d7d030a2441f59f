"""
VaultSync Client - Policy Service

Answers "may this path be edited?" locally, without a network round trip,
so read-only files are refused before any push is attempted.

Policies come from two places: the restriction rules in the client config
(same format as the server's) and the policy the server sends along with
every file it returns. When both are known the stricter one applies.

Author: VaultSync Project
"""

import logging
import threading
from typing import Any, Dict, Optional

from vaultsync_client.exceptions import PolicyViolationError
from vaultsync_client.models import Policy

# Configure logging
logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """Convert a path to the vault-relative posix form used as a key."""
    normalized = (path or "").replace("\\", "/").lstrip("/")
    return "/".join(part for part in normalized.split("/") if part not in ("", "."))


def has_hidden_segment(path: str) -> bool:
    """Check whether any segment of the path starts with a dot."""
    return any(part.startswith(".") for part in normalize_path(path).split("/") if part)


def _matches_any(path: str, prefixes) -> bool:
    return any(path.startswith(normalize_path(prefix)) for prefix in prefixes or [] if normalize_path(prefix))


def get_policy_for_path(restrictions: Optional[Dict[str, Any]], path: str) -> Policy:
    """
    Evaluate restriction rules for a path.

    Args:
        restrictions: Rules with read_only_prefixes, no_create_prefixes,
                      no_rename_prefixes, no_delete_prefixes, max_length_by_prefix
        path: Vault-relative path

    Returns:
        Policy for the path
    """
    rules = restrictions or {}
    normalized = normalize_path(path)

    read_only = has_hidden_segment(normalized) or _matches_any(normalized, rules.get("read_only_prefixes"))
    limits = [
        int(limit)
        for prefix, limit in (rules.get("max_length_by_prefix") or {}).items()
        if normalized.startswith(normalize_path(prefix))
    ]

    return Policy(
        read_only=read_only,
        allow_create=not read_only and not _matches_any(normalized, rules.get("no_create_prefixes")),
        allow_rename=not read_only and not _matches_any(normalized, rules.get("no_rename_prefixes")),
        allow_delete=not read_only and not _matches_any(normalized, rules.get("no_delete_prefixes")),
        max_length=min(limits) if limits else None
    )


class PolicyService:
    """
    Local policy lookup and enforcement.
    """

    def __init__(self, restrictions: Optional[Dict[str, Any]] = None):
        """
        Args:
            restrictions: Restriction rules from the client config
        """
        self.restrictions = restrictions or {}
        self._server_policies: Dict[str, Policy] = {}
        self._lock = threading.Lock()

    def remember(self, path: str, policy_data: Optional[Dict[str, Any]]):
        """
        Store the policy the server sent with a file.

        Args:
            path: Vault-relative path
            policy_data: Policy in the server's wire format, ignored if None
        """
        if not policy_data:
            return
        with self._lock:
            self._server_policies[normalize_path(path)] = Policy.from_dict(policy_data)

    def knows(self, path: str) -> bool:
        """Check whether the server has sent a policy for this path."""
        with self._lock:
            return normalize_path(path) in self._server_policies

    def get_policy(self, path: str) -> Policy:
        """
        Get the effective policy for a path.

        Returns:
            Stricter of the configured rules and the last server-sent policy
        """
        policy = get_policy_for_path(self.restrictions, path)
        with self._lock:
            server_policy = self._server_policies.get(normalize_path(path))
        if server_policy is not None:
            policy = policy.merge(server_policy)
        return policy

    def check(self, operation: str, path: str, content: Optional[str] = None,
              destination: Optional[str] = None) -> Policy:
        """
        Refuse an operation the policy does not allow.

        Args:
            operation: "update", "create", "rename" or "delete"
            path: Vault-relative path
            content: New content, checked against the length limit
            destination: Target path of a rename, which must allow new files

        Returns:
            The effective policy when the operation is allowed

        Raises:
            PolicyViolationError: If the operation is not allowed
        """
        policy = self.get_policy(path)

        reason = None
        if operation == "update" and policy.read_only:
            reason = "Path is read-only"
        elif operation == "create" and not policy.allow_create:
            reason = "Creating files is not allowed here"
        elif operation == "rename" and not policy.allow_rename:
            reason = "Renaming is not allowed here"
        elif operation == "rename" and destination is not None and not self.get_policy(destination).allow_create:
            reason = f"Destination {destination} does not allow new files"
        elif operation == "delete" and not policy.allow_delete:
            reason = "Deleting is not allowed here"
        elif content is not None and policy.max_length is not None and len(content) > policy.max_length:
            reason = f"Content exceeds maximum length of {policy.max_length} characters"

        if reason is not None:
            logger.warning(f"Blocked {operation} of {path}: {reason}")
            raise PolicyViolationError(path, reason, policy)
        return policy
