"""
VaultSync Server - Path Restrictions

Evaluates the configured restriction rules for a vault path and validates
write operations against them. Rules come from the "restrictions" block of
the server config:

    read_only_prefixes     paths that may not be modified at all
    no_create_prefixes     paths where new files may not be created
    no_rename_prefixes     paths that may not be renamed
    no_delete_prefixes     paths that may not be deleted
    max_length_by_prefix   {prefix: max characters}, smallest match wins

Any path with a hidden segment (".obsidian/...", "notes/.draft.md") is
always read-only.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from vaultsync_server.vault_storage import NormalizePath, HasHiddenSegment

logger = logging.getLogger(__name__)


DEFAULT_POLICY: Dict[str, Any] = {
    "readOnly": False,
    "allowCreate": True,
    "allowRename": True,
    "allowDelete": True,
    "maxLength": None,
}

VALID_OPERATIONS = ("update", "create", "rename", "delete")


def _MatchesAny(path: str, prefixes) -> bool:
    return any(path.startswith(NormalizePath(prefix)) for prefix in prefixes or [] if NormalizePath(prefix))


def GetPolicyForPath(restrictions: Optional[Dict[str, Any]], path: str) -> Dict[str, Any]:
    """
    Compute the effective policy for a path

    Args:
        restrictions: Restriction rules from the server config
        path: Vault-relative path

    Returns:
        dict: Policy with readOnly, allowCreate, allowRename, allowDelete, maxLength
    """
    rules = restrictions or {}
    normalized = NormalizePath(path)
    policy = dict(DEFAULT_POLICY)

    if HasHiddenSegment(normalized):
        policy["readOnly"] = True

    if _MatchesAny(normalized, rules.get("read_only_prefixes")):
        policy["readOnly"] = True
    if _MatchesAny(normalized, rules.get("no_create_prefixes")):
        policy["allowCreate"] = False
    if _MatchesAny(normalized, rules.get("no_rename_prefixes")):
        policy["allowRename"] = False
    if _MatchesAny(normalized, rules.get("no_delete_prefixes")):
        policy["allowDelete"] = False

    limits = [
        int(limit)
        for prefix, limit in (rules.get("max_length_by_prefix") or {}).items()
        if normalized.startswith(NormalizePath(prefix))
    ]
    if limits:
        policy["maxLength"] = min(limits)

    if policy["readOnly"]:
        policy["allowCreate"] = False
        policy["allowRename"] = False
        policy["allowDelete"] = False

    return policy


def ValidateOperation(
    restrictions: Optional[Dict[str, Any]],
    operation: str,
    path: str,
    content: Optional[str] = None,
    destination: Optional[str] = None
) -> Tuple[bool, Optional[str], Dict[str, Any]]:
    """
    Check whether an operation is allowed on a path

    A rename is checked twice: the source must allow renaming and the
    destination must allow creating a file.

    Args:
        restrictions: Restriction rules from the server config
        operation: One of "update", "create", "rename", "delete"
        path: Vault-relative path (the source for a rename)
        content: New content for update/create, used for the length limit
        destination: Target path of a rename

    Returns:
        Tuple[bool, Optional[str], dict]: (allowed, reason if denied, policy)

    Raises:
        ValueError: If the operation name is unknown, or a rename has no destination
    """
    if operation not in VALID_OPERATIONS:
        raise ValueError(f"Unknown operation: {operation}")

    policy = GetPolicyForPath(restrictions, path)

    if operation == "rename":
        if not destination:
            raise ValueError("Rename needs a destination")
        if not policy["allowRename"]:
            return False, "Renaming is not allowed here", policy
        destination_policy = GetPolicyForPath(restrictions, destination)
        if not destination_policy["allowCreate"]:
            return False, "Destination does not allow new files", destination_policy
        return True, None, policy

    if operation == "update" and policy["readOnly"]:
        return False, "Path is read-only", policy
    if operation == "create" and not policy["allowCreate"]:
        return False, "Creating files is not allowed here", policy
    if operation == "delete" and not policy["allowDelete"]:
        return False, "Deleting is not allowed here", policy

    max_length = policy["maxLength"]
    if content is not None and max_length is not None and len(content) > max_length:
        return False, f"Content exceeds maximum length of {max_length} characters", policy

    return True, None, policy
