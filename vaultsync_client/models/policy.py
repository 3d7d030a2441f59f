"""
VaultSync Client - Policy Model

Effective restriction policy of a vault path.

Author: VaultSync Project
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Policy:
    read_only: bool = False
    allow_create: bool = True
    allow_rename: bool = True
    allow_delete: bool = True
    max_length: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Policy":
        """
        Build a policy from the server's wire format (camelCase keys).
        """
        data = data or {}
        max_length = data.get("maxLength")
        return cls(
            read_only=bool(data.get("readOnly", False)),
            allow_create=bool(data.get("allowCreate", True)),
            allow_rename=bool(data.get("allowRename", True)),
            allow_delete=bool(data.get("allowDelete", True)),
            max_length=int(max_length) if max_length is not None else None
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "readOnly": self.read_only,
            "allowCreate": self.allow_create,
            "allowRename": self.allow_rename,
            "allowDelete": self.allow_delete,
            "maxLength": self.max_length
        }

    def merge(self, other: "Policy") -> "Policy":
        """Combine two policies, keeping the stricter value of every field."""
        limits = [limit for limit in (self.max_length, other.max_length) if limit is not None]
        return Policy(
            read_only=self.read_only or other.read_only,
            allow_create=self.allow_create and other.allow_create,
            allow_rename=self.allow_rename and other.allow_rename,
            allow_delete=self.allow_delete and other.allow_delete,
            max_length=min(limits) if limits else None
        )
