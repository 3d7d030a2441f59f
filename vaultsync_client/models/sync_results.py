"""
VaultSync Client - Sync Result Models

Outcome types returned by the sync coordinator.

Author: VaultSync Project
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class SaveOutcome(Enum):
    """
    Result of saving (or deleting) a file.

    - SAVED: The server accepted the change
    - SAVED_OFFLINE: Stored locally and queued for later
    - CONFLICT: The server holds a newer version; the conflict is recorded
    - FAILED: The server rejected the change; the local copy is kept
    """
    SAVED = "saved"
    SAVED_OFFLINE = "saved_offline"
    CONFLICT = "conflict"
    FAILED = "failed"


@dataclass
class ReconcileResult:
    """Counts of what one reconciliation pass did."""
    success: bool = True
    created: int = 0
    pulled: int = 0
    conflicts: int = 0
    unchanged: int = 0
    errors: List[str] = field(default_factory=list)

    def record(self, action: str):
        setattr(self, action, getattr(self, action) + 1)

    def summary(self) -> str:
        return (f"{self.created} new, {self.pulled} updated, {self.conflicts} conflicts, "
                f"{self.unchanged} unchanged, {len(self.errors)} errors")


@dataclass
class DrainResult:
    """
    What one pass over the pending-operation queue did.

    Attributes:
        skipped: Another drain was already running, or the client is offline
        replayed: Items the server accepted
        deferred: Items left queued because their file is conflicted
        failed: Items the server rejected for good, as "operation path: reason"
        remaining: Items still queued after the pass
    """
    skipped: bool = False
    replayed: int = 0
    deferred: int = 0
    failed: List[str] = field(default_factory=list)
    remaining: int = 0
