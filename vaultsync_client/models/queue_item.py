"""
VaultSync Client - Queue Item Model

Author: VaultSync Project
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class QueueOperation(Enum):
    """Operations that can wait in the pending-operation queue."""
    SAVE = "save"
    DELETE = "delete"


@dataclass(frozen=True)
class QueueItem:
    """
    A write that could not reach the server.

    Attributes:
        id: Store-assigned, increases in enqueue order
        operation: SAVE or DELETE
        path: Vault-relative path
        content: Content to write (SAVE only)
        enqueued_at: When the item was queued
    """
    id: int
    operation: QueueOperation
    path: str
    content: Optional[str]
    enqueued_at: datetime
