"""
VaultSync Client - Models Package

Contains data models and enumerations used by the client.

Author: VaultSync Project
"""

from .file_record import FileRecord, SyncState
from .queue_item import QueueItem, QueueOperation
from .conflict_view import ConflictView, Resolution
from .policy import Policy
from .sync_results import SaveOutcome, ReconcileResult, DrainResult

__all__ = [
    'FileRecord',
    'SyncState',
    'QueueItem',
    'QueueOperation',
    'ConflictView',
    'Resolution',
    'Policy',
    'SaveOutcome',
    'ReconcileResult',
    'DrainResult'
]
