"""
VaultSync Client - Operations Package

This package contains the sync coordinator and the conflict presenter.
"""

from .conflict_presenter import ConflictNotifier, ConsoleConflictNotifier, ConflictPresenter
from .sync_coordinator import SyncCoordinator

__all__ = [
    'ConflictNotifier',
    'ConsoleConflictNotifier',
    'ConflictPresenter',
    'SyncCoordinator'
]
