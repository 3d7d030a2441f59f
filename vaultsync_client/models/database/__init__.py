"""
VaultSync Client - Local Database Models Package

SQLAlchemy models for the local cache and pending-operation queue.

Author: VaultSync Project
"""

from .base import Base
from .cached_file import CachedFile
from .queued_operation import QueuedOperation

__all__ = [
    'Base',
    'CachedFile',
    'QueuedOperation'
]
