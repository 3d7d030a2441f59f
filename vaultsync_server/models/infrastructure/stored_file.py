"""
VaultSync Server - Stored File Model

Snapshot of a vault file returned by VaultStore reads and writes.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class StoredFile:
    """A file's content together with the version it was read or written at"""
    path: str
    content: str
    version: int
    modified_utc: datetime
