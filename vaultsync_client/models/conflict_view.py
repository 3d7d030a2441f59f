"""
VaultSync Client - Conflict View Model

What the user is shown when both sides changed a file.

Author: VaultSync Project
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Resolution(Enum):
    """
    The user's choice for a conflict.

    - KEEP_LOCAL: Overwrite the server with the local content
    - KEEP_SERVER: Replace the local content with the server's
    """
    KEEP_LOCAL = "local"
    KEEP_SERVER = "server"


@dataclass(frozen=True)
class ConflictView:
    path: str
    local_content: str
    server_content: str
    server_modified: Optional[int]
