"""
VaultSync Client - File Record Model

Contains the SyncState enum and the FileRecord kept in the local cache for
every vault file the client knows about.

Author: VaultSync Project
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SyncState(Enum):
    """
    Sync state of a cached file.

    States:
    - SYNCED: Local content matches the server at server_modified_at
    - PENDING: Local content has edits the server has not accepted yet
    - CONFLICTED: Pending, and the server moved on independently. The
      server's content is kept on the record until the user picks a side.
    """
    SYNCED = "synced"
    PENDING = "pending"
    CONFLICTED = "conflicted"


@dataclass(frozen=True)
class FileRecord:
    """
    Cached copy of a vault file.

    Records are immutable; the mark_* methods return the next record so every
    state change goes through one of the allowed transitions.

    Attributes:
        path: Vault-relative path, unique key
        content: Local content (the user's latest edit)
        modified_at: Time of the last local change, for display only
        server_modified_at: Server version this content is based on (None if never synced)
        state: SyncState
        conflict_server_content: Server content observed with a conflict
        conflict_server_modified: Server version observed with a conflict
    """
    path: str
    content: str
    modified_at: datetime = field(default_factory=utc_now)
    server_modified_at: Optional[int] = None
    state: SyncState = SyncState.PENDING
    conflict_server_content: Optional[str] = None
    conflict_server_modified: Optional[int] = None

    def __post_init__(self):
        if self.state == SyncState.CONFLICTED:
            if self.conflict_server_content is None:
                raise ValueError(f"Conflicted record for {self.path} needs the server content")
        elif self.conflict_server_content is not None or self.conflict_server_modified is not None:
            raise ValueError(f"Only conflicted records may carry server content ({self.path})")

    # ---------- state queries ----------

    @property
    def is_pending(self) -> bool:
        return self.state in (SyncState.PENDING, SyncState.CONFLICTED)

    @property
    def has_conflict(self) -> bool:
        return self.state == SyncState.CONFLICTED

    @property
    def is_synced(self) -> bool:
        return self.state == SyncState.SYNCED

    # ---------- constructors ----------

    @classmethod
    def new_local_edit(cls, path: str, content: str) -> "FileRecord":
        """A file that only exists locally so far."""
        return cls(path=path, content=content, state=SyncState.PENDING)

    @classmethod
    def from_server(cls, path: str, content: str, server_modified: int) -> "FileRecord":
        """A file pulled from the server."""
        return cls(path=path, content=content, server_modified_at=server_modified, state=SyncState.SYNCED)

    # ---------- transitions ----------

    def mark_pending(self, content: str) -> "FileRecord":
        """
        Record a local edit.

        A conflicted record stays conflicted; the edit only replaces the
        local side of the conflict.
        """
        state = SyncState.CONFLICTED if self.has_conflict else SyncState.PENDING
        return replace(self, content=content, modified_at=utc_now(), state=state)

    def mark_synced(self, server_modified: int, content: Optional[str] = None) -> "FileRecord":
        """
        The server accepted (or supplied) this content at server_modified.

        Args:
            server_modified: Server version of the content
            content: Replacement content when the server's copy wins
        """
        changes = {}
        if content is not None and content != self.content:
            changes = {"content": content, "modified_at": utc_now()}
        return replace(
            self,
            server_modified_at=server_modified,
            state=SyncState.SYNCED,
            conflict_server_content=None,
            conflict_server_modified=None,
            **changes
        )

    def mark_conflicted(self, server_content: str, server_modified: int) -> "FileRecord":
        """The server holds a different version than our baseline; keep both."""
        return replace(
            self,
            state=SyncState.CONFLICTED,
            conflict_server_content=server_content,
            conflict_server_modified=server_modified
        )

    def advance_baseline(self, server_modified: int) -> "FileRecord":
        """Move the baseline forward without changing content or state."""
        return replace(self, server_modified_at=server_modified)

    def clear_conflict(self, server_modified: Optional[int]) -> "FileRecord":
        """
        Keep the local content and drop the conflict, leaving the edit pending
        on top of the server version that caused the conflict.
        """
        return replace(
            self,
            server_modified_at=server_modified,
            state=SyncState.PENDING,
            conflict_server_content=None,
            conflict_server_modified=None
        )

    def rebase_pending(self, server_modified: int) -> "FileRecord":
        """
        The server stored an older edit at server_modified; the local content
        is still ahead of it and stays pending.
        """
        return replace(self, server_modified_at=server_modified, state=SyncState.PENDING)

    def move_to(self, path: str, server_modified: Optional[int]) -> "FileRecord":
        """
        The file now lives at path. A conflict recorded against the old path
        no longer applies; unsent edits stay pending.
        """
        return replace(
            self,
            path=path,
            server_modified_at=server_modified,
            state=SyncState.PENDING if self.is_pending else SyncState.SYNCED,
            conflict_server_content=None,
            conflict_server_modified=None
        )
