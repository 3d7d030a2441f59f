"""
Tests for the VaultSync client cache store and file record transitions
"""

import sys
from datetime import timezone
from pathlib import Path

import pytest

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from vaultsync_client.managers import CacheStore, open_local_database
from vaultsync_client.models import FileRecord, SyncState


def test_record_invariants():
    """Conflict content is only allowed on conflicted records"""
    with pytest.raises(ValueError):
        FileRecord(path="a.md", content="x", state=SyncState.CONFLICTED)

    with pytest.raises(ValueError):
        FileRecord(path="a.md", content="x", state=SyncState.SYNCED, conflict_server_content="y")


def test_record_transitions():
    """Each transition produces a valid record without touching the original"""
    synced = FileRecord.from_server("a.md", "server", 3)
    assert synced.is_synced and not synced.is_pending

    pending = synced.mark_pending("local")
    assert pending.state == SyncState.PENDING
    assert pending.server_modified_at == 3
    assert synced.content == "server"

    conflicted = pending.mark_conflicted("other", 4)
    assert conflicted.has_conflict and conflicted.is_pending

    # Editing a conflicted record keeps the conflict
    edited = conflicted.mark_pending("local 2")
    assert edited.has_conflict
    assert edited.conflict_server_content == "other"

    kept_server = edited.mark_synced(4, content="other")
    assert kept_server.is_synced
    assert kept_server.content == "other"
    assert kept_server.conflict_server_content is None

    kept_local = edited.clear_conflict(4)
    assert kept_local.state == SyncState.PENDING
    assert kept_local.content == "local 2"
    assert kept_local.server_modified_at == 4

    assert pending.advance_baseline(9).state == SyncState.PENDING


def test_put_and_get(local_db):
    cache = CacheStore(local_db)
    record = FileRecord.new_local_edit("notes/a.md", "hello")

    cache.put(record)
    loaded = cache.get("notes/a.md")

    assert loaded.content == "hello"
    assert loaded.state == SyncState.PENDING
    assert loaded.server_modified_at is None
    assert loaded.modified_at.tzinfo is not None
    assert loaded.modified_at.astimezone(timezone.utc) == record.modified_at
    assert cache.get("missing.md") is None


def test_put_replaces_existing(local_db):
    cache = CacheStore(local_db)
    cache.put(FileRecord.from_server("a.md", "v1", 1))
    cache.put(cache.get("a.md").mark_pending("v2").mark_conflicted("server", 2))

    loaded = cache.get("a.md")
    assert loaded.content == "v2"
    assert loaded.has_conflict
    assert loaded.conflict_server_content == "server"
    assert loaded.conflict_server_modified == 2
    assert len(cache.get_all()) == 1


def test_state_queries(local_db):
    cache = CacheStore(local_db)
    cache.put(FileRecord.from_server("synced.md", "s", 1))
    cache.put(FileRecord.new_local_edit("pending.md", "p"))
    cache.put(FileRecord.new_local_edit("conflict.md", "c").mark_conflicted("server", 5))

    assert [r.path for r in cache.get_all()] == ["conflict.md", "pending.md", "synced.md"]
    assert [r.path for r in cache.get_pending()] == ["conflict.md", "pending.md"]
    assert [r.path for r in cache.get_conflicted()] == ["conflict.md"]


def test_delete(local_db):
    cache = CacheStore(local_db)
    cache.put(FileRecord.new_local_edit("a.md", "x"))

    assert cache.delete("a.md") is True
    assert cache.get("a.md") is None
    assert cache.delete("a.md") is False


def test_cache_survives_reopen(tmp_path):
    """Records persist across restarts"""
    db_path = str(tmp_path / "cache.db")
    database = open_local_database(db_path)
    CacheStore(database).put(FileRecord.new_local_edit("a.md", "offline edit"))
    database.dispose()

    reopened = open_local_database(db_path)
    try:
        assert CacheStore(reopened).get("a.md").content == "offline edit"
    finally:
        reopened.dispose()


def test_corrupt_cache_falls_back(tmp_path):
    """An unreadable cache file yields None so the client runs online-only"""
    db_path = tmp_path / "broken.db"
    db_path.write_bytes(b"this is definitely not a sqlite database\n" * 200)

    assert open_local_database(str(db_path)) is None


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
