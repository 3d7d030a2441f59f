"""
Tests for the VaultSync Server vault store

Covers version counters, compare-and-write conflicts, tombstones, path
confinement and detection of edits made outside the server.
"""

import os
import sys
import threading
import time
from pathlib import Path

import pytest

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from vaultsync_server.managers.database_manager import DatabaseManager
from vaultsync_server import vault_storage
from vaultsync_server.vault_storage import (
    VaultStore, VaultConflictError, PathTraversalError, NotTextError, NormalizePath, HasHiddenSegment
)


@pytest.fixture
def vault(tmp_path):
    db_manager = DatabaseManager(str(tmp_path / "db" / "meta.db"))
    db_manager.InitializeDatabase()
    store = VaultStore(str(tmp_path / "vault"), db_manager)
    yield store
    db_manager.Dispose()


def test_normalize_path():
    """Test normalization of client supplied paths"""
    assert NormalizePath("/notes/today.md") == "notes/today.md"
    assert NormalizePath("notes\\today.md") == "notes/today.md"
    assert NormalizePath("./notes//today.md") == "notes/today.md"
    assert NormalizePath("") == ""

    assert HasHiddenSegment(".obsidian/app.json")
    assert HasHiddenSegment("notes/.draft.md")
    assert not HasHiddenSegment("notes/draft.md")


def test_write_assigns_increasing_versions(vault):
    """Each accepted write gets a strictly greater version"""
    first = vault.Write("note.md", "one")
    second = vault.Write("note.md", "two", expected_version=first.version)
    third = vault.Write("note.md", "three")

    assert first.version == 1
    assert second.version > first.version
    assert third.version > second.version
    assert vault.Read("note.md").content == "three"


def test_stale_write_is_rejected_without_persisting(vault):
    """A write with an outdated expected version raises and leaves the file alone"""
    original = vault.Write("note.md", "server text")
    vault.Write("note.md", "newer server text", expected_version=original.version)

    with pytest.raises(VaultConflictError) as exc_info:
        vault.Write("note.md", "client text", expected_version=original.version)

    assert exc_info.value.current_content == "newer server text"
    assert exc_info.value.current_version == original.version + 1
    assert vault.Read("note.md").content == "newer server text"


def test_write_with_expected_version_creates_missing_file(vault):
    """Writing to a path that does not exist proceeds regardless of the expected version"""
    stored = vault.Write("fresh.md", "hello", expected_version=7)

    assert stored.version == 1
    assert vault.Read("fresh.md").content == "hello"


def test_concurrent_writers_with_same_baseline(vault):
    """Only one of several writers holding the same version succeeds"""
    base = vault.Write("race.md", "base")
    results = []
    results_lock = threading.Lock()

    def writer(index):
        try:
            vault.Write("race.md", f"writer {index}", expected_version=base.version)
            outcome = "ok"
        except VaultConflictError:
            outcome = "conflict"
        with results_lock:
            results.append(outcome)

    threads = [threading.Thread(target=writer, args=(i,)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count("ok") == 1
    assert results.count("conflict") == 7
    assert vault.Read("race.md").version == base.version + 1


def test_create_rejects_existing_file(vault):
    """Create refuses to overwrite an existing file"""
    vault.Create("new.md", "first")

    with pytest.raises(FileExistsError):
        vault.Create("new.md", "second")

    assert vault.Read("new.md").content == "first"


def test_version_keeps_increasing_after_delete_and_recreate(vault):
    """Deleting keeps a tombstone so a re-created file never reuses a version"""
    v1 = vault.Write("cycle.md", "a").version
    v2 = vault.Write("cycle.md", "b").version

    assert vault.Delete("cycle.md") is True
    assert vault.Read("cycle.md") is None
    assert vault.Delete("cycle.md") is False

    recreated = vault.Create("cycle.md", "c")
    assert recreated.version > v2 > v1


def test_path_traversal_rejected(vault):
    """Paths escaping the vault root are refused"""
    with pytest.raises(PathTraversalError):
        vault.Write("../outside.md", "nope")

    with pytest.raises(PathTraversalError):
        vault.Read("notes/../../outside.md")

    with pytest.raises(PathTraversalError):
        vault.ListFiles("../")

    assert not (vault.vault_root.parent / "outside.md").exists()


def test_external_edit_gets_new_version(vault):
    """A file edited on disk outside the server is seen as a newer version"""
    stored = vault.Write("journal.md", "written by server")

    (vault.vault_root / "journal.md").write_text("edited by hand", encoding="utf-8")

    reread = vault.Read("journal.md")
    assert reread.content == "edited by hand"
    assert reread.version == stored.version + 1

    with pytest.raises(VaultConflictError):
        vault.Write("journal.md", "stale client", expected_version=stored.version)


def test_untracked_file_registered_at_version_one(vault):
    """Files dropped into the vault directly start at version 1"""
    (vault.vault_root / "inbox").mkdir()
    (vault.vault_root / "inbox" / "dropped.md").write_text("dropped", encoding="utf-8")

    listing = vault.ListFiles()
    assert listing == [{'path': 'inbox/dropped.md', 'name': 'dropped.md', 'modified': 1}]


def test_list_files_skips_hidden_and_sorts(vault):
    """Listing is recursive, sorted and ignores hidden entries"""
    vault.Write("b.md", "b")
    vault.Write("a/z.md", "z")
    vault.Write("a/c.md", "c")
    (vault.vault_root / ".obsidian").mkdir()
    (vault.vault_root / ".obsidian" / "workspace.json").write_text("{}", encoding="utf-8")
    (vault.vault_root / ".hidden.md").write_text("x", encoding="utf-8")

    paths = [entry['path'] for entry in vault.ListFiles()]
    assert paths == ["a/c.md", "a/z.md", "b.md"]

    assert [entry['path'] for entry in vault.ListFiles("a")] == ["a/c.md", "a/z.md"]
    assert vault.ListFiles("missing") == []


def test_write_leaves_no_temp_files(vault):
    """Atomic writes clean up after themselves"""
    vault.Write("notes/today.md", "content")
    vault.Write("notes/today.md", "more content")

    leftovers = [p.name for p in (vault.vault_root / "notes").iterdir()]
    assert leftovers == ["today.md"]


def test_stat_reports_metadata(vault):
    """Stat returns version, size and hash without the content"""
    vault.Write("stat.md", "12345")

    info = vault.Stat("stat.md")
    assert info['version'] == 1
    assert info['size'] == 5
    assert len(info['file_hash']) == 64
    assert vault.Stat("nope.md") is None


def test_binary_files_are_not_listed(vault):
    """Attachments that are not UTF-8 are skipped by the listing and refused as text"""
    vault.Write("note.md", "text")
    (vault.vault_root / "pic.png").write_bytes(b"\x89PNG\xff\xfe\x00")

    assert [entry['path'] for entry in vault.ListFiles()] == ["note.md"]
    assert vault.Stat("pic.png")['is_text'] is False

    with pytest.raises(NotTextError):
        vault.Read("pic.png")


def test_listing_does_not_rehash_unchanged_files(vault, monkeypatch):
    """Files whose size and mtime are unchanged are not read again"""
    vault.Write("settled.md", "settled")
    target = vault.vault_root / "settled.md"
    an_hour_ago = time.time() - 3600
    os.utime(target, (an_hour_ago, an_hour_ago))
    vault.ListFiles()

    hashed = []
    real_hash = vault_storage.CalculateContentHash

    def counting_hash(data):
        hashed.append(data)
        return real_hash(data)

    monkeypatch.setattr(vault_storage, "CalculateContentHash", counting_hash)

    assert vault.ListFiles() == [{'path': 'settled.md', 'name': 'settled.md', 'modified': 1}]
    assert hashed == []

    # A same-size edit with a different mtime is still picked up
    target.write_text("SETTLED", encoding="utf-8")
    os.utime(target, (an_hour_ago - 60, an_hour_ago - 60))

    assert vault.ListFiles()[0]['modified'] == 2
    assert len(hashed) == 1


def test_rename_moves_file_and_continues_counters(vault):
    """Rename tombstones the source and bumps the destination's own counter"""
    vault.Write("dest.md", "x")
    vault.Write("dest.md", "y")
    vault.Delete("dest.md")
    source = vault.Write("src.md", "content")

    renamed = vault.Rename("src.md", "dest.md", expected_version=source.version)

    assert renamed == {'path': 'dest.md', 'version': 3}
    assert vault.Read("src.md") is None
    assert vault.Read("dest.md").content == "content"
    assert vault.Write("src.md", "again").version == 2


def test_rename_errors(vault):
    vault.Write("a.md", "a")
    vault.Write("a.md", "a2")
    vault.Write("b.md", "b")

    with pytest.raises(FileNotFoundError):
        vault.Rename("missing.md", "c.md")

    with pytest.raises(FileExistsError):
        vault.Rename("a.md", "b.md")

    with pytest.raises(VaultConflictError) as exc_info:
        vault.Rename("a.md", "c.md", expected_version=1)
    assert exc_info.value.current_content == "a2"

    with pytest.raises(PathTraversalError):
        vault.Rename("a.md", "../c.md")

    assert vault.Read("a.md").content == "a2"
    assert vault.Read("c.md") is None


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
