"""
Tests for the VaultSync client pending-operation queue
"""

import sys
from pathlib import Path

import pytest

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from vaultsync_client.managers import SyncQueue
from vaultsync_client.models import QueueOperation


def test_items_listed_in_enqueue_order(local_db):
    queue = SyncQueue(local_db)
    first = queue.enqueue(QueueOperation.SAVE, "b.md", "1")
    second = queue.enqueue(QueueOperation.DELETE, "a.md")
    third = queue.enqueue(QueueOperation.SAVE, "b.md", "2")

    items = queue.list_items()

    assert [item.id for item in items] == [first, second, third]
    assert first < second < third
    assert items[1].operation == QueueOperation.DELETE
    assert items[1].content is None
    assert items[2].content == "2"
    assert queue.count() == 3


def test_dequeue(local_db):
    queue = SyncQueue(local_db)
    item_id = queue.enqueue(QueueOperation.SAVE, "a.md", "x")

    assert queue.dequeue(item_id) is True
    assert queue.dequeue(item_id) is False
    assert queue.count() == 0


def test_remove_for_path(local_db):
    queue = SyncQueue(local_db)
    queue.enqueue(QueueOperation.SAVE, "a.md", "1")
    queue.enqueue(QueueOperation.SAVE, "b.md", "1")
    queue.enqueue(QueueOperation.SAVE, "a.md", "2")

    assert queue.remove_for_path("a.md") == 2
    assert [item.path for item in queue.list_items()] == ["b.md"]


def test_save_requires_content(local_db):
    with pytest.raises(ValueError):
        SyncQueue(local_db).enqueue(QueueOperation.SAVE, "a.md")


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
