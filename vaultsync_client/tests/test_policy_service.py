"""
Tests for client-side restriction policy
"""

import sys
from pathlib import Path

import pytest

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from vaultsync_client.exceptions import PolicyViolationError
from vaultsync_client.models import Policy
from vaultsync_client.policy_service import PolicyService, get_policy_for_path


RULES = {
    "read_only_prefixes": ["archive/"],
    "no_delete_prefixes": ["daily/"],
    "max_length_by_prefix": {"daily/": 100, "": 1000},
}


def test_rules():
    assert get_policy_for_path(None, "notes/a.md") == Policy()
    assert get_policy_for_path({}, "notes/.hidden.md").read_only is True

    archive = get_policy_for_path(RULES, "archive/a.md")
    assert archive.read_only and not archive.allow_create and not archive.allow_delete

    daily = get_policy_for_path(RULES, "daily/today.md")
    assert daily.allow_delete is False
    assert daily.max_length == 100


def test_check():
    service = PolicyService(RULES)

    assert service.check("update", "notes/a.md", "text").read_only is False

    with pytest.raises(PolicyViolationError) as exc_info:
        service.check("update", "archive/a.md", "text")
    assert exc_info.value.path == "archive/a.md"
    assert exc_info.value.policy.read_only

    with pytest.raises(PolicyViolationError):
        service.check("delete", "daily/today.md")

    with pytest.raises(PolicyViolationError):
        service.check("update", "daily/today.md", "x" * 101)


def test_rename_checks_destination():
    service = PolicyService({"no_rename_prefixes": ["templates/"], "no_create_prefixes": ["inbox/"]})

    service.check("rename", "notes/a.md", destination="notes/b.md")
    with pytest.raises(PolicyViolationError, match="Renaming"):
        service.check("rename", "templates/t.md", destination="notes/t.md")
    with pytest.raises(PolicyViolationError, match="does not allow new files"):
        service.check("rename", "notes/a.md", destination="inbox/a.md")

    assert service.knows("inbox/a.md") is False
    service.remember("inbox/a.md", {"allowCreate": False})
    assert service.knows("/inbox/a.md") is True


def test_server_policy_merges_stricter():
    service = PolicyService({"max_length_by_prefix": {"notes/": 50}})

    service.remember("notes/a.md", {"readOnly": False, "allowDelete": False, "maxLength": 500})
    policy = service.get_policy("/notes/a.md")

    assert policy.allow_delete is False
    assert policy.max_length == 50

    service.remember("notes/a.md", {"readOnly": True})
    with pytest.raises(PolicyViolationError):
        service.check("update", "notes/a.md", "x")

    # Other paths are unaffected
    assert service.get_policy("notes/b.md").read_only is False


def test_policy_wire_format():
    policy = Policy.from_dict({"readOnly": True, "allowCreate": False, "maxLength": "20"})

    assert policy.read_only is True
    assert policy.max_length == 20
    assert policy.to_dict()["allowCreate"] is False
    assert Policy.from_dict(None) == Policy()
