"""
Tests for the VaultSync API client

Checks how HTTP outcomes from the server map onto client exceptions.
"""

import sys
from pathlib import Path

import pytest
import requests

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from conftest import FailingSession, SERVER_URL
from vaultsync_client.api import VaultSyncAPI
from vaultsync_client.exceptions import (
    VaultSyncConflictError, VaultSyncFileExistsError, VaultSyncNotFoundError,
    VaultSyncRequestError, VaultSyncServerError, VaultSyncTransportError, TRANSIENT_ERRORS
)


class FakeResponse:
    def __init__(self, status_code, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self):
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


class CannedSession:
    def __init__(self, response):
        self.response = response
        self.requests = []

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        return self.response

    def close(self):
        pass


@pytest.fixture
def api(http):
    return VaultSyncAPI(SERVER_URL, session=http)


def test_write_read_round_trip(api):
    version = api.write_file("notes/my file.md", "hello")
    assert version == 1

    data = api.read_file("notes/my file.md")
    assert data["content"] == "hello"
    assert data["modified"] == 1
    assert data["policy"]["readOnly"] is False

    assert api.list_files() == [{"path": "notes/my file.md", "name": "my file.md", "modified": 1}]
    assert api.list_files("notes") == api.list_files()


def test_conflict_carries_server_copy(api):
    api.write_file("a.md", "one")
    api.write_file("a.md", "two", last_modified=1)

    with pytest.raises(VaultSyncConflictError) as exc_info:
        api.write_file("a.md", "stale", last_modified=1)

    assert exc_info.value.server_content == "two"
    assert exc_info.value.server_modified == 2
    assert exc_info.value.status_code == 409


def test_error_mapping(api):
    with pytest.raises(VaultSyncNotFoundError):
        api.read_file("missing.md")

    api.create_file("a.md", "x")
    with pytest.raises(VaultSyncFileExistsError):
        api.create_file("a.md", "y")

    with pytest.raises(VaultSyncRequestError) as exc_info:
        api.write_file("archive/x.md", "nope")
    assert exc_info.value.status_code == 403
    assert exc_info.value.code == "POLICY_VIOLATION"
    assert exc_info.value.policy["readOnly"] is True
    assert not isinstance(exc_info.value, TRANSIENT_ERRORS)


def test_delete_and_policy(api):
    api.write_file("a.md", "x")
    assert api.delete_file("a.md") is True
    with pytest.raises(VaultSyncNotFoundError):
        api.delete_file("a.md")

    assert api.get_policy("archive/old.md")["readOnly"] is True


def test_rename(api):
    api.write_file("notes/old.md", "x")

    assert api.rename_file("notes/old.md", "done/new.md", last_modified=1) == 1
    assert api.read_file("done/new.md")["content"] == "x"
    with pytest.raises(VaultSyncNotFoundError):
        api.read_file("notes/old.md")

    api.write_file("other.md", "y")
    with pytest.raises(VaultSyncFileExistsError):
        api.rename_file("other.md", "done/new.md")
    with pytest.raises(VaultSyncConflictError) as exc_info:
        api.rename_file("other.md", "moved.md", last_modified=0)
    assert exc_info.value.server_content == "y"


def test_health(api):
    assert api.check_health() is True
    assert VaultSyncAPI(SERVER_URL, session=FailingSession()).check_health() is False


def test_connection_errors_are_transport_errors():
    api = VaultSyncAPI(SERVER_URL, session=FailingSession(requests.exceptions.ConnectionError))
    with pytest.raises(VaultSyncTransportError):
        api.write_file("a.md", "x")

    api = VaultSyncAPI(SERVER_URL, session=FailingSession(requests.exceptions.ConnectTimeout))
    with pytest.raises(VaultSyncTransportError):
        api.read_file("a.md")


def test_server_errors():
    api = VaultSyncAPI(SERVER_URL, session=CannedSession(FakeResponse(500, {"error": "disk full", "code": "INTERNAL_ERROR"})))

    with pytest.raises(VaultSyncServerError) as exc_info:
        api.write_file("a.md", "x")
    assert exc_info.value.status_code == 500
    assert "disk full" in str(exc_info.value)

    api = VaultSyncAPI(SERVER_URL, session=CannedSession(FakeResponse(502, text="Bad Gateway")))
    with pytest.raises(VaultSyncServerError):
        api.list_files()


def test_request_options():
    """Requests carry the timeout and only send lastModified when there is a baseline"""
    session = CannedSession(FakeResponse(200, {"success": True, "modified": 4}))
    api = VaultSyncAPI("http://example.com/", 8080, timeout=3, session=session)

    api.write_file("/a b.md", "x")
    api.write_file("c.md", "y", last_modified=0)

    method, url, kwargs = session.requests[0]
    assert method == "PUT"
    assert url == "http://example.com:8080/files/a%20b.md"
    assert kwargs["timeout"] == 3
    assert kwargs["json"] == {"content": "x"}
    assert session.requests[1][2]["json"] == {"content": "y", "lastModified": 0}


def test_own_session_uses_ssl_setting():
    api = VaultSyncAPI("https://vault.local", 443, verify_ssl=False)
    try:
        assert isinstance(api.session, requests.Session)
        assert api.session.verify is False
        assert api.base_url == "https://vault.local:443"
    finally:
        api.close()


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
