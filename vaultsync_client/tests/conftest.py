"""
Shared fixtures for VaultSync client tests

Client tests run against an in-process VaultSync server: the FastAPI
TestClient is handed to VaultSyncAPI as its session, so requests go through
the real routes without opening a socket.
"""

import sys
from pathlib import Path

import pytest
import requests
from fastapi.testclient import TestClient

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from vaultsync_server.server import CreateApp
from vaultsync_client.api import VaultSyncAPI
from vaultsync_client.managers import CacheStore, SyncQueue, open_local_database
from vaultsync_client.operations import SyncCoordinator
from vaultsync_client.policy_service import PolicyService

SERVER_URL = "http://testserver"


class SwitchableSession:
    """
    Forwards requests to the in-process server until switched offline
    """

    def __init__(self, client: TestClient):
        self.client = client
        self.offline = False
        self.calls = 0

    def request(self, method, url, **kwargs):
        self.calls += 1
        if self.offline:
            raise requests.exceptions.ConnectionError(f"Connection refused: {url}")
        return self.client.request(method, url, **kwargs)

    def close(self):
        pass


class FailingSession:
    """
    Raises the given requests exception for every call and counts calls
    """

    def __init__(self, error_class=requests.exceptions.ConnectionError):
        self.error_class = error_class
        self.calls = 0

    def request(self, method, url, **kwargs):
        self.calls += 1
        raise self.error_class(f"{method} {url} failed")

    def close(self):
        pass


@pytest.fixture
def server_app(tmp_path):
    return CreateApp({
        "vault_path": str(tmp_path / "server" / "vault"),
        "database_path": str(tmp_path / "server" / "meta.db"),
        "restrictions": {"read_only_prefixes": ["archive/"]},
    })


@pytest.fixture
def http(server_app):
    with TestClient(server_app) as client:
        yield client


@pytest.fixture
def network(http):
    return SwitchableSession(http)


@pytest.fixture
def local_db(tmp_path):
    database = open_local_database(str(tmp_path / "client" / "cache.db"))
    yield database
    database.dispose()


@pytest.fixture
def make_coordinator(network, tmp_path):
    """
    Factory for coordinators that each have their own local cache
    """
    databases = []

    def factory(name="a", session=None, presenter=None, restrictions=None):
        database = open_local_database(str(tmp_path / f"client-{name}" / "cache.db"))
        databases.append(database)
        api = VaultSyncAPI(SERVER_URL, session=session or network, timeout=5)
        return SyncCoordinator(
            api,
            cache_store=CacheStore(database),
            sync_queue=SyncQueue(database),
            policy_service=PolicyService(restrictions),
            presenter=presenter
        )

    yield factory

    for database in databases:
        database.dispose()
