"""
Tests for the VaultSync command-line interface
"""

import io
import json
import os
import sys
import time
from pathlib import Path

import pytest

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from conftest import SERVER_URL
from vaultsync_client import cli
from vaultsync_client.client import build_parser
from vaultsync_client.managers import ConfigManager


@pytest.fixture
def config_manager(tmp_path):
    manager = ConfigManager(tmp_path / "client")
    manager.load_config()
    manager.config["server_url"] = SERVER_URL
    manager.config["server_port"] = None
    manager.save_config()
    return manager


@pytest.fixture
def run(config_manager, network):
    """Runs one command against the in-process server and returns its exit code"""
    def runner(*argv):
        args = build_parser().parse_args(list(argv))
        coordinator, database = cli.build_coordinator(config_manager, session=network)
        try:
            return cli.execute_command(args, coordinator)
        finally:
            database.dispose()
    return runner


def write_source(tmp_path, content):
    source = tmp_path / "source.md"
    source.write_text(content, encoding="utf-8")
    return str(source)


def test_save_and_status(run, tmp_path, http, capsys):
    assert run("save", "notes/a.md", "--from", write_source(tmp_path, "hello")) == cli.EXIT_SUCCESS
    assert http.get("/files/notes/a.md").json()["content"] == "hello"

    assert run("status") == cli.EXIT_SUCCESS
    output = capsys.readouterr().out
    assert "notes/a.md: saved" in output
    assert "Status: Synced" in output


def test_save_from_stdin(run, http, monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO("piped"))

    assert run("save", "notes/b.md") == cli.EXIT_SUCCESS
    assert http.get("/files/notes/b.md").json()["content"] == "piped"


def test_conflict_then_resolve(run, tmp_path, http, capsys):
    source = write_source(tmp_path, "local one")
    assert run("save", "a.md", "--from", source) == cli.EXIT_SUCCESS

    # Another device overwrites the file
    http.put("/files/a.md", json={"content": "remote"})

    source = write_source(tmp_path, "local two")
    assert run("save", "a.md", "--from", source) == cli.EXIT_CONFLICT_PENDING
    assert run("conflicts") == cli.EXIT_CONFLICT_PENDING
    assert "a.md (server version 2)" in capsys.readouterr().out

    assert run("resolve", "a.md", "--keep", "local") == cli.EXIT_SUCCESS
    assert http.get("/files/a.md").json()["content"] == "local two"
    assert run("conflicts") == cli.EXIT_SUCCESS
    assert "No conflicts" in capsys.readouterr().out


def test_resolve_without_conflict_fails(run, capsys):
    assert run("resolve", "nothing.md", "--keep", "server") == cli.EXIT_FAILURE
    assert "No unresolved conflict" in capsys.readouterr().err


def test_offline_save_then_drain(run, tmp_path, http, network, capsys):
    network.offline = True
    assert run("save", "a.md", "--from", write_source(tmp_path, "offline")) == cli.EXIT_SUCCESS
    assert "a.md: saved_offline" in capsys.readouterr().out

    network.offline = False
    assert run("drain") == cli.EXIT_SUCCESS
    assert "1 replayed" in capsys.readouterr().out
    assert http.get("/files/a.md").json()["content"] == "offline"


def test_delete_and_reconcile(run, tmp_path, http, capsys):
    http.put("/files/keep.md", json={"content": "k"})
    http.put("/files/gone.md", json={"content": "g"})

    assert run("reconcile") == cli.EXIT_SUCCESS
    assert "2 new" in capsys.readouterr().out

    assert run("delete", "gone.md") == cli.EXIT_SUCCESS
    assert http.get("/files/gone.md").status_code == 404


def test_rename(run, tmp_path, http, capsys):
    assert run("save", "old.md", "--from", write_source(tmp_path, "text")) == cli.EXIT_SUCCESS

    assert run("rename", "old.md", "notes/new.md") == cli.EXIT_SUCCESS
    assert "old.md -> notes/new.md: saved" in capsys.readouterr().out
    assert http.get("/files/notes/new.md").json()["content"] == "text"
    assert http.get("/files/old.md").status_code == 404


def test_run_cli_operation_status(config_manager):
    args = build_parser().parse_args(["--config-dir", str(config_manager.base_dir), "status"])

    assert cli.run_cli_operation(args) == cli.EXIT_SUCCESS
    assert list((config_manager.base_dir / "logs").glob("vaultsync-*.log"))


def test_run_cli_operation_bad_config(tmp_path):
    config_dir = tmp_path / "broken"
    config_dir.mkdir()
    (config_dir / "config.json").write_text("{not json", encoding="utf-8")
    args = build_parser().parse_args(["--config-dir", str(config_dir), "status"])

    assert cli.run_cli_operation(args) == cli.EXIT_CONFIG_ERROR


def test_run_cli_operation_policy_violation(config_manager, tmp_path):
    source = write_source(tmp_path, "x")
    args = build_parser().parse_args([
        "--config-dir", str(config_manager.base_dir), "save", ".obsidian/workspace.json", "--from", source
    ])

    assert cli.run_cli_operation(args) == cli.EXIT_POLICY_VIOLATION


def test_cleanup_old_logs(config_manager):
    log_dir = config_manager.base_dir / "logs"
    log_dir.mkdir()
    current = log_dir / "vaultsync-now.log"
    current.write_text("")
    old = log_dir / "vaultsync-old.log"
    old.write_text("")
    stale = time.time() - 40 * 86400
    os.utime(old, (stale, stale))

    assert cli.cleanup_old_logs(config_manager, current) == 1
    assert current.exists()
    assert not old.exists()


def test_default_config_created(tmp_path):
    manager = ConfigManager(tmp_path / "fresh")
    config = manager.load_config()

    assert config["server_port"] == 8000
    saved = json.loads((tmp_path / "fresh" / "config.json").read_text(encoding="utf-8"))
    assert saved["drain_interval_seconds"] == 30
    assert manager.get_cache_path() == tmp_path / "fresh" / "vaultsync-cache.db"


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
