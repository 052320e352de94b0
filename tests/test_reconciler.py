"""Tests for rebuilding the registry from archives on disk"""

import os
import pytest
import tempfile
from pathlib import Path

from network_support.models import LogState
from network_support.reconciler import parse_artifact_filename, load_existing_logs
from network_support.registry import LogRegistry


@pytest.fixture
def logs_dir():
    """Create temporary logs directory for tests"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def test_parse_matching_filename():
    log = parse_artifact_filename("rancher-logs-111.zip", "rancher-logs", "zip")

    assert log is not None
    assert log.id == "111"
    assert log.artifact_name == "rancher-logs-111"
    assert log.state == LogState.DONE


@pytest.mark.parametrize("filename", [
    "garbage.txt",
    "rancher-logs-111.tar.gz",
    "rancher-logs-.zip",
    "other-logs-111.zip",
    "rancher-logs-111.zip.part",
    "xrancher-logs-111.zip",
])
def test_parse_non_matching_filename(filename):
    assert parse_artifact_filename(filename, "rancher-logs", "zip") is None


def test_parse_escapes_pattern_characters():
    """A dot in the extension must not match any character"""
    assert parse_artifact_filename("diag-1.tarxgz", "diag", "tar.gz") is None
    assert parse_artifact_filename("diag-1.tar.gz", "diag", "tar.gz").id == "1"


def test_load_existing_logs(logs_dir):
    (logs_dir / "rancher-logs-111.zip").write_bytes(b"PK")
    (logs_dir / "garbage.txt").write_text("ignore me")

    registry = LogRegistry()
    loaded = load_existing_logs(registry, logs_dir, "rancher-logs", "zip")

    assert loaded == 1
    logs = registry.list()
    assert len(logs) == 1
    assert logs[0].id == "111"
    assert logs[0].state == LogState.DONE


def test_load_ignores_directories(logs_dir):
    (logs_dir / "rancher-logs-5.zip").mkdir()

    registry = LogRegistry()

    assert load_existing_logs(registry, logs_dir, "rancher-logs", "zip") == 0
    assert len(registry) == 0


def test_load_uses_file_mtime(logs_dir):
    archive = logs_dir / "rancher-logs-7.zip"
    archive.write_bytes(b"PK")

    registry = LogRegistry()
    load_existing_logs(registry, logs_dir, "rancher-logs", "zip")

    log, _ = registry.get("7")
    assert int(log.created_at.timestamp()) == int(archive.stat().st_mtime)


def test_missing_directory_yields_empty_registry(logs_dir):
    registry = LogRegistry()

    loaded = load_existing_logs(registry, logs_dir / "does-not-exist", "rancher-logs", "zip")

    assert loaded == 0
    assert len(registry) == 0


def test_parse_rejects_undecodable_name():
    """os.listdir maps invalid UTF-8 bytes to surrogates"""
    assert parse_artifact_filename("rancher-logs-\udcff.zip", "rancher-logs", "zip") is None


def test_load_skips_non_utf8_file_names(logs_dir):
    with open(os.path.join(os.fsencode(str(logs_dir)), b"rancher-logs-\xff.zip"), "wb") as f:
        f.write(b"PK")
    (logs_dir / "rancher-logs-111.zip").write_bytes(b"PK")

    registry = LogRegistry()
    loaded = load_existing_logs(registry, logs_dir, "rancher-logs", "zip")

    assert loaded == 1
    assert [log.id for log in registry.list()] == ["111"]


def test_load_keeps_whitespace_in_ids(logs_dir):
    (logs_dir / "rancher-logs- 5.zip").write_bytes(b"PK")

    registry = LogRegistry()
    load_existing_logs(registry, logs_dir, "rancher-logs", "zip")

    assert " 5" in registry
