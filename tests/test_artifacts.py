"""Tests for artifact naming, lookup and deletion"""

import pytest

from network_support.artifacts import (
    artifact_name_for,
    artifact_filename,
    build_download_url,
    get_artifact_path,
    delete_artifact_file,
)
from network_support.config import reload_settings


@pytest.fixture
def configured_env(temp_storage, monkeypatch):
    """Set up environment for testing"""
    monkeypatch.setenv("LOGS_DIR", str(temp_storage / "logs"))
    monkeypatch.delenv("ARTIFACT_PREFIX", raising=False)
    monkeypatch.delenv("ARCHIVE_EXTENSION", raising=False)
    reload_settings()


def test_artifact_names(configured_env):
    assert artifact_name_for("123") == "rancher-logs-123"
    assert artifact_filename("rancher-logs-123") == "rancher-logs-123.zip"


@pytest.mark.parametrize("base_url,expected", [
    ("http://host:8080/", "http://host:8080/static/logs/a.zip"),
    ("http://host:8080", "http://host:8080/static/logs/a.zip"),
    ("https://proxy.example.com/support/", "https://proxy.example.com/support/static/logs/a.zip"),
])
def test_build_download_url(base_url, expected):
    assert build_download_url(base_url, "a.zip") == expected


def test_get_artifact_path(configured_env, temp_storage):
    archive = temp_storage / "logs" / "rancher-logs-1.zip"
    archive.write_bytes(b"PK")

    assert get_artifact_path("rancher-logs-1.zip") == archive.resolve()
    assert get_artifact_path("rancher-logs-2.zip") is None


def test_get_artifact_path_rejects_traversal(configured_env, temp_storage):
    (temp_storage / "secret.txt").write_text("no")

    assert get_artifact_path("../secret.txt") is None


def test_get_artifact_path_rejects_directories(configured_env, temp_storage):
    (temp_storage / "logs" / "sub.zip").mkdir()

    assert get_artifact_path("sub.zip") is None


def test_delete_artifact_file(configured_env, temp_storage):
    archive = temp_storage / "logs" / "rancher-logs-1.zip"
    archive.write_bytes(b"PK")

    assert delete_artifact_file("rancher-logs-1") is True
    assert not archive.exists()


def test_delete_missing_artifact_is_logged_not_raised(configured_env, caplog):
    assert delete_artifact_file("rancher-logs-404") is False
    assert "Error deleting file" in caplog.text
