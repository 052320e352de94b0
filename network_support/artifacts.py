"""Artifact naming, lookup and cleanup for collected log archives"""

import logging
from pathlib import Path
from typing import Optional

from network_support.config import get_settings


logger = logging.getLogger(__name__)

# URL path under which archives are served
STATIC_LOGS_PATH = "static/logs"


def artifact_name_for(log_id: str) -> str:
    """
    Archive base name for a log id.

    Args:
        log_id: Log identifier

    Returns:
        Base name such as "rancher-logs-1700000000000000000"
    """
    return f"{get_settings().artifact_prefix}-{log_id}"


def artifact_filename(artifact_name: str) -> str:
    """File name of the archive on disk (base name + extension)"""
    return f"{artifact_name}.{get_settings().archive_extension}"


def build_download_url(base_url: str, filename: str) -> str:
    """
    Download URL for an archive, relative to the caller's base URL.

    Computed per request and never stored, so a change of host or port
    is picked up immediately.

    Args:
        base_url: Base URL of the incoming request (e.g. "http://host:8080/")
        filename: Archive file name

    Returns:
        Absolute URL of the archive under /static/logs/
    """
    return f"{base_url.rstrip('/')}/{STATIC_LOGS_PATH}/{filename}"


def get_artifact_path(filename: str) -> Optional[Path]:
    """
    Get the filesystem path for an archive by file name.

    Performs security checks to prevent path traversal.

    Args:
        filename: Archive file name as requested by the client

    Returns:
        Path to archive if found and valid, None otherwise
    """
    logs_dir = get_settings().logs_dir
    file_path = logs_dir / filename

    try:
        resolved = file_path.resolve()
        resolved.relative_to(logs_dir.resolve())
    except ValueError:
        logger.warning(f"Path traversal attempt detected: {filename}")
        return None

    if resolved.parent != logs_dir.resolve() or not resolved.is_file():
        return None

    return resolved


def delete_artifact_file(artifact_name: str) -> bool:
    """
    Remove the archive for a deleted log (best-effort).

    Runs after the registry entry is already gone; failures are logged
    and never reported to the client.

    Args:
        artifact_name: Archive base name

    Returns:
        True if the file was removed, False otherwise
    """
    file_path = get_settings().logs_dir / artifact_filename(artifact_name)
    logger.debug(f"Deleting log file: {file_path}")

    try:
        file_path.unlink()
    except OSError as e:
        logger.error(f"Error deleting file {file_path}: {e}")
        return False

    logger.info(f"Deleted log file {file_path}")
    return True
