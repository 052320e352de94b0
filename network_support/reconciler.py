"""Rebuild the log registry from archives left on disk by a previous run"""

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from network_support.models import LogJob, LogState
from network_support.registry import LogRegistry


logger = logging.getLogger(__name__)


def parse_artifact_filename(filename: str, prefix: str, extension: str) -> Optional[LogJob]:
    """
    Turn an archive file name back into a completed log record.

    Args:
        filename: File name, e.g. "rancher-logs-111.zip"
        prefix: Archive prefix, e.g. "rancher-logs"
        extension: Archive extension without the dot, e.g. "zip"

    Returns:
        LogJob in state "created", or None if the name doesn't match
    """
    # Undecodable bytes come back as surrogates, which cannot be sent as JSON
    try:
        filename.encode("utf-8")
    except UnicodeEncodeError:
        return None

    pattern = rf"^(?P<name>{re.escape(prefix)}-(?P<id>.+))\.{re.escape(extension)}$"
    match = re.match(pattern, filename)
    if not match:
        return None

    return LogJob(
        id=match.group("id"),
        artifact_name=match.group("name"),
        state=LogState.DONE,
    )


def load_existing_logs(registry: LogRegistry, logs_dir: Path, prefix: str, extension: str) -> int:
    """
    Seed the registry with one completed log per archive found in logs_dir.

    Non-matching files are ignored. A missing or unreadable directory is
    logged and leaves the registry empty.

    Args:
        registry: Registry to populate
        logs_dir: Archive directory
        prefix: Archive prefix
        extension: Archive extension

    Returns:
        Number of logs loaded
    """
    logger.debug(f"Finding existing logs in {logs_dir}")

    try:
        entries = list(logs_dir.iterdir())
    except OSError as e:
        logger.error(f"Error reading existing logs from {logs_dir}: {e}")
        return 0

    loaded_count = 0
    for file_path in entries:
        if not file_path.is_file():
            continue

        log = parse_artifact_filename(file_path.name, prefix, extension)
        if log is None:
            logger.debug(f"Ignoring unrelated file: {file_path.name}")
            continue

        try:
            log.created_at = datetime.fromtimestamp(file_path.stat().st_mtime, tz=timezone.utc)
        except OSError as e:
            logger.debug(f"Cannot stat {file_path}, using current time: {e}")

        registry.put(log)
        loaded_count += 1
        logger.debug(f"Found log {log.id} ({file_path.name})")

    logger.info(f"Loaded {loaded_count} existing logs from {logs_dir}")
    return loaded_count
