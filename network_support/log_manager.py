"""Log lifecycle management: creation, lookup, listing and deletion"""

import logging
import time
from threading import Lock
from typing import List, Optional

from network_support.config import get_settings
from network_support.models import LogJob, LogState
from network_support.registry import LogRegistry
from network_support.collector import CollectorRunner
from network_support.reconciler import load_existing_logs
from network_support.artifacts import artifact_name_for


logger = logging.getLogger(__name__)


class LogIdGenerator:
    """
    Issues nanosecond-timestamp ids that are strictly increasing.

    Two calls in the same clock tick get consecutive values instead of
    the same one.
    """

    def __init__(self):
        self._lock = Lock()
        self._last = 0

    def next_id(self) -> str:
        with self._lock:
            value = max(time.time_ns(), self._last + 1)
            self._last = value
        return str(value)


class LogManager:
    """
    Manages log lifecycle on top of the registry and the collector runner.

    Singleton pattern - one instance per application.
    """

    def __init__(self):
        """Initialize log manager and reload archives from disk"""
        self.settings = get_settings()
        self.registry = LogRegistry()
        self.runner = CollectorRunner(self.registry, self.settings)
        self._ids = LogIdGenerator()
        load_existing_logs(
            self.registry,
            self.settings.logs_dir,
            self.settings.artifact_prefix,
            self.settings.archive_extension,
        )

    def new_log(self) -> LogJob:
        """Allocate a log record in state "creating" (not yet registered)"""
        log_id = self._ids.next_id()
        log = LogJob(id=log_id, artifact_name=artifact_name_for(log_id), state=LogState.IN_PROGRESS)
        logger.debug(f"New log: {log.id}")
        return log

    def create_log(self) -> LogJob:
        """
        Register a new log and start collecting it in the background.

        Must be called from the event loop.

        Returns:
            The new log, always in state "creating"
        """
        log = self.new_log()
        self.registry.put(log)
        self.runner.generate(log)
        logger.info(f"Created log {log.id}")
        return log

    def get_log(self, log_id: str) -> Optional[LogJob]:
        """
        Get a log by ID.

        Args:
            log_id: Log identifier

        Returns:
            Log if found, None otherwise
        """
        log, found = self.registry.get(log_id)
        return log if found else None

    def list_logs(self) -> List[LogJob]:
        """All known logs, newest first"""
        logs = self.registry.list()
        logs.sort(key=lambda log: log.created_at, reverse=True)
        return logs

    def delete_log(self, log_id: str) -> Optional[LogJob]:
        """
        Remove a log from the registry.

        The caller is responsible for scheduling removal of the archive;
        a collection still running for this log is not stopped.

        Args:
            log_id: Log to remove

        Returns:
            The removed log, or None if not found
        """
        log, found = self.registry.delete(log_id)
        if not found:
            logger.warning(f"Cannot delete log {log_id}: not found")
            return None
        logger.info(f"Deleted log {log_id} (state: {log.state.value})")
        return log


# Global log manager instance
_log_manager: Optional[LogManager] = None


def get_log_manager() -> LogManager:
    """
    Get or create the global log manager instance.

    Returns:
        LogManager instance
    """
    global _log_manager
    if _log_manager is None:
        _log_manager = LogManager()
    return _log_manager


def reset_log_manager() -> None:
    """Drop the global instance so the next call rescans the logs directory"""
    global _log_manager
    _log_manager = None
