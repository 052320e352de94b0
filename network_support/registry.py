"""Thread-safe in-memory registry of log collection jobs"""

import logging
from threading import Lock
from typing import Dict, List, Optional, Tuple

from network_support.models import LogJob, LogState


logger = logging.getLogger(__name__)


class InvalidTransitionError(ValueError):
    """Raised when a state change would move a log backwards"""


class LogRegistry:
    """
    Authoritative map of log id -> LogJob.

    Every method takes the lock for the dict operation only and hands out
    copies, so callers never share the registry's own objects. The lock is
    a threading.Lock because the registry is used both from the event loop
    and from Starlette's thread pool.
    """

    def __init__(self):
        self._lock = Lock()
        self._logs: Dict[str, LogJob] = {}

    def put(self, log: LogJob) -> None:
        """Insert or overwrite the log stored at log.id"""
        stored = log.model_copy()
        with self._lock:
            self._logs[stored.id] = stored
        logger.debug(f"Stored log {stored.id} (state: {stored.state.value})")

    def get(self, log_id: str) -> Tuple[Optional[LogJob], bool]:
        """
        Look up a log by id.

        Returns:
            (copy of the log, True) or (None, False) if unknown
        """
        with self._lock:
            log = self._logs.get(log_id)
        if log is None:
            return None, False
        return log.model_copy(), True

    def delete(self, log_id: str) -> Tuple[Optional[LogJob], bool]:
        """
        Remove a log and return what was stored.

        Returns:
            (removed log, True) or (None, False) if unknown
        """
        with self._lock:
            log = self._logs.pop(log_id, None)
        if log is None:
            return None, False
        return log, True

    def list(self) -> List[LogJob]:
        """Snapshot of all logs. Order is unspecified."""
        with self._lock:
            logs = list(self._logs.values())
        return [log.model_copy() for log in logs]

    def transition(self, log_id: str, state: LogState, error: Optional[str] = None) -> bool:
        """
        Move a log from "creating" to a terminal state.

        Args:
            log_id: Log to update
            state: New state (DONE or FAILED)
            error: Failure reason, stored for FAILED only

        Returns:
            True if updated, False if the log no longer exists

        Raises:
            InvalidTransitionError: If the log already left "creating"
        """
        with self._lock:
            current = self._logs.get(log_id)
            if current is None:
                updated = None
            elif current.state != LogState.IN_PROGRESS or state == LogState.IN_PROGRESS:
                raise InvalidTransitionError(
                    f"Log {log_id} cannot move from {current.state.value} to {state.value}"
                )
            else:
                updated = current.model_copy(update={
                    "state": state,
                    "error": error if state == LogState.FAILED else None,
                })
                self._logs[log_id] = updated

        if updated is None:
            logger.debug(f"Log {log_id} was deleted before reaching {state.value}, ignoring")
            return False
        logger.debug(f"Log {log_id} is now {state.value}")
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._logs)

    def __contains__(self, log_id: object) -> bool:
        with self._lock:
            return log_id in self._logs
