"""Runs the external log collector for each new log"""

import asyncio
import logging
from typing import Optional, Set

from network_support.config import Settings
from network_support.models import LogJob, LogState
from network_support.registry import LogRegistry


logger = logging.getLogger(__name__)


class CollectorError(Exception):
    """The collector could not be started or exited with an error"""


class CollectorRunner:
    """
    Spawns one background task per log that runs the collector script.

    The only way a task reports back is the registry update; callers get
    no handle and nothing can be cancelled.
    """

    def __init__(self, registry: LogRegistry, settings: Settings):
        self.registry = registry
        self.settings = settings
        self._tasks: Set[asyncio.Task] = set()  # strong refs until done

    def generate(self, log: LogJob) -> None:
        """
        Start collecting logs for a new log record and return immediately.

        Must be called from the event loop.

        Args:
            log: Freshly created log (state "creating")
        """
        task = asyncio.create_task(self.collect(log), name=f"collect-{log.id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug(f"Scheduled collection for log {log.id}")

    async def collect(self, log: LogJob) -> None:
        """
        Run the collector and record the outcome in the registry.

        Args:
            log: Log being collected
        """
        logger.debug(f"Start: collecting logs {log.id}")

        try:
            await self._run_collector(log.artifact_name)
        except CollectorError as e:
            logger.error(f"Error collecting logs for {log.id}: {e}")
            if self.settings.mark_failed_jobs:
                self.registry.transition(log.id, LogState.FAILED, error=str(e))
            return
        except Exception as e:
            logger.exception(f"Unexpected error collecting logs for {log.id}: {e}")
            if self.settings.mark_failed_jobs:
                self.registry.transition(log.id, LogState.FAILED, error=f"{type(e).__name__}: {e}")
            return

        logger.debug(f"End: collecting logs {log.artifact_name}")
        self.registry.transition(log.id, LogState.DONE)
        logger.info(f"Log {log.id} collected successfully")

    async def _run_collector(self, artifact_name: str) -> None:
        """
        Execute the collector script and wait for it to exit.

        Args:
            artifact_name: Archive base name passed to the script

        Raises:
            CollectorError: If the script can't be started or exits non-zero
        """
        args = [
            str(self.settings.logs_dir),
            artifact_name,
            str(self.settings.history_length),
        ]
        logger.info(f"Executing: {self.settings.collector_command} {' '.join(args)}")

        try:
            # stdout/stderr are inherited so the script's output lands in ours
            process = await asyncio.create_subprocess_exec(
                self.settings.collector_command,
                *args,
            )
        except OSError as e:
            raise CollectorError(f"Failed to start {self.settings.collector_command}: {e}") from e

        returncode = await process.wait()
        if returncode != 0:
            raise CollectorError(
                f"{self.settings.collector_command} exited with status {returncode}"
            )

    def pending(self) -> int:
        """Number of collections still running"""
        return len(self._tasks)

    async def wait_idle(self, timeout: Optional[float] = None) -> None:
        """
        Wait for all running collections to finish.

        Args:
            timeout: Give up after this many seconds (None = wait forever)
        """
        tasks = list(self._tasks)
        if not tasks:
            return
        done, still_running = await asyncio.wait(tasks, timeout=timeout)
        if still_running:
            logger.warning(f"{len(still_running)} collections still running")
