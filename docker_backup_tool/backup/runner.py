"""
Backup runner - one tick of the backup pipeline.

Discovery -> ConfigExtractor -> BackupExecutor for every labelled container,
sequentially. A failure in one container never stops the others.
"""

import logging
import threading
import time
from typing import Dict, List, Optional, Set

from docker_backup_tool.models import BackupConfig, BackupRunResult, RunSummary
from .discovery import Discovery
from .labels import ConfigExtractor


logger = logging.getLogger(__name__)


class BackupRunner:
    """
    Runs backups for all discovered containers.

    Only one run is active at a time. A run requested while the same
    schedule is running or waiting is skipped; runs for other schedules wait
    for the active one to finish.
    """

    def __init__(self, discovery: Discovery, extractor: ConfigExtractor, executor, default_schedule: str):
        """
        Initialize backup runner.

        Args:
            discovery: Discovery instance
            extractor: ConfigExtractor instance
            executor: BackupExecutor instance
            default_schedule: Global cron expression
        """
        self.discovery = discovery
        self.extractor = extractor
        self.executor = executor
        self.default_schedule = default_schedule
        self.schedule_index: Dict[str, List[str]] = {}
        self.last_summary: Optional[RunSummary] = None
        self._lock = threading.Lock()
        self._pending_lock = threading.Lock()
        self._pending: Set[Optional[str]] = set()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def own_schedule(self, config: BackupConfig) -> Optional[str]:
        """Schedule the container runs on, or None for the global one."""
        if config.schedule and config.schedule != self.default_schedule:
            return config.schedule
        return None

    def run(self, schedule: Optional[str] = None) -> Optional[RunSummary]:
        """
        Run backups once.

        Args:
            schedule: Only back up containers with this per-container
                schedule; None backs up containers on the global schedule

        Returns:
            RunSummary, or None if a run for the same schedule was still in progress
        """
        with self._pending_lock:
            if schedule in self._pending:
                logger.warning(f"Backup run already in progress, skipping tick (schedule: {schedule or 'global'})")
                return None
            self._pending.add(schedule)

        try:
            if not self._lock.acquire(blocking=False):
                logger.info(f"Waiting for the active backup run to finish (schedule: {schedule or 'global'})")
                self._lock.acquire()
            try:
                summary = self._run(schedule)
            finally:
                self._lock.release()
        finally:
            with self._pending_lock:
                self._pending.discard(schedule)

        self.last_summary = summary
        return summary

    def _run(self, schedule: Optional[str]) -> RunSummary:
        logger.info(f"Starting backup process (schedule: {schedule or self.default_schedule})")
        started = time.monotonic()

        summary = RunSummary(schedule=schedule)
        containers = self.discovery.list_backup_candidates()
        summary.discovery_failed = self.discovery.last_error is not None

        configs = [self.extractor.extract(c) for c in containers]

        # Only a global run sees every container, so only it refreshes the index
        if schedule is None and not summary.discovery_failed:
            self.schedule_index = self._build_schedule_index(configs)

        configs = [c for c in configs if self.own_schedule(c) == schedule]

        if not configs:
            logger.info("No containers found with backup labels")
            return summary

        logger.info(f"Found {len(configs)} containers to backup")

        for config in configs:
            reason = config.skip_reason()
            if reason is not None:
                if config.enabled:
                    logger.warning(f"Skipping container {config.container_name}: {reason}")
                else:
                    logger.info(f"Skipping container {config.container_name}: {reason}")
                summary.skipped.append(config.container_name)
                continue

            summary.results.append(self._backup_container(config))

        logger.info(
            f"Backup process completed in {time.monotonic() - started:.2f}s. "
            f"Successful: {summary.successful}, "
            f"Failed: {summary.failed}, "
            f"Skipped: {len(summary.skipped)}"
        )

        return summary

    def _backup_container(self, config: BackupConfig) -> BackupRunResult:
        try:
            return self.executor.execute(config)
        except Exception as e:
            logger.exception(f"Unexpected error backing up {config.container_name}")
            return BackupRunResult(container_name=config.container_name, success=False, error=str(e))

    def _build_schedule_index(self, configs: List[BackupConfig]) -> Dict[str, List[str]]:
        index: Dict[str, List[str]] = {}
        for config in configs:
            schedule = self.own_schedule(config)
            if schedule is not None and config.skip_reason() is None:
                index.setdefault(schedule, []).append(config.container_name)
        return index
