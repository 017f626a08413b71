"""
APScheduler configuration and job scheduling for docker-backup-tool.

Manages:
- The global backup job (CRON_SCHEDULE) plus an immediate run at startup
- One job per distinct per-container `.schedule` label, synced after every
  global run
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from apscheduler.executors.pool import ThreadPoolExecutor


logger = logging.getLogger(__name__)

GLOBAL_JOB_ID = 'backup_global'
INITIAL_JOB_ID = 'backup_initial'
SCHEDULE_JOB_PREFIX = 'schedule_'


class BackupScheduler:
    """
    Owns the APScheduler instance driving backup runs.

    Stopped -> Running on start(), back to Stopped on stop(). Stopping waits
    for an in-flight run to finish.
    """

    def __init__(self, runner, cron_schedule: str, timezone_name: str = 'UTC'):
        """
        Initialize the scheduler wrapper.

        Args:
            runner: BackupRunner executing the ticks
            cron_schedule: Global cron expression
            timezone_name: Timezone for cron evaluation
        """
        self.runner = runner
        self.cron_schedule = cron_schedule
        self.timezone = timezone_name
        self.scheduler: Optional[BackgroundScheduler] = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()

    @property
    def running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    def init_scheduler(self) -> BackgroundScheduler:
        """
        Create the APScheduler instance and the global backup job.

        Raises:
            ValueError: If the global cron expression is invalid
        """
        if self.scheduler is not None:
            return self.scheduler

        trigger = CronTrigger.from_crontab(self.cron_schedule, timezone=self.timezone)

        executors = {
            'default': ThreadPoolExecutor(max_workers=3)
        }

        job_defaults = {
            'coalesce': True,  # Combine multiple pending instances into one
            'max_instances': 1,  # Only one instance of a job at a time
            'misfire_grace_time': 300  # 5 minutes grace period for misfires
        }

        scheduler = BackgroundScheduler(
            executors=executors,
            job_defaults=job_defaults,
            timezone=self.timezone
        )

        scheduler.add_job(
            func=self.run_global,
            trigger=trigger,
            id=GLOBAL_JOB_ID,
            name=f"Backup: {self.cron_schedule}",
            replace_existing=True
        )

        self.scheduler = scheduler
        return scheduler

    def start(self, run_now: bool = True):
        """
        Start scheduling backups.

        Args:
            run_now: Also run a backup immediately
        """
        self.init_scheduler()

        if self.scheduler.running:
            logger.info(f"Scheduler already running (state={self.scheduler.state})")
            return

        logger.info(f"Starting backup tool with schedule: {self.cron_schedule}")
        self.scheduler.start()

        if run_now:
            self.scheduler.add_job(
                func=self.run_global,
                trigger=DateTrigger(run_date=datetime.now(timezone.utc) + timedelta(seconds=1)),
                id=INITIAL_JOB_ID,
                name="Backup: initial run",
                replace_existing=True
            )

        for job in self.get_scheduled_jobs():
            logger.info(f"  - {job['id']}: {job['name']} (next run: {job['next_run'] or 'N/A'})")

    def stop(self):
        """Stop scheduling; an in-flight run is allowed to finish."""
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=True)
            logger.info("Backup scheduler stopped")

    def run_global(self):
        """Run backups for containers on the global schedule."""
        summary = self.runner.run()
        if summary is not None and not summary.discovery_failed:
            self.sync_schedule_jobs(self.runner.schedule_index)
        return summary

    def run_schedule(self, schedule: str):
        """Run backups for containers with their own schedule."""
        return self.runner.run(schedule)

    def sync_schedule_jobs(self, schedule_index: Dict[str, List[str]]):
        """
        Synchronize per-container schedule jobs with the discovered labels.

        Adds a job for each new schedule expression, renames jobs whose
        container set changed and removes jobs no container uses anymore.

        Args:
            schedule_index: Cron expression -> container names
        """
        if self.scheduler is None:
            raise RuntimeError("Scheduler not initialized. Call init_scheduler() first.")

        scheduled_job_ids = {
            job.id for job in self.scheduler.get_jobs()
            if job.id.startswith(SCHEDULE_JOB_PREFIX)
        }

        for schedule, names in schedule_index.items():
            job_id = f"{SCHEDULE_JOB_PREFIX}{schedule}"
            job_name = f"Backup: {', '.join(sorted(names))} ({schedule})"

            if job_id in scheduled_job_ids:
                self.scheduler.modify_job(job_id, name=job_name)
                scheduled_job_ids.remove(job_id)
                continue

            try:
                trigger = CronTrigger.from_crontab(schedule, timezone=self.timezone)
            except ValueError as e:
                logger.error(f"Failed to schedule {job_name}: {e}")
                continue

            self.scheduler.add_job(
                func=self.run_schedule,
                args=[schedule],
                trigger=trigger,
                id=job_id,
                name=job_name,
                replace_existing=True
            )
            logger.info(f"Scheduled {job_name}")

        for leftover_id in scheduled_job_ids:
            self.scheduler.remove_job(leftover_id)
            logger.info(f"Removed schedule job no longer used by any container: {leftover_id}")

    def get_scheduled_jobs(self) -> list:
        """
        Get list of all scheduled jobs.

        Returns:
            List of dicts with job information
        """
        if self.scheduler is None:
            return []

        jobs = []

        for job in self.scheduler.get_jobs():
            next_run = getattr(job, 'next_run_time', None)
            jobs.append({
                'id': job.id,
                'name': job.name,
                'next_run': next_run.isoformat() if next_run else None,
                'trigger': str(job.trigger)
            })

        return jobs
