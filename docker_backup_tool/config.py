import os
from dataclasses import dataclass
from typing import Optional

from apscheduler.util import astimezone


DEFAULT_LABEL_PREFIX = 'docker-backup-tool'
DEFAULT_BACKUP_DIR = '/backups'
DEFAULT_CRON_SCHEDULE = '0 2 * * *'  # Daily at 2 AM
DEFAULT_DOCKER_HOST = 'unix:///var/run/docker.sock'


def _env(environ, name: str, default: Optional[str] = None) -> Optional[str]:
    """Read an environment variable, treating empty strings as unset."""
    value = environ.get(name)
    if value is None or value.strip() == '':
        return default
    return value.strip()


@dataclass(frozen=True)
class Config:
    """Process-wide configuration, built once at startup"""

    # Backup
    label_prefix: str = DEFAULT_LABEL_PREFIX
    backup_dir: str = DEFAULT_BACKUP_DIR
    cron_schedule: str = DEFAULT_CRON_SCHEDULE

    # Docker
    docker_host: str = DEFAULT_DOCKER_HOST
    success_check: str = 'output'  # 'output' or 'exit_code'
    command_timeout: float = 0  # Seconds per container, 0 = no timeout

    # Scheduler
    timezone: str = 'UTC'

    # Logging
    log_level: str = 'INFO'
    log_dir: Optional[str] = None

    @classmethod
    def from_env(cls, environ=None) -> 'Config':
        """
        Build configuration from environment variables.

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            Config instance

        Raises:
            ValueError: If a numeric setting or the timezone cannot be parsed
        """
        if environ is None:
            environ = os.environ

        timeout = _env(environ, 'COMMAND_TIMEOUT', '0')
        try:
            command_timeout = float(timeout)
        except ValueError:
            raise ValueError(f"Invalid COMMAND_TIMEOUT: {timeout!r}")

        timezone = _env(environ, 'SCHEDULER_TIMEZONE', 'UTC')
        try:
            astimezone(timezone)
        except (KeyError, ValueError):
            raise ValueError(f"Invalid SCHEDULER_TIMEZONE: {timezone!r}")

        return cls(
            label_prefix=_env(environ, 'LABEL_PREFIX', DEFAULT_LABEL_PREFIX),
            backup_dir=_env(environ, 'BACKUP_DIR', DEFAULT_BACKUP_DIR),
            cron_schedule=_env(environ, 'CRON_SCHEDULE', DEFAULT_CRON_SCHEDULE),
            docker_host=_env(environ, 'DOCKER_HOST', DEFAULT_DOCKER_HOST),
            success_check=_env(environ, 'SUCCESS_CHECK', 'output').lower(),
            command_timeout=max(command_timeout, 0),
            timezone=timezone,
            log_level=_env(environ, 'LOG_LEVEL', 'INFO').upper(),
            log_dir=_env(environ, 'LOG_DIR'),
        )

    @property
    def debug(self) -> bool:
        return self.log_level == 'DEBUG'
