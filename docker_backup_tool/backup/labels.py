"""
Label schema and per-container backup configuration.

Labels (prefix configurable, default `docker-backup-tool`):

    {prefix}.backup        "true" to enable (required)
    {prefix}.command       backup command run inside the container (required)
    {prefix}.location      in-container output directory (default /tmp/backup)
    {prefix}.retention     artifacts kept per container (default 7)
    {prefix}.pre_command   run before the backup command
    {prefix}.post_command  run after the artifact was copied
    {prefix}.schedule      cron expression overriding the global schedule
"""

import logging
from typing import Dict, Optional

from apscheduler.triggers.cron import CronTrigger

from docker_backup_tool.models import BackupConfig, ContainerInfo


logger = logging.getLogger(__name__)

DEFAULT_LOCATION = '/tmp/backup'
DEFAULT_RETENTION = 7


class ConfigExtractor:
    """
    Turns a container's labels into a BackupConfig.

    Never raises for bad label values: invalid values fall back to defaults
    and are logged.
    """

    def __init__(self, label_prefix: str):
        self.label_prefix = label_prefix

    def extract(self, container: ContainerInfo) -> BackupConfig:
        labels = container.labels or {}
        name = container_name(container)

        location = self._label(labels, 'location') or DEFAULT_LOCATION
        if len(location) > 1:
            location = location.rstrip('/')

        return BackupConfig(
            container_id=container.id,
            container_name=name,
            enabled=labels.get(f'{self.label_prefix}.backup') == 'true',
            command=self._label(labels, 'command'),
            location=location,
            schedule=self._parse_schedule(name, self._label(labels, 'schedule')),
            retention=self._parse_retention(name, self._label(labels, 'retention')),
            pre_command=self._label(labels, 'pre_command'),
            post_command=self._label(labels, 'post_command')
        )

    def _label(self, labels: Dict[str, str], suffix: str) -> Optional[str]:
        value = labels.get(f'{self.label_prefix}.{suffix}')
        if value is None or value.strip() == '':
            return None
        return value

    def _parse_retention(self, name: str, value: Optional[str]) -> int:
        if value is None:
            return DEFAULT_RETENTION

        try:
            retention = int(value.strip())
        except ValueError:
            logger.warning(f"Invalid retention {value!r} for {name}, using {DEFAULT_RETENTION}")
            return DEFAULT_RETENTION

        # 0 parses fine but would prune every artifact
        if retention < 1:
            logger.warning(f"Retention must be at least 1 for {name} (got {retention}), using {DEFAULT_RETENTION}")
            return DEFAULT_RETENTION

        return retention

    def _parse_schedule(self, name: str, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None

        schedule = ' '.join(value.split())
        try:
            CronTrigger.from_crontab(schedule)
        except ValueError as e:
            logger.warning(f"Invalid schedule {value!r} for {name}, using global schedule: {e}")
            return None

        return schedule


def container_name(container: ContainerInfo) -> str:
    """
    Primary container name without the leading '/'.

    Falls back to the short ID when the runtime reports no names.
    """
    if not container.names:
        return container.short_id

    name = container.names[0]
    if name.startswith('/'):
        name = name[1:]
    return name or container.short_id
