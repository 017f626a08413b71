from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class ContainerInfo:
    """Container as reported by the runtime"""
    id: str
    names: List[str] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)
    state: Optional[str] = None

    @property
    def short_id(self) -> str:
        return self.id[:12]

    def __repr__(self):
        return f'<ContainerInfo {self.short_id} names={self.names} state={self.state}>'


@dataclass
class BackupConfig:
    """Backup configuration derived from a container's labels"""
    container_id: str
    container_name: str
    enabled: bool = False
    command: Optional[str] = None
    location: str = '/tmp/backup'
    schedule: Optional[str] = None  # Cron expression overriding the global schedule
    retention: int = 7  # Number of artifacts to keep
    pre_command: Optional[str] = None
    post_command: Optional[str] = None

    def skip_reason(self) -> Optional[str]:
        """
        Reason this container must not be backed up, or None if it can be.

        A skipped container is not a failed backup.
        """
        if not self.enabled:
            return 'backup disabled'
        if not self.command:
            return 'no backup command specified'
        return None

    def __repr__(self):
        return f'<BackupConfig {self.container_name} enabled={self.enabled} retention={self.retention}>'


@dataclass
class BackupRunResult:
    """Outcome of one container's backup within a tick"""
    container_name: str
    success: bool
    artifact: Optional[str] = None
    error: Optional[str] = None
    duration: float = 0.0


@dataclass
class RunSummary:
    """Aggregated results of one scheduler tick"""
    schedule: Optional[str] = None
    results: List[BackupRunResult] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    discovery_failed: bool = False

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    def __repr__(self):
        return f'<RunSummary successful={self.successful} failed={self.failed} skipped={len(self.skipped)}>'
