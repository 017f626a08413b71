"""
Backup executor - runs the backup pipeline for one container.

Workflow:
1. Generate artifact name ({container}_{timestamp})
2. Ensure host directory {backup_dir}/{container} exists
3. Run pre-command (if configured)
4. Run backup command, redirected to {location}/{artifact} in the container
5. Copy the artifact from the container to the host directory
6. Run post-command (if configured)
7. Enforce retention on the host directory (only after success)

The first failing step aborts the backup. Partial state is left as is.
"""

import logging
import re
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from docker_backup_tool.models import BackupConfig, BackupRunResult
from .checks import CommandError, OutputSuccessCheck
from .retention import RetentionManager


logger = logging.getLogger(__name__)

MAX_ERROR_OUTPUT = 500


class BackupTimeoutError(Exception):
    """Raised when a container's backup exceeds the configured timeout."""
    pass


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """
    Filesystem-safe UTC timestamp that sorts chronologically as a string.

    ISO-8601 with millisecond precision and ':' / '.' replaced by '-',
    e.g. 2024-01-15T02-00-00-000Z.
    """
    if moment is None:
        moment = datetime.now(timezone.utc)
    iso = moment.astimezone(timezone.utc).isoformat(timespec='milliseconds')
    iso = iso.replace('+00:00', 'Z')
    return re.sub(r'[:.]', '-', iso)


def generate_artifact_name(container_name: str, moment: Optional[datetime] = None) -> str:
    """
    Generate a standardized artifact filename.

    Format: {container_name}_{timestamp}
    """
    return f"{container_name}_{format_timestamp(moment)}"


class BackupExecutor:
    """
    Executes the backup pipeline for a container.
    """

    def __init__(self, backup_dir: str, runtime, retention_manager: Optional[RetentionManager] = None,
                 success_check=None, timeout: float = 0):
        """
        Initialize backup executor.

        Args:
            backup_dir: Host root directory for backups
            runtime: DockerRuntime (or compatible) used for exec and copy
            retention_manager: Retention handler (default: RetentionManager())
            success_check: Callable judging ExecResults (default: OutputSuccessCheck())
            timeout: Seconds allowed for steps 3-6, 0 disables the limit
        """
        self.backup_dir = backup_dir
        self.runtime = runtime
        self.retention_manager = retention_manager or RetentionManager()
        self.success_check = success_check or OutputSuccessCheck()
        self.timeout = timeout

    def host_directory(self, config: BackupConfig) -> Path:
        return Path(self.backup_dir) / config.container_name

    def execute(self, config: BackupConfig) -> BackupRunResult:
        """
        Back up one container.

        Args:
            config: BackupConfig of the container

        Returns:
            BackupRunResult; failures are reported there, not raised
        """
        started = time.monotonic()
        artifact_name = generate_artifact_name(config.container_name)
        host_dir = self.host_directory(config)

        result = BackupRunResult(
            container_name=config.container_name,
            success=False,
            artifact=artifact_name
        )

        try:
            host_dir.mkdir(parents=True, exist_ok=True)

            if self.timeout:
                self._execute_with_timeout(config, artifact_name, host_dir)
            else:
                self._execute_workflow(config, artifact_name, host_dir)

        except Exception as e:
            result.error = str(e)
            result.duration = time.monotonic() - started
            logger.error(f"Backup failed for {config.container_name}: {e}")
            return result

        result.success = True
        result.duration = time.monotonic() - started
        logger.info(f"Backup completed for {config.container_name}: {artifact_name} ({result.duration:.2f}s)")

        self._cleanup(host_dir, config.retention)

        return result

    def _execute_workflow(self, config: BackupConfig, artifact_name: str, host_dir: Path):
        """Execute the in-container steps and the copy-out."""
        container_path = f"{config.location}/{artifact_name}"

        if config.pre_command:
            logger.debug(f"Executing pre-backup command for {config.container_name}")
            self.exec_in_container(config, config.pre_command)

        logger.debug(f"Starting backup for container: {config.container_name}")

        if config.command:
            self.exec_in_container(config, f"{config.command} > {container_path}")

        logger.debug(f"Copying {config.container_name}:{container_path} to {host_dir}")
        self.runtime.copy_from_container(config.container_id, container_path, str(host_dir))

        if config.post_command:
            logger.debug(f"Executing post-backup command for {config.container_name}")
            self.exec_in_container(config, config.post_command)

    def _execute_with_timeout(self, config: BackupConfig, artifact_name: str, host_dir: Path):
        # A hung exec cannot be cancelled, so the worker is a daemon and is abandoned on timeout
        errors = []

        def work():
            try:
                self._execute_workflow(config, artifact_name, host_dir)
            except Exception as e:
                errors.append(e)

        worker = threading.Thread(target=work, name=f"backup-{config.container_name}", daemon=True)
        worker.start()
        worker.join(self.timeout)

        if worker.is_alive():
            raise BackupTimeoutError(f"Backup timed out after {self.timeout:g}s")
        if errors:
            raise errors[0]

    def exec_in_container(self, config: BackupConfig, command: str) -> str:
        """
        Run a command inside the container and judge its result.

        Returns:
            Combined stdout/stderr output

        Raises:
            CommandError: If the success check rejects the result
        """
        result = self.runtime.exec(config.container_id, command)

        if not self.success_check(result):
            output = result.output.strip()
            if len(output) > MAX_ERROR_OUTPUT:
                output = output[:MAX_ERROR_OUTPUT] + '...'
            raise CommandError(
                f"Command failed (exit code {result.exit_code}): {output}",
                output=result.output,
                exit_code=result.exit_code
            )

        return result.output

    def _cleanup(self, host_dir: Path, retention: int):
        """Enforce retention; never fails the backup."""
        try:
            self.retention_manager.prune(host_dir, retention)
        except Exception as e:
            logger.error(f"Failed to cleanup old backups for {host_dir.name}: {e}")
